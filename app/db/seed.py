"""
Seed demo profiles and events for manual testing.

Profile ids normally come from the identity provider; the demo profiles use
fixed ids so tokens can be minted for them with the shared JWT secret.

Usage:
    python -m app.db.seed
    python -m app.db.seed --clear-events
"""

import argparse
import asyncio
import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import async_session_maker, init_db
from app.models.event import Event
from app.models.user import Profile, utcnow
from app.utils.geo import encode_geohash

logger = logging.getLogger(__name__)

DEMO_PROFILES = [
    {
        "id": "demo-alice",
        "display_name": "Alice Johnson",
        "age": 25,
        "gender": "female",
        "preferences_gender": ["male"],
        "bio": "Love hiking and outdoor adventures! Looking for someone to explore the city with.",
        "interests": ["hiking", "photography", "travel"],
        "lat": 40.7128,
        "lng": -74.0060,
        "photo_urls": ["/images/users/sarahJohnson.jpeg"],
    },
    {
        "id": "demo-bob",
        "display_name": "Bob Smith",
        "age": 28,
        "gender": "male",
        "preferences_gender": ["female"],
        "bio": "Musician and coffee enthusiast. Always up for a good conversation over coffee.",
        "interests": ["music", "coffee", "books"],
        "lat": 40.7589,
        "lng": -73.9851,
        "photo_urls": ["/images/users/emmaWilson.jpeg"],
    },
    {
        "id": "demo-charlie",
        "display_name": "Charlie Brown",
        "age": 30,
        "gender": "male",
        "preferences_gender": ["female"],
        "bio": "Foodie and fitness enthusiast. Love trying new restaurants and staying active.",
        "interests": ["fitness", "cooking", "travel"],
        "lat": 40.7505,
        "lng": -73.9934,
        "photo_urls": ["/images/users/oliviaBrown.jpeg"],
    },
    {
        "id": "demo-diana",
        "display_name": "Diana Prince",
        "age": 27,
        "gender": "female",
        "preferences_gender": ["male"],
        "bio": "Artist and yoga instructor. Looking for someone who appreciates creativity and mindfulness.",
        "interests": ["art", "yoga", "meditation"],
        "lat": 40.7614,
        "lng": -73.9776,
        "photo_urls": ["/images/users/avaDavis.jpeg"],
    },
]

DEMO_EVENTS = [
    {
        "title": "Speed Dating Night",
        "category": "Dating",
        "description": "Meet new people in a fun, structured environment",
        "lat": 40.7128,
        "lng": -74.0060,
        "location_name": "Downtown Cafe",
        "days_ahead": 1,
    },
    {
        "title": "Wine Tasting Experience",
        "category": "Social",
        "description": "Sample wines from local vineyards",
        "lat": 40.7589,
        "lng": -73.9851,
        "location_name": "Vintage Cellars",
        "days_ahead": 2,
    },
    {
        "title": "Cooking Class for Couples",
        "category": "Dating",
        "description": "Learn to cook together and bond over food",
        "lat": 40.7505,
        "lng": -73.9934,
        "location_name": "Culinary Studio",
        "days_ahead": 3,
    },
]


async def seed_database(db: AsyncSession) -> dict:
    """Insert demo rows that are not there yet. Returns counts of created rows."""
    created = {"profiles": 0, "events": 0}

    for data in DEMO_PROFILES:
        if await db.get(Profile, data["id"]) is not None:
            logger.info("Profile %s already exists, skipping", data["id"])
            continue
        db.add(Profile(**data, geohash=encode_geohash(data["lat"], data["lng"])))
        created["profiles"] += 1

    result = await db.execute(select(Event.title))
    existing_titles = {row[0] for row in result.all()}
    now = utcnow()
    for data in DEMO_EVENTS:
        if data["title"] in existing_titles:
            continue
        fields = {key: value for key, value in data.items() if key != "days_ahead"}
        db.add(Event(**fields, starts_at=now + timedelta(days=data["days_ahead"])))
        created["events"] += 1

    await db.commit()
    return created


async def clear_events(db: AsyncSession) -> int:
    """Delete every event. Returns the number of deleted rows."""
    result = await db.execute(delete(Event))
    await db.commit()
    return result.rowcount


async def run(clear: bool) -> None:
    await init_db()
    async with async_session_maker() as db:
        if clear:
            deleted = await clear_events(db)
            logger.info("Deleted %d events", deleted)
            return
        created = await seed_database(db)
        logger.info(
            "Seeding completed: %d profiles, %d events created",
            created["profiles"],
            created["events"],
        )
        for data in DEMO_PROFILES:
            logger.info("Demo user: %s (%s)", data["display_name"], data["id"])


def main():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--clear-events", action="store_true", help="delete all events and exit")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(run(args.clear_events))


if __name__ == "__main__":
    main()
