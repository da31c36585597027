import logging
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import AuthenticationError
from app.models.match import Like, Match
from app.models.user import Profile, utcnow
from app.utils.geo import bounding_box, calculate_distance

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Finds profiles for the actor to swipe on."""

    def __init__(self, db: AsyncSession, actor_id: Optional[str]):
        self.db = db
        self.actor_id = actor_id

    def _require_actor(self) -> str:
        if not self.actor_id:
            raise AuthenticationError()
        return self.actor_id

    async def browse(self, limit: int = 50) -> Sequence[Profile]:
        """Other users' profiles, no filtering beyond excluding the actor."""
        actor_id = self._require_actor()
        result = await self.db.execute(
            select(Profile).where(Profile.id != actor_id).limit(limit)
        )
        return result.scalars().all()

    async def _excluded_ids(self, actor_id: str) -> set:
        """The actor, everyone they already liked, and everyone they matched with."""
        liked = await self.db.execute(
            select(Like.to_user_id).where(Like.from_user_id == actor_id)
        )
        matches = await self.db.execute(
            select(Match).where(
                or_(
                    Match.user_a_id == actor_id,
                    Match.user_b_id == actor_id,
                )
            )
        )
        excluded = {actor_id}
        excluded.update(row[0] for row in liked.all())
        excluded.update(match.other_user_id(actor_id) for match in matches.scalars().all())
        return excluded

    async def nearby(
        self,
        lat: float,
        lng: float,
        radius_km: float = 10,
        age_min: int = 18,
        age_max: int = 100,
        gender_preference: Optional[List[str]] = None,
    ) -> List[Tuple[Profile, float]]:
        """
        Profiles active recently within radius_km of (lat, lng),
        closest first, paired with their distance in kilometers.
        """
        actor_id = self._require_actor()

        # Searching counts as activity
        await self.db.execute(
            update(Profile).where(Profile.id == actor_id).values(last_active_at=utcnow())
        )

        excluded = await self._excluded_ids(actor_id)
        active_since = utcnow() - timedelta(days=settings.ACTIVE_WITHIN_DAYS)
        box = bounding_box(lat, lng, radius_km)

        query = select(Profile).where(
            Profile.id.not_in(excluded),
            Profile.age >= age_min,
            Profile.age <= age_max,
            Profile.last_active_at >= active_since,
            Profile.lat.between(box.min_lat, box.max_lat),
            Profile.lng.is_not(None),
        )
        if box.min_lng is not None:
            query = query.where(Profile.lng.between(box.min_lng, box.max_lng))
        if gender_preference:
            query = query.where(Profile.gender.in_(gender_preference))

        result = await self.db.execute(query)

        nearby = []
        for profile in result.scalars().all():
            distance = calculate_distance(lat, lng, profile.lat, profile.lng)
            if distance <= radius_km:
                nearby.append((profile, distance))

        nearby.sort(key=lambda item: item[1])
        logger.debug("Nearby search for %s returned %d profiles", actor_id, len(nearby))
        return nearby
