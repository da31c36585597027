"""
Shared test fixtures.

Every test gets a fresh in-memory SQLite database. The app's get_db and
Redis dependencies are overridden; tokens are minted with the test secret.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")
# Optional integrations stay off; tests fake them explicitly
for key in ("AI_API_KEY", "AI_FALLBACK_API_KEY", "FIREBASE_PROJECT_ID", "UPSTASH_REDIS_URL"):
    os.environ[key] = ""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Optional

import httpx
import jwt
import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.dependencies import get_broadcaster, get_redis_service
from app.core.realtime import MessageBroadcaster
from app.db.redis import RedisService
from app.db.session import Base, get_db
from app.main import app
from app.models.user import Profile


# ============ Tokens ============

def make_token(user_id: str, expires_in: int = 3600, **claims: Any) -> str:
    payload = {
        "sub": user_id,
        "aud": settings.AUTH_JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# ============ Database ============

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # aiosqlite's implicit transactions break SAVEPOINT, issue BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_profile(
    factory,
    user_id: str,
    display_name: Optional[str] = None,
    **fields: Any,
) -> Profile:
    fields.setdefault("age", 25)
    fields.setdefault("gender", "female")
    fields.setdefault("interests", [])
    fields.setdefault("photo_urls", [])
    async with factory() as db:
        profile = Profile(id=user_id, display_name=display_name or f"User {user_id}", **fields)
        db.add(profile)
        await db.commit()
        return profile


async def count_rows(factory, model, *criteria) -> int:
    async with factory() as db:
        result = await db.execute(select(func.count()).select_from(model).where(*criteria))
        return result.scalar_one()


async def fetch_all(factory, model, *criteria) -> list:
    async with factory() as db:
        result = await db.execute(select(model).where(*criteria))
        return list(result.scalars().all())


# ============ Fakes ============

class FakeRedisService(RedisService):
    """Like quota with an in-memory counter."""

    def __init__(self, limit: int = 100):
        super().__init__(None)
        self.limit = limit
        self.counts: dict = {}

    async def check_like_limit(self, user_id: str) -> tuple[bool, int]:
        count = self.counts.get(user_id, 0)
        if count >= self.limit:
            return False, 0
        self.counts[user_id] = count + 1
        return True, self.limit - count - 1


# ============ App ============

@pytest.fixture
def fake_redis() -> FakeRedisService:
    return FakeRedisService()


@pytest.fixture
def broadcaster() -> MessageBroadcaster:
    return MessageBroadcaster()


@pytest_asyncio.fixture
async def client(session_factory, fake_redis, broadcaster) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_service] = lambda: fake_redis
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
