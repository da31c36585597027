import logging
from upstash_redis import Redis
from typing import Optional

from app.config import settings


logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[Redis] = None


async def init_redis():
    """Initialize Upstash Redis connection."""
    global redis_client

    if not settings.UPSTASH_REDIS_URL or not settings.UPSTASH_REDIS_TOKEN:
        logger.info("Upstash Redis not configured - like quota disabled")
        return

    redis_client = Redis(
        url=settings.UPSTASH_REDIS_URL,
        token=settings.UPSTASH_REDIS_TOKEN,
    )
    logger.info("Redis (Upstash) initialized")


async def close_redis():
    """Close Redis connection."""
    global redis_client
    redis_client = None
    logger.info("Redis connection closed")


def get_redis() -> Optional[Redis]:
    """Get Redis client instance, or None when Redis is not configured."""
    return redis_client


class RedisService:
    """
    Redis service for per-user counters.
    Optimized for Upstash free tier (10k commands/day).
    """

    def __init__(self, client: Optional[Redis] = None):
        self.client = client

    @property
    def enabled(self) -> bool:
        return self.client is not None

    # ==================== Rate Limiting ====================

    async def check_like_limit(self, user_id: str) -> tuple[bool, int]:
        """
        Check if user has exceeded daily like limit.
        Returns (is_allowed, remaining_likes).
        """
        limit = settings.LIKE_LIMIT_PER_DAY
        if not self.enabled:
            return True, limit

        key = f"ratelimit:like:{user_id}"
        count = self.client.get(key)

        if count is None:
            # First like of the day
            self.client.setex(key, 86400, "1")  # 24 hour expiry
            return True, limit - 1

        current_count = int(count)
        if current_count >= limit:
            return False, 0

        self.client.incr(key)
        return True, limit - current_count - 1
