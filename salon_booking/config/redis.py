# salon_booking/config/redis.py
"""Redis configuration and connection setup"""
import redis.asyncio as redis
from typing import Optional

from salon_booking.config.settings import get_settings

settings = get_settings()

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Get or create Redis connection pool"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """Get Redis client from pool"""
    pool = get_redis_pool()
    return redis.Redis(connection_pool=pool)


# Redis key patterns for different data types
class RedisKeys:
    """Redis key patterns for consistent naming"""

    # Bumped on every appointment write; part of every availability key
    AVAILABILITY_GENERATION = "availability:generation"

    AVAILABLE_SLOTS = (
        "availability:{generation}:slots:{service_id}:{date}"
        ":emp:{employee_id}:addons:{addons}:td:{total_duration}:at:{now}"
    )
    AVAILABLE_DAYS = (
        "availability:{generation}:days:{service_id}:{year}-{month}"
        ":emp:{employee_id}:addons:{addons}:today:{today}"
    )
