"""
Short-lived Redis cache for availability reads.

Keys embed a generation number that every appointment write increments, so
a write makes all cached slot lists unreachable at once. Redis failures are
logged and treated as cache misses.
"""
import json
import logging
from typing import Any, Callable, Optional

from redis.exceptions import RedisError

from salon_booking.config.redis import RedisKeys, get_redis
from salon_booking.config.settings import get_settings

logger = logging.getLogger(__name__)


class AvailabilityCache:
    def __init__(self, client_factory: Optional[Callable] = None, enabled: Optional[bool] = None,
                 ttl_seconds: Optional[int] = None):
        settings = get_settings()
        self._client_factory = client_factory or get_redis
        self.enabled = settings.AVAILABILITY_CACHE_ENABLED if enabled is None else enabled
        self.ttl_seconds = ttl_seconds or settings.AVAILABILITY_CACHE_TTL_SECONDS

    async def _generation(self, client) -> int:
        value = await client.get(RedisKeys.AVAILABILITY_GENERATION)
        return int(value) if value else 0

    async def get_or_compute(self, key_pattern: str, params: dict, compute: Callable[[], Any]) -> Any:
        """Cached value for key_pattern formatted with params, else compute() and store it"""
        if not self.enabled:
            return compute()

        key = None
        try:
            client = await self._client_factory()
            key = key_pattern.format(generation=await self._generation(client), **params)
            cached = await client.get(key)
            if cached is not None:
                logger.debug(f"Availability cache hit: {key}")
                return json.loads(cached)
        except RedisError as e:
            logger.warning(f"Availability cache read failed, computing directly: {e}")
            return compute()

        result = compute()

        try:
            await client.set(key, json.dumps(result), ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning(f"Availability cache write failed for {key}: {e}")

        return result

    async def invalidate(self) -> None:
        """Make every cached availability result stale"""
        if not self.enabled:
            return
        try:
            client = await self._client_factory()
            await client.incr(RedisKeys.AVAILABILITY_GENERATION)
        except RedisError as e:
            logger.warning(f"Availability cache invalidation failed: {e}")


def get_availability_cache() -> AvailabilityCache:
    """FastAPI dependency"""
    return AvailabilityCache()
