"""
Feed cache invalidation.

Each cached feed view (home listing, hot-plans listing) is keyed by a
generation counter in Redis. Marking a view stale bumps its counter, so every
key built from the previous generation stops being read and ages out via TTL.
"""

from collections.abc import Iterable
from enum import Enum

from plandropper.infrastructure.observability.logging import get_logger
from plandropper.services.redis_client import RedisClient

logger = get_logger(__name__)


class FeedCacheTarget(str, Enum):
    HOME = "home"
    HOT_PLANS = "hot_plans"


SCORE_DEPENDENT_TARGETS = (FeedCacheTarget.HOME, FeedCacheTarget.HOT_PLANS)


class FeedCacheInvalidator:
    def __init__(self, redis: RedisClient):
        self._redis = redis

    @staticmethod
    def generation_key(target: FeedCacheTarget) -> str:
        return f"feed:generation:{target.value}"

    async def generation(self, target: FeedCacheTarget) -> str:
        return await self._redis.get(self.generation_key(target)) or "0"

    async def mark_stale(
        self, targets: Iterable[FeedCacheTarget] = SCORE_DEPENDENT_TARGETS
    ) -> None:
        """Best effort: a Redis outage leaves caches to expire on TTL."""
        for target in targets:
            generation = await self._redis.incr_with_ttl(self.generation_key(target))
            if generation is None:
                logger.error("Failed to invalidate feed cache", target=target.value)
                continue
            logger.debug("Feed cache marked stale", target=target.value, generation=generation)
