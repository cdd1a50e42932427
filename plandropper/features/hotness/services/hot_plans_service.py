"""
Hot plans read accessor with a Redis read-through cache.
"""

import json
from typing import Any

from fastapi.encoders import jsonable_encoder

from plandropper.config import settings
from plandropper.db.helpers import DatabaseError
from plandropper.features.hotness.domain.errors import FetchError, ValidationError
from plandropper.features.hotness.domain.models import HotnessPeriod
from plandropper.features.hotness.pipeline.scoring.repository import PlanScoreRepository
from plandropper.features.hotness.services.feed_cache import (
    FeedCacheInvalidator,
    FeedCacheTarget,
)
from plandropper.infrastructure.observability.logging import get_logger
from plandropper.services.redis_client import RedisClient

logger = get_logger(__name__)

DEFAULT_HOT_PLANS_LIMIT = 5
MAX_HOT_PLANS_LIMIT = 50


class HotPlansService:
    """Top-N plans per period: non-canceled, verified, score > 0, highest first."""

    def __init__(
        self,
        repository: PlanScoreRepository,
        redis: RedisClient,
        invalidator: FeedCacheInvalidator,
        cache_ttl_seconds: int | None = None,
    ):
        self._repository = repository
        self._redis = redis
        self._invalidator = invalidator
        self._cache_ttl_seconds = (
            cache_ttl_seconds
            if cache_ttl_seconds is not None
            else settings.HOT_PLANS_CACHE_TTL_SECONDS
        )

    async def get_hot_plans(
        self,
        period: HotnessPeriod = HotnessPeriod.WEEKLY,
        limit: int = DEFAULT_HOT_PLANS_LIMIT,
    ) -> list[dict[str, Any]]:
        if not 1 <= limit <= MAX_HOT_PLANS_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_HOT_PLANS_LIMIT}")

        generation = await self._invalidator.generation(FeedCacheTarget.HOT_PLANS)
        cache_key = f"feed:hot_plans:{generation}:{period.value}:{limit}"

        cached = await self._redis.get(cache_key)
        if cached:
            try:
                return json.loads(cached)
            except json.JSONDecodeError:
                logger.warning("Discarding corrupt hot plans cache entry", key=cache_key)

        try:
            rows = await self._repository.fetch_hot_plans(period, limit)
        except DatabaseError as exc:
            logger.error("Failed to fetch hot plans", period=period.value, error=str(exc))
            raise FetchError(
                f"Failed to fetch {period.value} hot plans", recoverable=exc.recoverable
            ) from exc

        plans = jsonable_encoder(rows)
        if self._cache_ttl_seconds > 0:
            await self._redis.set_with_ttl(cache_key, json.dumps(plans), self._cache_ttl_seconds)

        logger.debug("Hot plans loaded", period=period.value, limit=limit, count=len(plans))
        return plans
