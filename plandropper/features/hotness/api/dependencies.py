"""
FastAPI dependencies that assemble hotness services per request.

The database pool and Redis client are owned by the application lifespan and
live on app.state; everything built here is a thin object over them.
"""

from fastapi import Depends, Request

from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.features.hotness.pipeline.abuse.service import AbuseDetector
from plandropper.features.hotness.pipeline.aggregation.repository import (
    HotnessAggregationRepository,
)
from plandropper.features.hotness.pipeline.aggregation.service import HotnessAggregationService
from plandropper.features.hotness.pipeline.scoring.repository import PlanScoreRepository
from plandropper.features.hotness.pipeline.scoring.service import HotnessScoringService
from plandropper.features.hotness.recorder.repository import InteractionRepository
from plandropper.features.hotness.recorder.service import InteractionRecorder
from plandropper.features.hotness.services.analytics_service import PlanAnalyticsService
from plandropper.features.hotness.services.feed_cache import FeedCacheInvalidator
from plandropper.features.hotness.services.hot_plans_service import HotPlansService
from plandropper.services.redis_client import RedisClient


def build_scoring_service(
    db: DatabasePoolManager, redis: RedisClient, policy: HotnessPolicy | None = None
) -> HotnessScoringService:
    """Wire the scoring pipeline over one pool and one Redis client."""
    policy = policy or HotnessPolicy.from_settings()
    plan_repository = PlanScoreRepository(db)
    return HotnessScoringService(
        aggregation_service=HotnessAggregationService(
            HotnessAggregationRepository(db), plan_repository, policy=policy
        ),
        plan_repository=plan_repository,
        abuse_detector=AbuseDetector(policy),
        invalidator=FeedCacheInvalidator(redis),
        policy=policy,
    )


def get_db_pool(request: Request) -> DatabasePoolManager:
    return request.app.state.db_pool


def get_redis(request: Request) -> RedisClient:
    return request.app.state.redis


def get_scoring_service(
    db: DatabasePoolManager = Depends(get_db_pool),
    redis: RedisClient = Depends(get_redis),
) -> HotnessScoringService:
    return build_scoring_service(db, redis)


def get_interaction_recorder(
    db: DatabasePoolManager = Depends(get_db_pool),
    scoring_service: HotnessScoringService = Depends(get_scoring_service),
) -> InteractionRecorder:
    return InteractionRecorder(
        InteractionRepository(db),
        PlanScoreRepository(db),
        scoring_service,
        policy=HotnessPolicy.from_settings(),
    )


def get_hot_plans_service(
    db: DatabasePoolManager = Depends(get_db_pool),
    redis: RedisClient = Depends(get_redis),
) -> HotPlansService:
    return HotPlansService(PlanScoreRepository(db), redis, FeedCacheInvalidator(redis))


def get_analytics_service(
    db: DatabasePoolManager = Depends(get_db_pool),
) -> PlanAnalyticsService:
    return PlanAnalyticsService(PlanScoreRepository(db))
