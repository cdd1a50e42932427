"""
Hotness scoring service - applies the abuse penalty and persists scores.
"""

from __future__ import annotations

from plandropper.db.helpers import DatabaseError
from plandropper.features.hotness.domain.errors import BatchItemError, ComputeError, FetchError
from plandropper.features.hotness.domain.models import (
    BatchResult,
    HotnessPeriod,
    PlanScoreUpdate,
    WindowScores,
)
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.features.hotness.pipeline.abuse.service import AbuseDetector
from plandropper.features.hotness.pipeline.aggregation.service import HotnessAggregationService
from plandropper.features.hotness.services.feed_cache import (
    SCORE_DEPENDENT_TARGETS,
    FeedCacheInvalidator,
)
from plandropper.infrastructure.observability.logging import get_logger

from .repository import PlanScoreRepository

logger = get_logger(__name__)


class HotnessScoringService:
    def __init__(
        self,
        aggregation_service: HotnessAggregationService,
        plan_repository: PlanScoreRepository,
        abuse_detector: AbuseDetector,
        invalidator: FeedCacheInvalidator,
        policy: HotnessPolicy | None = None,
    ):
        self._aggregation = aggregation_service
        self._plans = plan_repository
        self._abuse = abuse_detector
        self._invalidator = invalidator
        self._policy = policy or HotnessPolicy()

    async def recompute_one(self, plan_id: str, *, notify: bool = True) -> WindowScores:
        """
        Recalculate and persist every window score for one plan.

        Raises:
            FetchError: plan missing or a store read failed
            ComputeError: the score write failed; previous scores stay in place
        """
        result = await self._aggregation.score(plan_id)
        plan = result.plan
        weekly = result.inputs[HotnessPeriod.WEEKLY]

        reason = self._abuse.detect(weekly.interactions, weekly.join_request_count, plan.user_id)
        suspicious = reason is not None
        scores = result.scores.scaled(self._policy.suspicion_penalty) if suspicious else result.scores

        if suspicious:
            logger.warning(
                "Suspicious activity detected, applying penalty",
                plan_id=plan.id,
                reason=reason.value,
                penalty=self._policy.suspicion_penalty,
            )

        update = PlanScoreUpdate.from_scores(scores, result.computed_at, suspicious)
        try:
            updated = await self._plans.write_scores(plan.id, update)
        except DatabaseError as exc:
            logger.error("Failed to persist hotness scores", plan_id=plan.id, error=str(exc))
            raise ComputeError(
                f"Failed to persist hotness scores: {exc}", recoverable=exc.recoverable
            ) from exc

        if updated == 0:
            raise ComputeError(f"Plan {plan.id} disappeared before scores were written")

        logger.info(
            "Plan hotness recalculated",
            plan_id=plan.id,
            suspicious=suspicious,
            **scores.as_dict(),
        )

        if notify:
            await self._invalidator.mark_stale(SCORE_DEPENDENT_TARGETS)
        return scores

    async def recompute_all(self) -> BatchResult:
        """Sweep every non-canceled plan; one plan failing never stops the sweep."""
        try:
            plan_ids = await self._plans.fetch_active_plan_ids()
        except DatabaseError as exc:
            raise FetchError(
                f"Failed to list plans for recalculation: {exc}", recoverable=exc.recoverable
            ) from exc

        logger.info("Starting hotness batch recalculation", plan_count=len(plan_ids))
        result = BatchResult()

        for plan_id in plan_ids:
            result.processed += 1
            try:
                await self.recompute_one(plan_id, notify=False)
            except Exception as exc:
                item_error = BatchItemError(plan_id, exc)
                result.failed += 1
                result.failures.append(item_error)
                logger.error(
                    "Hotness recalculation failed for plan",
                    plan_id=plan_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                continue
            result.updated += 1

        await self._invalidator.mark_stale(SCORE_DEPENDENT_TARGETS)

        logger.info(
            "Hotness batch recalculation completed",
            processed=result.processed,
            updated=result.updated,
            failed=result.failed,
        )
        return result
