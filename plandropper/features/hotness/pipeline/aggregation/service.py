"""
Hotness aggregation service.

Pulls a plan's qualifying interactions plus join-request and participant
counts for each trailing window and reduces every window to one score:

    raw = views * 0.2 + unique_viewers * 0.3 + recency * 0.2 + engagement * 0.3

where recency sums a linear 7-day decay over each view and engagement is
join_requests * 2 + participants * 3. A window with no views, no join
requests and no participants scores exactly 0; any other positive score is
floored at 0.1 so activity is always visible.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .repository import HotnessAggregationRepository
from plandropper.db.helpers import DatabaseError
from plandropper.features.hotness.domain.errors import FetchError, ValidationError
from plandropper.features.hotness.domain.models import (
    AggregationResult,
    HotnessPeriod,
    InteractionEvent,
    PlanRecord,
    WindowInputs,
    WindowScores,
)
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.infrastructure.observability.logging import get_logger

if TYPE_CHECKING:
    from plandropper.features.hotness.pipeline.scoring.repository import PlanScoreRepository

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _first_error(group: ExceptionGroup) -> Exception:
    # The first task to fail cancels its siblings, so there is normally one leaf.
    error = group.exceptions[0]
    while isinstance(error, ExceptionGroup):
        error = error.exceptions[0]
    return error


class HotnessAggregationService:
    def __init__(
        self,
        repository: HotnessAggregationRepository,
        plan_repository: PlanScoreRepository,
        policy: HotnessPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._repository = repository
        self._plan_repository = plan_repository
        self._policy = policy or HotnessPolicy()
        self._clock = clock

    async def score(self, plan_id: str, now: datetime | None = None) -> AggregationResult:
        """Raw (unpenalized) scores for every window plus the inputs behind them."""
        plan = await self.load_plan(plan_id)
        now = now or self._clock()
        inputs = await self.collect_windows(plan.id, now)

        scores = WindowScores(
            daily=self.score_window(inputs[HotnessPeriod.DAILY], now),
            weekly=self.score_window(inputs[HotnessPeriod.WEEKLY], now),
            monthly=self.score_window(inputs[HotnessPeriod.MONTHLY], now),
        )
        logger.debug("Plan windows aggregated", plan_id=plan.id, **scores.as_dict())
        return AggregationResult(plan=plan, computed_at=now, scores=scores, inputs=inputs)

    async def load_plan(self, plan_id: str) -> PlanRecord:
        if not plan_id or not plan_id.strip():
            raise ValidationError("Plan ID is required")

        try:
            plan = await self._plan_repository.fetch_plan(plan_id)
        except DatabaseError as exc:
            raise FetchError(f"Failed to load plan: {exc}", recoverable=exc.recoverable) from exc

        if plan is None:
            raise FetchError(f"Plan {plan_id} not found", not_found=True)
        return plan

    async def collect_windows(
        self, plan_id: str, now: datetime
    ) -> dict[HotnessPeriod, WindowInputs]:
        """Fetch all windows concurrently; the first failure cancels the rest."""
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {
                    period: tg.create_task(self._fetch_window(plan_id, period, now))
                    for period in HotnessPeriod
                }
        except ExceptionGroup as group:
            raise _first_error(group)
        return {period: task.result() for period, task in tasks.items()}

    async def _fetch_window(
        self, plan_id: str, period: HotnessPeriod, now: datetime
    ) -> WindowInputs:
        window_start = now - period.lookback
        try:
            async with asyncio.TaskGroup() as tg:
                interactions = tg.create_task(
                    self._repository.fetch_scoring_interactions(plan_id, window_start)
                )
                join_requests = tg.create_task(
                    self._repository.count_join_requests(plan_id, window_start)
                )
                participants = tg.create_task(
                    self._repository.count_participants(plan_id, window_start)
                )
        except ExceptionGroup as group:
            exc = _first_error(group)
            if not isinstance(exc, DatabaseError):
                raise exc
            logger.error(
                "Hotness window fetch failed",
                plan_id=plan_id,
                window=period.value,
                error=str(exc),
            )
            raise FetchError(
                f"Failed to fetch {period.value} window: {exc}", recoverable=exc.recoverable
            ) from exc

        return WindowInputs(
            period=period,
            window_start=window_start,
            interactions=interactions.result(),
            join_request_count=join_requests.result(),
            participant_count=participants.result(),
        )

    def score_window(self, inputs: WindowInputs, now: datetime) -> float:
        return self.calculate_window_score(
            inputs.interactions, now, inputs.join_request_count, inputs.participant_count
        )

    def calculate_window_score(
        self,
        interactions: Iterable[InteractionEvent],
        now: datetime,
        join_request_count: int,
        participant_count: int,
    ) -> float:
        policy = self._policy
        views = [event for event in interactions if event.is_view]
        total_views = len(views)

        if total_views == 0 and join_request_count == 0 and participant_count == 0:
            return 0.0

        unique_viewers = {event.viewer_identity for event in views if event.viewer_identity}

        recency_score = 0.0
        for view in views:
            # Clock skew can put an event slightly in the future; treat it as "now".
            hours_ago = max(0.0, (now - view.created_at).total_seconds() / 3600)
            recency_score += max(0.0, 1 - hours_ago / policy.recency_horizon_hours)

        engagement_score = (
            join_request_count * policy.join_request_value
            + participant_count * policy.participant_value
        )

        raw_score = (
            total_views * policy.view_weight
            + len(unique_viewers) * policy.unique_viewer_weight
            + recency_score * policy.recency_weight
            + engagement_score * policy.engagement_weight
        )

        if 0 < raw_score < policy.min_score:
            return policy.min_score
        return raw_score
