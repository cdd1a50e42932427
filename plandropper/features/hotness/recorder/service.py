"""
Interaction recorder.

Every view, click or request on a plan is written to plan_analytics exactly
once, with two flags fixed at write time:

- ``is_creator_view``: the plan owner interacting with their own plan. Stored
  as ``<type>_creator`` and never counted anywhere.
- ``is_potential_spam``: the same actor repeated the same interaction more
  than the configured threshold within the spam window.

A legitimate view then refreshes the plan's view counters and recomputes its
hotness. Those follow-ups are best effort; the stored event is never rolled
back because of them.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from plandropper.db.helpers import DatabaseError
from plandropper.features.hotness.domain.errors import (
    FetchError,
    HotnessError,
    RecordError,
    ValidationError,
)
from plandropper.features.hotness.domain.models import (
    UNKNOWN_VISITOR_IP,
    InteractionResult,
    InteractionType,
    NewInteraction,
    PlanRecord,
)
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.features.hotness.pipeline.scoring.repository import PlanScoreRepository
from plandropper.features.hotness.pipeline.scoring.service import HotnessScoringService
from plandropper.infrastructure.observability.logging import get_logger

from .repository import InteractionRepository

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InteractionRecorder:
    def __init__(
        self,
        interactions: InteractionRepository,
        plan_repository: PlanScoreRepository,
        scoring_service: HotnessScoringService,
        policy: HotnessPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._interactions = interactions
        self._plans = plan_repository
        self._scoring = scoring_service
        self._policy = policy or HotnessPolicy()
        self._clock = clock

    async def record(
        self,
        plan_id: str,
        interaction_type: InteractionType | str,
        session_id: str | None = None,
        *,
        user_id: str | None = None,
        visitor_ip: str | None = None,
    ) -> InteractionResult:
        if not plan_id or not plan_id.strip():
            raise ValidationError("Plan ID is required")
        try:
            interaction_type = InteractionType(interaction_type)
        except ValueError as exc:
            raise ValidationError(f"Unsupported interaction type: {interaction_type}") from exc

        session_id = session_id or str(uuid.uuid4())
        visitor_ip = visitor_ip or UNKNOWN_VISITOR_IP

        plan = await self._load_plan(plan_id)
        if user_id and plan.user_id == user_id:
            await self._store(
                NewInteraction(
                    plan_id=plan_id,
                    visit_type=interaction_type.creator_variant(),
                    session_id=session_id,
                    visitor_ip=visitor_ip,
                    user_id=user_id,
                    is_creator_view=True,
                    is_potential_spam=False,
                )
            )
            logger.debug("Creator interaction recorded", plan_id=plan_id, type=interaction_type.value)
            return InteractionResult(session_id=session_id, is_creator_view=True)

        is_spam = await self._is_potential_spam(plan_id, interaction_type, user_id, visitor_ip)
        await self._store(
            NewInteraction(
                plan_id=plan_id,
                visit_type=interaction_type.value,
                session_id=session_id,
                visitor_ip=visitor_ip,
                user_id=user_id,
                is_creator_view=False,
                is_potential_spam=is_spam,
            )
        )

        if interaction_type is InteractionType.VIEW and not is_spam:
            await self._refresh_view_counts(plan_id)
            await self._recompute_hotness(plan_id)

        return InteractionResult(
            session_id=session_id, is_creator_view=False, is_potential_spam=is_spam
        )

    async def _load_plan(self, plan_id: str) -> PlanRecord:
        try:
            plan = await self._plans.fetch_plan(plan_id)
        except DatabaseError as exc:
            raise FetchError(
                f"Failed to load plan: {exc}", recoverable=exc.recoverable
            ) from exc
        if plan is None:
            raise FetchError(f"Plan {plan_id} not found", not_found=True)
        return plan

    async def _is_potential_spam(
        self,
        plan_id: str,
        interaction_type: InteractionType,
        user_id: str | None,
        visitor_ip: str,
    ) -> bool:
        since = self._clock() - self._policy.spam_window
        try:
            recent = await self._interactions.count_recent_interactions(
                plan_id,
                interaction_type.value,
                since,
                user_id=user_id,
                visitor_ip=visitor_ip,
            )
        except DatabaseError as exc:
            raise FetchError(
                f"Failed to count recent interactions: {exc}", recoverable=exc.recoverable
            ) from exc

        if recent > self._policy.spam_threshold:
            logger.info(
                "Interaction flagged as potential spam",
                plan_id=plan_id,
                type=interaction_type.value,
                recent_count=recent,
                authenticated=user_id is not None,
            )
            return True
        return False

    async def _store(self, interaction: NewInteraction) -> None:
        try:
            await self._interactions.insert_interaction(interaction)
        except DatabaseError as exc:
            logger.error(
                "Failed to record interaction",
                plan_id=interaction.plan_id,
                type=interaction.visit_type,
                error=str(exc),
            )
            raise RecordError(
                f"Failed to record interaction: {exc}", recoverable=exc.recoverable
            ) from exc

    async def _refresh_view_counts(self, plan_id: str) -> None:
        try:
            await self._plans.refresh_view_counts(plan_id)
        except DatabaseError as exc:
            logger.error("Failed to refresh view counts", plan_id=plan_id, error=str(exc))

    async def _recompute_hotness(self, plan_id: str) -> None:
        try:
            await self._scoring.recompute_one(plan_id)
        except HotnessError as exc:
            logger.error(
                "Hotness recalculation after view failed",
                plan_id=plan_id,
                error=exc.message,
                error_type=type(exc).__name__,
            )
