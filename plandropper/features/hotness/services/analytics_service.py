"""
Per-plan analytics summary: how many views counted, and how many were
discarded as creator self-views or potential spam.
"""

from plandropper.db.helpers import DatabaseError
from plandropper.features.hotness.domain.errors import FetchError, ValidationError
from plandropper.features.hotness.domain.models import PlanAnalyticsSummary
from plandropper.features.hotness.pipeline.scoring.repository import PlanScoreRepository


class PlanAnalyticsService:
    def __init__(self, repository: PlanScoreRepository):
        self._repository = repository

    async def get_summary(self, plan_id: str) -> PlanAnalyticsSummary:
        if not plan_id or not plan_id.strip():
            raise ValidationError("Plan ID is required")

        try:
            summary = await self._repository.fetch_analytics_summary(plan_id)
        except DatabaseError as exc:
            raise FetchError(
                f"Failed to load plan analytics: {exc}", recoverable=exc.recoverable
            ) from exc

        if summary is None:
            raise FetchError(f"Plan {plan_id} not found", not_found=True)
        return summary
