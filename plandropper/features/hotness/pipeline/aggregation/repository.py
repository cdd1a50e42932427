"""
Repository helpers for hotness aggregation.

Read-only access to the interaction, join-request and participant tables for
one plan and one trailing window.
"""

from datetime import datetime

from plandropper.db.helpers import fetch_all, fetch_val
from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.domain.models import InteractionEvent
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class HotnessAggregationRepository:
    """Raw SQL helpers for windowed hotness inputs."""

    def __init__(self, db: DatabasePoolManager):
        self._db = db

    async def fetch_scoring_interactions(
        self, plan_id: str, window_start: datetime
    ) -> list[InteractionEvent]:
        """Interactions eligible for scoring: never creator views, never spam."""
        query = """
            SELECT
                id::text AS id,
                plan_id::text AS plan_id,
                user_id::text AS user_id,
                visitor_ip,
                visit_type,
                session_id,
                created_at,
                is_creator_view,
                is_potential_spam
            FROM plan_analytics
            WHERE plan_id = %s
              AND is_creator_view = false
              AND is_potential_spam = false
              AND created_at >= %s
            ORDER BY created_at ASC
        """

        rows = await fetch_all(self._db, query, (plan_id, window_start))
        return [
            InteractionEvent(
                id=row["id"],
                plan_id=row["plan_id"],
                user_id=row.get("user_id"),
                visitor_ip=row.get("visitor_ip"),
                visit_type=row["visit_type"],
                session_id=row.get("session_id"),
                created_at=row["created_at"],
                is_creator_view=row["is_creator_view"],
                is_potential_spam=row["is_potential_spam"],
            )
            for row in rows
        ]

    async def count_join_requests(self, plan_id: str, window_start: datetime) -> int:
        query = """
            SELECT COUNT(*) AS total
            FROM event_requests
            WHERE plan_id = %s
              AND created_at >= %s
        """
        return int(await fetch_val(self._db, query, (plan_id, window_start)) or 0)

    async def count_participants(self, plan_id: str, window_start: datetime) -> int:
        query = """
            SELECT COUNT(*) AS total
            FROM event_participants
            WHERE plan_id = %s
              AND joined_at >= %s
        """
        return int(await fetch_val(self._db, query, (plan_id, window_start)) or 0)
