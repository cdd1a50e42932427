"""
Repository helpers for plan hotness scores.

Reads the plan rows the scoring subsystem needs and writes computed scores
and view counters back onto them.
"""

from dataclasses import asdict
from typing import Any

from psycopg import sql

from plandropper.db.helpers import execute_query, fetch_all, fetch_one
from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.domain.models import (
    HotnessPeriod,
    PlanAnalyticsSummary,
    PlanRecord,
    PlanScoreUpdate,
)
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

HOT_PLAN_COLUMNS = (
    "id",
    "user_id",
    "title",
    "description",
    "category",
    "location",
    "time",
    "max_participants",
    "verify_status",
    "created_at",
    "view_count",
    "unique_view_count",
    "hotness_score",
    "daily_hotness_score",
    "weekly_hotness_score",
    "monthly_hotness_score",
    "last_calculated_at",
)


class PlanScoreRepository:
    """Thin wrappers for fetching plans and persisting hotness scores."""

    def __init__(self, db: DatabasePoolManager):
        self._db = db

    async def fetch_plan(self, plan_id: str) -> PlanRecord | None:
        query = """
            SELECT
                id::text AS id,
                user_id::text AS user_id,
                canceled_at
            FROM plans
            WHERE id = %s
        """
        row = await fetch_one(self._db, query, (plan_id,))
        if not row:
            return None
        return PlanRecord(
            id=row["id"],
            user_id=row["user_id"],
            canceled_at=row.get("canceled_at"),
        )

    async def fetch_active_plan_ids(self) -> list[str]:
        query = """
            SELECT id::text AS id
            FROM plans
            WHERE canceled_at IS NULL
            ORDER BY created_at ASC
        """
        rows = await fetch_all(self._db, query)
        return [row["id"] for row in rows]

    async def write_scores(self, plan_id: str, update: PlanScoreUpdate) -> int:
        """
        Persist one scoring pass as a single UPDATE so readers never see a
        mix of scores from different passes. Concurrent passes on the same
        plan are last-write-wins.
        """
        query = """
            UPDATE plans
            SET daily_hotness_score = %(daily_hotness_score)s,
                weekly_hotness_score = %(weekly_hotness_score)s,
                monthly_hotness_score = %(monthly_hotness_score)s,
                hotness_score = %(hotness_score)s,
                last_calculated_at = %(last_calculated_at)s,
                suspicious_activity_detected = %(suspicious_activity_detected)s
            WHERE id = %(plan_id)s
        """
        params = {**asdict(update), "plan_id": plan_id}
        updated = await execute_query(self._db, query, params)

        logger.debug(
            "Plan hotness scores written",
            plan_id=plan_id,
            rows=updated,
            weekly=update.weekly_hotness_score,
            suspicious=update.suspicious_activity_detected,
        )
        return updated

    async def refresh_view_counts(self, plan_id: str) -> int:
        """Recount view_count / unique_view_count from legitimate view events."""
        query = """
            UPDATE plans AS p
            SET view_count = counts.view_count,
                unique_view_count = counts.unique_view_count
            FROM (
                SELECT
                    COUNT(*) AS view_count,
                    COUNT(DISTINCT COALESCE(user_id::text, visitor_ip)) AS unique_view_count
                FROM plan_analytics
                WHERE plan_id = %(plan_id)s
                  AND visit_type = 'view'
                  AND is_creator_view = false
                  AND is_potential_spam = false
            ) AS counts
            WHERE p.id = %(plan_id)s
        """
        return await execute_query(self._db, query, {"plan_id": plan_id})

    async def fetch_hot_plans(self, period: HotnessPeriod, limit: int) -> list[dict[str, Any]]:
        score_column = sql.Identifier(period.score_column)
        query = sql.SQL(
            """
            SELECT {columns}
            FROM plans
            WHERE canceled_at IS NULL
              AND verify_status = true
              AND {score_column} > 0
            ORDER BY {score_column} DESC
            LIMIT %s
            """
        ).format(
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in HOT_PLAN_COLUMNS),
            score_column=score_column,
        )
        return await fetch_all(self._db, query, (limit,))

    async def fetch_analytics_summary(self, plan_id: str) -> PlanAnalyticsSummary | None:
        query = """
            SELECT
                p.id::text AS plan_id,
                p.hotness_score,
                p.suspicious_activity_detected,
                p.last_calculated_at,
                COUNT(a.id) FILTER (
                    WHERE a.visit_type = 'view'
                      AND a.is_creator_view = false
                      AND a.is_potential_spam = false
                ) AS legitimate_views,
                COUNT(a.id) FILTER (WHERE a.is_creator_view = true) AS creator_views,
                COUNT(a.id) FILTER (WHERE a.is_potential_spam = true) AS suspicious_views,
                COUNT(DISTINCT COALESCE(a.user_id::text, a.visitor_ip)) FILTER (
                    WHERE a.visit_type = 'view'
                      AND a.is_creator_view = false
                      AND a.is_potential_spam = false
                ) AS unique_legitimate_viewers
            FROM plans p
            LEFT JOIN plan_analytics a ON a.plan_id = p.id
            WHERE p.id = %s
            GROUP BY p.id
        """
        row = await fetch_one(self._db, query, (plan_id,))
        if not row:
            return None
        return PlanAnalyticsSummary(
            plan_id=row["plan_id"],
            legitimate_views=row["legitimate_views"] or 0,
            creator_views=row["creator_views"] or 0,
            suspicious_views=row["suspicious_views"] or 0,
            unique_legitimate_viewers=row["unique_legitimate_viewers"] or 0,
            hotness_score=row.get("hotness_score"),
            suspicious_activity_detected=row.get("suspicious_activity_detected"),
            last_calculated_at=row.get("last_calculated_at"),
        )
