"""
Repository helpers for plan_analytics writes.
"""

from datetime import datetime

from plandropper.db.helpers import DatabaseError, execute_returning, fetch_val
from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.domain.models import InteractionEvent, NewInteraction
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class InteractionRepository:
    def __init__(self, db: DatabasePoolManager):
        self._db = db

    async def count_recent_interactions(
        self,
        plan_id: str,
        visit_type: str,
        since: datetime,
        *,
        user_id: str | None = None,
        visitor_ip: str | None = None,
    ) -> int:
        """
        Prior events of one type on one plan by one actor since ``since``.

        Authenticated actors are matched on user_id, anonymous ones on the
        client address.
        """
        if user_id:
            identity_clause, identity = "user_id = %s", user_id
        else:
            identity_clause, identity = "visitor_ip = %s", visitor_ip

        query = f"""
            SELECT COUNT(*) AS total
            FROM plan_analytics
            WHERE plan_id = %s
              AND visit_type = %s
              AND {identity_clause}
              AND created_at >= %s
        """
        total = await fetch_val(self._db, query, (plan_id, visit_type, identity, since))
        return int(total or 0)

    async def insert_interaction(self, interaction: NewInteraction) -> InteractionEvent:
        query = """
            INSERT INTO plan_analytics (
                plan_id,
                user_id,
                visitor_ip,
                visit_type,
                session_id,
                is_creator_view,
                is_potential_spam
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id::text AS id, created_at
        """
        row = await execute_returning(
            self._db,
            query,
            (
                interaction.plan_id,
                interaction.user_id,
                interaction.visitor_ip,
                interaction.visit_type,
                interaction.session_id,
                interaction.is_creator_view,
                interaction.is_potential_spam,
            ),
        )
        if not row:
            raise DatabaseError("Insert returned no row", operation="insert_interaction")

        logger.debug(
            "Interaction stored",
            plan_id=interaction.plan_id,
            visit_type=interaction.visit_type,
            spam=interaction.is_potential_spam,
        )
        return InteractionEvent(
            id=row["id"],
            plan_id=interaction.plan_id,
            visit_type=interaction.visit_type,
            created_at=row["created_at"],
            user_id=interaction.user_id,
            visitor_ip=interaction.visitor_ip,
            session_id=interaction.session_id,
            is_creator_view=interaction.is_creator_view,
            is_potential_spam=interaction.is_potential_spam,
        )
