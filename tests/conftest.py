from dataclasses import asdict
from datetime import UTC, datetime

import pytest

from plandropper.auth.verify import auth_dependency, optional_auth_dependency
from plandropper.features.hotness.domain.models import (
    InteractionEvent,
    NewInteraction,
    PlanAnalyticsSummary,
    PlanRecord,
    PlanScoreUpdate,
)
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.features.hotness.pipeline.abuse.service import AbuseDetector
from plandropper.features.hotness.pipeline.aggregation.service import HotnessAggregationService
from plandropper.features.hotness.pipeline.scoring.service import HotnessScoringService
from plandropper.features.hotness.recorder.service import InteractionRecorder
from plandropper.features.hotness.services.feed_cache import FeedCacheInvalidator

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "user-123"}

    return _override


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        self.store[key] = value
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def incr_with_ttl(self, key: str, ttl_s: int | None = None) -> int | None:
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    async def ping(self) -> bool:
        return True


class InMemoryHotnessStore:
    """
    Stands in for every hotness repository at once: plans, plan_analytics,
    event_requests and event_participants kept as plain Python lists.
    """

    def __init__(self):
        self.plans: dict[str, PlanRecord] = {}
        self.events: list[InteractionEvent] = []
        self.join_requests: list[tuple[str, datetime]] = []
        self.participants: list[tuple[str, datetime]] = []
        self.score_writes: list[tuple[str, PlanScoreUpdate]] = []
        self.view_counts: dict[str, tuple[int, int]] = {}
        self.hot_plan_rows: list[dict] = []
        self.hot_plan_queries = 0

    def add_plan(self, plan_id: str, owner_id: str = "owner-1") -> PlanRecord:
        plan = PlanRecord(id=plan_id, user_id=owner_id)
        self.plans[plan_id] = plan
        return plan

    def add_event(self, plan_id: str, created_at: datetime, **kwargs) -> InteractionEvent:
        event = InteractionEvent(
            plan_id=plan_id,
            visit_type=kwargs.pop("visit_type", "view"),
            created_at=created_at,
            **kwargs,
        )
        self.events.append(event)
        return event

    # PlanScoreRepository

    async def fetch_plan(self, plan_id: str) -> PlanRecord | None:
        return self.plans.get(plan_id)

    async def fetch_active_plan_ids(self) -> list[str]:
        return [plan.id for plan in self.plans.values() if not plan.is_canceled]

    async def write_scores(self, plan_id: str, update: PlanScoreUpdate) -> int:
        if plan_id not in self.plans:
            return 0
        self.score_writes.append((plan_id, update))
        return 1

    async def refresh_view_counts(self, plan_id: str) -> int:
        views = [
            event
            for event in self.events
            if event.plan_id == plan_id
            and event.is_view
            and not event.is_creator_view
            and not event.is_potential_spam
        ]
        self.view_counts[plan_id] = (len(views), len({event.viewer_identity for event in views}))
        return 1

    async def fetch_hot_plans(self, period, limit: int) -> list[dict]:
        self.hot_plan_queries += 1
        return self.hot_plan_rows[:limit]

    async def fetch_analytics_summary(self, plan_id: str) -> PlanAnalyticsSummary | None:
        if plan_id not in self.plans:
            return None
        events = [event for event in self.events if event.plan_id == plan_id]
        legit = [e for e in events if e.is_view and not e.is_creator_view and not e.is_potential_spam]
        last_write = next(
            (update for pid, update in reversed(self.score_writes) if pid == plan_id), None
        )
        return PlanAnalyticsSummary(
            plan_id=plan_id,
            legitimate_views=len(legit),
            creator_views=sum(1 for e in events if e.is_creator_view),
            suspicious_views=sum(1 for e in events if e.is_potential_spam),
            unique_legitimate_viewers=len({e.viewer_identity for e in legit}),
            hotness_score=last_write.hotness_score if last_write else None,
            suspicious_activity_detected=(
                last_write.suspicious_activity_detected if last_write else None
            ),
            last_calculated_at=last_write.last_calculated_at if last_write else None,
        )

    # HotnessAggregationRepository

    async def fetch_scoring_interactions(
        self, plan_id: str, window_start: datetime
    ) -> list[InteractionEvent]:
        return sorted(
            (
                event
                for event in self.events
                if event.plan_id == plan_id
                and not event.is_creator_view
                and not event.is_potential_spam
                and event.created_at >= window_start
            ),
            key=lambda event: event.created_at,
        )

    async def count_join_requests(self, plan_id: str, window_start: datetime) -> int:
        return sum(1 for pid, at in self.join_requests if pid == plan_id and at >= window_start)

    async def count_participants(self, plan_id: str, window_start: datetime) -> int:
        return sum(1 for pid, at in self.participants if pid == plan_id and at >= window_start)

    # InteractionRepository

    async def count_recent_interactions(
        self, plan_id, visit_type, since, *, user_id=None, visitor_ip=None
    ) -> int:
        def same_actor(event: InteractionEvent) -> bool:
            if user_id:
                return event.user_id == user_id
            return event.visitor_ip == visitor_ip

        return sum(
            1
            for event in self.events
            if event.plan_id == plan_id
            and event.visit_type == visit_type
            and event.created_at >= since
            and same_actor(event)
        )

    async def insert_interaction(self, interaction: NewInteraction) -> InteractionEvent:
        return self.add_event(
            interaction.plan_id,
            NOW,
            **{key: value for key, value in asdict(interaction).items() if key != "plan_id"},
        )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store():
    return InMemoryHotnessStore()


@pytest.fixture
def policy():
    return HotnessPolicy()


@pytest.fixture
def aggregation_service(store, policy):
    return HotnessAggregationService(store, store, policy=policy, clock=lambda: NOW)


@pytest.fixture
def scoring_service(store, fake_redis, aggregation_service, policy):
    return HotnessScoringService(
        aggregation_service=aggregation_service,
        plan_repository=store,
        abuse_detector=AbuseDetector(policy),
        invalidator=FeedCacheInvalidator(fake_redis),
        policy=policy,
    )


@pytest.fixture
def recorder(store, scoring_service, policy):
    return InteractionRecorder(store, store, scoring_service, policy=policy, clock=lambda: NOW)


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[auth_dependency] = auth_override
        app.dependency_overrides[optional_auth_dependency] = auth_override

    return _apply
