"""
SQL-level checks for the hotness repositories: the filters that keep creator
and spam events out of scoring, and the single-statement score write.
"""

from datetime import timedelta

import pytest
from psycopg import sql

from plandropper.features.hotness.domain.models import (
    HotnessPeriod,
    NewInteraction,
    PlanScoreUpdate,
    WindowScores,
)
from plandropper.features.hotness.pipeline.aggregation import repository as aggregation_repo
from plandropper.features.hotness.pipeline.scoring import repository as scoring_repo
from plandropper.features.hotness.recorder import repository as recorder_repo
from tests.conftest import NOW


class QueryRecorder:
    def __init__(self, result=None):
        self.result = result
        self.calls: list[tuple[object, object]] = []

    async def __call__(self, db, query, params=()):
        self.calls.append((query, params))
        return self.result


def _normalized(query) -> str:
    return " ".join(str(query).split())


@pytest.mark.asyncio
async def test_scoring_interactions_exclude_creator_and_spam(monkeypatch):
    recorder = QueryRecorder(result=[])
    monkeypatch.setattr(aggregation_repo, "fetch_all", recorder)
    window_start = NOW - timedelta(days=7)

    events = await aggregation_repo.HotnessAggregationRepository(db=None).fetch_scoring_interactions(
        "plan-1", window_start
    )

    query, params = recorder.calls[0]
    text = _normalized(query)
    assert events == []
    assert "is_creator_view = false" in text
    assert "is_potential_spam = false" in text
    assert "created_at >= %s" in text
    assert params == ("plan-1", window_start)


@pytest.mark.asyncio
async def test_participants_are_windowed_on_joined_at(monkeypatch):
    recorder = QueryRecorder(result=4)
    monkeypatch.setattr(aggregation_repo, "fetch_val", recorder)

    total = await aggregation_repo.HotnessAggregationRepository(db=None).count_participants(
        "plan-1", NOW
    )

    assert total == 4
    assert "joined_at >= %s" in _normalized(recorder.calls[0][0])


@pytest.mark.asyncio
async def test_scores_are_written_in_a_single_update(monkeypatch):
    recorder = QueryRecorder(result=1)
    monkeypatch.setattr(scoring_repo, "execute_query", recorder)
    update = PlanScoreUpdate.from_scores(WindowScores(1.0, 2.0, 3.0), NOW, suspicious=True)

    rows = await scoring_repo.PlanScoreRepository(db=None).write_scores("plan-1", update)

    assert rows == 1
    assert len(recorder.calls) == 1
    query, params = recorder.calls[0]
    text = _normalized(query)
    assert text.count("UPDATE plans") == 1
    for column in (
        "daily_hotness_score",
        "weekly_hotness_score",
        "monthly_hotness_score",
        "hotness_score",
        "last_calculated_at",
        "suspicious_activity_detected",
    ):
        assert f"{column} = %({column})s" in text
    assert params["hotness_score"] == 2.0
    assert params["plan_id"] == "plan-1"


@pytest.mark.asyncio
async def test_view_recount_ignores_creator_and_spam_views(monkeypatch):
    recorder = QueryRecorder(result=1)
    monkeypatch.setattr(scoring_repo, "execute_query", recorder)

    await scoring_repo.PlanScoreRepository(db=None).refresh_view_counts("plan-1")

    text = _normalized(recorder.calls[0][0])
    assert "visit_type = 'view'" in text
    assert "is_creator_view = false" in text
    assert "is_potential_spam = false" in text
    assert "last_calculated_at" not in text


@pytest.mark.asyncio
async def test_hot_plans_query_uses_period_column(monkeypatch):
    recorder = QueryRecorder(result=[])
    monkeypatch.setattr(scoring_repo, "fetch_all", recorder)

    await scoring_repo.PlanScoreRepository(db=None).fetch_hot_plans(HotnessPeriod.DAILY, 7)

    query, params = recorder.calls[0]
    assert isinstance(query, sql.Composed)
    assert params == (7,)
    assert "Identifier('daily_hotness_score')" in repr(query)
    assert "Identifier('weekly_hotness_score')" in repr(query)  # selected column


@pytest.mark.asyncio
async def test_recent_interaction_count_matches_user_or_ip(monkeypatch):
    recorder = QueryRecorder(result=2)
    monkeypatch.setattr(recorder_repo, "fetch_val", recorder)
    repo = recorder_repo.InteractionRepository(db=None)

    await repo.count_recent_interactions("plan-1", "view", NOW, user_id="user-1", visitor_ip="1.1.1.1")
    await repo.count_recent_interactions("plan-1", "view", NOW, visitor_ip="1.1.1.1")

    (user_query, user_params), (ip_query, ip_params) = recorder.calls
    assert "user_id = %s" in _normalized(user_query)
    assert user_params == ("plan-1", "view", "user-1", NOW)
    assert "visitor_ip = %s" in _normalized(ip_query)
    assert ip_params == ("plan-1", "view", "1.1.1.1", NOW)


@pytest.mark.asyncio
async def test_insert_returns_persisted_event(monkeypatch):
    recorder = QueryRecorder(result={"id": "evt-1", "created_at": NOW})
    monkeypatch.setattr(recorder_repo, "execute_returning", recorder)
    new = NewInteraction(
        plan_id="plan-1",
        visit_type="view_creator",
        session_id="sess",
        visitor_ip="0.0.0.0",
        user_id="owner-1",
        is_creator_view=True,
        is_potential_spam=False,
    )

    event = await recorder_repo.InteractionRepository(db=None).insert_interaction(new)

    assert event.id == "evt-1"
    assert event.created_at == NOW
    assert event.is_creator_view is True
    assert "RETURNING" in _normalized(recorder.calls[0][0])


@pytest.mark.asyncio
async def test_plan_lookup_reads_only_owner_and_cancellation(monkeypatch):
    recorder = QueryRecorder(result={"id": "plan-1", "user_id": "owner-1", "canceled_at": None})
    monkeypatch.setattr(scoring_repo, "fetch_one", recorder)

    plan = await scoring_repo.PlanScoreRepository(db=None).fetch_plan("plan-1")

    query, params = recorder.calls[0]
    text = _normalized(query)
    assert "verify_status" not in text
    assert "max_participants" not in text
    assert params == ("plan-1",)
    assert (plan.id, plan.user_id, plan.is_canceled) == ("plan-1", "owner-1", False)


@pytest.mark.asyncio
async def test_missing_plan_lookup_returns_none(monkeypatch):
    monkeypatch.setattr(scoring_repo, "fetch_one", QueryRecorder(result=None))

    assert await scoring_repo.PlanScoreRepository(db=None).fetch_plan("ghost") is None
