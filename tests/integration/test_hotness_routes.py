"""
Route-level tests for the hotness API with in-memory repositories wired in
through dependency overrides.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from plandropper.features.hotness.api.dependencies import (
    get_analytics_service,
    get_hot_plans_service,
    get_interaction_recorder,
    get_scoring_service,
)
from plandropper.features.hotness.domain.errors import ComputeError
from plandropper.features.hotness.services.analytics_service import PlanAnalyticsService
from plandropper.features.hotness.services.feed_cache import FeedCacheInvalidator
from plandropper.features.hotness.services.hot_plans_service import HotPlansService
from plandropper.main import app
from tests.conftest import NOW


@pytest.fixture
def client(store, fake_redis, recorder, scoring_service):
    app.dependency_overrides[get_interaction_recorder] = lambda: recorder
    app.dependency_overrides[get_scoring_service] = lambda: scoring_service
    app.dependency_overrides[get_hot_plans_service] = lambda: HotPlansService(
        store, fake_redis, FeedCacheInvalidator(fake_redis), cache_ttl_seconds=300
    )
    app.dependency_overrides[get_analytics_service] = lambda: PlanAnalyticsService(store)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_anonymous_view_is_recorded(client, store):
    store.add_plan("plan-1")

    response = client.post("/plans/plan-1/interactions", json={"interaction_type": "view"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["is_creator_view"] is False
    assert body["session_id"]
    assert store.events[0].visitor_ip == "testclient"
    assert len(store.score_writes) == 1


def test_interaction_type_is_normalized(client, store):
    store.add_plan("plan-1")

    response = client.post(
        "/plans/plan-1/interactions", json={"interaction_type": " CLICK ", "session_id": "  "}
    )

    assert response.status_code == 200
    assert store.events[0].visit_type == "click"
    assert response.json()["session_id"] != "  "


def test_unknown_interaction_type_is_rejected(client):
    response = client.post("/plans/plan-1/interactions", json={"interaction_type": "share"})

    assert response.status_code == 422


def test_owner_view_is_flagged_as_creator(client, store, apply_auth_override):
    apply_auth_override(app)
    store.add_plan("plan-1", owner_id="user-123")

    response = client.post("/plans/plan-1/interactions", json={"interaction_type": "view"})

    assert response.status_code == 200
    assert response.json()["is_creator_view"] is True
    assert store.events[0].visit_type == "view_creator"
    assert store.score_writes == []


def test_authenticated_view_on_missing_plan_is_404(client, apply_auth_override):
    apply_auth_override(app)

    response = client.post("/plans/ghost/interactions", json={"interaction_type": "view"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "fetch_error"


def test_anonymous_view_on_missing_plan_is_404(client, store):
    response = client.post("/plans/ghost/interactions", json={"interaction_type": "view"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "fetch_error"
    assert store.events == []


def test_recalculate_requires_auth(client):
    response = client.post("/plans/plan-1/hotness/recalculate")

    assert response.status_code in (401, 403)


def test_recalculate_single_plan(client, store, apply_auth_override):
    apply_auth_override(app)
    store.add_plan("plan-1")
    for idx in range(6):
        store.add_event("plan-1", NOW, user_id=f"viewer-{idx}")
    store.join_requests.append(("plan-1", NOW - timedelta(hours=1)))

    response = client.post("/plans/plan-1/hotness/recalculate")

    assert response.status_code == 200
    body = response.json()
    assert body["daily_hotness_score"] == pytest.approx(4.8)
    assert body["hotness_score"] == body["weekly_hotness_score"]


def test_recalculate_write_failure_is_500(client, store, scoring_service, apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        scoring_service, "recompute_one", AsyncMock(side_effect=ComputeError("write failed"))
    )

    response = client.post("/plans/plan-1/hotness/recalculate")

    assert response.status_code == 500
    assert response.json()["detail"] == {"error": "compute_error", "message": "write failed"}


def test_recalculate_all_reports_failures(client, store, apply_auth_override, monkeypatch):
    apply_auth_override(app)
    store.add_plan("plan-a")
    store.add_plan("plan-b")

    original_write = store.write_scores

    async def flaky_write(plan_id, update):
        if plan_id == "plan-a":
            return 0
        return await original_write(plan_id, update)

    monkeypatch.setattr(store, "write_scores", flaky_write)

    response = client.post("/hotness/recalculate")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["processed"], body["updated"], body["failed"]) == (2, 1, 1)
    assert body["failures"][0]["plan_id"] == "plan-a"


def test_hot_plans_listing(client, store):
    store.hot_plan_rows = [{"id": "plan-1", "weekly_hotness_score": 4.2}]

    response = client.get("/plans/hot", params={"period": "weekly", "limit": 3})

    assert response.status_code == 200
    assert response.json() == {
        "period": "weekly",
        "limit": 3,
        "plans": [{"id": "plan-1", "weekly_hotness_score": 4.2}],
    }


def test_hot_plans_limit_out_of_range_is_400(client):
    response = client.get("/plans/hot", params={"limit": 100})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_hot_plans_rejects_unknown_period(client):
    response = client.get("/plans/hot", params={"period": "yearly"})

    assert response.status_code == 422


def test_plan_analytics_summary(client, store, apply_auth_override):
    apply_auth_override(app)
    store.add_plan("plan-1")
    store.add_event("plan-1", NOW, visitor_ip="1.1.1.1")
    store.add_event("plan-1", NOW, visitor_ip="1.1.1.1")
    store.add_event("plan-1", NOW, user_id="owner-1", visit_type="view_creator", is_creator_view=True)
    store.add_event("plan-1", NOW, visitor_ip="2.2.2.2", is_potential_spam=True)

    response = client.get("/plans/plan-1/analytics")

    assert response.status_code == 200
    body = response.json()
    assert body["legitimate_views"] == 2
    assert body["unique_legitimate_viewers"] == 1
    assert body["creator_views"] == 1
    assert body["suspicious_views"] == 1
    assert body["hotness_score"] is None


def test_plan_analytics_missing_plan_is_404(client, apply_auth_override):
    apply_auth_override(app)

    response = client.get("/plans/ghost/analytics")

    assert response.status_code == 404
