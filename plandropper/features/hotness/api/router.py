"""
Plan hotness routes.

Usage:
    1. POST /plans/{plan_id}/interactions - record a view/click/request
    2. POST /plans/{plan_id}/hotness/recalculate - recompute one plan
    3. POST /hotness/recalculate - recompute every active plan
    4. GET /plans/hot - top plans for a period
    5. GET /plans/{plan_id}/analytics - counted vs discarded views
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from plandropper.auth.verify import auth_dependency, optional_auth_dependency
from plandropper.features.hotness.domain.errors import FetchError, HotnessError, ValidationError
from plandropper.features.hotness.domain.models import HotnessPeriod
from plandropper.features.hotness.pipeline.scoring.service import HotnessScoringService
from plandropper.features.hotness.recorder.service import InteractionRecorder
from plandropper.features.hotness.services.analytics_service import PlanAnalyticsService
from plandropper.features.hotness.services.hot_plans_service import (
    DEFAULT_HOT_PLANS_LIMIT,
    HotPlansService,
)
from plandropper.infrastructure.observability.logging import get_logger

from .dependencies import (
    get_analytics_service,
    get_hot_plans_service,
    get_interaction_recorder,
    get_scoring_service,
)
from .schemas import (
    BatchFailure,
    BatchRecalculationResponse,
    HotPlansResponse,
    PlanAnalyticsResponse,
    RecordInteractionRequest,
    RecordInteractionResponse,
    WindowScoresResponse,
)

router = APIRouter(tags=["hotness"])
logger = get_logger(__name__)


def _to_http_error(exc: HotnessError) -> HTTPException:
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, FetchError):
        status_code = (
            status.HTTP_404_NOT_FOUND if exc.not_found else status.HTTP_503_SERVICE_UNAVAILABLE
        )
    else:
        # RecordError, ComputeError and anything else unexpected
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(status_code=status_code, detail={"error": exc.code, "message": exc.message})


def _require_user_id(claims: dict) -> str:
    user_id = claims.get("sub")
    if not user_id:
        logger.error("No user ID in JWT claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing user ID"
        )
    return user_id


@router.post("/plans/{plan_id}/interactions", response_model=RecordInteractionResponse)
async def record_interaction(
    plan_id: str,
    body: RecordInteractionRequest,
    request: Request,
    claims: dict | None = Depends(optional_auth_dependency),
    recorder: InteractionRecorder = Depends(get_interaction_recorder),
):
    """
    Record one interaction with a plan.

    Authenticated callers are identified by their user id, anonymous callers
    by client address. The plan owner's own interactions are stored but never
    counted.
    """
    user_id = claims.get("sub") if claims else None
    try:
        result = await recorder.record(
            plan_id,
            body.interaction_type,
            body.session_id,
            user_id=user_id,
            visitor_ip=getattr(request.state, "ip_address", None),
        )
    except HotnessError as exc:
        raise _to_http_error(exc) from exc

    return RecordInteractionResponse(
        success=result.success,
        session_id=result.session_id,
        is_creator_view=result.is_creator_view,
        is_potential_spam=result.is_potential_spam,
    )


@router.post("/plans/{plan_id}/hotness/recalculate", response_model=WindowScoresResponse)
async def recalculate_plan(
    plan_id: str,
    claims: dict = Depends(auth_dependency),
    scoring: HotnessScoringService = Depends(get_scoring_service),
):
    user_id = _require_user_id(claims)
    try:
        scores = await scoring.recompute_one(plan_id)
    except HotnessError as exc:
        raise _to_http_error(exc) from exc

    logger.info("Manual plan hotness recalculation", plan_id=plan_id, user_id=user_id)
    return WindowScoresResponse(
        plan_id=plan_id,
        daily_hotness_score=scores.daily,
        weekly_hotness_score=scores.weekly,
        monthly_hotness_score=scores.monthly,
        hotness_score=scores.weekly,
    )


@router.post("/hotness/recalculate", response_model=BatchRecalculationResponse)
async def recalculate_all(
    claims: dict = Depends(auth_dependency),
    scoring: HotnessScoringService = Depends(get_scoring_service),
):
    user_id = _require_user_id(claims)
    try:
        result = await scoring.recompute_all()
    except HotnessError as exc:
        raise _to_http_error(exc) from exc

    logger.info(
        "Manual hotness batch recalculation",
        user_id=user_id,
        processed=result.processed,
        failed=result.failed,
    )
    return BatchRecalculationResponse(
        success=result.success,
        processed=result.processed,
        updated=result.updated,
        failed=result.failed,
        failures=[BatchFailure(**failure.to_dict()) for failure in result.failures],
    )


@router.get("/plans/hot", response_model=HotPlansResponse)
async def get_hot_plans(
    period: HotnessPeriod = Query(default=HotnessPeriod.WEEKLY),
    limit: int = Query(default=DEFAULT_HOT_PLANS_LIMIT),
    hot_plans: HotPlansService = Depends(get_hot_plans_service),
):
    try:
        plans = await hot_plans.get_hot_plans(period, limit)
    except HotnessError as exc:
        raise _to_http_error(exc) from exc
    return HotPlansResponse(period=period.value, limit=limit, plans=plans)


@router.get("/plans/{plan_id}/analytics", response_model=PlanAnalyticsResponse)
async def get_plan_analytics(
    plan_id: str,
    claims: dict = Depends(auth_dependency),
    analytics: PlanAnalyticsService = Depends(get_analytics_service),
):
    _require_user_id(claims)
    try:
        summary = await analytics.get_summary(plan_id)
    except HotnessError as exc:
        raise _to_http_error(exc) from exc

    return PlanAnalyticsResponse(
        plan_id=summary.plan_id,
        legitimate_views=summary.legitimate_views,
        creator_views=summary.creator_views,
        suspicious_views=summary.suspicious_views,
        unique_legitimate_viewers=summary.unique_legitimate_viewers,
        hotness_score=summary.hotness_score,
        suspicious_activity_detected=summary.suspicious_activity_detected,
        last_calculated_at=summary.last_calculated_at,
    )
