"""
Hotness API request and response models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from plandropper.features.hotness.domain.models import InteractionType


class RecordInteractionRequest(BaseModel):
    """Body for POST /plans/{plan_id}/interactions."""

    interaction_type: InteractionType = Field(
        default=InteractionType.VIEW, description="view, click, request or join_request"
    )
    session_id: str | None = Field(
        default=None, max_length=128, description="Client session id; generated when omitted"
    )

    @field_validator("interaction_type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("session_id")
    @classmethod
    def blank_session_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class RecordInteractionResponse(BaseModel):
    success: bool
    session_id: str
    is_creator_view: bool
    is_potential_spam: bool


class WindowScoresResponse(BaseModel):
    plan_id: str
    daily_hotness_score: float
    weekly_hotness_score: float
    monthly_hotness_score: float
    hotness_score: float


class BatchFailure(BaseModel):
    plan_id: str
    error_type: str
    error: str


class BatchRecalculationResponse(BaseModel):
    success: bool
    processed: int
    updated: int
    failed: int
    failures: list[BatchFailure] = Field(default_factory=list)


class HotPlansResponse(BaseModel):
    period: str
    limit: int
    plans: list[dict[str, Any]]


class PlanAnalyticsResponse(BaseModel):
    plan_id: str
    legitimate_views: int
    creator_views: int
    suspicious_views: int
    unique_legitimate_viewers: int
    hotness_score: float | None = None
    suspicious_activity_detected: bool | None = None
    last_calculated_at: datetime | None = None
