"""
Domain models for the hotness feature.

Lightweight dataclasses shared by repositories, services and the API layer.
They carry no I/O.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

CREATOR_SUFFIX = "_creator"
UNKNOWN_VISITOR_IP = "0.0.0.0"


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    REQUEST = "request"
    JOIN_REQUEST = "join_request"

    def creator_variant(self) -> str:
        """Stored visit_type for an owner's own interaction, e.g. ``view_creator``."""
        return f"{self.value}{CREATOR_SUFFIX}"


class HotnessPeriod(str, Enum):
    """Trailing aggregation windows; the value doubles as the score column prefix."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def lookback(self) -> timedelta:
        return _LOOKBACKS[self]

    @property
    def score_column(self) -> str:
        return f"{self.value}_hotness_score"


_LOOKBACKS = {
    HotnessPeriod.DAILY: timedelta(hours=24),
    HotnessPeriod.WEEKLY: timedelta(days=7),
    HotnessPeriod.MONTHLY: timedelta(days=30),
}


@dataclass(slots=True)
class InteractionEvent:
    """A persisted plan_analytics row."""

    plan_id: str
    visit_type: str
    created_at: datetime
    user_id: str | None = None
    visitor_ip: str | None = None
    session_id: str | None = None
    is_creator_view: bool = False
    is_potential_spam: bool = False
    id: str | None = None

    @property
    def is_view(self) -> bool:
        return self.visit_type == InteractionType.VIEW.value

    @property
    def viewer_identity(self) -> str | None:
        return self.user_id or self.visitor_ip


@dataclass(slots=True)
class NewInteraction:
    """Insert payload for plan_analytics. Both flags are final once written."""

    plan_id: str
    visit_type: str
    session_id: str
    visitor_ip: str
    user_id: str | None
    is_creator_view: bool
    is_potential_spam: bool


@dataclass(slots=True)
class PlanRecord:
    """Subset of the plans row the scoring subsystem reads."""

    id: str
    user_id: str
    canceled_at: datetime | None = None

    @property
    def is_canceled(self) -> bool:
        return self.canceled_at is not None


@dataclass(slots=True)
class WindowInputs:
    """Everything fetched for one plan and one trailing window."""

    period: HotnessPeriod
    window_start: datetime
    interactions: list[InteractionEvent]
    join_request_count: int
    participant_count: int


@dataclass(slots=True)
class WindowScores:
    daily: float
    weekly: float
    monthly: float

    def scaled(self, factor: float) -> "WindowScores":
        return WindowScores(
            daily=self.daily * factor,
            weekly=self.weekly * factor,
            monthly=self.monthly * factor,
        )

    def as_dict(self) -> dict[str, float]:
        return {"daily": self.daily, "weekly": self.weekly, "monthly": self.monthly}


@dataclass(slots=True)
class AggregationResult:
    plan: PlanRecord
    computed_at: datetime
    scores: WindowScores
    inputs: dict[HotnessPeriod, WindowInputs]


@dataclass(slots=True)
class PlanScoreUpdate:
    """The complete set of columns written by one scoring pass."""

    daily_hotness_score: float
    weekly_hotness_score: float
    monthly_hotness_score: float
    hotness_score: float
    last_calculated_at: datetime
    suspicious_activity_detected: bool

    @classmethod
    def from_scores(
        cls, scores: WindowScores, computed_at: datetime, suspicious: bool
    ) -> "PlanScoreUpdate":
        return cls(
            daily_hotness_score=scores.daily,
            weekly_hotness_score=scores.weekly,
            monthly_hotness_score=scores.monthly,
            hotness_score=scores.weekly,
            last_calculated_at=computed_at,
            suspicious_activity_detected=suspicious,
        )


@dataclass(slots=True)
class InteractionResult:
    session_id: str
    is_creator_view: bool
    is_potential_spam: bool = False
    success: bool = True


@dataclass(slots=True)
class PlanAnalyticsSummary:
    plan_id: str
    legitimate_views: int
    creator_views: int
    suspicious_views: int
    unique_legitimate_viewers: int
    hotness_score: float | None
    suspicious_activity_detected: bool | None
    last_calculated_at: datetime | None


@dataclass(slots=True)
class BatchResult:
    processed: int = 0
    updated: int = 0
    failed: int = 0
    failures: list = field(default_factory=list)
    success: bool = True
