"""
Domain subpackage for the hotness feature.
"""

from .errors import (
    BatchItemError,
    ComputeError,
    FetchError,
    HotnessError,
    RecordError,
    ValidationError,
)
from .models import (
    AggregationResult,
    BatchResult,
    HotnessPeriod,
    InteractionEvent,
    InteractionResult,
    InteractionType,
    NewInteraction,
    PlanAnalyticsSummary,
    PlanRecord,
    PlanScoreUpdate,
    WindowInputs,
    WindowScores,
)
from .policy import HotnessPolicy

__all__ = [
    "AggregationResult",
    "BatchItemError",
    "BatchResult",
    "ComputeError",
    "FetchError",
    "HotnessError",
    "HotnessPeriod",
    "HotnessPolicy",
    "InteractionEvent",
    "InteractionResult",
    "InteractionType",
    "NewInteraction",
    "PlanAnalyticsSummary",
    "PlanRecord",
    "PlanScoreUpdate",
    "RecordError",
    "ValidationError",
    "WindowInputs",
    "WindowScores",
]
