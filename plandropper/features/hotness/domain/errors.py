"""
Errors raised by the hotness feature.

Services raise these; the API layer turns them into structured HTTP errors
and the batch sweep turns per-plan failures into BatchItemError records.
"""


class HotnessError(Exception):
    """Base class for hotness failures."""

    code = "hotness_error"

    def __init__(self, message: str, *, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class ValidationError(HotnessError):
    """Missing or malformed identifier, rejected before any I/O."""

    code = "validation_error"

    def __init__(self, message: str):
        super().__init__(message, recoverable=False)


class FetchError(HotnessError):
    """A store read failed, or the requested entity does not exist."""

    code = "fetch_error"

    def __init__(self, message: str, *, not_found: bool = False, recoverable: bool = True):
        super().__init__(message, recoverable=recoverable and not not_found)
        self.not_found = not_found


class RecordError(HotnessError):
    """The interaction event could not be persisted."""

    code = "record_error"


class ComputeError(HotnessError):
    """Scores were computed but could not be written; nothing was persisted."""

    code = "compute_error"


class BatchItemError(HotnessError):
    """One plan failed during a full recalculation sweep."""

    code = "batch_item_error"

    def __init__(self, plan_id: str, cause: Exception):
        super().__init__(f"Plan {plan_id} failed: {cause}")
        self.plan_id = plan_id
        self.cause = cause

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "error_type": type(self.cause).__name__,
            "error": str(self.cause),
        }
