"""
Job runners for the hotness feature.
"""

from .recalculation_job import (
    HotnessRecalculationJob,
    run_hotness_recalculation_once,
    start_hotness_recalculation_scheduler,
)

__all__ = [
    "HotnessRecalculationJob",
    "run_hotness_recalculation_once",
    "start_hotness_recalculation_scheduler",
]
