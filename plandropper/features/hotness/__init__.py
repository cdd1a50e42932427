"""
Plan hotness feature package.

This vertical slice keeps every layer of plan hotness co-located: interaction
recording, windowed aggregation, abuse detection, score persistence, the hot
plans reader, API routes and the recalculation job.
"""

from .api.router import router as hotness_router  # noqa: F401
from .jobs.recalculation_job import (  # noqa: F401
    run_hotness_recalculation_once,
    start_hotness_recalculation_scheduler,
)
