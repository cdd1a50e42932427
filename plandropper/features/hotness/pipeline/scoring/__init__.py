"""
Hotness scoring package.

Provides the orchestrator that recomputes, penalizes and persists plan
scores, either for one plan or as a full sweep.
"""

from .repository import PlanScoreRepository
from .service import HotnessScoringService

__all__ = ["PlanScoreRepository", "HotnessScoringService"]
