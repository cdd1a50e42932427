"""
Hotness aggregation package.

Fetches each plan's trailing-window activity and turns it into raw scores.
"""

from .repository import HotnessAggregationRepository
from .service import HotnessAggregationService

__all__ = ["HotnessAggregationRepository", "HotnessAggregationService"]
