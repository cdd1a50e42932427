"""
Abuse detection for plan hotness.

A pass/fail classifier over one plan's weekly view events. A positive result
halves every window score of the current scoring pass.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from enum import Enum

from plandropper.features.hotness.domain.models import InteractionEvent
from plandropper.features.hotness.domain.policy import HotnessPolicy
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SuspicionReason(str, Enum):
    VIEWS_WITHOUT_REQUESTS = "views_without_requests"
    SINGLE_ORIGIN = "single_origin"
    BURST = "burst"


class AbuseDetector:
    def __init__(self, policy: HotnessPolicy | None = None):
        self._policy = policy or HotnessPolicy()

    def is_suspicious(
        self,
        weekly_events: Iterable[InteractionEvent],
        weekly_join_request_count: int,
        creator_id: str | None,
    ) -> bool:
        return self.detect(weekly_events, weekly_join_request_count, creator_id) is not None

    def detect(
        self,
        weekly_events: Iterable[InteractionEvent],
        weekly_join_request_count: int,
        creator_id: str | None,
    ) -> SuspicionReason | None:
        """Return the first trigger that fires, or None."""
        views = [
            event
            for event in weekly_events
            if event.is_view and not (creator_id and event.user_id == creator_id)
        ]

        if self._has_views_without_requests(views, weekly_join_request_count):
            return SuspicionReason.VIEWS_WITHOUT_REQUESTS
        if self._has_dominant_origin(views):
            return SuspicionReason.SINGLE_ORIGIN
        if self._has_burst(views):
            return SuspicionReason.BURST
        return None

    def _has_views_without_requests(
        self, views: list[InteractionEvent], join_request_count: int
    ) -> bool:
        return len(views) > self._policy.suspicious_view_threshold and join_request_count == 0

    def _has_dominant_origin(self, views: list[InteractionEvent]) -> bool:
        ip_counts = Counter(view.visitor_ip for view in views if view.visitor_ip)
        return any(count > self._policy.suspicious_ip_threshold for count in ip_counts.values())

    def _has_burst(self, views: list[InteractionEvent]) -> bool:
        size = self._policy.burst_size
        if size <= 0 or len(views) < size:
            return False

        ordered = sorted(view.created_at for view in views)
        for idx in range(size - 1, len(ordered)):
            if ordered[idx] - ordered[idx - size + 1] < self._policy.burst_window:
                return True
        return False
