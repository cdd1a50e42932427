"""
Tunable constants for hotness scoring and abuse detection.

Thresholds come from settings so each environment can adjust them without a
deploy; the formula weights are fixed here.
"""

from dataclasses import dataclass
from datetime import timedelta

from plandropper.config import Settings, settings


@dataclass(frozen=True, slots=True)
class HotnessPolicy:
    # Score formula
    view_weight: float = 0.2
    unique_viewer_weight: float = 0.3
    recency_weight: float = 0.2
    engagement_weight: float = 0.3
    join_request_value: float = 2.0
    participant_value: float = 3.0
    recency_horizon_hours: float = 168.0
    min_score: float = 0.1

    # Write-time spam classification
    spam_window: timedelta = timedelta(hours=1)
    spam_threshold: int = 5

    # Plan-level abuse detection (weekly window)
    suspicious_view_threshold: int = 50
    suspicious_ip_threshold: int = 25
    burst_size: int = 10
    burst_window: timedelta = timedelta(seconds=120)
    suspicion_penalty: float = 0.5

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "HotnessPolicy":
        config = config or settings
        return cls(
            min_score=config.HOTNESS_MIN_SCORE,
            spam_window=timedelta(minutes=config.HOTNESS_SPAM_WINDOW_MINUTES),
            spam_threshold=config.HOTNESS_SPAM_THRESHOLD,
            suspicious_view_threshold=config.HOTNESS_SUSPICIOUS_VIEW_THRESHOLD,
            suspicious_ip_threshold=config.HOTNESS_SUSPICIOUS_IP_THRESHOLD,
            burst_size=config.HOTNESS_BURST_SIZE,
            burst_window=timedelta(seconds=config.HOTNESS_BURST_WINDOW_SECONDS),
            suspicion_penalty=config.HOTNESS_SUSPICION_PENALTY,
        )
