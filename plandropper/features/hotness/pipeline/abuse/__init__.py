"""
Plan-level abuse detection.
"""

from .service import AbuseDetector, SuspicionReason

__all__ = ["AbuseDetector", "SuspicionReason"]
