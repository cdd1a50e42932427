"""
Pipeline components for plan hotness.

Aggregation reduces raw interactions to per-window scores, abuse detection
decides whether a plan's recent traffic looks manufactured, and scoring
applies the penalty and persists the result.
"""

__all__ = ["abuse", "aggregation", "scoring"]
