"""
Interaction recording: classify and persist view, click and request events.
"""

from .repository import InteractionRepository
from .service import InteractionRecorder

__all__ = ["InteractionRepository", "InteractionRecorder"]
