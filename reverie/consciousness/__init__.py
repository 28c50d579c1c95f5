"""
Autonomous thought loop
"""

from .loop import ERROR_THOUGHT_CONTENT, Consciousness, RecentActions
from .models import SuggestedAction, Thought, ThoughtContext, ThoughtResponse

__all__ = [
    "Consciousness",
    "RecentActions",
    "ERROR_THOUGHT_CONTENT",
    "SuggestedAction",
    "Thought",
    "ThoughtContext",
    "ThoughtResponse",
]
