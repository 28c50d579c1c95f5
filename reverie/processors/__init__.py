"""
Content processors for Reverie
"""

from .base import BaseProcessor, content_to_text
from .handlers import HandlerRole, IOContext, IOHandler
from .master import MasterProcessor
from .models import (
    Classification,
    ClassificationContext,
    EnrichedContext,
    Enrichment,
    ProcessedResult,
    ProcessorDecision,
    SuggestedOutput,
    UpdateTask,
)

__all__ = [
    "BaseProcessor",
    "MasterProcessor",
    "content_to_text",
    "HandlerRole",
    "IOContext",
    "IOHandler",
    "Classification",
    "ClassificationContext",
    "EnrichedContext",
    "Enrichment",
    "ProcessedResult",
    "ProcessorDecision",
    "SuggestedOutput",
    "UpdateTask",
]
