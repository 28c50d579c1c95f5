"""
Pydantic models for processor decisions and results
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ..utils.time_context import TimeContext, get_time_context


class ClassificationContext(BaseModel):
    topic: str = Field(description="Main topic of the content")
    urgency: str | None = Field(default=None, description="How urgent the content is")
    additional_context: str = Field(
        default="", description="Anything else worth remembering about the content"
    )


class Classification(BaseModel):
    content_type: str = Field(description="Kind of content, e.g. greeting or request")
    requires_processing: bool = Field(default=True)
    delegate_to_processor: str | None = Field(
        default=None, description="The name of the processor to delegate to"
    )
    context: ClassificationContext


class Enrichment(BaseModel):
    summary: str = Field(max_length=1000)
    topics: list[str] = Field(default_factory=list, max_length=20)
    sentiment: str = Field(default="neutral")
    entities: list[str] = Field(default_factory=list)
    intent: str = Field(default="unknown", description="The intent of the content")


class UpdateTask(BaseModel):
    """Recurring action proposed by the backend"""

    name: str = Field(
        description="The name of the task to schedule. This should be a handler name."
    )
    confidence: float = Field(description="The confidence score (0-1)")
    interval_ms: int = Field(description="The interval in milliseconds")
    data: Any = Field(
        default=None, description="The data that matches the task's schema"
    )


class SuggestedOutput(BaseModel):
    name: str = Field(description="The name of the output or action")
    data: Any = Field(
        default=None,
        description=(
            "The data that matches the output's schema. leave empty if you don't "
            "have any data to provide."
        ),
    )
    confidence: float = Field(description="The confidence score (0-1)")
    reasoning: str = Field(default="", description="The reasoning for the suggestion")


class ProcessorDecision(BaseModel):
    """Schema the inference backend must fill for every processed item"""

    classification: Classification
    enrichment: Enrichment
    update_tasks: list[UpdateTask] = Field(
        default_factory=list,
        description=(
            "Suggested tasks to schedule based on the content and the available "
            "handlers. Making this will mean the handlers will be called in the future."
        ),
    )
    suggested_outputs: list[SuggestedOutput] = Field(default_factory=list)


class EnrichedContext(BaseModel):
    summary: str = ""
    topics: list[str] = Field(default_factory=list)
    sentiment: str = "neutral"
    entities: list[str] = Field(default_factory=list)
    intent: str = "unknown"
    time_context: TimeContext = Field(default_factory=get_time_context)
    related_memories: list[str] = Field(default_factory=list)
    available_outputs: list[str] = Field(default_factory=list)


class ProcessedResult(BaseModel):
    """Outcome of running content through a processor"""

    content: Any
    metadata: dict[str, Any] = Field(default_factory=dict)
    enriched_context: EnrichedContext = Field(default_factory=EnrichedContext)
    update_tasks: list[UpdateTask] = Field(default_factory=list)
    suggested_outputs: list[SuggestedOutput] = Field(default_factory=list)
    already_processed: bool = False


__all__ = [
    "Classification",
    "ClassificationContext",
    "EnrichedContext",
    "Enrichment",
    "ProcessedResult",
    "ProcessorDecision",
    "SuggestedOutput",
    "UpdateTask",
]
