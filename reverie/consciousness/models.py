"""
Pydantic models for autonomous thoughts
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..utils.time_context import utc_now


class ThoughtContext(BaseModel):
    topics: list[str] = Field(default_factory=list, description="Topics of the thought")
    timeframe: str | None = Field(
        default=None, description="Timeframe the thought refers to"
    )
    reliability: Literal["low", "medium", "high"] | None = Field(
        default=None, description="How reliable the thought is"
    )


class SuggestedAction(BaseModel):
    type: str | None = Field(default=None, description="Category of the action")
    platform: str | None = Field(
        default=None, description="Platform the action targets, e.g. twitter or discord"
    )


class ThoughtResponse(BaseModel):
    """Schema the inference backend fills when generating a thought"""

    thought_type: str = Field(description="Kind of thought, e.g. reflection or plan")
    thought: str = Field(description="The thought itself, as a concrete intention")
    reasoning: str = Field(default="", description="Why this thought was produced")
    context: ThoughtContext = Field(default_factory=ThoughtContext)
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)


class Thought(BaseModel):
    """A thought produced by the consciousness loop"""

    type: str
    source: str = "consciousness"
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


__all__ = ["SuggestedAction", "Thought", "ThoughtContext", "ThoughtResponse"]
