"""Descriptors for the outputs and actions a processor may suggest."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from ..llm.schema import describe_schema


class HandlerRole(str, Enum):
    OUTPUT = "output"
    ACTION = "action"


@dataclass(frozen=True)
class IOHandler:
    """Name and payload schema of a downstream output or action"""

    name: str
    role: HandlerRole = HandlerRole.OUTPUT
    output_schema: type[BaseModel] | None = None
    description: str = ""

    def describe(self) -> str:
        """``name: <json schema>`` line used in decision prompts."""

        schema = describe_schema(self.output_schema) if self.output_schema else {}
        return f"{self.name}: {json.dumps(schema)}"


@dataclass
class IOContext:
    available_outputs: list[IOHandler] = field(default_factory=list)
    available_actions: list[IOHandler] = field(default_factory=list)

    def output_names(self) -> list[str]:
        return [handler.name for handler in self.available_outputs]


__all__ = ["HandlerRole", "IOContext", "IOHandler"]
