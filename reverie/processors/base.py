"""
Processor base class and child registry

Processors form a tree: each one may delegate content to a named child.
Delegation is bounded by a hop budget and a visited-name set; when either
check fails the current processor finalizes the result itself.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from ..core.character import DEFAULT_CHARACTER, Character
from ..llm.backend import InferenceBackend
from .handlers import IOContext
from .models import ProcessedResult

DEFAULT_CONTENT_LIMIT = 1000
DEFAULT_MAX_DELEGATION_DEPTH = 5


def content_to_text(content: Any) -> str:
    """Render arbitrary content as text (JSON for non-strings)."""

    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, default=str)
    except (TypeError, ValueError):
        return str(content)


class BaseProcessor(ABC):
    """Polymorphic content handler with named child processors"""

    def __init__(
        self,
        name: str,
        description: str,
        backend: InferenceBackend,
        character: Character = DEFAULT_CHARACTER,
        content_limit: int = DEFAULT_CONTENT_LIMIT,
        max_delegation_depth: int = DEFAULT_MAX_DELEGATION_DEPTH,
    ):
        self.name = name
        self.description = description
        self.backend = backend
        self.character = character
        self.content_limit = content_limit
        self.max_delegation_depth = max_delegation_depth
        self.processors: dict[str, BaseProcessor] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    def add_processor(self, processor: BaseProcessor) -> BaseProcessor:
        if processor is self:
            raise ValueError("A processor cannot be its own child")
        if processor.name in self.processors:
            logger.warning(
                f"Processor '{self.name}': replacing child processor '{processor.name}'"
            )
        self.processors[processor.name] = processor
        return self

    def get_processor(self, name: str) -> BaseProcessor | None:
        return self.processors.get(name)

    def get_description(self) -> str:
        return self.description

    def describe_children(self) -> str:
        return "\n".join(
            f"{name}: {processor.get_description()}"
            for name, processor in self.processors.items()
        )

    # ------------------------------------------------------------------
    # Capability and dispatch
    # ------------------------------------------------------------------
    def can_handle(self, content: Any) -> bool:
        """Content is handled when it is shorter than ``content_limit`` characters."""

        return len(content_to_text(content)) < self.content_limit

    def resolve_delegate(
        self,
        target: str | None,
        content: Any,
        visited: frozenset[str],
        hops_remaining: int,
    ) -> BaseProcessor | None:
        """Return the child to delegate to, or ``None`` to finalize locally."""

        if not target:
            return None

        child = self.get_processor(target)
        if child is None:
            logger.debug(f"Processor '{self.name}': no child processor named '{target}'")
            return None
        if not child.can_handle(content):
            logger.debug(
                f"Processor '{self.name}': child '{target}' cannot handle content"
            )
            return None
        if target in visited:
            logger.warning(
                f"Processor '{self.name}': delegation cycle through '{target}' refused"
            )
            return None
        if hops_remaining <= 0:
            logger.warning(
                f"Processor '{self.name}': delegation budget exhausted before '{target}'"
            )
            return None
        return child

    @abstractmethod
    async def process(
        self,
        content: Any,
        other_context: str,
        io_context: IOContext | None = None,
        *,
        visited: frozenset[str] | None = None,
        hops_remaining: int | None = None,
    ) -> ProcessedResult:
        """Classify ``content`` and either finalize or delegate to a child.

        Implementations must not raise: failures are returned as a degraded
        :class:`ProcessedResult`.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, children={list(self.processors)})"


__all__ = ["BaseProcessor", "content_to_text"]
