"""
Memory store adapter boundary

The conversation layer only talks to persistence through this interface. A
namespace is the store's per-conversation partition: a metadata mapping plus
an append log of content items.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.conversation import Conversation


@dataclass(frozen=True)
class StoredContent:
    """A single persisted content item and its flat metadata"""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class MemoryStore(ABC):
    """Read/write/search operations against a namespaced content store"""

    @abstractmethod
    async def get_namespace_metadata(self, conversation_id: str) -> dict[str, Any] | None:
        """Return namespace metadata, or ``None`` when the namespace does not exist."""

    @abstractmethod
    async def set_namespace_metadata(
        self, conversation_id: str, metadata: dict[str, Any]
    ) -> None:
        """Create the namespace if needed and replace its metadata."""

    @abstractmethod
    async def append_content(
        self, conversation_id: str, content: str, metadata: dict[str, Any]
    ) -> None:
        """Append one content item to the namespace's log."""

    @abstractmethod
    async def list_content(
        self, conversation_id: str, limit: int | None = None
    ) -> list[StoredContent]:
        """Return items in append order; ``limit`` keeps the most recent ones."""

    @abstractmethod
    async def search_similar(
        self, query: str, conversation_id: str, limit: int
    ) -> list[StoredContent]:
        """Return up to ``limit`` items most similar to ``query``."""

    @abstractmethod
    async def list_namespace_ids(self) -> list[str]:
        ...

    @abstractmethod
    async def delete_namespace(self, conversation_id: str) -> None:
        ...

    @abstractmethod
    async def has_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> bool:
        ...

    @abstractmethod
    async def set_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> None:
        """Record ``content_id`` as processed; repeated calls are no-ops."""

    async def close(self) -> None:
        """Release resources held by the adapter."""
        return None


_TOKEN_PATTERN = re.compile(r"[\w']+")


def tokenize(text: str) -> set[str]:
    return {token.lower() for token in _TOKEN_PATTERN.findall(text or "")}


def calculate_similarity(query: str, text: str) -> float:
    """Word-overlap (Jaccard) similarity between two texts."""

    words1 = tokenize(query)
    words2 = tokenize(text)
    if not words1 or not words2:
        return 0.0
    union = len(words1 | words2)
    return len(words1 & words2) / union if union else 0.0


def rank_by_similarity(
    query: str, items: list[StoredContent], limit: int
) -> list[StoredContent]:
    """Order ``items`` by similarity to ``query``; ties prefer newer items."""

    if limit <= 0 or not items:
        return []
    scored = [
        (calculate_similarity(query, item.content), position, item)
        for position, item in enumerate(items)
    ]
    scored.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
    return [item for _, _, item in scored[:limit]]


__all__ = [
    "MemoryStore",
    "StoredContent",
    "calculate_similarity",
    "rank_by_similarity",
    "tokenize",
]
