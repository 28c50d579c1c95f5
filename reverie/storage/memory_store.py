"""In-process memory store, useful for tests and single-process deployments."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from .base import MemoryStore, StoredContent, rank_by_similarity

if TYPE_CHECKING:
    from ..core.conversation import Conversation


@dataclass
class _Namespace:
    metadata: dict[str, Any] = field(default_factory=dict)
    contents: list[StoredContent] = field(default_factory=list)
    processed: set[str] = field(default_factory=set)


class InMemoryStore(MemoryStore):
    """Dictionary-backed implementation of :class:`MemoryStore`"""

    def __init__(self) -> None:
        self._namespaces: dict[str, _Namespace] = {}

    def _get_or_create(self, conversation_id: str) -> _Namespace:
        namespace = self._namespaces.get(conversation_id)
        if namespace is None:
            namespace = _Namespace()
            self._namespaces[conversation_id] = namespace
            logger.debug(f"InMemoryStore: created namespace {conversation_id}")
        return namespace

    async def get_namespace_metadata(self, conversation_id: str) -> dict[str, Any] | None:
        namespace = self._namespaces.get(conversation_id)
        if namespace is None:
            return None
        return copy.deepcopy(namespace.metadata)

    async def set_namespace_metadata(
        self, conversation_id: str, metadata: dict[str, Any]
    ) -> None:
        namespace = self._get_or_create(conversation_id)
        namespace.metadata = {
            key: value for key, value in copy.deepcopy(metadata).items() if value is not None
        }

    async def append_content(
        self, conversation_id: str, content: str, metadata: dict[str, Any]
    ) -> None:
        namespace = self._get_or_create(conversation_id)
        namespace.contents.append(
            StoredContent(content=content, metadata=copy.deepcopy(dict(metadata)))
        )

    async def list_content(
        self, conversation_id: str, limit: int | None = None
    ) -> list[StoredContent]:
        namespace = self._namespaces.get(conversation_id)
        if namespace is None:
            return []
        items = list(namespace.contents)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return [
            StoredContent(content=item.content, metadata=copy.deepcopy(item.metadata))
            for item in items
        ]

    async def search_similar(
        self, query: str, conversation_id: str, limit: int
    ) -> list[StoredContent]:
        items = await self.list_content(conversation_id)
        return rank_by_similarity(query, items, limit)

    async def list_namespace_ids(self) -> list[str]:
        return list(self._namespaces)

    async def delete_namespace(self, conversation_id: str) -> None:
        self._namespaces.pop(conversation_id, None)

    async def has_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> bool:
        namespace = self._namespaces.get(conversation.id)
        return bool(namespace and content_id in namespace.processed)

    async def set_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> None:
        self._get_or_create(conversation.id).processed.add(content_id)


__all__ = ["InMemoryStore"]
