"""
Conversation Manager

Reconciles :class:`Conversation` projections with the memory store. Every
read rebuilds the conversation from the store; nothing is cached between
calls, so the store's own consistency guarantees govern concurrent writers.

Failure policy:
- identity and creation failures are surfaced to the caller
- memory hydration failures are logged and swallowed
"""

from __future__ import annotations

import asyncio
import contextlib
import weakref
from collections.abc import Mapping
from typing import Any

from loguru import logger

from ..storage.base import MemoryStore, StoredContent
from ..utils.exceptions import ConversationNotFoundError, StoreUnavailableError
from ..utils.time_context import to_iso
from .conversation import Conversation, Memory, MemoryMetadata
from .identity import derive_conversation_id, normalize_platform_id


class ConversationManager:
    """Single entry point for conversation and memory CRUD"""

    def __init__(
        self,
        store: MemoryStore | None = None,
        *,
        serialize_writes: bool = False,
    ):
        """
        Args:
            store: Memory store adapter. Without one, reads degrade to empty
                results and writes raise ``StoreUnavailableError``.
            serialize_writes: Serialise ``add_memory`` per conversation id.
        """
        self.store = store
        self.serialize_writes = serialize_writes
        # Locks drop out once no writer holds them
        self._write_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

        logger.debug(
            f"ConversationManager initialized: store={type(store).__name__ if store else None}, "
            f"serialize_writes={serialize_writes}"
        )

    def _require_store(self, operation: str) -> MemoryStore:
        if self.store is None:
            raise StoreUnavailableError(
                f"Memory store required for {operation}",
                context={"operation": operation},
            )
        return self.store

    def _write_lock(self, conversation_id: str):
        if not self.serialize_writes:
            return contextlib.nullcontext()
        lock = self._write_locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._write_locks[conversation_id] = lock
        return lock

    @staticmethod
    def _to_memory(conversation_id: str, item: StoredContent) -> Memory:
        return Memory.from_stored(conversation_id, item.content, item.metadata)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------
    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Rebuild a conversation from the store, or ``None`` if it does not resolve."""

        if self.store is None:
            logger.warning("ConversationManager.get_conversation: No memory store provided")
            return None

        try:
            metadata = await self.store.get_namespace_metadata(conversation_id)
        except Exception as e:
            logger.error(
                f"ConversationManager.get_conversation: Failed to get conversation "
                f"{conversation_id}: {e}"
            )
            return None

        if metadata is None:
            logger.warning(
                f"ConversationManager.get_conversation: Conversation {conversation_id} does not exist"
            )
            return None

        if not metadata.get("platform") or not metadata.get("platform_id"):
            logger.warning(
                f"ConversationManager.get_conversation: Conversation {conversation_id} "
                "missing required metadata"
            )
            return None

        try:
            conversation = Conversation.from_metadata(metadata)
        except Exception as e:
            logger.error(
                f"ConversationManager.get_conversation: Invalid metadata for "
                f"{conversation_id}: {e}"
            )
            return None

        try:
            stored = await self.store.list_content(conversation_id)
            conversation.load_memories(
                self._to_memory(conversation.id, item) for item in stored
            )
        except Exception as e:
            logger.warning(
                f"ConversationManager.get_conversation: Failed to load memories for "
                f"{conversation_id}: {e}"
            )

        return conversation

    async def get_conversation_by_platform_id(
        self, platform_id: str, platform: str
    ) -> Conversation | None:
        platform_id = normalize_platform_id(platform, platform_id)
        return await self.get_conversation(derive_conversation_id(platform, platform_id))

    async def create_conversation(
        self,
        platform_id: str,
        platform: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Conversation:
        """Create a conversation and label its namespace with full metadata.

        Raises:
            StoreUnavailableError: no store configured
            Exception: any store failure is logged and re-raised
        """
        store = self._require_store("conversation creation")
        metadata = dict(metadata or {})
        user_id = metadata.pop("user_id", None)

        conversation = Conversation(
            platform_id=platform_id,
            platform=platform,
            name=metadata.get("name"),
            description=metadata.get("description"),
            participants=list(metadata.get("participants") or []),
            **{
                key: metadata[key]
                for key in ("created_at", "last_active")
                if metadata.get(key) is not None
            },
        )

        try:
            await store.set_namespace_metadata(
                conversation.id, conversation.to_namespace_metadata(user_id=user_id)
            )
        except Exception as e:
            logger.error(
                f"ConversationManager.create_conversation: Failed to create conversation "
                f"{conversation.id} (user_id={user_id}): {e}"
            )
            raise

        logger.debug(
            f"ConversationManager.create_conversation: Conversation {conversation.id} created "
            f"(platform={platform}, platform_id={conversation.platform_id}, user_id={user_id})"
        )
        return conversation

    async def list_conversations(self) -> list[Conversation]:
        if self.store is None:
            return []

        conversation_ids = await self.store.list_namespace_ids()
        conversations: list[Conversation] = []
        for conversation_id in conversation_ids:
            conversation = await self.get_conversation(conversation_id)
            if conversation is not None:
                conversations.append(conversation)
        return conversations

    async def ensure_conversation(
        self, name: str, platform: str, user_id: str | None = None
    ) -> Conversation:
        """Get or create the conversation keyed by ``(platform, name)``."""

        conversation = await self.get_conversation_by_platform_id(name, platform)
        if conversation is None:
            conversation = await self.create_conversation(
                name,
                platform,
                {
                    "name": name,
                    "description": f"Conversation for {name}",
                    "participants": [],
                    "user_id": user_id,
                },
            )
        return conversation

    async def delete_conversation(self, conversation_id: str) -> None:
        if self.store is None:
            return

        await self.store.delete_namespace(conversation_id)
        self._write_locks.pop(conversation_id, None)
        logger.info(
            f"ConversationManager.delete_conversation: Conversation {conversation_id} deleted"
        )

    # ------------------------------------------------------------------
    # Memories
    # ------------------------------------------------------------------
    async def add_memory(
        self,
        conversation_id: str,
        content: str,
        metadata: Mapping[str, Any] | MemoryMetadata | None = None,
    ) -> Memory:
        """Append a memory in-process, then write it through to the store.

        If the store write fails the error propagates, but the memory has
        already been appended to the in-memory conversation.
        """
        store = self._require_store("adding memories")

        async with self._write_lock(conversation_id):
            conversation = await self.get_conversation(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)

            caller_metadata = MemoryMetadata.from_mapping(metadata).to_mapping()
            memory = conversation.add_memory(content, caller_metadata)
            stored_metadata = {
                **caller_metadata,
                "memory_id": memory.id,
                "timestamp": to_iso(memory.timestamp),
                "platform": conversation.platform,
                "platform_id": conversation.platform_id,
            }

            try:
                await store.append_content(
                    conversation.id, memory.content, stored_metadata
                )
            except Exception as e:
                logger.error(
                    f"ConversationManager.add_memory: Failed to store memory {memory.id} "
                    f"in {conversation.id}: {e}"
                )
                raise

        logger.debug(
            f"ConversationManager.add_memory: Memory {memory.id} stored in {conversation.id}"
        )
        return memory

    async def find_similar_memories_in_conversation(
        self, content: str, conversation_id: str, limit: int = 5
    ) -> list[Memory]:
        store = self._require_store("finding memories")

        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        try:
            results = await store.search_similar(content, conversation_id, limit)
        except Exception as e:
            logger.error(
                f"ConversationManager.find_similar_memories_in_conversation: Failed to find "
                f"similar memories in {conversation_id}: {e}"
            )
            raise

        memories: list[Memory] = []
        for result in results:
            metadata = {
                **result.metadata,
                "platform": conversation.platform,
                "platform_id": conversation.platform_id,
            }
            memories.append(Memory.from_stored(conversation_id, result.content, metadata))
        return memories

    async def get_memories_from_conversation(
        self, conversation_id: str, limit: int | None = None
    ) -> list[Memory]:
        store = self._require_store("getting memories")

        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        try:
            stored = await store.list_content(conversation_id, limit)
        except Exception as e:
            logger.error(
                f"ConversationManager.get_memories_from_conversation: Failed to get memories "
                f"for {conversation_id}: {e}"
            )
            raise

        return [self._to_memory(conversation_id, item) for item in stored]

    async def has_processed_content_in_conversation(
        self, content_id: str, conversation_id: str
    ) -> bool:
        store = self._require_store("checking processed content")

        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            logger.error(
                f"ConversationManager.has_processed_content_in_conversation: Conversation "
                f"{conversation_id} not found"
            )
            return False

        return await store.has_processed_marker(content_id, conversation)

    async def mark_content_as_processed(
        self, content_id: str, conversation_id: str
    ) -> bool:
        store = self._require_store("marking content as processed")

        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            logger.error(
                f"ConversationManager.mark_content_as_processed: Conversation "
                f"{conversation_id} not found"
            )
            return False

        await store.set_processed_marker(content_id, conversation)
        return True


__all__ = ["ConversationManager"]
