"""
Conversation and memory entities

A ``Conversation`` is a transient projection of one store namespace: its
metadata plus whatever part of the append log has been hydrated. The store
stays the source of truth; nothing here is cached between manager calls.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..utils.time_context import parse_iso, to_iso, utc_now
from .identity import derive_conversation_id, normalize_platform_id

_OPTIONAL_BOOL = TypeAdapter(bool | None)


class MemoryMetadata(BaseModel):
    """Provenance fields known to Reverie plus an open ``extra`` mapping"""

    model_config = ConfigDict(validate_assignment=True)

    memory_id: str | None = None
    timestamp: str | None = Field(
        default=None, description="ISO-8601 timestamp of the memory"
    )
    platform: str | None = None
    platform_id: str | None = None
    type: str | None = Field(default=None, description="e.g. internal_thought")
    source: str | None = Field(default=None, description="Producer of the content")
    content_id: str | None = Field(
        default=None, description="External id of the content this memory records"
    )
    processed: bool | None = Field(
        default=None, description="Idempotency marker for external content"
    )
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def known_fields(cls) -> set[str]:
        return set(cls.model_fields) - {"extra"}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> MemoryMetadata:
        """Split a flat persisted mapping into known fields and ``extra``."""

        if isinstance(data, MemoryMetadata):
            return data.model_copy(deep=True)
        data = dict(data or {})
        known = cls.known_fields()
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        nested = data.pop("extra", None)
        if isinstance(nested, Mapping):
            extra.update(nested)
        elif nested is not None:
            extra["extra"] = nested
        for key, value in data.items():
            if key not in known:
                extra[key] = value
            elif key == "processed":
                # Values that are not booleans are kept verbatim in extra
                try:
                    values[key] = _OPTIONAL_BOOL.validate_python(value)
                except ValidationError:
                    extra[key] = value
            elif key == "timestamp" and isinstance(value, datetime):
                values[key] = to_iso(value)
            else:
                values[key] = None if value is None else str(value)
        return cls(**values, extra=extra)

    def to_mapping(self) -> dict[str, Any]:
        """Flatten into the plain mapping handed to the store."""

        data = {
            key: value
            for key, value in self.model_dump(exclude={"extra"}).items()
            if value is not None
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.known_fields():
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)


@dataclass(frozen=True)
class Memory:
    """One timestamped content item belonging to a conversation"""

    id: str
    conversation_id: str
    content: str
    timestamp: datetime
    metadata: MemoryMetadata = field(default_factory=MemoryMetadata)

    @classmethod
    def from_stored(
        cls,
        conversation_id: str,
        content: str,
        metadata: Mapping[str, Any] | None,
    ) -> Memory:
        """Rebuild a memory from a store record."""

        meta = MemoryMetadata.from_mapping(metadata)
        memory_id = meta.memory_id or meta.extra.get("id") or str(uuid.uuid4())
        timestamp = parse_iso(meta.timestamp) or utc_now().replace(microsecond=0)
        return cls(
            id=str(memory_id),
            conversation_id=conversation_id,
            content=content,
            timestamp=timestamp,
            metadata=meta,
        )


class ConversationMetadata(BaseModel):
    """Snapshot of a conversation's descriptive metadata"""

    name: str | None = None
    description: str | None = None
    participants: list[str] = Field(default_factory=list)
    created_at: datetime
    last_active: datetime


@dataclass
class Conversation:
    """In-memory projection of a single conversation namespace"""

    platform_id: str
    platform: str
    name: str | None = None
    description: str | None = None
    participants: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    last_active: datetime | None = None
    memories: list[Memory] = field(default_factory=list, repr=False)
    id: str = field(init=False)

    def __post_init__(self) -> None:
        self.platform_id = normalize_platform_id(self.platform, str(self.platform_id))
        self.participants = list(self.participants or [])
        if self.last_active is None:
            self.last_active = self.created_at
        self.id = derive_conversation_id(self.platform, self.platform_id)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> Conversation:
        """Reconstruct from namespace metadata (``platform``/``platform_id`` required)."""

        created_at = parse_iso(metadata.get("created")) or utc_now()
        last_active = parse_iso(metadata.get("last_active")) or created_at
        participants = metadata.get("participants") or []
        if isinstance(participants, str):
            participants = [p.strip() for p in participants.split(",") if p.strip()]
        return cls(
            platform_id=str(metadata["platform_id"]),
            platform=str(metadata["platform"]),
            name=metadata.get("name"),
            description=metadata.get("description"),
            participants=list(participants),
            created_at=created_at,
            last_active=last_active,
        )

    def add_memory(
        self, content: str, metadata: Mapping[str, Any] | MemoryMetadata | None = None
    ) -> Memory:
        """Append a new memory to the in-memory log and return it."""

        memory_id = str(uuid.uuid4())
        timestamp = utc_now().replace(microsecond=0)
        # Id and timestamp always describe this memory, never the caller's values
        meta = MemoryMetadata.from_mapping(metadata).model_copy(
            update={"memory_id": memory_id, "timestamp": to_iso(timestamp)}
        )
        memory = Memory(
            id=memory_id,
            conversation_id=self.id,
            content=content,
            timestamp=timestamp,
            metadata=meta,
        )
        self.memories.append(memory)
        self.last_active = memory.timestamp
        return memory

    def load_memories(self, memories: Iterable[Memory]) -> None:
        """Replace the in-memory log with ``memories`` (append order preserved)."""

        self.memories = list(memories)
        if self.memories:
            latest = max(memory.timestamp for memory in self.memories)
            if self.last_active is None or latest > self.last_active:
                self.last_active = latest

    def get_memories(self, limit: int | None = None) -> list[Memory]:
        """Return the last ``limit`` memories in append order."""

        if limit is None:
            return list(self.memories)
        if limit <= 0:
            return []
        return self.memories[-limit:]

    def get_metadata(self) -> ConversationMetadata:
        return ConversationMetadata(
            name=self.name,
            description=self.description,
            participants=list(self.participants),
            created_at=self.created_at,
            last_active=self.last_active or self.created_at,
        )

    def to_namespace_metadata(self, user_id: str | None = None) -> dict[str, Any]:
        """Denormalised metadata written when the namespace is labelled."""

        data: dict[str, Any] = {
            "description": self.description or "Conversation-specific memory storage",
            "conversation_id": self.id,
            "platform": self.platform,
            "platform_id": self.platform_id,
            "created": to_iso(self.created_at),
            "last_active": to_iso(self.last_active or self.created_at),
            "name": self.name,
            "participants": list(self.participants),
        }
        if user_id:
            data["user_id"] = user_id
        return data


__all__ = ["Conversation", "ConversationMetadata", "Memory", "MemoryMetadata"]
