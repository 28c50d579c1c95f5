from datetime import datetime, timezone

from reverie.core.conversation import Conversation, Memory, MemoryMetadata
from reverie.core.identity import derive_conversation_id, self_conversation_id


def test_conversation_id_is_derived_from_platform_and_local_id():
    conversation = Conversation(platform_id="room", platform="discord")

    assert conversation.id == derive_conversation_id("discord", "room")
    assert conversation.last_active == conversation.created_at


def test_consciousness_conversation_normalizes_local_id():
    conversation = Conversation(platform_id="whatever", platform="consciousness")

    assert conversation.platform_id == "main"
    assert conversation.id == self_conversation_id()


def test_add_memory_appends_and_bumps_last_active():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    conversation = Conversation(platform_id="room", platform="discord", created_at=created)

    memory = conversation.add_memory("hello", {"source": "user"})

    assert conversation.get_memories() == [memory]
    assert memory.conversation_id == conversation.id
    assert memory.timestamp.microsecond == 0
    assert conversation.last_active == memory.timestamp
    assert memory.metadata.source == "user"


def test_get_memories_limit_returns_most_recent_in_order():
    conversation = Conversation(platform_id="room", platform="discord")
    for i in range(5):
        conversation.add_memory(f"m{i}")

    assert [m.content for m in conversation.get_memories(2)] == ["m3", "m4"]
    assert conversation.get_memories(0) == []


def test_memory_metadata_keeps_unknown_keys_in_extra():
    metadata = MemoryMetadata.from_mapping(
        {"type": "internal_thought", "source": "consciousness", "mood": "calm", "score": 3}
    )

    assert metadata.type == "internal_thought"
    assert metadata.extra == {"mood": "calm", "score": 3}
    assert metadata.get("mood") == "calm"
    assert metadata.to_mapping() == {
        "type": "internal_thought",
        "source": "consciousness",
        "mood": "calm",
        "score": 3,
    }


def test_memory_metadata_coerces_known_values():
    moment = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    metadata = MemoryMetadata.from_mapping({"timestamp": moment, "content_id": 99})

    assert metadata.timestamp == "2024-05-06T07:08:09+00:00"
    assert metadata.content_id == "99"


def test_memory_from_stored_reads_id_and_timestamp():
    memory = Memory.from_stored(
        "conv",
        "text",
        {"memory_id": "abc", "timestamp": "2024-05-06T07:08:09+00:00"},
    )

    assert memory.id == "abc"
    assert memory.timestamp == datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def test_from_metadata_round_trips_namespace_metadata():
    conversation = Conversation(
        platform_id="room",
        platform="discord",
        name="Room",
        participants=["alice", "bob"],
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    metadata = conversation.to_namespace_metadata(user_id="u1")
    restored = Conversation.from_metadata(metadata)

    assert metadata["user_id"] == "u1"
    assert metadata["conversation_id"] == conversation.id
    assert restored.id == conversation.id
    assert restored.participants == ["alice", "bob"]
    assert restored.created_at == conversation.created_at
    assert restored.get_metadata().name == "Room"


def test_memory_metadata_moves_off_type_values_into_extra():
    metadata = MemoryMetadata.from_mapping(
        {"processed": "done", "extra": "oops", "source": "user"}
    )

    assert metadata.processed is None
    assert metadata.source == "user"
    assert metadata.extra == {"processed": "done", "extra": "oops"}
    assert MemoryMetadata.from_mapping(metadata.to_mapping()).extra == metadata.extra


def test_memory_metadata_accepts_boolean_like_processed_values():
    assert MemoryMetadata.from_mapping({"processed": True}).processed is True
    assert MemoryMetadata.from_mapping({"processed": "false"}).processed is False
    assert MemoryMetadata.from_mapping({"processed": None}).processed is None


def test_memory_metadata_merges_nested_extra_mapping():
    metadata = MemoryMetadata.from_mapping({"extra": {"mood": "calm"}, "score": 3})

    assert metadata.extra == {"mood": "calm", "score": 3}


def test_add_memory_ignores_caller_id_and_timestamp():
    conversation = Conversation(platform_id="room", platform="discord")

    memory = conversation.add_memory(
        "hello", {"memory_id": "x", "timestamp": "2020-01-01T00:00:00+00:00"}
    )

    assert memory.id != "x"
    assert memory.metadata.memory_id == memory.id
    assert memory.metadata.timestamp == memory.timestamp.isoformat()
