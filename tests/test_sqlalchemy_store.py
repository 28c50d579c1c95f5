import asyncio

import pytest

from reverie.core.conversation_manager import ConversationManager
from reverie.storage.models import Base
from reverie.storage.sqlalchemy_store import SQLAlchemyStore
from reverie.utils.exceptions import UpstreamError


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLAlchemyStore(f"sqlite:///{tmp_path / 'nested' / 'reverie.db'}")
    try:
        yield store
    finally:
        asyncio.run(store.close())


def test_sqlite_parent_directory_is_created(tmp_path, sqlite_store):
    assert (tmp_path / "nested" / "reverie.db").exists()


def test_namespace_metadata_round_trip(sqlite_store):
    async def scenario():
        missing = await sqlite_store.get_namespace_metadata("conv")
        await sqlite_store.set_namespace_metadata(
            "conv", {"platform": "discord", "participants": ["a"], "name": None}
        )
        first = await sqlite_store.get_namespace_metadata("conv")
        await sqlite_store.set_namespace_metadata("conv", {"platform": "twitter"})
        second = await sqlite_store.get_namespace_metadata("conv")
        return missing, first, second

    missing, first, second = asyncio.run(scenario())

    assert missing is None
    assert first == {"platform": "discord", "participants": ["a"]}
    assert second == {"platform": "twitter"}


def test_content_append_order_and_limit(sqlite_store):
    async def scenario():
        for i in range(4):
            await sqlite_store.append_content("conv", f"m{i}", {"memory_id": f"id{i}"})
        return (
            await sqlite_store.list_content("conv"),
            await sqlite_store.list_content("conv", limit=2),
            await sqlite_store.list_content("other"),
        )

    everything, recent, other = asyncio.run(scenario())

    assert [item.content for item in everything] == ["m0", "m1", "m2", "m3"]
    assert [item.content for item in recent] == ["m2", "m3"]
    assert recent[-1].metadata == {"memory_id": "id3"}
    assert other == []


def test_manager_parity_with_sqlite(sqlite_store):
    manager = ConversationManager(sqlite_store)

    async def scenario():
        conversation = await manager.ensure_conversation("general", "discord")
        again = await manager.ensure_conversation("general", "discord")
        memory = await manager.add_memory(conversation.id, "the build is green")
        await manager.add_memory(conversation.id, "lunch at noon")
        memories = await manager.get_memories_from_conversation(conversation.id)
        similar = await manager.find_similar_memories_in_conversation(
            "is the build green", conversation.id, limit=1
        )
        before = await manager.has_processed_content_in_conversation("c1", conversation.id)
        await manager.mark_content_as_processed("c1", conversation.id)
        await manager.mark_content_as_processed("c1", conversation.id)
        after = await manager.has_processed_content_in_conversation("c1", conversation.id)
        return conversation, again, memory, memories, similar, before, after

    conversation, again, memory, memories, similar, before, after = asyncio.run(scenario())

    assert conversation.id == again.id
    assert [m.content for m in memories] == ["the build is green", "lunch at noon"]
    assert memories[0].id == memory.id
    assert memories[0].timestamp == memory.timestamp
    assert [m.content for m in similar] == ["the build is green"]
    assert before is False
    assert after is True


def test_delete_namespace_removes_content_and_markers(sqlite_store):
    manager = ConversationManager(sqlite_store)

    async def scenario():
        a = await manager.create_conversation("a", "discord")
        b = await manager.create_conversation("b", "discord")
        await manager.add_memory(a.id, "hello")
        await manager.mark_content_as_processed("c1", a.id)
        await manager.delete_conversation(a.id)
        return (
            a,
            b,
            await sqlite_store.list_namespace_ids(),
            await sqlite_store.list_content(a.id),
            await manager.get_conversation(a.id),
        )

    a, b, ids, contents, loaded = asyncio.run(scenario())

    assert set(ids) == {b.id}
    assert contents == []
    assert loaded is None


def test_unreachable_database_raises_upstream_error(tmp_path):
    with pytest.raises(UpstreamError):
        SQLAlchemyStore(f"sqlite:///{tmp_path}")


@pytest.mark.parametrize("url", ["sqlite:///:memory:", "sqlite://"])
def test_in_memory_database_is_shared_across_worker_threads(url):
    store = SQLAlchemyStore(url)
    manager = ConversationManager(store)

    async def scenario():
        conversation = await manager.ensure_conversation("general", "discord")
        memory = await manager.add_memory(conversation.id, "kept in memory")
        again = await manager.ensure_conversation("general", "discord")
        return conversation, memory, again

    try:
        conversation, memory, again = asyncio.run(scenario())
    finally:
        asyncio.run(store.close())

    assert again.id == conversation.id
    assert [m.id for m in again.get_memories()] == [memory.id]


def test_audit_columns_are_timezone_aware():
    for table in Base.metadata.sorted_tables:
        for column in table.columns:
            if column.name in {"created_at", "updated_at"}:
                assert column.type.timezone is True
                assert column.default.is_callable
