import asyncio

from reverie.config.factory import (
    create_backend,
    create_conversation_manager,
    create_master_processor,
    create_store,
)
from reverie.config.settings import ReverieSettings
from reverie.llm.backend import OpenAIInferenceBackend
from reverie.processors.master import MasterProcessor
from reverie.storage.memory_store import InMemoryStore
from reverie.storage.sqlalchemy_store import SQLAlchemyStore
from tests.utils.fakes import FakeBackend


def test_create_store_defaults_to_memory():
    assert isinstance(create_store(ReverieSettings()), InMemoryStore)


def test_create_store_builds_sqlalchemy_store(tmp_path):
    settings = ReverieSettings(
        store={"backend": "sqlalchemy", "connection_string": f"sqlite:///{tmp_path / 'r.db'}"}
    )

    store = create_store(settings)
    try:
        assert isinstance(store, SQLAlchemyStore)
    finally:
        asyncio.run(store.close())


def test_create_backend_uses_agent_settings():
    settings = ReverieSettings(agents={"api_key": "sk-test", "model": "gpt-4o"})

    backend = create_backend(settings)

    assert isinstance(backend, OpenAIInferenceBackend)
    assert backend.model == "gpt-4o"


def test_create_conversation_manager_honours_processing_settings():
    settings = ReverieSettings(processing={"serialize_writes": True})
    store = InMemoryStore()

    manager = create_conversation_manager(settings, store)

    assert manager.store is store
    assert manager.serialize_writes is True


def test_create_master_processor_uses_processing_settings():
    settings = ReverieSettings(processing={"content_limit": 42, "max_delegation_depth": 2})
    backend = FakeBackend()

    processor = create_master_processor(settings, backend, context="ambient")

    assert isinstance(processor, MasterProcessor)
    assert processor.backend is backend
    assert processor.content_limit == 42
    assert processor.max_delegation_depth == 2
    assert processor.context == "ambient"
    assert processor.can_handle("x" * 41)
    assert not processor.can_handle("x" * 42)
