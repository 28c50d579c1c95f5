"""
Build the configured store, backend, conversation manager and processor
"""

from __future__ import annotations

from loguru import logger

from ..core.character import DEFAULT_CHARACTER, Character
from ..core.conversation_manager import ConversationManager
from ..llm.backend import InferenceBackend, OpenAIInferenceBackend
from ..processors.master import MasterProcessor
from ..storage.base import MemoryStore
from ..storage.memory_store import InMemoryStore
from ..storage.sqlalchemy_store import SQLAlchemyStore
from ..utils.exceptions import ConfigurationError
from .settings import ReverieSettings, StoreBackend


def create_store(settings: ReverieSettings) -> MemoryStore:
    store_settings = settings.store
    if store_settings.backend == StoreBackend.MEMORY:
        logger.debug("Using in-memory store")
        return InMemoryStore()
    if store_settings.backend == StoreBackend.SQLALCHEMY:
        return SQLAlchemyStore(
            store_settings.connection_string, echo=store_settings.echo_sql
        )
    raise ConfigurationError(f"Unsupported store backend: {store_settings.backend}")


def create_backend(settings: ReverieSettings) -> InferenceBackend:
    return OpenAIInferenceBackend.from_settings(settings.agents)


def create_conversation_manager(
    settings: ReverieSettings, store: MemoryStore | None = None
) -> ConversationManager:
    return ConversationManager(
        store if store is not None else create_store(settings),
        serialize_writes=settings.processing.serialize_writes,
    )


def create_master_processor(
    settings: ReverieSettings,
    backend: InferenceBackend | None = None,
    character: Character = DEFAULT_CHARACTER,
    **kwargs,
) -> MasterProcessor:
    """Root processor with the configured content limit and delegation depth."""

    return MasterProcessor(
        backend if backend is not None else create_backend(settings),
        character,
        content_limit=settings.processing.content_limit,
        max_delegation_depth=settings.processing.max_delegation_depth,
        **kwargs,
    )


__all__ = [
    "create_backend",
    "create_conversation_manager",
    "create_master_processor",
    "create_store",
]
