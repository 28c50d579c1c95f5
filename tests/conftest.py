import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from reverie.config.manager import ConfigManager
from reverie.core.conversation_manager import ConversationManager
from reverie.storage.memory_store import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def manager(store):
    return ConversationManager(store)


@pytest.fixture(autouse=True)
def _reset_config_manager():
    try:
        yield
    finally:
        ConfigManager.reset()
