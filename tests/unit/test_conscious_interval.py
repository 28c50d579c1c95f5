import asyncio
import json

from reverie.config.manager import ConfigManager
from reverie.consciousness.loop import Consciousness
from reverie.core.conversation_manager import ConversationManager
from tests.utils.fakes import FakeBackend


def _record_interval(monkeypatch):
    intervals = []

    async def fake_loop(self, interval):
        intervals.append(interval)

    monkeypatch.setattr(Consciousness, "_background_loop", fake_loop)
    return intervals


def _start(consciousness, interval_seconds=None):
    async def scenario():
        task = consciousness.start_background(interval_seconds)
        await task

    asyncio.run(scenario())


def test_consciousness_uses_interval_from_env(monkeypatch):
    monkeypatch.setenv("REVERIE_CONSCIOUSNESS__INTERVAL_SECONDS", "180")
    intervals = _record_interval(monkeypatch)

    manager = ConfigManager()
    manager.load_from_env()
    consciousness = Consciousness(
        FakeBackend(),
        ConversationManager(),
        settings=manager.get_settings().consciousness,
    )
    _start(consciousness)

    assert intervals == [180]


def test_consciousness_uses_interval_from_file(tmp_path, monkeypatch):
    config_path = tmp_path / "reverie.json"
    config_path.write_text(json.dumps({"consciousness": {"interval_seconds": 240}}))
    intervals = _record_interval(monkeypatch)

    manager = ConfigManager()
    manager.load_from_file(config_path)
    consciousness = Consciousness(
        FakeBackend(),
        ConversationManager(),
        settings=manager.get_settings().consciousness,
    )
    _start(consciousness)

    assert intervals == [240]


def test_explicit_interval_overrides_settings(monkeypatch):
    intervals = _record_interval(monkeypatch)
    consciousness = Consciousness(FakeBackend(), ConversationManager())

    _start(consciousness, interval_seconds=5)

    assert intervals == [5]
    assert consciousness.is_running() is False


def test_recent_actions_capacity_follows_settings(monkeypatch):
    monkeypatch.setenv("REVERIE_CONSCIOUSNESS__RECENT_ACTIONS_CAPACITY", "3")

    manager = ConfigManager()
    manager.load_from_env()
    consciousness = Consciousness(
        FakeBackend(),
        ConversationManager(),
        settings=manager.get_settings().consciousness,
    )

    assert consciousness.recent_actions.capacity == 3
