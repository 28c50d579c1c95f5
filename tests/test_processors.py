import asyncio

import pytest
from pydantic import BaseModel

from reverie.processors.handlers import HandlerRole, IOContext, IOHandler
from reverie.processors.master import MasterProcessor
from reverie.utils.exceptions import UpstreamError
from tests.utils.fakes import FakeBackend, decision


class DiscordReply(BaseModel):
    channel_id: str
    message: str


def _io_context():
    return IOContext(
        available_outputs=[
            IOHandler(name="discord_reply", output_schema=DiscordReply),
        ],
        available_actions=[
            IOHandler(name="schedule_post", role=HandlerRole.ACTION),
        ],
    )


def test_greeting_produces_suggested_reply():
    backend = FakeBackend(
        decision(
            content_type="greeting",
            summary="A friendly greeting",
            topic="greeting",
            intent="greet",
            suggested_outputs=[
                {
                    "name": "discord_reply",
                    "data": {"channel_id": "1", "message": "Hi there!"},
                    "confidence": 0.9,
                    "reasoning": "Greetings deserve a reply",
                }
            ],
        )
    )
    processor = MasterProcessor(backend, context="Team chat")

    result = asyncio.run(processor.process("hello", "", _io_context()))

    assert result.content == "hello"
    assert result.already_processed is False
    assert result.metadata["content_type"] == "greeting"
    assert result.metadata["topic"] == "greeting"
    assert result.enriched_context.summary == "A friendly greeting"
    assert result.enriched_context.intent == "greet"
    assert result.enriched_context.available_outputs == ["discord_reply"]
    assert [output.name for output in result.suggested_outputs] == ["discord_reply"]
    assert result.suggested_outputs[0].data["message"] == "Hi there!"

    call = backend.calls[0]
    assert "hello" in call["prompt"]
    assert "Team chat" in call["prompt"]
    assert "discord_reply:" in call["prompt"]
    assert "schedule_post:" in call["prompt"]
    assert "channel_id" in call["prompt"]


def test_backend_failure_yields_neutral_result():
    backend = FakeBackend(UpstreamError("connection reset"))
    processor = MasterProcessor(backend)
    content = "x" * 150

    result = asyncio.run(processor.process(content, "", _io_context()))

    assert result.metadata == {}
    assert result.enriched_context.summary == "x" * 100
    assert result.enriched_context.sentiment == "neutral"
    assert result.enriched_context.intent == "unknown"
    assert result.enriched_context.topics == []
    assert result.enriched_context.entities == []
    assert result.enriched_context.available_outputs == ["discord_reply"]
    assert result.suggested_outputs == []
    assert result.update_tasks == []
    assert result.already_processed is False


def test_invalid_decision_yields_neutral_result():
    backend = FakeBackend({"classification": {"content_type": "message"}})
    processor = MasterProcessor(backend)

    result = asyncio.run(processor.process("hello", ""))

    assert result.metadata == {}
    assert result.enriched_context.summary == "hello"
    assert result.enriched_context.available_outputs == []


def test_delegates_to_child_with_summary():
    backend = FakeBackend(
        decision(delegate_to="social", summary="Someone says hi"),
        decision(content_type="greeting", summary="Handled by social"),
    )
    master = MasterProcessor(backend)
    social = MasterProcessor(backend, name="social", description="Social chatter")
    master.add_processor(social)

    result = asyncio.run(master.process("hello", "earlier context"))

    assert len(backend.calls) == 2
    assert "social: Social chatter" in backend.calls[0]["prompt"]
    child_prompt = backend.calls[1]["prompt"]
    assert "earlier context" in child_prompt
    assert "# Summary of the content:\nSomeone says hi" in child_prompt
    assert result.enriched_context.summary == "Handled by social"


def test_delegation_refused_when_child_cannot_handle():
    backend = FakeBackend(decision(delegate_to="tiny", summary="Finalized by master"))
    master = MasterProcessor(backend)
    tiny = MasterProcessor(backend, name="tiny", content_limit=5)
    master.add_processor(tiny)

    result = asyncio.run(master.process("hello world", ""))

    assert len(backend.calls) == 1
    assert result.enriched_context.summary == "Finalized by master"


def test_delegation_to_unknown_child_finalizes_locally():
    backend = FakeBackend(decision(delegate_to="ghost", summary="Local"))
    master = MasterProcessor(backend)

    result = asyncio.run(master.process("hello", ""))

    assert len(backend.calls) == 1
    assert result.enriched_context.summary == "Local"


def test_delegation_cycle_is_refused():
    backend = FakeBackend(
        decision(delegate_to="social", summary="to social"),
        decision(delegate_to="master", summary="back to master"),
    )
    master = MasterProcessor(backend)
    social = MasterProcessor(backend, name="social")
    master.add_processor(social)
    social.add_processor(master)

    result = asyncio.run(master.process("hello", ""))

    assert len(backend.calls) == 2
    assert result.enriched_context.summary == "back to master"


def test_delegation_stops_when_hop_budget_is_exhausted():
    backend = FakeBackend(
        decision(delegate_to="a", summary="to a"),
        decision(delegate_to="b", summary="a finalizes"),
    )
    master = MasterProcessor(backend, max_delegation_depth=1)
    a = MasterProcessor(backend, name="a")
    b = MasterProcessor(backend, name="b")
    master.add_processor(a)
    a.add_processor(b)

    result = asyncio.run(master.process("hello", ""))

    assert len(backend.calls) == 2
    assert result.enriched_context.summary == "a finalizes"


def test_update_tasks_are_passed_through():
    backend = FakeBackend(
        decision(
            update_tasks=[
                {"name": "schedule_post", "confidence": 0.8, "interval_ms": 60000}
            ]
        )
    )
    processor = MasterProcessor(backend)

    result = asyncio.run(processor.process({"text": "remind me hourly"}, ""))

    assert result.content == {"text": "remind me hourly"}
    assert [task.interval_ms for task in result.update_tasks] == [60000]


def test_can_handle_uses_content_limit():
    processor = MasterProcessor(FakeBackend(), content_limit=10)

    assert processor.can_handle("short")
    assert not processor.can_handle("x" * 10)
    assert not processor.can_handle({"text": "long enough"})


def test_processor_registry():
    backend = FakeBackend()
    master = MasterProcessor(backend)
    child = MasterProcessor(backend, name="child", description="Child processor")

    assert master.add_processor(child) is master
    assert master.get_processor("child") is child
    assert master.get_processor("missing") is None
    assert master.describe_children() == "child: Child processor"
    with pytest.raises(ValueError):
        master.add_processor(master)
