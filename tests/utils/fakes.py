from reverie.llm.backend import InferenceBackend
from reverie.llm.schema import decode_or_fail


class FakeBackend(InferenceBackend):
    """Inference backend returning scripted responses in order.

    Each scripted item is a mapping/JSON string decoded against the requested
    schema, or an exception instance that is raised instead.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def evaluate(self, prompt, system_prompt, schema):
        self.calls.append(
            {"prompt": prompt, "system_prompt": system_prompt, "schema": schema}
        )
        if not self.responses:
            raise AssertionError("FakeBackend ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return decode_or_fail(schema, response)


def decision(
    content_type="message",
    delegate_to=None,
    summary="summary",
    topic="general",
    suggested_outputs=None,
    update_tasks=None,
    intent="unknown",
):
    """Raw processor decision payload."""

    return {
        "classification": {
            "content_type": content_type,
            "requires_processing": True,
            "delegate_to_processor": delegate_to,
            "context": {"topic": topic, "additional_context": ""},
        },
        "enrichment": {
            "summary": summary,
            "topics": [topic],
            "sentiment": "positive",
            "entities": [],
            "intent": intent,
        },
        "update_tasks": update_tasks or [],
        "suggested_outputs": suggested_outputs or [],
    }


def thought(text="Check in on yesterday's requests", thought_type="reflection"):
    """Raw thought payload."""

    return {
        "thought_type": thought_type,
        "thought": text,
        "reasoning": "Nothing has been followed up yet",
        "context": {"topics": ["follow-up"], "reliability": "medium"},
        "suggested_actions": [{"type": "post", "platform": "discord"}],
    }
