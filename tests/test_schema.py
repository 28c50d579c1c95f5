import pytest
from pydantic import BaseModel

from reverie.llm.schema import decode_or_fail, describe_schema, strip_code_fences
from reverie.processors.models import ProcessorDecision
from reverie.utils.exceptions import SchemaValidationError, UpstreamError


class Greeting(BaseModel):
    text: str
    count: int = 1


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


@pytest.mark.parametrize(
    "raw",
    [
        {"text": "hi", "count": 2},
        '{"text": "hi", "count": 2}',
        '```json\n{"text": "hi", "count": 2}\n```',
        b'{"text": "hi", "count": 2}',
    ],
)
def test_decode_or_fail_accepts_supported_inputs(raw):
    assert decode_or_fail(Greeting, raw) == Greeting(text="hi", count=2)


def test_decode_or_fail_returns_instances_unchanged():
    greeting = Greeting(text="hi")
    assert decode_or_fail(Greeting, greeting) is greeting


def test_decode_or_fail_reports_validation_errors():
    with pytest.raises(SchemaValidationError) as exc_info:
        decode_or_fail(Greeting, {"count": "many"})

    error = exc_info.value
    assert isinstance(error, UpstreamError)
    assert error.error_code == "SCHEMA_VALIDATION"
    fields = {tuple(item["loc"]) for item in error.errors}
    assert ("text",) in fields
    assert ("count",) in fields


@pytest.mark.parametrize("raw", ["not json", "", "[1, 2]", None])
def test_decode_or_fail_rejects_non_objects(raw):
    with pytest.raises(SchemaValidationError):
        decode_or_fail(Greeting, raw)


def test_describe_schema_lists_decision_sections():
    schema = describe_schema(ProcessorDecision)

    assert set(schema["properties"]) == {
        "classification",
        "enrichment",
        "update_tasks",
        "suggested_outputs",
    }
