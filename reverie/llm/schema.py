"""
Decode-or-fail helpers for structured backend output

Any backend (structured outputs, plain JSON text, test doubles) funnels its
raw result through :func:`decode_or_fail` so callers only ever see a valid
model instance or a :class:`SchemaValidationError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..utils.exceptions import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences wrapped around a JSON payload."""

    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def decode_or_fail(schema: type[ModelT], raw: Any) -> ModelT:
    """Validate ``raw`` against ``schema`` or raise ``SchemaValidationError``.

    ``raw`` may be an instance of ``schema``, another pydantic model, a
    mapping, or JSON text (optionally fenced).
    """

    if isinstance(raw, schema):
        return raw

    if isinstance(raw, BaseModel):
        raw = raw.model_dump()

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")

    if isinstance(raw, str):
        text = strip_code_fences(raw)
        if not text:
            raise SchemaValidationError(
                f"Empty response for schema {schema.__name__}",
                context={"schema": schema.__name__},
            )
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaValidationError(
                f"Response for schema {schema.__name__} is not valid JSON: {e}",
                context={"schema": schema.__name__},
            ) from e

    if not isinstance(raw, Mapping):
        raise SchemaValidationError(
            f"Expected an object for schema {schema.__name__}, got {type(raw).__name__}",
            context={"schema": schema.__name__},
        )

    try:
        return schema.model_validate(dict(raw))
    except ValidationError as e:
        raise SchemaValidationError(
            f"Response does not match schema {schema.__name__}: {e.error_count()} error(s)",
            errors=e.errors(),
            context={"schema": schema.__name__},
        ) from e


def describe_schema(schema: type[BaseModel]) -> dict[str, Any]:
    """JSON schema for ``schema`` as embedded in prompts."""

    return schema.model_json_schema()


def schema_prompt(schema: type[BaseModel]) -> str:
    return json.dumps(describe_schema(schema), indent=2)


__all__ = ["decode_or_fail", "describe_schema", "schema_prompt", "strip_code_fences"]
