"""
Inference backend contract and the OpenAI-compatible implementation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

import openai
from loguru import logger
from pydantic import BaseModel

from ..utils.exceptions import SchemaValidationError, UpstreamError
from .schema import decode_or_fail, schema_prompt

if TYPE_CHECKING:
    from ..config.settings import AgentSettings

ModelT = TypeVar("ModelT", bound=BaseModel)


class InferenceBackend(ABC):
    """Produce a structured, schema-conforming result from a prompt"""

    @abstractmethod
    async def evaluate(
        self, prompt: str, system_prompt: str, schema: type[ModelT]
    ) -> ModelT:
        """Return an instance of ``schema``.

        Raises:
            SchemaValidationError: output could not be coerced into ``schema``
            UpstreamError: the backend call itself failed
        """


class OpenAIInferenceBackend(InferenceBackend):
    """
    Backend for OpenAI and OpenAI-compatible endpoints

    Uses structured outputs where the endpoint supports them and falls back
    to plain chat completions with manual JSON parsing otherwise.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        timeout: float | None = None,
        client: Any | None = None,
    ):
        self.model = model or "gpt-4o-mini"
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        if client is not None:
            self.async_client = client
        else:
            kwargs: dict[str, Any] = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            if timeout:
                kwargs["timeout"] = timeout
            self.async_client = openai.AsyncOpenAI(**kwargs)
        self._supports_structured_outputs = self._detect_structured_output_support()
        logger.debug(
            f"OpenAIInferenceBackend initialized with model: {self.model} "
            f"(structured_outputs={self._supports_structured_outputs})"
        )

    @classmethod
    def from_settings(cls, settings: AgentSettings, client: Any | None = None):
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout_seconds,
            client=client,
        )

    def _detect_structured_output_support(self) -> bool:
        """Local and custom endpoints typically lack the beta parse interface"""
        if self.base_url:
            if "localhost" in self.base_url or "127.0.0.1" in self.base_url:
                logger.debug(
                    f"Detected local endpoint ({self.base_url}), disabling structured outputs"
                )
                return False
            if "api.openai.com" not in self.base_url:
                logger.debug(
                    f"Detected custom endpoint ({self.base_url}), disabling structured outputs"
                )
                return False
        return True

    @staticmethod
    def _messages(prompt: str, system_prompt: str) -> list[dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def evaluate(
        self, prompt: str, system_prompt: str, schema: type[ModelT]
    ) -> ModelT:
        if self._supports_structured_outputs:
            result = await self._evaluate_structured(prompt, system_prompt, schema)
            if result is not None:
                return result
        return await self._evaluate_with_fallback_parsing(prompt, system_prompt, schema)

    async def _evaluate_structured(
        self, prompt: str, system_prompt: str, schema: type[ModelT]
    ) -> ModelT | None:
        beta_api = getattr(self.async_client, "beta", None)
        if beta_api is None:
            self._supports_structured_outputs = False
            return None

        try:
            completion = await beta_api.chat.completions.parse(
                model=self.model,
                messages=self._messages(prompt, system_prompt),
                response_format=schema,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.warning(
                f"Structured outputs failed for {schema.__name__}, falling back to manual parsing: {e}"
            )
            self._supports_structured_outputs = False
            return None

        message = completion.choices[0].message
        if getattr(message, "refusal", None):
            raise UpstreamError(
                f"Inference refused: {message.refusal}",
                context={"schema": schema.__name__},
            )
        return decode_or_fail(schema, message.parsed)

    async def _evaluate_with_fallback_parsing(
        self, prompt: str, system_prompt: str, schema: type[ModelT]
    ) -> ModelT:
        json_system_prompt = (
            (system_prompt + "\n\n" if system_prompt else "")
            + "IMPORTANT: You MUST respond with a valid JSON object that matches this exact schema:\n"
            + schema_prompt(schema)
            + "\n\nRespond ONLY with the JSON object, no additional text or formatting."
        )

        try:
            completion = await self.async_client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt, json_system_prompt),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            raise UpstreamError(
                f"Inference backend call failed: {e}",
                context={"schema": schema.__name__, "model": self.model},
            ) from e

        response_text = completion.choices[0].message.content
        if not response_text:
            raise SchemaValidationError(
                "Empty response from model", context={"schema": schema.__name__}
            )
        return decode_or_fail(schema, response_text)


__all__ = ["InferenceBackend", "OpenAIInferenceBackend"]
