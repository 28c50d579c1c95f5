"""
Exception taxonomy for Reverie

Identity and creation failures are raised with these types; hydration and
enrichment failures are logged and swallowed by the callers.
"""

from __future__ import annotations

from typing import Any

from loguru import logger as _default_logger


class ReverieError(Exception):
    """Base exception carrying a machine readable code and context"""

    default_code = "REVERIE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": dict(self.context),
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ReverieError):
    """Raised when settings cannot be loaded or are invalid"""

    default_code = "CONFIGURATION_ERROR"


class StoreUnavailableError(ReverieError):
    """Raised by write operations when no memory store is configured"""

    default_code = "STORE_UNAVAILABLE"


class ConversationNotFoundError(ReverieError):
    """Raised by write-path operations when a conversation does not resolve"""

    default_code = "NOT_FOUND"

    def __init__(self, conversation_id: str, message: str | None = None):
        super().__init__(
            message or f"Conversation {conversation_id} not found",
            context={"conversation_id": conversation_id},
        )
        self.conversation_id = conversation_id


class UpstreamError(ReverieError):
    """Raised when the store or the inference backend fails"""

    default_code = "UPSTREAM_FAILURE"


class SchemaValidationError(UpstreamError):
    """Raised when backend output cannot be coerced into the requested schema"""

    default_code = "SCHEMA_VALIDATION"

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.errors = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [
            {key: str(value) for key, value in error.items()} for error in self.errors
        ]
        return data


class ExceptionHandler:
    """Helpers for logging Reverie exceptions with structured fields"""

    @staticmethod
    def log_exception(
        error: BaseException,
        logger: Any | None = None,
        level: str = "error",
        operation: str | None = None,
    ) -> None:
        """Log ``error`` binding its serialised form onto the record."""

        target = logger or _default_logger
        if isinstance(error, ReverieError):
            data = error.to_dict()
        else:
            data = {"error_type": type(error).__name__, "message": str(error)}

        prefix = f"{operation}: " if operation else ""
        target.bind(
            error_type=data["error_type"],
            exception_data=data,
        ).log(level.upper(), f"{prefix}{data['message']}")


__all__ = [
    "ReverieError",
    "ConfigurationError",
    "StoreUnavailableError",
    "ConversationNotFoundError",
    "UpstreamError",
    "SchemaValidationError",
    "ExceptionHandler",
]
