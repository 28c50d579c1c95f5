"""
Loguru sink management for Reverie
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from ..config.settings import LoggingSettings


class LoggingManager:
    """Install and remove the loguru sinks described by ``LoggingSettings``"""

    _handler_ids: list[int] = []
    _configured = False

    @classmethod
    def setup_logging(
        cls, settings: LoggingSettings | None = None, verbose: bool = False
    ) -> None:
        settings = settings or LoggingSettings()
        cls.reset()

        # Drop loguru's default stderr handler so levels are honoured
        logger.remove()

        level = "DEBUG" if verbose else settings.level.value
        cls._handler_ids.append(
            logger.add(
                sys.stderr,
                level=level,
                format=settings.format,
                colorize=True,
                serialize=settings.structured_logging,
            )
        )

        if settings.log_to_file:
            log_path = Path(settings.log_file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            cls._handler_ids.append(
                logger.add(
                    str(log_path),
                    level=level,
                    format=settings.format,
                    rotation=settings.log_rotation,
                    retention=settings.log_retention,
                    compression=settings.log_compression,
                    serialize=settings.structured_logging,
                )
            )

        cls._configured = True
        logger.debug(f"Logging configured at level {level}")

    @classmethod
    def reset(cls) -> None:
        for handler_id in cls._handler_ids:
            try:
                logger.remove(handler_id)
            except ValueError:
                # Already removed elsewhere
                continue
        cls._handler_ids = []
        cls._configured = False

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured


def configure_logging(settings: LoggingSettings | None = None, **kwargs: Any) -> None:
    """Module level shortcut for :meth:`LoggingManager.setup_logging`."""

    LoggingManager.setup_logging(settings, **kwargs)


def get_logger(name: str | None = None):
    """Return the loguru logger, optionally bound to a component name."""

    return logger.bind(component=name) if name else logger


__all__ = ["LoggingManager", "configure_logging", "get_logger"]
