"""
Pydantic-based configuration settings for Reverie
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Supported memory store adapters"""

    MEMORY = "memory"
    SQLALCHEMY = "sqlalchemy"


SUPPORTED_DATABASE_SCHEME_PREFIXES = (
    "sqlite",
    "postgres",
    "postgresql",
    "mysql",
)


class StoreSettings(BaseModel):
    """Memory store configuration"""

    backend: StoreBackend = Field(
        default=StoreBackend.MEMORY, description="Memory store adapter to use"
    )
    connection_string: str = Field(
        default="sqlite:///reverie.db",
        description="Database URL used by the SQLAlchemy store",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Validate database connection string"""
        if not v:
            raise ValueError("Connection string cannot be empty")

        scheme = urlsplit(v).scheme.lower()
        if not scheme:
            raise ValueError(
                "Connection string must include a URI scheme (e.g. sqlite:///reverie.db)"
            )

        base_scheme = scheme.split("+", 1)[0]
        if not any(
            base_scheme.startswith(prefix)
            for prefix in SUPPORTED_DATABASE_SCHEME_PREFIXES
        ):
            raise ValueError(f"Unsupported database type in connection string: {v}")
        return v


class AgentSettings(BaseModel):
    """Inference backend configuration"""

    api_key: str | None = Field(
        default=None, description="API key for the OpenAI-compatible backend"
    )
    base_url: str | None = Field(
        default=None, description="Optional override for the API base URL"
    )
    model: str = Field(default="gpt-4o-mini", description="Model used for decisions")
    temperature: float = Field(
        default=0.1, ge=0.0, le=2.0, description="Sampling temperature"
    )
    max_tokens: int = Field(
        default=2000, ge=100, le=8000, description="Maximum tokens per API call"
    )
    timeout_seconds: int = Field(
        default=30, ge=5, le=300, description="API timeout in seconds"
    )

    @field_validator("api_key", "base_url", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        raise TypeError("Value must be provided as a string")


class ProcessingSettings(BaseModel):
    """Processor pipeline configuration"""

    content_limit: int = Field(
        default=1000,
        ge=1,
        description="Content shorter than this many characters can be handled",
    )
    max_delegation_depth: int = Field(
        default=5,
        ge=0,
        description="Maximum number of processor-to-child delegation hops",
    )
    serialize_writes: bool = Field(
        default=False,
        description="Serialise add_memory calls per conversation id",
    )


class ConsciousnessSettings(BaseModel):
    """Autonomous thought loop configuration"""

    interval_seconds: float = Field(
        default=60 * 60, gt=0, description="Delay between background thoughts"
    )
    min_confidence: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Confidence floor echoed in thoughts"
    )
    recent_actions_capacity: int = Field(
        default=10, ge=1, description="Size of the recent thought ring buffer"
    )
    recent_memory_limit: int = Field(
        default=10, ge=1, description="Recent memories included in the prompt"
    )


class LoggingSettings(BaseModel):
    """Logging configuration settings"""

    level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log message format",
    )
    log_to_file: bool = Field(default=False, description="Enable logging to file")
    log_file_path: str = Field(default="logs/reverie.log", description="Log file path")
    log_rotation: str = Field(default="10 MB", description="Log rotation size")
    log_retention: str = Field(default="30 days", description="Log retention period")
    log_compression: str = Field(default="gz", description="Log compression format")
    structured_logging: bool = Field(
        default=False, description="Enable structured JSON logging"
    )

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ReverieSettings(BaseModel):
    """Main Reverie configuration"""

    store: StoreSettings = Field(default_factory=StoreSettings)
    agents: AgentSettings = Field(default_factory=AgentSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    consciousness: ConsciousnessSettings = Field(default_factory=ConsciousnessSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    ENV_PREFIX: ClassVar[str] = "REVERIE_"
    ENV_NESTED_DELIMITER: ClassVar[str] = "__"
    ENV_ALIASES: ClassVar[dict[str, str]] = {
        "REVERIE_DATABASE_URL": "store__connection_string",
        "REVERIE_MODEL": "agents__model",
        "OPENAI_API_KEY": "agents__api_key",
    }

    @classmethod
    def _collect_env_data(cls) -> tuple[dict[str, Any], set[str]]:
        """Return environment driven configuration data and the originating keys."""

        prefix = cls.ENV_PREFIX.lower()
        delimiter = cls.ENV_NESTED_DELIMITER
        aliases = {alias.lower(): path for alias, path in cls.ENV_ALIASES.items()}

        def _assign(data: dict[str, Any], keys: list[str], value: Any) -> None:
            current = data
            for part in keys[:-1]:
                if part not in current or not isinstance(current[part], dict):
                    current[part] = {}
                current = current[part]
            current[keys[-1]] = value

        env_data: dict[str, Any] = {}
        used_keys: set[str] = set()

        # Aliases first so that explicit prefixed variables win
        for env_key, env_value in os.environ.items():
            path = aliases.get(env_key.lower())
            if path is None:
                continue
            _assign(env_data, path.split(delimiter), env_value)
            used_keys.add(env_key)

        for env_key, env_value in os.environ.items():
            compare_key = env_key.lower()
            if compare_key in aliases or not compare_key.startswith(prefix):
                continue
            parts = [
                part for part in compare_key[len(prefix) :].split(delimiter) if part
            ]
            if not parts:
                continue
            _assign(env_data, parts, env_value)
            used_keys.add(env_key)

        return env_data, used_keys

    @classmethod
    def from_env(cls) -> ReverieSettings:
        """Create settings from environment variables"""

        env_data, _ = cls._collect_env_data()
        return cls(**env_data)

    @classmethod
    def from_env_with_metadata(cls) -> tuple[ReverieSettings, set[str]]:
        """Return settings from the environment along with the keys that were used."""

        env_data, used_keys = cls._collect_env_data()
        return cls(**env_data), used_keys

    @classmethod
    def from_file(cls, config_path: str | Path) -> ReverieSettings:
        """Load settings from JSON/YAML file"""

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            if config_path.suffix.lower() == ".json":
                data = json.load(f)
            elif config_path.suffix.lower() in [".yml", ".yaml"]:
                import yaml

                data = yaml.safe_load(f)
            else:
                raise ValueError(
                    f"Unsupported configuration file format: {config_path.suffix}"
                )

        return cls(**(data or {}))

    def to_file(self, config_path: str | Path, format: str = "json") -> None:
        """Save settings to file"""

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")

        with open(config_path, "w") as f:
            if format.lower() == "json":
                json.dump(data, f, indent=2, default=str)
            elif format.lower() in ["yml", "yaml"]:
                import yaml

                yaml.safe_dump(data, f, default_flow_style=False)
            else:
                raise ValueError(f"Unsupported format: {format}")

    def export(self, *, include_sensitive: bool = False) -> dict[str, Any]:
        """Return a serialisable representation of the settings."""

        data = self.model_dump(mode="json")
        if not include_sensitive and data["agents"].get("api_key"):
            data["agents"]["api_key"] = "***"
        return data


__all__ = [
    "AgentSettings",
    "ConsciousnessSettings",
    "LogLevel",
    "LoggingSettings",
    "ProcessingSettings",
    "ReverieSettings",
    "StoreBackend",
    "StoreSettings",
]
