"""
Configuration manager for Reverie
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger

from ..utils.exceptions import ConfigurationError
from .settings import ReverieSettings


class ConfigManager:
    """Central configuration manager for Reverie"""

    _instance: ConfigManager | None = None
    _settings: ReverieSettings | None = None

    def __new__(cls) -> ConfigManager:
        """Singleton pattern for configuration manager"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, "_initialized"):
            self._initialized = True
            self._config_sources: list[str] = []
            self._env_overrides: list[str] = []
            self._load_default_config()

    @classmethod
    def reset(cls) -> None:
        """Forget the singleton instance (used by tests)."""
        cls._instance = None
        cls._settings = None

    def _load_default_config(self) -> None:
        try:
            self._settings = ReverieSettings()
            self._config_sources = ["defaults"]
            logger.debug("Loaded default configuration")
        except Exception as e:
            raise ConfigurationError(f"Failed to load default configuration: {e}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables"""
        try:
            settings, used_keys = ReverieSettings.from_env_with_metadata()
        except Exception as e:
            logger.warning(f"Failed to load configuration from environment: {e}")
            raise ConfigurationError(f"Environment configuration error: {e}")

        self._settings = settings
        self._env_overrides = sorted(used_keys)
        if used_keys:
            if "environment" not in self._config_sources:
                self._config_sources.append("environment")
            logger.info(
                "Configuration loaded from environment variables: {}",
                ", ".join(self._env_overrides),
            )
        else:
            logger.info(
                "Environment load requested but no REVERIE_* variables were set"
            )

    def load_from_file(self, config_path: str | Path) -> None:
        """Load configuration from file"""
        config_path = Path(config_path)
        try:
            self._settings = ReverieSettings.from_file(config_path)
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {config_path}")
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except Exception as e:
            logger.error(f"Failed to load configuration from file {config_path}: {e}")
            raise ConfigurationError(f"File configuration error: {e}")

        self._config_sources.append(str(config_path))
        logger.info(f"Configuration loaded from file: {config_path}")

    def auto_load(self) -> None:
        """Load the first config file found, then apply environment overrides"""
        config_locations = [
            os.getenv("REVERIE_CONFIG_PATH"),
            "reverie.json",
            "reverie.yaml",
            "reverie.yml",
            "config/reverie.json",
            "config/reverie.yaml",
            Path.home() / ".reverie" / "config.json",
        ]

        for config_path in config_locations:
            if config_path and Path(config_path).exists():
                try:
                    self.load_from_file(config_path)
                    break
                except ConfigurationError:
                    continue

        env_data, used_keys = ReverieSettings._collect_env_data()
        if not used_keys:
            return

        try:
            self.update_setting_tree(env_data)
        except Exception as e:
            raise ConfigurationError(f"Environment configuration error: {e}")
        self._env_overrides = sorted(used_keys)
        if "environment" not in self._config_sources:
            self._config_sources.append("environment")
        logger.info(
            "Environment variables merged into configuration: {}",
            ", ".join(self._env_overrides),
        )

    def update_setting_tree(self, overrides: dict[str, Any]) -> None:
        """Deep merge ``overrides`` into the current settings and revalidate"""

        def _merge(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
            for key, value in extra.items():
                if isinstance(value, dict) and isinstance(base.get(key), dict):
                    base[key] = _merge(dict(base[key]), value)
                else:
                    base[key] = value
            return base

        current = self.get_settings().model_dump(mode="python")
        self._settings = ReverieSettings(**_merge(current, overrides))

    def get_settings(self) -> ReverieSettings:
        if self._settings is None:
            self._load_default_config()
        return self._settings  # type: ignore[return-value]

    def get_config_info(self) -> dict[str, Any]:
        return {
            "sources": list(self._config_sources),
            "env_overrides": list(self._env_overrides),
        }


__all__ = ["ConfigManager"]
