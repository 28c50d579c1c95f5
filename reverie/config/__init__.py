"""
Configuration management for Reverie
"""

from .manager import ConfigManager
from .settings import (
    AgentSettings,
    ConsciousnessSettings,
    LoggingSettings,
    LogLevel,
    ProcessingSettings,
    ReverieSettings,
    StoreBackend,
    StoreSettings,
)

__all__ = [
    "ReverieSettings",
    "StoreSettings",
    "StoreBackend",
    "AgentSettings",
    "ProcessingSettings",
    "ConsciousnessSettings",
    "LoggingSettings",
    "LogLevel",
    "ConfigManager",
]
