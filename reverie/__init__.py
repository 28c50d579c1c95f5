"""
Reverie - conversation memory, content processing and autonomous thought for agents

Deterministically addressed conversations backed by a pluggable memory store,
a tree of LLM-driven content processors, and a periodic consciousness loop.
"""

__version__ = "0.1.0"
__author__ = "Adrian Hau"

# Configuration system
from .config import (
    AgentSettings,
    ConfigManager,
    ConsciousnessSettings,
    LoggingSettings,
    ProcessingSettings,
    ReverieSettings,
    StoreSettings,
)

# Consciousness loop
from .consciousness import Consciousness, RecentActions, Thought, ThoughtResponse

# Core conversation layer
from .core import (
    DEFAULT_CHARACTER,
    Character,
    Conversation,
    ConversationManager,
    Memory,
    MemoryMetadata,
    derive_conversation_id,
    self_conversation_id,
)

# Inference backends
from .llm import InferenceBackend, OpenAIInferenceBackend, decode_or_fail

# Processors
from .processors import (
    BaseProcessor,
    IOContext,
    IOHandler,
    MasterProcessor,
    ProcessedResult,
    ProcessorDecision,
)

# Storage
from .storage import InMemoryStore, MemoryStore, SQLAlchemyStore, StoredContent

# Utils
from .utils import (
    ConfigurationError,
    ConversationNotFoundError,
    ExceptionHandler,
    ReverieError,
    SchemaValidationError,
    StoreUnavailableError,
    UpstreamError,
)
from .utils.logging import LoggingManager, configure_logging, get_logger

__all__ = [
    # Configuration
    "ReverieSettings",
    "StoreSettings",
    "AgentSettings",
    "ProcessingSettings",
    "ConsciousnessSettings",
    "LoggingSettings",
    "ConfigManager",
    # Core
    "Character",
    "DEFAULT_CHARACTER",
    "Conversation",
    "ConversationManager",
    "Memory",
    "MemoryMetadata",
    "derive_conversation_id",
    "self_conversation_id",
    # Storage
    "MemoryStore",
    "StoredContent",
    "InMemoryStore",
    "SQLAlchemyStore",
    # Inference
    "InferenceBackend",
    "OpenAIInferenceBackend",
    "decode_or_fail",
    # Processors
    "BaseProcessor",
    "MasterProcessor",
    "IOContext",
    "IOHandler",
    "ProcessedResult",
    "ProcessorDecision",
    # Consciousness
    "Consciousness",
    "RecentActions",
    "Thought",
    "ThoughtResponse",
    # Errors
    "ReverieError",
    "ConfigurationError",
    "StoreUnavailableError",
    "ConversationNotFoundError",
    "UpstreamError",
    "SchemaValidationError",
    "ExceptionHandler",
    # Logging
    "LoggingManager",
    "configure_logging",
    "get_logger",
]
