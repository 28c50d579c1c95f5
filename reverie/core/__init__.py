"""
Core conversation layer for Reverie
"""

from .character import DEFAULT_CHARACTER, Character, CharacterInstructions
from .conversation import Conversation, ConversationMetadata, Memory, MemoryMetadata
from .conversation_manager import ConversationManager
from .identity import (
    CONSCIOUSNESS_PLATFORM,
    derive_conversation_id,
    self_conversation_id,
)

__all__ = [
    "Character",
    "CharacterInstructions",
    "DEFAULT_CHARACTER",
    "Conversation",
    "ConversationMetadata",
    "ConversationManager",
    "Memory",
    "MemoryMetadata",
    "CONSCIOUSNESS_PLATFORM",
    "derive_conversation_id",
    "self_conversation_id",
]
