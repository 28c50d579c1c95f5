"""
Memory store adapters for Reverie
"""

from .base import MemoryStore, StoredContent, calculate_similarity
from .memory_store import InMemoryStore
from .sqlalchemy_store import SQLAlchemyStore

__all__ = [
    "MemoryStore",
    "StoredContent",
    "calculate_similarity",
    "InMemoryStore",
    "SQLAlchemyStore",
]
