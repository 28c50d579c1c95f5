"""
SQLAlchemy models backing :class:`~reverie.storage.sqlalchemy_store.SQLAlchemyStore`
"""

from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from ..utils.time_context import utc_now

Base: Any = declarative_base()


class ConversationNamespace(Base):
    """One row per conversation namespace"""

    __tablename__ = "conversation_namespaces"

    conversation_id = Column(String(255), primary_key=True)
    # ``metadata`` is reserved on declarative classes
    namespace_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    contents = relationship(
        "ConversationContent",
        back_populates="namespace",
        cascade="all, delete-orphan",
        order_by="ConversationContent.id",
    )
    processed_markers = relationship(
        "ProcessedContentMarker",
        back_populates="namespace",
        cascade="all, delete-orphan",
    )


class ConversationContent(Base):
    """Append log entry for a namespace"""

    __tablename__ = "conversation_contents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String(255),
        ForeignKey("conversation_namespaces.conversation_id", ondelete="CASCADE"),
        nullable=False,
    )
    memory_id = Column(String(255))
    content = Column(Text, nullable=False)
    content_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    namespace = relationship("ConversationNamespace", back_populates="contents")

    __table_args__ = (
        Index("idx_content_conversation", "conversation_id", "id"),
        Index("idx_content_memory_id", "memory_id"),
    )


class ProcessedContentMarker(Base):
    """Idempotency marker for externally sourced content"""

    __tablename__ = "processed_content_markers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String(255),
        ForeignKey("conversation_namespaces.conversation_id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    namespace = relationship(
        "ConversationNamespace", back_populates="processed_markers"
    )

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "content_id", name="uq_processed_conversation_content"
        ),
    )


__all__ = [
    "Base",
    "ConversationContent",
    "ConversationNamespace",
    "ProcessedContentMarker",
]
