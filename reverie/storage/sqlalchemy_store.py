"""
SQLAlchemy-backed memory store

Session work is synchronous and runs in worker threads via
``asyncio.to_thread`` so the conversation layer stays non-blocking.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..utils.exceptions import UpstreamError
from .base import MemoryStore, StoredContent, rank_by_similarity
from .models import (
    Base,
    ConversationContent,
    ConversationNamespace,
    ProcessedContentMarker,
)

if TYPE_CHECKING:
    from ..core.conversation import Conversation


class SQLAlchemyStore(MemoryStore):
    """Relational implementation of :class:`MemoryStore`"""

    def __init__(self, database_connect: str, echo: bool = False):
        self.database_connect = database_connect
        self.engine = self._create_engine(database_connect, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine, checkfirst=True)
        logger.info(f"SQLAlchemyStore initialised for {self.engine.url.drivername}")

    @staticmethod
    def _create_engine(database_connect: str, echo: bool = False):
        """Create SQLAlchemy engine with appropriate configuration"""
        try:
            if database_connect.startswith("sqlite:"):
                if ":///" in database_connect and ":memory:" not in database_connect:
                    db_path = database_connect.replace("sqlite:///", "")
                    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

                pool_args: dict[str, Any] = {}
                if ":memory:" in database_connect or database_connect == "sqlite://":
                    # Worker threads must share the single in-memory connection
                    pool_args["poolclass"] = StaticPool

                engine = create_engine(
                    database_connect,
                    json_serializer=json.dumps,
                    json_deserializer=json.loads,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    **pool_args,
                )
            else:
                engine = create_engine(
                    database_connect,
                    json_serializer=json.dumps,
                    json_deserializer=json.loads,
                    echo=echo,
                    pool_pre_ping=True,
                    pool_recycle=3600,
                )

            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return engine
        except SQLAlchemyError as e:
            raise UpstreamError(
                f"Database connection failed: {e}",
                context={"database": database_connect.split("://", 1)[0]},
            ) from e

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except SQLAlchemyError as e:
            logger.error(f"SQLAlchemyStore.{operation}: {e}")
            raise UpstreamError(
                f"Store operation '{operation}' failed: {e}",
                context={"operation": operation},
            ) from e

    # ------------------------------------------------------------------
    # Synchronous session helpers
    # ------------------------------------------------------------------
    def _get_metadata_sync(self, conversation_id: str) -> dict[str, Any] | None:
        with self.SessionLocal() as session:
            row = session.get(ConversationNamespace, conversation_id)
            if row is None:
                return None
            return dict(row.namespace_metadata or {})

    def _set_metadata_sync(self, conversation_id: str, metadata: dict[str, Any]) -> None:
        cleaned = {key: value for key, value in metadata.items() if value is not None}
        with self.SessionLocal() as session:
            row = session.get(ConversationNamespace, conversation_id)
            if row is None:
                session.add(
                    ConversationNamespace(
                        conversation_id=conversation_id, namespace_metadata=cleaned
                    )
                )
            else:
                row.namespace_metadata = cleaned
            session.commit()

    def _ensure_namespace(self, session, conversation_id: str) -> None:
        if session.get(ConversationNamespace, conversation_id) is None:
            session.add(
                ConversationNamespace(conversation_id=conversation_id, namespace_metadata={})
            )
            session.flush()

    def _append_sync(
        self, conversation_id: str, content: str, metadata: dict[str, Any]
    ) -> None:
        with self.SessionLocal() as session:
            self._ensure_namespace(session, conversation_id)
            session.add(
                ConversationContent(
                    conversation_id=conversation_id,
                    memory_id=metadata.get("memory_id"),
                    content=content,
                    content_metadata=dict(metadata),
                )
            )
            session.commit()

    def _list_sync(self, conversation_id: str, limit: int | None) -> list[StoredContent]:
        with self.SessionLocal() as session:
            query = select(ConversationContent).where(
                ConversationContent.conversation_id == conversation_id
            )
            if limit is not None:
                if limit <= 0:
                    return []
                query = query.order_by(ConversationContent.id.desc()).limit(limit)
                rows = list(reversed(session.scalars(query).all()))
            else:
                rows = session.scalars(query.order_by(ConversationContent.id)).all()
            return [
                StoredContent(content=row.content, metadata=dict(row.content_metadata or {}))
                for row in rows
            ]

    def _list_ids_sync(self) -> list[str]:
        with self.SessionLocal() as session:
            return list(
                session.scalars(
                    select(ConversationNamespace.conversation_id).order_by(
                        ConversationNamespace.created_at
                    )
                ).all()
            )

    def _delete_sync(self, conversation_id: str) -> None:
        with self.SessionLocal() as session:
            row = session.get(ConversationNamespace, conversation_id)
            if row is not None:
                # ORM cascade covers SQLite without foreign key enforcement
                session.delete(row)
                session.commit()

    def _has_marker_sync(self, content_id: str, conversation_id: str) -> bool:
        with self.SessionLocal() as session:
            marker = session.scalars(
                select(ProcessedContentMarker.id).where(
                    ProcessedContentMarker.conversation_id == conversation_id,
                    ProcessedContentMarker.content_id == content_id,
                )
            ).first()
            return marker is not None

    def _set_marker_sync(self, content_id: str, conversation_id: str) -> None:
        if self._has_marker_sync(content_id, conversation_id):
            return
        with self.SessionLocal() as session:
            self._ensure_namespace(session, conversation_id)
            session.add(
                ProcessedContentMarker(
                    conversation_id=conversation_id, content_id=content_id
                )
            )
            try:
                session.commit()
            except IntegrityError:
                # A concurrent writer recorded the same marker
                session.rollback()

    # ------------------------------------------------------------------
    # MemoryStore API
    # ------------------------------------------------------------------
    async def get_namespace_metadata(self, conversation_id: str) -> dict[str, Any] | None:
        return await self._run(
            "get_namespace_metadata", self._get_metadata_sync, conversation_id
        )

    async def set_namespace_metadata(
        self, conversation_id: str, metadata: dict[str, Any]
    ) -> None:
        await self._run(
            "set_namespace_metadata", self._set_metadata_sync, conversation_id, metadata
        )

    async def append_content(
        self, conversation_id: str, content: str, metadata: dict[str, Any]
    ) -> None:
        await self._run(
            "append_content", self._append_sync, conversation_id, content, metadata
        )

    async def list_content(
        self, conversation_id: str, limit: int | None = None
    ) -> list[StoredContent]:
        return await self._run("list_content", self._list_sync, conversation_id, limit)

    async def search_similar(
        self, query: str, conversation_id: str, limit: int
    ) -> list[StoredContent]:
        items = await self.list_content(conversation_id)
        return rank_by_similarity(query, items, limit)

    async def list_namespace_ids(self) -> list[str]:
        return await self._run("list_namespace_ids", self._list_ids_sync)

    async def delete_namespace(self, conversation_id: str) -> None:
        await self._run("delete_namespace", self._delete_sync, conversation_id)

    async def has_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> bool:
        return await self._run(
            "has_processed_marker", self._has_marker_sync, content_id, conversation.id
        )

    async def set_processed_marker(
        self, content_id: str, conversation: Conversation
    ) -> None:
        await self._run(
            "set_processed_marker", self._set_marker_sync, content_id, conversation.id
        )

    async def close(self) -> None:
        self.engine.dispose()


__all__ = ["SQLAlchemyStore"]
