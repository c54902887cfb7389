"""Durable conversation stores: local JSON files, SQLite and the managed vector service."""

from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
from pathlib import Path
from typing import List, Optional, Protocol

import httpx

from taskpilot.schema import ConversationContext, Message

from .vector import VectorServiceClient

LOGGER = logging.getLogger(__name__)


class ContextStore(Protocol):
    async def get_context(self, session_id: str) -> ConversationContext:
        ...

    async def add_message(self, session_id: str, message: Message) -> None:
        ...

    async def clear(self, session_id: str) -> None:
        ...


def sanitize_session_id(session_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "_", session_id)


class LocalFileContextStore:
    """One JSON file per session under base_dir."""

    def __init__(self, base_dir: str = "data/contexts"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        return self.base_dir / f"{sanitize_session_id(session_id)}.json"

    async def get_context(self, session_id: str) -> ConversationContext:
        path = self._path(session_id)
        if not path.exists():
            return ConversationContext(session_id=session_id)
        with open(path, "r", encoding="utf-8") as f:
            return ConversationContext.model_validate(json.load(f))

    async def add_message(self, session_id: str, message: Message) -> None:
        context = await self.get_context(session_id)
        context.messages.append(message)
        with open(self._path(session_id), "w", encoding="utf-8") as f:
            json.dump(context.model_dump(by_alias=True, mode="json"), f, ensure_ascii=False, indent=2)

    async def clear(self, session_id: str) -> None:
        path = self._path(session_id)
        if path.exists():
            path.unlink()


class SqliteContextStore:
    """SQLite table of messages keyed by session, in insertion order."""

    def __init__(self, db_path: str = "data/contexts.db"):
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    message_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_messages_session ON messages (session_id, seq)")
            conn.commit()
        finally:
            conn.close()

    async def get_context(self, session_id: str) -> ConversationContext:
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT message_id, role, content, timestamp FROM messages WHERE session_id = ? ORDER BY seq",
                (session_id,)
            )
            messages = [
                Message(id=row[0], role=row[1], content=row[2], timestamp=row[3])
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()
        return ConversationContext(session_id=session_id, messages=messages)

    async def add_message(self, session_id: str, message: Message) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """INSERT INTO messages (session_id, message_id, role, content, timestamp)
                   VALUES (?, ?, ?, ?, ?)""",
                (session_id, message.id, message.role, message.content, message.timestamp.isoformat())
            )
            conn.commit()
        finally:
            conn.close()

    async def clear(self, session_id: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
            conn.commit()
        finally:
            conn.close()


class VectorContextStore:
    """Messages stored as records in the managed vector service, filtered by session."""

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        index_name: str = "taskpilot",
        *,
        client: Optional[httpx.AsyncClient] = None,
        max_messages: int = 1000,
    ):
        self._service = VectorServiceClient(
            api_url, api_key, index_name, backend="vector context store", client=client
        )
        self.max_messages = max_messages

    async def get_context(self, session_id: str) -> ConversationContext:
        records = await self._service.query({"sessionId": session_id, "kind": "message"}, top_k=self.max_messages)
        messages: List[Message] = []
        for record in records:
            try:
                messages.append(Message.model_validate(record))
            except ValueError:
                LOGGER.warning(f"Skipping malformed message record for session {session_id}")
        messages.sort(key=lambda message: message.timestamp)
        return ConversationContext(session_id=session_id, messages=messages)

    async def add_message(self, session_id: str, message: Message) -> None:
        metadata = message.model_dump(by_alias=True, mode="json")
        metadata.update({"sessionId": session_id, "kind": "message"})
        await self._service.upsert([{"id": message.id, "text": message.content, "metadata": metadata}])

    async def clear(self, session_id: str) -> None:
        await self._service.delete({"sessionId": session_id, "kind": "message"})
