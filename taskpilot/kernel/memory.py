"""Short-term memory of recent agent activity per session."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Protocol

import httpx

from taskpilot.schema import new_id, utcnow

from .vector import VectorServiceClient

LOGGER = logging.getLogger(__name__)


class MemorySystem(Protocol):
    async def remember(self, session_id: str, entry: Dict[str, Any]) -> None:
        ...

    async def recall(self, session_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        ...


class LocalMemory:
    """Bounded in-process memory; the oldest entries drop off first."""

    def __init__(self, max_entries: int = 200):
        self.max_entries = max_entries
        self._entries: Dict[str, Deque[Dict[str, Any]]] = {}

    async def remember(self, session_id: str, entry: Dict[str, Any]) -> None:
        stored = {"id": new_id(), "timestamp": utcnow().isoformat(), **entry}
        self._entries.setdefault(session_id, deque(maxlen=self.max_entries)).append(stored)

    async def recall(self, session_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        entries = list(self._entries.get(session_id, ()))
        return entries[-limit:] if limit > 0 else []


class VectorMemory:
    """Memory entries kept as records in the managed vector service."""

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        index_name: str = "taskpilot",
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._service = VectorServiceClient(
            api_url, api_key, index_name, backend="vector memory", client=client
        )

    async def remember(self, session_id: str, entry: Dict[str, Any]) -> None:
        record_id = new_id()
        metadata = {"id": record_id, "timestamp": utcnow().isoformat(), **entry,
                    "sessionId": session_id, "kind": "memory"}
        await self._service.upsert([{"id": record_id, "text": str(entry), "metadata": metadata}])

    async def recall(self, session_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        records = await self._service.query({"sessionId": session_id, "kind": "memory"}, top_k=limit)
        records.sort(key=lambda record: record.get("timestamp", ""))
        return records[-limit:] if limit > 0 else []
