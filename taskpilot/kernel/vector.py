"""Minimal client for the managed vector service used by the vector backends.

Embedding and similarity ranking happen server-side; this client only sends
records and metadata filters.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from taskpilot.utils.error_handler import BackendInitializationError, TaskPilotError

LOGGER = logging.getLogger(__name__)

_API_KEY_RE = re.compile(r"^[A-Za-z0-9_\-.:]{8,}$")


def require_api_key(api_key: Optional[str], backend: str) -> str:
    """Reject missing or malformed credentials before any network call."""
    if not api_key or not api_key.strip():
        raise BackendInitializationError(f"{backend} requires VECTOR_API_KEY")
    if not _API_KEY_RE.match(api_key.strip()):
        raise BackendInitializationError(f"{backend} received a malformed VECTOR_API_KEY")
    return api_key.strip()


class VectorServiceClient:
    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        index_name: str,
        *,
        backend: str = "vector backend",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        key = require_api_key(api_key, backend)
        if not api_url:
            raise BackendInitializationError(f"{backend} requires VECTOR_API_URL")
        self.index_name = index_name
        self._base = f"{api_url.rstrip('/')}/indexes/{index_name}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {key}"}

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(f"{self._base}/{path}", json=body, headers=self._headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TaskPilotError(
                f"Vector service {path} failed: {e}",
                user_message="Storage service is unavailable",
            ) from e

    async def upsert(self, records: List[Dict[str, Any]]) -> None:
        await self._post("upsert", {"records": records})

    async def query(self, filters: Dict[str, Any], top_k: int = 100) -> List[Dict[str, Any]]:
        body = await self._post("query", {"filter": filters, "topK": top_k})
        matches = body.get("matches", []) if isinstance(body, dict) else []
        return [match.get("metadata", {}) for match in matches if isinstance(match, dict)]

    async def delete(self, filters: Dict[str, Any]) -> None:
        await self._post("delete", {"filter": filters})

    async def close(self) -> None:
        await self._client.aclose()
