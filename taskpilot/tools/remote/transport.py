"""Request/response transports for the remote tool registry.

Wire format (both directions are JSON objects):
    request:  {"method": "list"} or {"method": "call", "name": ..., "arguments": {...}}
    response: {"result": ...} or {"error": {"message": ...}}

Transports raise ToolTransportError when the service cannot be reached or the
reply is not a JSON object. A well-formed {"error": ...} reply is returned as is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from taskpilot.utils.error_handler import ToolTransportError

LOGGER = logging.getLogger(__name__)


class ToolTransport(Protocol):
    async def request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def close(self) -> None:
        ...


class HttpToolTransport:
    """POSTs each request to a single JSON endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url:
            raise ValueError("HttpToolTransport requires a url")
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        LOGGER.debug(f"  Remote tool request: {payload.get('method')} {payload.get('name', '')}")
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ToolTransportError(
                f"Remote tool service request failed: {e}",
                user_message="Tool service is unavailable",
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ToolTransportError(f"Remote tool service returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise ToolTransportError("Remote tool service returned a non-object response")
        return body

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
