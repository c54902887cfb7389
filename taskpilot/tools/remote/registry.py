"""ToolCapability backed by a remote tool service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from taskpilot.utils.error_handler import ToolTransportError
from taskpilot.utils.logging_utils import log_tool_call, log_tool_result

from ..catalog import ToolCatalogCache
from ..schema import ToolOutcome, ToolSpec, ValidationResult
from ..validation import filter_catalog, validate_parameters
from .transport import ToolTransport

LOGGER = logging.getLogger(__name__)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or "remote tool error")
    return str(error)


class RemoteToolRegistry:
    """Caches the remote catalog on first use and validates against it locally."""

    def __init__(self, transport: ToolTransport):
        self.transport = transport
        self.catalog = ToolCatalogCache(self._fetch_catalog)

    async def _fetch_catalog(self) -> List[ToolSpec]:
        response = await self.transport.request({"method": "list"})
        if "error" in response:
            raise ToolTransportError(f"Tool catalog request failed: {_error_message(response['error'])}")

        result = response.get("result")
        entries = result.get("tools", []) if isinstance(result, dict) else result
        if not isinstance(entries, list):
            raise ToolTransportError("Tool catalog response has no tool list")

        specs = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("name"):
                LOGGER.warning(f"Skipping malformed catalog entry: {entry!r}")
                continue
            specs.append(ToolSpec.from_json_schema(
                entry["name"],
                entry.get("description", ""),
                entry.get("inputSchema") or entry.get("input_schema"),
            ))
        return specs

    async def discover(self, query: Optional[str] = None, limit: int = 100) -> List[ToolSpec]:
        return filter_catalog(await self.catalog.list(), query, limit)

    async def validate(self, name: str, params: Any) -> ValidationResult:
        return validate_parameters(await self.catalog.get(name), name, params)

    async def invoke(self, name: str, params: Dict[str, Any]) -> ToolOutcome:
        log_tool_call(LOGGER, name, params)
        response = await self.transport.request({"method": "call", "name": name, "arguments": dict(params)})

        if "error" in response:
            outcome = ToolOutcome(success=False, error=_error_message(response["error"]))
        elif "result" in response:
            outcome = ToolOutcome(success=True, data=response["result"])
        else:
            raise ToolTransportError(f"Malformed response for tool {name}: {response!r}")

        log_tool_result(LOGGER, name, outcome.data if outcome.success else outcome.error, outcome.success)
        return outcome

    def invalidate(self) -> None:
        self.catalog.invalidate()

    async def close(self) -> None:
        await self.transport.close()
