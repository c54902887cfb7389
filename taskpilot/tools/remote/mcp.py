"""Remote tool transport backed by an MCP server over stdio."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from taskpilot.utils.error_handler import ToolTransportError

LOGGER = logging.getLogger(__name__)


def _resolve_env(env: Dict[str, str]) -> Dict[str, str]:
    """Merge with os.environ, expanding ${VAR} references."""
    full_env = os.environ.copy()
    for key, value in env.items():
        if value.startswith("${") and value.endswith("}"):
            full_env[key] = os.environ.get(value[2:-1], "")
        else:
            full_env[key] = value
    return full_env


class MCPToolTransport:
    """Speaks the list/call exchange to an MCP stdio server.

    The server process is started lazily on the first request.
    """

    def __init__(self, command: str, args: Optional[List[str]] = None, env: Optional[Dict[str, str]] = None):
        if not command:
            raise ValueError("MCPToolTransport requires a command")
        self.command = command
        self.args = list(args or [])
        self.env = dict(env or {})
        self._session = None
        self._stdio_context = None
        self._start_lock = asyncio.Lock()

    async def _start(self) -> None:
        from mcp import ClientSession, StdioServerParameters
        from mcp.client.stdio import stdio_client

        LOGGER.debug(f"  Starting MCP stdio server: {self.command} {' '.join(self.args)}")
        server_params = StdioServerParameters(
            command=self.command,
            args=self.args,
            env=_resolve_env(self.env),
        )

        # stdio_client is an async context manager; keep it open for the session's lifetime
        stdio_context = stdio_client(server_params)
        read_stream, write_stream = await stdio_context.__aenter__()
        self._stdio_context = stdio_context

        session = ClientSession(read_stream, write_stream)
        await session.__aenter__()
        await session.initialize()
        self._session = session
        LOGGER.info(f"MCP tool server started: {self.command}")

    async def _ensure_session(self):
        if self._session is None:
            async with self._start_lock:
                if self._session is None:
                    try:
                        await self._start()
                    except Exception as e:
                        await self.close()
                        raise ToolTransportError(
                            f"Failed to start MCP server '{self.command}': {e}",
                            user_message="Tool service is unavailable",
                        ) from e
        return self._session

    async def request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        session = await self._ensure_session()
        method = payload.get("method")
        try:
            if method == "list":
                result = await session.list_tools()
                return {
                    "result": {
                        "tools": [
                            {
                                "name": tool.name,
                                "description": tool.description or "",
                                "inputSchema": tool.inputSchema or {},
                            }
                            for tool in result.tools
                        ]
                    }
                }
            if method == "call":
                result = await session.call_tool(payload["name"], payload.get("arguments") or {})
                text = "\n".join(item.text for item in (result.content or []) if hasattr(item, "text"))
                if getattr(result, "isError", False):
                    return {"error": {"message": text or "tool reported an error"}}
                return {"result": text}
        except ToolTransportError:
            raise
        except Exception as e:
            raise ToolTransportError(f"MCP request '{method}' failed: {e}") from e

        return {"error": {"message": f"unsupported method: {method}"}}

    async def close(self) -> None:
        if self._session is not None:
            try:
                await self._session.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"  Error closing MCP client session: {e}")
            self._session = None

        if self._stdio_context is not None:
            try:
                await self._stdio_context.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"  Error closing MCP stdio context: {e}")
            self._stdio_context = None
