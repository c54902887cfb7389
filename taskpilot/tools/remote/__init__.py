"""Remote tool registry and its transports (HTTP JSON, MCP stdio)."""

from .mcp import MCPToolTransport
from .registry import RemoteToolRegistry
from .transport import HttpToolTransport, ToolTransport

__all__ = ["HttpToolTransport", "MCPToolTransport", "RemoteToolRegistry", "ToolTransport"]
