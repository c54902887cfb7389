"""Configuration-driven construction of the kernel subsystems.

Each subsystem is selected by a *_TYPE setting and built through a factory
table. Fallback is one explicit extra attempt, never a chain:

    tool registry   local | remote          failure is fatal
    context store   local | sqlite | vector vector falls back to sqlite
    memory          local | vector          vector falls back to local
    event bus       memory | http | none    any failure gives a no-op bus
    stream manager  sse | buffer            failure is fatal
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from taskpilot.config.settings import Settings
from taskpilot.tools.builtin import BUILTIN_TOOLS
from taskpilot.tools.config_loader import load_tool_config
from taskpilot.tools.registry import LocalToolRegistry, ToolCapability
from taskpilot.tools.remote import HttpToolTransport, MCPToolTransport, RemoteToolRegistry
from taskpilot.utils.error_handler import BackendInitializationError

from .context import ContextStore, LocalFileContextStore, SqliteContextStore, VectorContextStore
from .events import EventBus, HttpEventBus, InMemoryEventBus, NoOpEventBus
from .memory import LocalMemory, MemorySystem, VectorMemory
from .streams import BufferedStreamManager, SSEStreamManager, StreamManager

LOGGER = logging.getLogger(__name__)

Factory = Callable[[Settings], Any]
FactoryTable = Dict[str, Dict[str, Factory]]

SUBSYSTEMS = ("tools", "context", "memory", "events", "streams")

FALLBACKS: Dict[str, Dict[str, str]] = {
    "context": {"vector": "sqlite"},
    "memory": {"vector": "local"},
}


@dataclass
class Kernel:
    """The five subsystems the handlers and orchestrator depend on."""

    tools: ToolCapability
    context: ContextStore
    memory: MemorySystem
    events: EventBus
    streams: StreamManager
    variants: Dict[str, str] = field(default_factory=dict)


def build_local_tools(settings: Settings) -> LocalToolRegistry:
    tool_config = load_tool_config()
    registry = LocalToolRegistry()
    for name in tool_config.get_enabled_builtin_tools():
        tool = BUILTIN_TOOLS.get(name)
        if tool is None:
            LOGGER.warning(f"Tool '{name}' configured but not found")
            continue
        registry.register_tool(tool)
        LOGGER.info(f"  Enabled tool: {name}")
    return registry


def build_remote_tools(settings: Settings) -> RemoteToolRegistry:
    backends = settings.backends
    transport_type = backends.remote_tools_transport.lower()
    if transport_type == "http":
        if not backends.remote_tools_url:
            raise BackendInitializationError("Remote tool registry requires REMOTE_TOOLS_URL")
        transport = HttpToolTransport(backends.remote_tools_url, timeout=backends.remote_tools_timeout)
    elif transport_type == "mcp":
        if not backends.remote_tools_command:
            raise BackendInitializationError("Remote tool registry requires REMOTE_TOOLS_COMMAND")
        transport = MCPToolTransport(
            backends.remote_tools_command,
            backends.remote_tools_args,
            load_tool_config().get_mcp_env(),
        )
    else:
        raise BackendInitializationError(f"Unknown remote tools transport: {backends.remote_tools_transport}")
    return RemoteToolRegistry(transport)


def default_factories() -> FactoryTable:
    return {
        "tools": {
            "local": build_local_tools,
            "remote": build_remote_tools,
        },
        "context": {
            "local": lambda s: LocalFileContextStore(s.backends.context_store_path),
            "sqlite": lambda s: SqliteContextStore(s.backends.context_db_path),
            "vector": lambda s: VectorContextStore(
                s.backends.vector_api_url, s.backends.vector_api_key, s.backends.vector_index_name
            ),
        },
        "memory": {
            "local": lambda s: LocalMemory(s.backends.memory_max_entries),
            "vector": lambda s: VectorMemory(
                s.backends.vector_api_url, s.backends.vector_api_key, s.backends.vector_index_name
            ),
        },
        "events": {
            "memory": lambda s: InMemoryEventBus(),
            "http": lambda s: HttpEventBus(s.backends.event_bus_url, service_name=s.backends.event_service_name),
            "none": lambda s: NoOpEventBus(),
        },
        "streams": {
            "sse": lambda s: SSEStreamManager(),
            "buffer": lambda s: BufferedStreamManager(),
        },
    }


class BackendSelector:
    """Builds a Kernel from settings using a factory table."""

    def __init__(self, settings: Settings, factories: Optional[Mapping[str, Mapping[str, Factory]]] = None):
        self.settings = settings
        self.factories: FactoryTable = {name: dict(table) for name, table in default_factories().items()}
        for name, table in (factories or {}).items():
            self.factories.setdefault(name, {}).update(table)

    def _construct(self, subsystem: str, variant: str) -> Any:
        factory = self.factories.get(subsystem, {}).get(variant)
        if factory is None:
            raise BackendInitializationError(f"Unknown {subsystem} backend: {variant}")
        try:
            return factory(self.settings)
        except BackendInitializationError:
            raise
        except Exception as e:
            raise BackendInitializationError(f"Failed to initialize {subsystem} backend '{variant}': {e}") from e

    def _attempts(self, subsystem: str, preferred: str) -> List[str]:
        attempts = [preferred]
        fallback = FALLBACKS.get(subsystem, {}).get(preferred)
        if fallback:
            attempts.append(fallback)
        return attempts

    def select(self, subsystem: str, preferred: str) -> tuple:
        """Return (instance, variant) trying the preferred variant then its designated fallback."""
        preferred = preferred.lower()
        attempts = self._attempts(subsystem, preferred)
        for index, variant in enumerate(attempts):
            try:
                instance = self._construct(subsystem, variant)
            except BackendInitializationError as e:
                if index == len(attempts) - 1:
                    LOGGER.error(f"{subsystem} backend '{variant}' failed: {e}")
                    raise
                LOGGER.warning(f"{subsystem} backend '{variant}' failed ({e}); falling back to '{attempts[index + 1]}'")
                continue
            LOGGER.info(f"{subsystem} backend: {variant}")
            return instance, variant
        raise BackendInitializationError(f"No {subsystem} backend could be built")

    def select_events(self, preferred: str) -> tuple:
        try:
            return self.select("events", preferred)
        except BackendInitializationError as e:
            LOGGER.warning(f"Event bus unavailable ({e}); using no-op bus")
            return NoOpEventBus(), "none"

    def build(self) -> Kernel:
        backends = self.settings.backends
        tools, tools_variant = self.select("tools", backends.tool_registry_type)
        context, context_variant = self.select("context", backends.context_store_type)
        memory, memory_variant = self.select("memory", backends.memory_system_type)
        events, events_variant = self.select_events(backends.event_bus_type)
        streams, streams_variant = self.select("streams", backends.stream_manager_type)
        return Kernel(
            tools=tools,
            context=context,
            memory=memory,
            events=events,
            streams=streams,
            variants={
                "tools": tools_variant,
                "context": context_variant,
                "memory": memory_variant,
                "events": events_variant,
                "streams": streams_variant,
            },
        )
