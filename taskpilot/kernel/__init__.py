"""Pluggable subsystems (tools, storage, memory, notifications, live updates) and their selection."""

from .context import ContextStore, LocalFileContextStore, SqliteContextStore, VectorContextStore
from .emitter import EventEmitter
from .events import EventBus, EventContext, HttpEventBus, InMemoryEventBus, NoOpEventBus
from .memory import LocalMemory, MemorySystem, VectorMemory
from .selector import BackendSelector, Kernel
from .streams import BufferedStreamManager, SSEStreamManager, StreamEvent, StreamManager

__all__ = [
    "BackendSelector",
    "BufferedStreamManager",
    "ContextStore",
    "EventBus",
    "EventContext",
    "EventEmitter",
    "HttpEventBus",
    "InMemoryEventBus",
    "Kernel",
    "LocalFileContextStore",
    "LocalMemory",
    "MemorySystem",
    "NoOpEventBus",
    "SSEStreamManager",
    "SqliteContextStore",
    "StreamEvent",
    "StreamManager",
    "VectorContextStore",
    "VectorMemory",
]
