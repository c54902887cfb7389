"""Per-session live-update channels."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict, deque
from typing import Any, AsyncIterator, Deque, Dict, List, Protocol

from pydantic import BaseModel

LOGGER = logging.getLogger(__name__)


class StreamEvent(BaseModel):
    event: str
    data: Dict[str, Any]
    id: int

    def to_sse(self) -> str:
        """Render as a Server-Sent Events frame."""
        return f"id: {self.id}\nevent: {self.event}\ndata: {json.dumps(self.data, default=str)}\n\n"


class StreamManager(Protocol):
    async def publish(self, session_id: str, event: str, data: Dict[str, Any]) -> None:
        ...

    def subscribe(self, session_id: str) -> AsyncIterator[StreamEvent]:
        ...

    async def close(self, session_id: str) -> None:
        ...


_CLOSED = object()


class SSEStreamManager:
    """Fans events out to every live subscriber of a session.

    subscribe() registers immediately, so a subscriber sees every event
    published after the call returns. close() ends all open subscriptions
    for the session.
    """

    def __init__(self, queue_size: int = 1000):
        self.queue_size = queue_size
        self._queues: Dict[str, List[asyncio.Queue]] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)

    def _next_event(self, session_id: str, event: str, data: Dict[str, Any]) -> StreamEvent:
        self._counters[session_id] += 1
        return StreamEvent(event=event, data=data, id=self._counters[session_id])

    def _deliver(self, session_id: str, item: StreamEvent) -> None:
        for queue in list(self._queues.get(session_id, [])):
            if queue.qsize() >= self.queue_size:
                LOGGER.warning(f"Stream subscriber for {session_id} is full, dropping event {item.event}")
                continue
            queue.put_nowait(item)

    async def publish(self, session_id: str, event: str, data: Dict[str, Any]) -> None:
        self._deliver(session_id, self._next_event(session_id, event, data))

    def _register(self, session_id: str) -> asyncio.Queue:
        # One extra slot so the close marker always fits
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size + 1)
        self._queues[session_id].append(queue)
        return queue

    def subscribe(self, session_id: str) -> AsyncIterator[StreamEvent]:
        return self._iterate(session_id, self._register(session_id))

    async def _iterate(self, session_id: str, queue: asyncio.Queue) -> AsyncIterator[StreamEvent]:
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            subscribers = self._queues.get(session_id, [])
            if queue in subscribers:
                subscribers.remove(queue)
            if not subscribers:
                self._queues.pop(session_id, None)

    def subscriber_count(self, session_id: str) -> int:
        return len(self._queues.get(session_id, []))

    async def close(self, session_id: str) -> None:
        for queue in self._queues.pop(session_id, []):
            queue.put_nowait(_CLOSED)
        self._counters.pop(session_id, None)


class BufferedStreamManager(SSEStreamManager):
    """SSE channels that also replay the last buffer_size events to new subscribers."""

    def __init__(self, buffer_size: int = 100, queue_size: int = 1000):
        super().__init__(queue_size=max(queue_size, buffer_size))
        self.buffer_size = buffer_size
        self._buffers: Dict[str, Deque[StreamEvent]] = {}

    async def publish(self, session_id: str, event: str, data: Dict[str, Any]) -> None:
        item = self._next_event(session_id, event, data)
        self._buffers.setdefault(session_id, deque(maxlen=self.buffer_size)).append(item)
        self._deliver(session_id, item)

    def subscribe(self, session_id: str) -> AsyncIterator[StreamEvent]:
        queue = self._register(session_id)
        for item in self._buffers.get(session_id, ()):
            queue.put_nowait(item)
        return self._iterate(session_id, queue)

    def history(self, session_id: str) -> List[StreamEvent]:
        return list(self._buffers.get(session_id, ()))

    async def close(self, session_id: str) -> None:
        await super().close(session_id)
        self._buffers.pop(session_id, None)
