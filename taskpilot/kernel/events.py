"""Notification buses: in-process, HTTP webhook and no-op."""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, Union

import httpx
from pydantic import BaseModel

from taskpilot.utils.error_handler import BackendInitializationError

LOGGER = logging.getLogger(__name__)


class EventContext(BaseModel):
    session_id: str
    user_id: Optional[str] = None


EventHandler = Callable[[str, Dict[str, Any], EventContext], Union[None, Awaitable[None]]]


class EventBus(Protocol):
    async def emit(self, topic: str, payload: Dict[str, Any], context: EventContext) -> None:
        ...

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        ...

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        ...


class InMemoryEventBus:
    """Dispatches to in-process subscribers matching a glob pattern (e.g. "agent.*").

    Delivery is at-most-once; a failing handler is logged and does not affect
    other handlers or the emitter.
    """

    def __init__(self) -> None:
        self._subscriptions: List[Tuple[str, EventHandler]] = []

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscriptions.append((pattern, handler))

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscriptions = [
            (existing_pattern, existing_handler)
            for existing_pattern, existing_handler in self._subscriptions
            if not (existing_pattern == pattern and existing_handler == handler)
        ]

    async def emit(self, topic: str, payload: Dict[str, Any], context: EventContext) -> None:
        LOGGER.debug(f"Event: {topic} (session={context.session_id})")
        for pattern, handler in list(self._subscriptions):
            if not fnmatchcase(topic, pattern):
                continue
            try:
                result = handler(topic, payload, context)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                LOGGER.warning(f"Event handler for '{pattern}' failed on {topic}: {e}")


class NoOpEventBus:
    """Accepts every call and delivers nothing."""

    async def emit(self, topic: str, payload: Dict[str, Any], context: EventContext) -> None:
        LOGGER.debug(f"Event dropped (no-op bus): {topic}")

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        pass

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        pass


class HttpEventBus:
    """Posts every event to a webhook and also dispatches to local subscribers."""

    def __init__(
        self,
        url: Optional[str],
        *,
        service_name: str = "taskpilot",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url:
            raise BackendInitializationError("HTTP event bus requires EVENT_BUS_URL")
        self.url = url
        self.service_name = service_name
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._local = InMemoryEventBus()

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._local.subscribe(pattern, handler)

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        self._local.unsubscribe(pattern, handler)

    async def emit(self, topic: str, payload: Dict[str, Any], context: EventContext) -> None:
        body = {
            "topic": topic,
            "service": self.service_name,
            "payload": payload,
            "context": context.model_dump(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            LOGGER.warning(f"Failed to deliver event {topic} to {self.url}: {e}")
        await self._local.emit(topic, payload, context)

    async def close(self) -> None:
        await self._client.aclose()
