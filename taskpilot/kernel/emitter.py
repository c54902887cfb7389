"""Mode-namespaced notification helper used by handlers and the orchestrator."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .events import EventBus, EventContext
from .streams import StreamManager

LOGGER = logging.getLogger(__name__)


class EventEmitter:
    """Publishes "<mode>.<event>" on the bus and mirrors it to the session's live stream.

    Delivery problems are logged and never raised to the caller.
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        mode: str,
        context: EventContext,
        stream: Optional[StreamManager] = None,
    ):
        self.bus = bus
        self.mode = mode
        self.context = context
        self.stream = stream

    def topic(self, event: str) -> str:
        return f"{self.mode}.{event}"

    async def __call__(self, event: str, payload: Dict[str, Any]) -> None:
        topic = self.topic(event)
        try:
            await self.bus.emit(topic, payload, self.context)
        except Exception as e:
            LOGGER.warning(f"Failed to emit {topic}: {e}")

        if self.stream is not None:
            try:
                await self.stream.publish(self.context.session_id, topic, payload)
            except Exception as e:
                LOGGER.warning(f"Failed to publish {topic} to stream: {e}")
