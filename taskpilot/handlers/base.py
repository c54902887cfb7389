"""Shared request flow for the ask, plan and agent handlers."""

from __future__ import annotations

import logging
from typing import Any, List, Optional
from uuid import uuid4

from taskpilot.config.settings import Settings
from taskpilot.kernel.emitter import EventEmitter
from taskpilot.kernel.events import EventContext
from taskpilot.kernel.selector import Kernel
from taskpilot.llm.factory import completion_config_from_settings
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Message
from taskpilot.tools.schema import ToolSpec
from taskpilot.utils.error_handler import InputValidationError
from taskpilot.utils.logging_utils import log_error

LOGGER = logging.getLogger(__name__)


class ModeHandler:
    """Validates input, sets up the session emitter and reports failures as <mode>.error.

    Subclasses implement _run().
    """

    mode: str = ""

    def __init__(
        self,
        kernel: Kernel,
        provider: CompletionProvider,
        settings: Settings,
        config: Optional[CompletionConfig] = None,
    ):
        self.kernel = kernel
        self.provider = provider
        self.settings = settings
        self.config = config or completion_config_from_settings(settings.models)

    def validate_input(self, user_id: Optional[str], query: Optional[str]) -> None:
        if not user_id or not str(user_id).strip():
            raise InputValidationError("User ID is required")
        if not query or not query.strip():
            raise InputValidationError("Query is required")
        limit = self.settings.orchestration.max_query_length
        if len(query) > limit:
            raise InputValidationError(f"Query exceeds maximum length of {limit} characters")

    def emitter_for(self, session_id: str, user_id: Optional[str]) -> EventEmitter:
        return EventEmitter(
            self.kernel.events,
            mode=self.mode,
            context=EventContext(session_id=session_id, user_id=user_id),
            stream=self.kernel.streams,
        )

    async def handle(self, *, user_id: str, query: str, session_id: Optional[str] = None) -> Any:
        session_id = session_id or str(uuid4())
        emit = self.emitter_for(session_id, user_id)
        LOGGER.info(f"[{self.mode}] request for session {session_id}")
        try:
            self.validate_input(user_id, query)
            return await self._run(user_id=user_id, query=query, session_id=session_id, emit=emit)
        except Exception as e:
            log_error(LOGGER, e, context=f"{self.mode} handler, session {session_id}")
            await emit("error", {
                "error": getattr(e, "user_message", None) or str(e),
                "query": (query or "")[:100],
                "userId": user_id,
            })
            raise

    async def _run(self, *, user_id: str, query: str, session_id: str, emit: EventEmitter) -> Any:
        raise NotImplementedError

    async def discover_tools(self) -> List[ToolSpec]:
        limit = self.settings.orchestration.tool_discovery_limit
        try:
            return await self.kernel.tools.discover("", limit)
        except Exception as e:
            LOGGER.warning(f"Tool discovery failed, continuing without tools: {e}")
            return []

    async def save_exchange(self, session_id: str, query: str, answer: str) -> None:
        await self.kernel.context.add_message(session_id, Message(role="user", content=query))
        await self.kernel.context.add_message(session_id, Message(role="assistant", content=answer))
