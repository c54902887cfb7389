"""Ask mode: one completion over the conversation history."""

from __future__ import annotations

import logging

from taskpilot.kernel.emitter import EventEmitter
from taskpilot.schema import AskResponse
from taskpilot.utils.error_handler import CompletionError

from .base import ModeHandler

LOGGER = logging.getLogger(__name__)


class AskHandler(ModeHandler):
    mode = "ask"

    async def _run(self, *, user_id: str, query: str, session_id: str, emit: EventEmitter) -> AskResponse:
        await emit("query.received", {"query": query, "sessionId": session_id})

        context = await self.kernel.context.get_context(session_id)
        completion = await self.provider.complete(query, context.messages, self.config)
        if not completion.content.strip():
            raise CompletionError("Empty completion response")

        await emit("response.generated", {
            "sessionId": session_id,
            "model": completion.model,
            "tokensUsed": completion.tokens_used,
        })

        await self.save_exchange(session_id, query, completion.content)
        await emit("response.sent", {"sessionId": session_id, "length": len(completion.content)})

        return AskResponse(
            session_id=session_id,
            response=completion.content,
            model=completion.model,
            tokens_used=completion.tokens_used,
        )
