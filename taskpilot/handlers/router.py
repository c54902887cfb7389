"""Mode routing: pick ask, plan or agent for a query."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from taskpilot.graph.parsing import parse_json_object
from taskpilot.graph.prompts import build_router_prompt
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Message, ModeSelection
from taskpilot.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger(__name__)

MODES = ("ask", "plan", "agent")

AGENT_INDICATORS = (
    "create", "write", "delete", "update", "modify", "change", "edit",
    "implement", "build", "add", "remove", "fix", "refactor",
    "file", "code", "function", "class", "component",
)
PLAN_INDICATORS = (
    "plan", "strategy", "steps", "workflow", "process", "approach",
    "how to", "what steps", "break down", "outline",
)
ASK_INDICATORS = (
    "what", "why", "how", "when", "where", "explain", "describe", "tell me", "?",
)

HEURISTIC_THRESHOLD = 0.8
CLASSIFY_TEMPERATURE = 0.3
CLASSIFY_MAX_TOKENS = 200


def heuristic_mode(query: str) -> ModeSelection:
    lowered = query.lower().strip()
    has_agent = any(word in lowered for word in AGENT_INDICATORS)
    has_plan = any(word in lowered for word in PLAN_INDICATORS)
    has_ask = any(word in lowered for word in ASK_INDICATORS)

    if has_agent and len(query) > 50:
        return ModeSelection(
            mode="agent", confidence=0.7,
            reasoning="Query contains action verbs and is complex enough for execution",
        )
    if has_plan or (len(query) > 200 and not has_ask):
        return ModeSelection(
            mode="plan", confidence=0.7,
            reasoning="Query asks for planning or is complex enough to need a plan",
        )
    return ModeSelection(
        mode="ask", confidence=0.6,
        reasoning="Query looks like a simple question or explanation request",
    )


class ModeRouter:
    """Explicit mode wins; otherwise heuristics, confirmed by a completion when unsure."""

    def __init__(self, provider: CompletionProvider, config: CompletionConfig):
        self.provider = provider
        self.config = config

    async def route(
        self,
        query: str,
        context: Sequence[Message] = (),
        explicit_mode: Optional[str] = None,
    ) -> ModeSelection:
        if explicit_mode:
            selection = ModeSelection(mode=explicit_mode, confidence=1.0, reasoning="User explicitly selected mode")
            log_routing_decision(LOGGER, "router", selection.mode, selection.reasoning)
            return selection

        heuristic = heuristic_mode(query)
        if heuristic.confidence > HEURISTIC_THRESHOLD:
            selection = heuristic
        else:
            try:
                selection = await self._classify(query, context, heuristic)
            except Exception as e:
                LOGGER.warning(f"Mode classification failed, using heuristic: {e}")
                selection = heuristic

        log_routing_decision(LOGGER, "router", selection.mode, selection.reasoning)
        return selection

    async def _classify(self, query: str, context: Sequence[Message], heuristic: ModeSelection) -> ModeSelection:
        config = self.config.with_temperature(CLASSIFY_TEMPERATURE).with_max_tokens(CLASSIFY_MAX_TOKENS)
        completion = await self.provider.complete(build_router_prompt(query, list(context)[-3:]), [], config)

        data = parse_json_object(completion.content)
        if data is None or data.get("mode") not in MODES:
            LOGGER.warning("Mode classification returned no valid mode, using heuristic")
            return heuristic

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0 <= confidence <= 1:
            confidence = 0.7
        reasoning = data.get("reasoning")
        return ModeSelection(
            mode=data["mode"],
            confidence=float(confidence),
            reasoning=reasoning if isinstance(reasoning, str) and reasoning else "Completion-based classification",
        )
