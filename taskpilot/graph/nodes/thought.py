"""Thought stage: free-form reasoning before planning."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from taskpilot.graph.parsing import parse_json_object, string_list
from taskpilot.graph.prompts import build_thought_prompt
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Message, Thought
from taskpilot.tools.schema import ToolSpec
from taskpilot.utils.logging_utils import log_prompt, log_stage_entry, log_stage_exit

LOGGER = logging.getLogger(__name__)

CONTEXT_WINDOW = 5


def thought_temperature(base: float) -> float:
    return min(base + 0.1, 1.0)


def parse_thought(content: str) -> Thought:
    """Structured thought from completion text; the raw text is the fallback reasoning."""
    data = parse_json_object(content)
    reasoning = data.get("reasoning") if data else None
    if not isinstance(reasoning, str) or not reasoning.strip():
        LOGGER.warning("Thought response was not structured JSON, using raw text as reasoning")
        return Thought(reasoning=content)
    return Thought(
        reasoning=reasoning,
        considerations=string_list(data.get("considerations")),
        assumptions=string_list(data.get("assumptions")),
    )


async def generate_thought(
    provider: CompletionProvider,
    *,
    query: str,
    context: Sequence[Message],
    tools: Iterable[ToolSpec],
    config: CompletionConfig,
) -> Thought:
    log_stage_entry(LOGGER, "thought", query, context_messages=len(context))

    prompt = build_thought_prompt(query, list(context)[-CONTEXT_WINDOW:], tools)
    log_prompt(LOGGER, "thought", prompt)
    completion = await provider.complete(prompt, [], config.with_temperature(thought_temperature(config.temperature)))

    thought = parse_thought(completion.content)
    log_stage_exit(LOGGER, "thought", {
        "considerations": len(thought.considerations),
        "assumptions": len(thought.assumptions),
    })
    return thought
