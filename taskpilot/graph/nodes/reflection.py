"""Reflection stage: judge an execution and decide whether to run it again."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from taskpilot.graph.parsing import parse_json_object, string_list
from taskpilot.graph.prompts import build_reflection_prompt
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Execution, ExecutionStatus, Plan, Reflection
from taskpilot.utils.logging_utils import log_prompt, log_stage_entry, log_stage_exit

LOGGER = logging.getLogger(__name__)


def execution_succeeded(execution: Execution) -> bool:
    return execution.status == ExecutionStatus.COMPLETED and not execution.error


def parse_reflection(content: str, execution: Execution) -> Reflection:
    """Structured reflection, with every missing field defaulted from the execution."""
    data = parse_json_object(content)
    if data is None:
        LOGGER.warning("Reflection response was not JSON, deriving verdict from execution status")
        success = execution_succeeded(execution)
        return Reflection(
            success=success,
            analysis=content,
            issues=[execution.error] if execution.error else [],
            improvements=[],
            should_iterate=not success,
        )

    success = data.get("success")
    if not isinstance(success, bool):
        success = execution_succeeded(execution)

    analysis = data.get("analysis")
    if not isinstance(analysis, str) or not analysis.strip():
        analysis = content

    should_iterate = data.get("shouldIterate", data.get("should_iterate"))
    if not isinstance(should_iterate, bool):
        should_iterate = not success and execution.status == ExecutionStatus.FAILED

    next_steps = data.get("nextSteps", data.get("next_steps"))
    return Reflection(
        success=success,
        analysis=analysis,
        issues=string_list(data.get("issues")),
        improvements=string_list(data.get("improvements")),
        should_iterate=should_iterate,
        next_steps=string_list(next_steps) if isinstance(next_steps, list) else None,
    )


async def reflect(
    provider: CompletionProvider,
    *,
    query: str,
    plan: Plan,
    execution: Execution,
    config: CompletionConfig,
) -> Reflection:
    log_stage_entry(LOGGER, "reflect", query, execution_status=execution.status.value)

    prompt = build_reflection_prompt(query, plan, execution)
    log_prompt(LOGGER, "reflect", prompt)
    completion = await provider.complete(prompt, [], config)

    reflection = parse_reflection(completion.content, execution)
    log_stage_exit(LOGGER, "reflect", {
        "success": reflection.success,
        "should_iterate": reflection.should_iterate,
        "issues": len(reflection.issues),
    })
    return reflection


def build_reflect_node(
    provider: CompletionProvider,
    config: CompletionConfig,
    emit: Optional[Any] = None,
):
    """Create the graph node that reflects on the latest execution."""

    async def reflect_node(state: Dict[str, Any]) -> Dict[str, Any]:
        execution: Execution = state["execution"]
        reflection = await reflect(
            provider,
            query=state["query"],
            plan=state["plan"],
            execution=execution,
            config=config,
        )
        iteration = state.get("iteration", 1)
        if emit is not None:
            await emit("reflection.completed", {
                "executionId": execution.id,
                "success": reflection.success,
                "shouldIterate": reflection.should_iterate,
                "iteration": iteration,
            })
        if reflection.next_steps:
            LOGGER.info(f"Reflection suggested next steps (not applied): {reflection.next_steps}")
        return {
            "reflection": reflection,
            "history": [{"iteration": iteration, "execution": execution, "reflection": reflection}],
        }

    return reflect_node
