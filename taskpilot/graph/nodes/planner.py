"""Plan stage: turn a query and a thought into a dependency-annotated plan."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from taskpilot.graph.parsing import parse_json_object
from taskpilot.graph.prompts import build_plan_prompt
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Message, Plan, PlanStep, Thought
from taskpilot.tools.schema import ToolSpec
from taskpilot.utils.logging_utils import log_plan_created, log_prompt, log_stage_entry

LOGGER = logging.getLogger(__name__)

CONTEXT_WINDOW = 3
DEFAULT_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASONING = "Plan generated from unstructured response"


def plan_temperature(base: float) -> float:
    return max(base - 0.1, 0.1)


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


def _confidence(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    return min(max(confidence, 0.0), 1.0)


def fallback_plan(content: str) -> Plan:
    """One manual step per non-blank line of unstructured text."""
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if not lines:
        lines = ["Review the request manually"]
    return Plan(
        steps=[PlanStep(order=index + 1, description=line) for index, line in enumerate(lines)],
        required_tools=[],
        confidence=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING,
    )


def _assign_orders(raw_steps: List[Any], warnings: List[str]) -> List[int]:
    """Order per raw step: declared positive order or index+1, duplicates moved to a free integer."""
    proposed = []
    for index, raw in enumerate(raw_steps):
        order = _positive_int(raw.get("order")) if isinstance(raw, dict) else None
        proposed.append(order or index + 1)

    reserved = set(proposed)
    taken: Set[int] = set()
    orders = []
    for order in proposed:
        if order in taken:
            new_order = max(reserved | taken) + 1
            warnings.append(f"Duplicate step order {order} reassigned to {new_order}")
            order = new_order
        taken.add(order)
        orders.append(order)
    return orders


def _dependencies(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    deps = []
    for item in value:
        dep = _positive_int(item)
        if dep is not None and dep not in deps:
            deps.append(dep)
    return deps


def build_plan(data: Dict[str, Any], thought: Thought, available_tools: Iterable[str]) -> Tuple[Plan, List[str]]:
    """Normalize parsed plan JSON and drop references to unavailable tools.

    Returns the plan and the warnings produced while cleaning it. A step naming a
    tool outside available_tools keeps its place in the plan as a manual step.
    """
    available = set(available_tools)
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise ValueError("plan has no steps")

    warnings: List[str] = []
    orders = _assign_orders(raw_steps, warnings)

    steps = []
    for raw, order in zip(raw_steps, orders):
        if not isinstance(raw, dict):
            raw = {"description": str(raw)}

        description = raw.get("description")
        if not isinstance(description, str) or not description.strip():
            description = f"Step {order}"

        tool = raw.get("tool") if isinstance(raw.get("tool"), str) and raw.get("tool").strip() else None
        parameters = raw.get("parameters") if isinstance(raw.get("parameters"), dict) else None
        if tool and tool not in available:
            warnings.append(f"Step {order} references unavailable tool '{tool}'; treating it as a manual step")
            tool, parameters = None, None

        steps.append(PlanStep(
            order=order,
            description=description,
            tool=tool,
            parameters=parameters if tool else None,
            dependencies=_dependencies(raw.get("dependencies")),
        ))

    known_orders = {step.order for step in steps}
    for step in steps:
        missing = [dep for dep in step.dependencies if dep not in known_orders]
        if missing:
            warnings.append(f"Step {step.order} depends on missing steps {missing}")

    required_tools: List[str] = []
    for step in steps:
        if step.tool and step.tool not in required_tools:
            required_tools.append(step.tool)

    reasoning = data.get("reasoning")
    duration = data.get("estimatedDuration", data.get("estimated_duration"))
    plan = Plan(
        steps=steps,
        required_tools=required_tools,
        confidence=_confidence(data.get("confidence", DEFAULT_CONFIDENCE)),
        reasoning=reasoning if isinstance(reasoning, str) and reasoning.strip() else thought.reasoning,
        estimated_duration=int(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) and duration >= 0 else None,
    )
    return plan, warnings


def parse_plan(content: str, thought: Thought, available_tools: Iterable[str]) -> Tuple[Plan, List[str]]:
    data = parse_json_object(content)
    if data is not None:
        try:
            return build_plan(data, thought, available_tools)
        except ValueError as e:
            LOGGER.warning(f"Plan response unusable ({e}), falling back to line-based plan")
    else:
        LOGGER.warning("Plan response was not JSON, falling back to line-based plan")
    return fallback_plan(content), []


async def generate_plan(
    provider: CompletionProvider,
    *,
    query: str,
    thought: Thought,
    context: Sequence[Message],
    tools: Iterable[ToolSpec],
    config: CompletionConfig,
) -> Tuple[Plan, List[str]]:
    """Run the plan completion. Returns the cleaned plan and its warnings."""
    tools = list(tools)
    log_stage_entry(LOGGER, "plan", query, available_tools=[spec.name for spec in tools])

    prompt = build_plan_prompt(query, thought, list(context)[-CONTEXT_WINDOW:], tools)
    log_prompt(LOGGER, "plan", prompt)
    completion = await provider.complete(prompt, [], config.with_temperature(plan_temperature(config.temperature)))

    plan, warnings = parse_plan(completion.content, thought, [spec.name for spec in tools])
    for warning in warnings:
        LOGGER.warning(f"Plan warning: {warning}")
    log_plan_created(LOGGER, plan.to_payload())
    return plan, warnings
