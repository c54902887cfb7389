"""Prompt rendering for the thought, plan, reflection and routing calls.

Templates live in taskpilot/config/prompt_templates and are rendered with a
sandboxed Jinja2 environment, so they can be edited without touching code.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from jinja2 import FileSystemLoader, StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from taskpilot.schema import Execution, Message, Plan, Thought
from taskpilot.tools.schema import ToolSpec

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "config" / "prompt_templates"

RESULT_PREVIEW_CHARS = 200
ROUTER_CONTEXT_CHARS = 100


@lru_cache(maxsize=1)
def _environment() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


def render(template_name: str, **params: Any) -> str:
    params.setdefault("messages", [])
    params.setdefault("max_chars", 0)
    params.setdefault("tools", [])
    return _environment().get_template(template_name).render(**params).strip()


def tool_entries(tools: Iterable[ToolSpec]) -> List[Dict[str, str]]:
    return [
        {
            "name": spec.name,
            "description": spec.description,
            "schema": json.dumps(spec.input_schema.to_payload(), ensure_ascii=False),
        }
        for spec in tools
    ]


def result_lines(plan: Plan, execution: Execution) -> List[str]:
    lines = []
    for record in execution.steps:
        step = plan.step_by_id(record.plan_step_id)
        line = f"{step.order if step else '?'}. {step.description if step else 'Unknown step'}: {record.status.value}"
        if record.error:
            line += f" (Error: {record.error})"
        if record.result is not None:
            line += f"\n   Result: {json.dumps(record.result, default=str)[:RESULT_PREVIEW_CHARS]}"
        lines.append(line)
    return lines


def build_thought_prompt(query: str, context: Sequence[Message], tools: Iterable[ToolSpec]) -> str:
    return render("thought.jinja2", query=query, messages=list(context), tools=tool_entries(tools))


def build_plan_prompt(query: str, thought: Thought, context: Sequence[Message], tools: Iterable[ToolSpec]) -> str:
    return render(
        "plan.jinja2",
        query=query,
        thought=thought,
        messages=list(context),
        tools=tool_entries(tools),
    )


def build_reflection_prompt(query: str, plan: Plan, execution: Execution) -> str:
    return render(
        "reflection.jinja2",
        query=query,
        plan=plan,
        results=result_lines(plan, execution),
        status=execution.status.value,
        error=execution.error or "",
    )


def build_router_prompt(query: str, context: Sequence[Message]) -> str:
    return render("router.jinja2", query=query, messages=list(context), max_chars=ROUTER_CONTEXT_CHARS)
