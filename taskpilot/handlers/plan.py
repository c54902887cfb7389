"""Plan mode: reason and plan without executing anything."""

from __future__ import annotations

import json
import logging
from typing import List

from taskpilot.graph.nodes import generate_plan, generate_thought
from taskpilot.kernel.emitter import EventEmitter
from taskpilot.schema import Plan, PlanResponse

from .base import ModeHandler

LOGGER = logging.getLogger(__name__)


class PlanHandler(ModeHandler):
    mode = "plan"

    async def check_plan(self, plan: Plan) -> List[str]:
        """Validate the parameters of every tool step against the tool catalog."""
        warnings = []
        for step in plan.steps:
            if not step.tool:
                continue
            result = await self.kernel.tools.validate(step.tool, step.parameters or {})
            if not result.valid:
                warnings.append(f"Step {step.order} ({step.tool}): {', '.join(result.errors or [])}")
        return warnings

    async def _run(self, *, user_id: str, query: str, session_id: str, emit: EventEmitter) -> PlanResponse:
        await emit("query.received", {"query": query, "sessionId": session_id})

        context = await self.kernel.context.get_context(session_id)
        tools = await self.discover_tools()
        await emit("tools.discovered", {"count": len(tools), "tools": [spec.name for spec in tools]})

        thought = await generate_thought(
            self.provider, query=query, context=context.messages, tools=tools, config=self.config
        )
        await emit("thought.completed", {"thought": thought.to_payload()})

        plan, warnings = await generate_plan(
            self.provider, query=query, thought=thought, context=context.messages, tools=tools, config=self.config
        )
        warnings = warnings + await self.check_plan(plan)
        if warnings:
            await emit("validation.warnings", {"planId": plan.id, "warnings": warnings})

        await emit("plan.generated", {"plan": plan.to_payload()})

        await self.save_exchange(session_id, query, json.dumps(plan.to_payload(), ensure_ascii=False))
        await emit("completed", {"planId": plan.id, "steps": len(plan.steps)})

        return PlanResponse(session_id=session_id, thought=thought, plan=plan, warnings=warnings)
