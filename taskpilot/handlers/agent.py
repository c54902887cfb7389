"""Agent mode: reason, plan, then execute and reflect until done."""

from __future__ import annotations

import json
import logging

from taskpilot.graph.nodes import generate_plan, generate_thought
from taskpilot.kernel.emitter import EventEmitter
from taskpilot.runtime.orchestrator import Orchestrator
from taskpilot.schema import ExecutionResponse

from .base import ModeHandler

LOGGER = logging.getLogger(__name__)


class AgentHandler(ModeHandler):
    mode = "agent"

    def build_orchestrator(self, emit: EventEmitter) -> Orchestrator:
        orchestration = self.settings.orchestration
        return Orchestrator(
            provider=self.provider,
            tools=self.kernel.tools,
            config=self.config,
            emit=emit,
            max_parallel_steps=orchestration.max_parallel_steps,
            fail_on_tool_error=orchestration.fail_on_tool_error,
        )

    async def _run(self, *, user_id: str, query: str, session_id: str, emit: EventEmitter) -> ExecutionResponse:
        await emit("query.received", {"query": query, "sessionId": session_id})

        context = await self.kernel.context.get_context(session_id)
        tools = await self.discover_tools()

        thought = await generate_thought(
            self.provider, query=query, context=context.messages, tools=tools, config=self.config
        )
        await emit("thought.completed", {"thought": thought.to_payload()})

        plan, _ = await generate_plan(
            self.provider, query=query, thought=thought, context=context.messages, tools=tools, config=self.config
        )
        await emit("plan.completed", {"plan": plan.to_payload()})

        orchestrator = self.build_orchestrator(emit)
        records = await orchestrator.run_detailed(query, plan, self.settings.orchestration.max_iterations)
        for record in records:
            await self.kernel.memory.remember(session_id, {
                "type": "reflection",
                "iteration": record.iteration,
                "executionId": record.execution.id,
                "status": record.execution.status.value,
                "success": record.reflection.success,
                "analysis": record.reflection.analysis,
            })

        final = records[-1]
        await self.save_exchange(
            session_id, query, json.dumps(final.execution.to_payload(), ensure_ascii=False, default=str)
        )
        await emit("execution.completed", {
            "executionId": final.execution.id,
            "status": final.execution.status.value,
            "success": final.reflection.success,
            "iterations": len(records),
        })

        return ExecutionResponse(
            session_id=session_id,
            thought=thought,
            plan=plan,
            execution=final.execution,
            reflection=final.reflection,
            iterations=len(records),
        )
