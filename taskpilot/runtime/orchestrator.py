"""Bounded execute/reflect loop over a fixed plan."""

from __future__ import annotations

import logging
from typing import List, Optional

from taskpilot.graph.builder import build_orchestration_graph, recursion_limit_for
from taskpilot.graph.nodes.executor import EmitFn, StepScheduler
from taskpilot.llm.provider import CompletionConfig, CompletionProvider
from taskpilot.schema import Execution, IterationRecord, Plan
from taskpilot.tools.registry import ToolCapability
from taskpilot.utils.error_handler import InputValidationError, OrchestrationError

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 3


class Orchestrator:
    """Runs execution then reflection until the goal is met or the budget runs out.

    Each iteration re-executes the same plan; reflection's nextSteps are
    reported but never turned into a new plan.
    """

    def __init__(
        self,
        *,
        provider: CompletionProvider,
        tools: ToolCapability,
        config: CompletionConfig,
        emit: Optional[EmitFn] = None,
        max_parallel_steps: int = 4,
        fail_on_tool_error: bool = True,
    ):
        self.scheduler = StepScheduler(
            tools,
            emit=emit,
            max_parallel_steps=max_parallel_steps,
            fail_on_tool_error=fail_on_tool_error,
        )
        self.graph = build_orchestration_graph(
            scheduler=self.scheduler,
            provider=provider,
            config=config,
            emit=emit,
        )

    async def run_detailed(
        self,
        query: str,
        plan: Plan,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> List[IterationRecord]:
        """Run the loop and return one record per iteration, oldest first."""
        if max_iterations < 1:
            raise InputValidationError(f"max_iterations must be at least 1, got {max_iterations}")

        LOGGER.info(f"Orchestrating plan {plan.id} (max {max_iterations} iterations)")
        final_state = await self.graph.ainvoke(
            {
                "query": query,
                "plan": plan,
                "iteration": 0,
                "max_iterations": max_iterations,
                "history": [],
            },
            config={"recursion_limit": recursion_limit_for(max_iterations)},
        )

        records = [IterationRecord(**entry) for entry in final_state.get("history", [])]
        if not records:
            raise OrchestrationError("Orchestration finished without any execution")
        LOGGER.info(f"Orchestration finished after {len(records)} iteration(s)")
        return records

    async def run(
        self,
        query: str,
        plan: Plan,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> Execution:
        """Return the last execution produced by the loop."""
        records = await self.run_detailed(query, plan, max_iterations)
        return records[-1].execution
