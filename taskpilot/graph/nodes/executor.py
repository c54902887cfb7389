"""Execution stage: dependency-aware scheduling of a plan against a tool capability."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from taskpilot.schema import (
    Execution,
    ExecutionStatus,
    ExecutionStep,
    Plan,
    PlanStep,
    StepStatus,
    utcnow,
)
from taskpilot.tools.registry import ToolCapability
from taskpilot.utils.error_handler import ToolExecutionError

LOGGER = logging.getLogger(__name__)

EmitFn = Callable[[str, Dict[str, Any]], Awaitable[None]]

DEADLOCK_ERROR = "Cannot execute: dependencies not satisfied"
FAILED_STEPS_ERROR = "One or more steps failed"
MANUAL_NOTE = "This step requires manual execution"


class ToolReportedFailure(ToolExecutionError):
    """The tool ran but returned success=False. The outcome is kept as the step result."""

    def __init__(self, message: str, result: Dict[str, Any]):
        super().__init__(message)
        self.result = result


def manual_result(step: PlanStep) -> Dict[str, Any]:
    return {"type": "manual", "description": step.description, "note": MANUAL_NOTE}


def is_ready(step: PlanStep, plan: Plan, completed: Set[str]) -> bool:
    """Every dependency order matches no step, or matches a completed step."""
    for order in step.dependencies:
        dependency = plan.step_by_order(order)
        if dependency is not None and dependency.id not in completed:
            return False
    return True


class StepScheduler:
    """Turns a Plan into an Execution.

    Steps run in rounds: each round takes every pending step whose dependencies
    are satisfied, runs them concurrently (bounded by max_parallel_steps), and
    waits for all of them before computing the next ready set. A failed step
    never aborts its siblings. When pending steps remain but none is ready, all
    of them fail with DEADLOCK_ERROR.
    """

    def __init__(
        self,
        tools: ToolCapability,
        *,
        emit: Optional[EmitFn] = None,
        max_parallel_steps: int = 4,
        fail_on_tool_error: bool = True,
    ):
        if max_parallel_steps < 1:
            raise ValueError("max_parallel_steps must be at least 1")
        self.tools = tools
        self._emit = emit
        self.max_parallel_steps = max_parallel_steps
        self.fail_on_tool_error = fail_on_tool_error

    async def schedule(self, plan: Plan) -> Execution:
        execution = Execution.for_plan(plan)
        LOGGER.info(f"Scheduling plan {plan.id} ({len(plan.steps)} steps)")

        try:
            await self._run_rounds(execution)
        except Exception as e:
            LOGGER.exception(f"Execution of plan {plan.id} aborted", exc_info=e)
            execution.status = ExecutionStatus.FAILED
            execution.error = str(e)
            execution.completed_at = utcnow()
            return execution

        if execution.has_failures:
            execution.status = ExecutionStatus.FAILED
            execution.error = FAILED_STEPS_ERROR
        else:
            execution.status = ExecutionStatus.COMPLETED
            execution.results = {
                "steps": [
                    {"stepId": record.plan_step_id, "status": record.status.value, "result": record.result}
                    for record in execution.steps
                ]
            }
        execution.completed_at = utcnow()
        LOGGER.info(f"Execution {execution.id} finished: {execution.status.value}")
        return execution

    async def _run_rounds(self, execution: Execution) -> None:
        plan = execution.plan
        completed: Set[str] = set()
        semaphore = asyncio.Semaphore(self.max_parallel_steps)
        round_number = 0

        while True:
            pending = execution.steps_with_status(StepStatus.PENDING)
            if not pending:
                return

            ready = [
                record for record in pending
                if is_ready(plan.step_by_id(record.plan_step_id), plan, completed)
            ]
            if not ready:
                LOGGER.warning(f"Deadlock: {len(pending)} pending steps have unsatisfied dependencies")
                for record in pending:
                    record.status = StepStatus.FAILED
                    record.error = DEADLOCK_ERROR
                    record.completed_at = utcnow()
                return

            round_number += 1
            LOGGER.info(f"Round {round_number}: running {len(ready)} step(s)")
            outcomes = await asyncio.gather(
                *(
                    self._run_step(plan.step_by_id(record.plan_step_id), record, semaphore, completed)
                    for record in ready
                ),
                return_exceptions=True,
            )
            errors = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
            if errors:
                raise errors[0]

    async def _run_step(
        self,
        step: PlanStep,
        record: ExecutionStep,
        semaphore: asyncio.Semaphore,
        completed: Set[str],
    ) -> None:
        async with semaphore:
            record.status = StepStatus.RUNNING
            record.started_at = utcnow()
            try:
                record.result = await self.execute_step(step)
                record.status = StepStatus.COMPLETED
                record.completed_at = utcnow()
                completed.add(step.id)
                LOGGER.info(f"  Step {step.order} completed")
                await self._progress(step, record)
                return
            except ToolReportedFailure as e:
                record.result = e.result
                self._fail(step, record, str(e), completed)
            except Exception as e:
                self._fail(step, record, str(e), completed)

        # A failure while reporting the failure escapes to schedule() once the round is over.
        await self._progress(step, record)

    async def _progress(self, step: PlanStep, record: ExecutionStep) -> None:
        if self._emit is None:
            return
        payload: Dict[str, Any] = {"stepId": step.id, "stepOrder": step.order, "status": record.status.value}
        if record.status == StepStatus.COMPLETED:
            payload["result"] = record.result
        else:
            payload["error"] = record.error
        await self._emit("executor.step.progress", payload)

    @staticmethod
    def _fail(step: PlanStep, record: ExecutionStep, error: str, completed: Set[str]) -> None:
        record.status = StepStatus.FAILED
        record.error = error
        record.completed_at = utcnow()
        completed.discard(step.id)
        LOGGER.warning(f"  Step {step.order} failed: {error}")

    async def execute_step(self, step: PlanStep) -> Any:
        """Run one step. Manual steps return a descriptive payload without calling any tool."""
        if not step.tool:
            return manual_result(step)

        params = step.parameters or {}
        try:
            validation = await self.tools.validate(step.tool, params)
            if not validation.valid:
                raise ToolExecutionError(f"Tool validation failed: {', '.join(validation.errors or [])}")
            outcome = await self.tools.invoke(step.tool, params)
        except Exception as e:
            raise ToolExecutionError(f"Tool execution failed: {e}") from e

        result = outcome.to_payload()
        if self.fail_on_tool_error and not outcome.success:
            raise ToolReportedFailure(f"Tool reported failure: {outcome.error or 'unknown error'}", result)
        return result


def build_execute_node(scheduler: StepScheduler, emit: Optional[EmitFn] = None):
    """Create the graph node that runs one scheduling pass per iteration."""

    async def execute_node(state: Dict[str, Any]) -> Dict[str, Any]:
        plan: Plan = state["plan"]
        iteration = state.get("iteration", 0) + 1

        if emit is not None:
            await emit("executor.started", {"planId": plan.id, "iteration": iteration})
        execution = await scheduler.schedule(plan)
        if emit is not None:
            await emit("executor.completed", {
                "executionId": execution.id,
                "status": execution.status.value,
                "iteration": iteration,
            })
        return {"execution": execution, "iteration": iteration}

    return execute_node
