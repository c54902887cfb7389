"""Command-line entry point: one-shot query or an interactive session."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from taskpilot.config.settings import get_settings
from taskpilot.kernel.events import EventContext
from taskpilot.runtime.app import Application, build_application
from taskpilot.schema import AskResponse, ExecutionResponse, PlanResponse
from taskpilot.utils.error_handler import TaskPilotError
from taskpilot.utils.logging_utils import setup_logging

LOGGER = logging.getLogger(__name__)

MODES = ("ask", "plan", "agent")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="taskpilot",
        description="Plan and execute multi-step tasks with tools.",
    )
    parser.add_argument("query", nargs="?", help="Query to run once; omit for an interactive session")
    parser.add_argument("--mode", choices=MODES, help="Force a mode instead of routing automatically")
    parser.add_argument("--user", default="cli-user", help="User id attached to requests")
    parser.add_argument("--session", help="Session id to continue")
    parser.add_argument("--events", action="store_true", help="Print lifecycle notifications as they happen")
    return parser.parse_args(argv)


def render_result(result: Any) -> str:
    if isinstance(result, AskResponse):
        return result.response
    if isinstance(result, PlanResponse):
        lines = [f"Plan (confidence {result.plan.confidence:.2f}):"]
        for step in result.plan.steps:
            tool = f" [{step.tool}]" if step.tool else ""
            deps = f" after {step.dependencies}" if step.dependencies else ""
            lines.append(f"  {step.order}. {step.description}{tool}{deps}")
        lines.extend(f"  ! {warning}" for warning in result.warnings)
        return "\n".join(lines)
    if isinstance(result, ExecutionResponse):
        lines = [
            f"Execution {result.execution.status.value} after {result.iterations} iteration(s)",
            f"Success: {result.reflection.success}",
            result.reflection.analysis,
        ]
        for record in result.execution.steps:
            step = result.plan.step_by_id(record.plan_step_id)
            detail = record.error or json.dumps(record.result, default=str)[:200]
            lines.append(f"  {step.order if step else '?'}. {record.status.value}: {detail}")
        return "\n".join(lines)
    return str(result)


def print_event(topic: str, payload: Dict[str, Any], context: EventContext) -> None:
    print(f"  · {topic} {json.dumps(payload, default=str)[:160]}")


async def run_once(app: Application, args: argparse.Namespace, query: str, session_id: str) -> None:
    try:
        selection, result = await app.handle(user_id=args.user, query=query, session_id=session_id, mode=args.mode)
    except TaskPilotError as e:
        print(f"Error: {e.user_message}")
        return
    print(f"[{selection.mode}] {render_result(result)}")


async def interactive(app: Application, args: argparse.Namespace) -> None:
    session_id = args.session or str(uuid.uuid4())
    print(f"taskpilot session {session_id[:8]}... (/quit to exit, /reset for a new session, /mode <ask|plan|agent|auto>)")

    while True:
        try:
            loop = asyncio.get_running_loop()
            user_input = await loop.run_in_executor(None, lambda: input("You> ").strip())
        except (KeyboardInterrupt, EOFError):
            print()
            break

        if not user_input:
            continue
        if user_input.lower() in {"/quit", "/exit"}:
            break
        if user_input.lower() == "/reset":
            session_id = str(uuid.uuid4())
            print(f"New session {session_id[:8]}...")
            continue
        if user_input.lower().startswith("/mode"):
            choice = user_input[5:].strip().lower()
            args.mode = choice if choice in MODES else None
            print(f"Mode: {args.mode or 'auto'}")
            continue

        await run_once(app, args, user_input, session_id)


async def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(
        level=getattr(logging, settings.observability.log_level.upper(), logging.INFO),
        log_dir=settings.observability.log_dir,
        prompt_max_length=settings.observability.log_prompt_max_length,
    )
    app = build_application(settings)
    if args.events:
        app.kernel.events.subscribe("*", print_event)

    if args.query:
        await run_once(app, args, args.query, args.session or str(uuid.uuid4()))
    else:
        await interactive(app, args)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
