"""Logging utilities for taskpilot."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


_PROMPT_MAX_LENGTH = {"value": None}


def setup_logging(
    level: int = logging.INFO,
    log_dir: str = "logs",
    prompt_max_length: Optional[int] = None,
) -> logging.Logger:
    """Setup logging configuration for taskpilot.

    Args:
        level: Console logging level (default: INFO)
        log_dir: Directory for the timestamped log file
        prompt_max_length: Default truncation for log_prompt (None keeps full prompts)

    Returns:
        Configured logger instance
    """
    _PROMPT_MAX_LENGTH["value"] = prompt_max_length

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"taskpilot_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger("taskpilot")
    logger.setLevel(logging.DEBUG)  # Child loggers filter at handler level
    logger.propagate = False

    logger.handlers = []

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("taskpilot session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def log_stage_entry(logger: logging.Logger, stage: str, query: str, **details: Any) -> None:
    """Log entry into a pipeline stage (thought, plan, execute, reflect)."""
    logger.info(f"\n{'#'*80}")
    logger.info(f"# ENTERING STAGE: {stage}")
    logger.info(f"{'#'*80}")
    logger.info(f"  - query: {query[:100]}{'...' if len(query) > 100 else ''}")
    for key, value in details.items():
        logger.info(f"  - {key}: {value}")


def log_stage_exit(logger: logging.Logger, stage: str, summary: Dict[str, Any]) -> None:
    """Log stage completion with a short summary of its output."""
    logger.info(f"# EXITING STAGE: {stage}")
    for key, value in summary.items():
        logger.info(f"  - {key}: {value}")


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: Optional[int] = None) -> None:
    """Log the prompt sent for a phase, truncated to max_length characters.

    Without max_length the length configured in setup_logging() applies.
    """
    if max_length is None:
        max_length = _PROMPT_MAX_LENGTH["value"]
    if max_length and len(prompt) > max_length:
        prompt = prompt[:max_length] + "... (truncated)"
    logger.debug(f"Prompt for {phase}:\n{prompt}")


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result with a truncated preview."""
    status = "success" if success else "failed"
    logger.info(f"Tool result: {tool_name} - {status}")

    result_str = str(result)
    if len(result_str) > 500:
        result_str = result_str[:500] + "... (truncated)"
    logger.debug(f"  Result: {result_str}")


def log_plan_created(logger: logging.Logger, plan: Dict[str, Any]) -> None:
    """Log plan creation details.

    Args:
        logger: Logger instance
        plan: Plan dictionary (camelCase, as dumped by alias)
    """
    logger.info("Plan created:")
    logger.info(f"  Confidence: {plan.get('confidence')}")
    logger.info(f"  Required tools: {plan.get('requiredTools', [])}")
    for step in plan.get("steps", []):
        deps = step.get("dependencies") or []
        logger.info(
            f"  Step {step.get('order')}: {step.get('description')} "
            f"(tool={step.get('tool') or 'manual'}, depends_on={deps})"
        )


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log routing decision.

    Args:
        logger: Logger instance
        from_node: Source node making the decision
        decision: Routing destination
        reason: Reason for the routing decision
    """
    logger.info(f"Routing decision from {from_node}: {decision}")
    if reason:
        logger.info(f"  Reason: {reason}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context."""
    logger.error(f"Error occurred: {type(error).__name__}: {error}")
    if context:
        logger.error(f"  Context: {context}")
    logger.debug("Full traceback:", exc_info=error)
