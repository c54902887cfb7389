"""Conditional routing for the execute/reflect loop."""

from __future__ import annotations

import logging
from typing import Literal

from taskpilot.utils.logging_utils import log_routing_decision

from .state import OrchestrationState

LOGGER = logging.getLogger(__name__)


def reflection_route(state: OrchestrationState) -> Literal["continue", "end"]:
    """Route after the reflect node.

    Returns:
        "continue": Execution failed, reflection asks for another pass and budget remains
        "end": Goal reached, reflection declined to iterate, or iterations exhausted
    """
    reflection = state.get("reflection")
    iteration = state.get("iteration", 0)
    max_iterations = state.get("max_iterations", 1)

    if reflection is None:
        decision, reason = "end", "No reflection available"
    elif reflection.success:
        decision, reason = "end", f"Goal achieved on iteration {iteration}"
    elif not reflection.should_iterate:
        decision, reason = "end", "Reflection did not request another iteration"
    elif iteration >= max_iterations:
        decision, reason = "end", f"Iteration limit reached ({iteration}/{max_iterations})"
    else:
        decision, reason = "continue", f"Re-running plan (iteration {iteration + 1}/{max_iterations})"

    log_routing_decision(LOGGER, "reflect", decision, reason)
    return decision
