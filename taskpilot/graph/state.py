"""Shared state definition for the execute/reflect graph."""

from __future__ import annotations

import operator
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from taskpilot.schema import Execution, Plan, Reflection


class OrchestrationState(TypedDict, total=False):
    """State carried across execute/reflect iterations.

    The plan is fixed for the whole run; every iteration re-executes it as is.
    """

    query: str
    plan: Plan

    iteration: int        # Completed execution passes
    max_iterations: int   # Hard limit on execution passes

    execution: Optional[Execution]    # Latest execution
    reflection: Optional[Reflection]  # Latest reflection
    history: Annotated[List[Dict[str, Any]], operator.add]  # One entry per iteration
