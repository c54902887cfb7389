"""Stages and the execute/reflect graph."""

from .builder import build_orchestration_graph, recursion_limit_for
from .state import OrchestrationState

__all__ = ["OrchestrationState", "build_orchestration_graph", "recursion_limit_for"]
