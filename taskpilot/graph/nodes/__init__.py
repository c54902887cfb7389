"""Stage implementations and graph node builders."""

from .executor import StepScheduler, build_execute_node
from .planner import generate_plan
from .reflection import build_reflect_node, reflect
from .thought import generate_thought

__all__ = [
    "StepScheduler",
    "build_execute_node",
    "build_reflect_node",
    "generate_plan",
    "generate_thought",
    "reflect",
]
