"""Mode handlers and the mode router."""

from .agent import AgentHandler
from .ask import AskHandler
from .base import ModeHandler
from .plan import PlanHandler
from .router import ModeRouter, heuristic_mode

__all__ = ["AgentHandler", "AskHandler", "ModeHandler", "ModeRouter", "PlanHandler", "heuristic_mode"]
