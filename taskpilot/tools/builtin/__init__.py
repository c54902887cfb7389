"""Built-in tools available to the in-process registry."""

from .calc import calculator
from .now import now

BUILTIN_TOOLS = {
    "calculator": calculator,
    "now": now,
}

__all__ = ["BUILTIN_TOOLS", "calculator", "now"]
