"""Runtime assembly: the orchestrator and the application wiring."""

from .orchestrator import Orchestrator

__all__ = ["Orchestrator"]
