"""Top-level package exports for taskpilot."""

from .runtime.app import Application, build_application
from .runtime.orchestrator import Orchestrator

__all__ = ["Application", "Orchestrator", "build_application"]
