"""Utility helpers: logging setup and the error hierarchy."""

from .error_handler import (
    BackendInitializationError,
    CompletionError,
    InputValidationError,
    OrchestrationError,
    TaskPilotError,
    ToolExecutionError,
    ToolTransportError,
    handle_model_error,
)
from .logging_utils import setup_logging

__all__ = [
    "BackendInitializationError",
    "CompletionError",
    "InputValidationError",
    "OrchestrationError",
    "TaskPilotError",
    "ToolExecutionError",
    "ToolTransportError",
    "handle_model_error",
    "setup_logging",
]
