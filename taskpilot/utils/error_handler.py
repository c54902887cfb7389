"""Exception hierarchy and error translation helpers for taskpilot."""

from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)


class TaskPilotError(Exception):
    """Base exception for taskpilot errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class InputValidationError(TaskPilotError):
    """Request rejected before any model or tool call."""
    pass


class CompletionError(TaskPilotError):
    """Error during a text-completion call."""
    pass


class ToolExecutionError(TaskPilotError):
    """Error while validating or invoking a tool for a plan step."""
    pass


class ToolTransportError(TaskPilotError):
    """The remote tool service could not be reached or answered garbage.

    Kept apart from tool-reported failures, which come back as a failed
    ToolOutcome instead of an exception.
    """
    pass


class BackendInitializationError(TaskPilotError):
    """A kernel backend could not be constructed."""
    pass


class OrchestrationError(TaskPilotError):
    """The execute/reflect loop produced no execution."""
    pass


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    error_str = str(error).lower()

    if "rate_limit" in error_str or "rate limit" in error_str or "429" in error_str:
        return "Rate limit exceeded. Please try again later."

    if "timeout" in error_str or "timed out" in error_str:
        return "Request timed out. Please try again."

    if "context_length" in error_str or "maximum context" in error_str:
        return "Conversation is too long. Please start a new session."

    if "invalid_api_key" in error_str or "authentication" in error_str or "401" in error_str:
        return "Invalid API credentials. Please contact the administrator."

    if "quota" in error_str or "insufficient" in error_str:
        return "Model service quota exhausted. Please contact the administrator."

    if "model_not_found" in error_str or "invalid model" in error_str or "does not exist" in error_str:
        return "Invalid model configuration. Please check the model id."

    return f"Model service temporarily unavailable: {error}"
