"""Text-completion providers."""

from .factory import build_chat_model, build_model_resolver, completion_config_from_settings
from .provider import (
    Completion,
    CompletionConfig,
    CompletionProvider,
    LangChainCompletionProvider,
    ModelResolver,
)

__all__ = [
    "Completion",
    "CompletionConfig",
    "CompletionProvider",
    "LangChainCompletionProvider",
    "ModelResolver",
    "build_chat_model",
    "build_model_resolver",
    "completion_config_from_settings",
]
