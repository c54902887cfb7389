"""Chat-model construction from settings.

The model id prefix selects the backend:
    claude-*  -> ChatAnthropic (optional langchain-anthropic package)
    gpt-*     -> ChatOpenAI
    otherwise -> ChatOpenAI against an OpenAI-compatible endpoint (Ollama by default)
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from taskpilot.config.settings import ModelSettings

from .provider import CompletionConfig, ModelResolver

LOGGER = logging.getLogger(__name__)

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434/v1"


def build_chat_model(
    model_id: str,
    *,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Instantiate the chat model class matching model_id's prefix."""
    lowered = model_id.lower()

    if lowered.startswith("claude-"):
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError as e:
            raise RuntimeError(
                "Claude models require the langchain-anthropic package. "
                "Install with: pip install 'taskpilot[anthropic]'"
            ) from e
        LOGGER.info(f"Model selected: {model_id} (anthropic)")
        kwargs = {"model": model_id, "temperature": temperature}
        if api_key:
            kwargs["api_key"] = api_key
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        return ChatAnthropic(**kwargs)

    if lowered.startswith("gpt-"):
        LOGGER.info(f"Model selected: {model_id} (openai)")
        return ChatOpenAI(
            model=model_id,
            api_key=api_key,
            base_url=base_url,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    LOGGER.info(f"Model selected: {model_id} (openai-compatible, {base_url or DEFAULT_OLLAMA_BASE_URL})")
    return ChatOpenAI(
        model=model_id,
        api_key=api_key or "ollama",
        base_url=base_url or DEFAULT_OLLAMA_BASE_URL,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def build_model_resolver(models: ModelSettings) -> ModelResolver:
    """Return a resolver that builds (and caches) one chat model per model id."""
    cache: Dict[str, BaseChatModel] = {}

    def resolve(model_id: str) -> BaseChatModel:
        if model_id not in cache:
            cache[model_id] = build_chat_model(
                model_id,
                api_key=models.api_key,
                base_url=models.base_url,
                temperature=models.temperature,
                max_tokens=models.max_tokens,
            )
        return cache[model_id]

    return resolve


def completion_config_from_settings(models: ModelSettings) -> CompletionConfig:
    return CompletionConfig(
        model=models.model_id,
        temperature=models.temperature,
        max_tokens=models.max_tokens,
        system_prompt=models.system_prompt,
    )
