"""Text-completion interface and its LangChain chat-model adapter."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import Field

from taskpilot.schema import CamelModel, Message
from taskpilot.utils.error_handler import CompletionError, handle_model_error

LOGGER = logging.getLogger(__name__)

ModelResolver = Callable[[str], BaseChatModel]


class CompletionConfig(CamelModel):
    model: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1)
    system_prompt: Optional[str] = None

    def with_temperature(self, temperature: float) -> "CompletionConfig":
        return self.model_copy(update={"temperature": temperature})

    def with_max_tokens(self, max_tokens: int) -> "CompletionConfig":
        return self.model_copy(update={"max_tokens": max_tokens})


class Completion(CamelModel):
    content: str
    model: str
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None


class CompletionProvider(Protocol):
    async def complete(
        self,
        prompt: str,
        history: Sequence[Message],
        config: CompletionConfig,
    ) -> Completion:
        ...


def _to_langchain(message: Message) -> BaseMessage:
    if message.role == "assistant":
        return AIMessage(content=message.content)
    if message.role == "system":
        return SystemMessage(content=message.content)
    return HumanMessage(content=message.content)


def _content_text(content) -> str:
    """Flatten string or block-list message content into plain text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LangChainCompletionProvider:
    """Runs completions through LangChain chat models resolved by model id."""

    def __init__(self, model_resolver: ModelResolver):
        self._resolve = model_resolver

    def _build_messages(self, prompt: str, history: Sequence[Message], config: CompletionConfig) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if config.system_prompt:
            messages.append(SystemMessage(content=config.system_prompt))
        messages.extend(_to_langchain(message) for message in history)
        messages.append(HumanMessage(content=prompt))
        return messages

    async def complete(
        self,
        prompt: str,
        history: Sequence[Message],
        config: CompletionConfig,
    ) -> Completion:
        model = self._resolve(config.model)
        messages = self._build_messages(prompt, history, config)

        LOGGER.debug(f"Completion request: model={config.model} temperature={config.temperature} "
                     f"max_tokens={config.max_tokens} messages={len(messages)}")
        try:
            response = await model.ainvoke(
                messages,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
        except Exception as e:
            LOGGER.error(f"Completion call failed for {config.model}: {e}")
            raise CompletionError(f"Completion failed: {e}", user_message=handle_model_error(e)) from e

        content = _content_text(response.content)
        if not content.strip():
            raise CompletionError("Empty completion response", user_message="The model returned an empty response")

        usage = getattr(response, "usage_metadata", None) or {}
        metadata = getattr(response, "response_metadata", None) or {}
        return Completion(
            content=content,
            model=metadata.get("model_name") or config.model,
            tokens_used=usage.get("total_tokens"),
            finish_reason=metadata.get("finish_reason") or metadata.get("stop_reason"),
        )
