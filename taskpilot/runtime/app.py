"""Runtime assembly: settings → kernel → provider → handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from taskpilot.config.settings import Settings, get_settings
from taskpilot.handlers import AgentHandler, AskHandler, ModeHandler, ModeRouter, PlanHandler
from taskpilot.kernel.selector import BackendSelector, Kernel
from taskpilot.llm.factory import build_model_resolver, completion_config_from_settings
from taskpilot.llm.provider import CompletionProvider, LangChainCompletionProvider
from taskpilot.schema import ModeSelection

LOGGER = logging.getLogger(__name__)


@dataclass
class Application:
    settings: Settings
    kernel: Kernel
    provider: CompletionProvider
    router: ModeRouter
    handlers: Dict[str, ModeHandler]

    async def handle(
        self,
        *,
        user_id: str,
        query: str,
        session_id: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> tuple[ModeSelection, Any]:
        """Route the query (honouring an explicit mode) and run the chosen handler."""
        context = []
        if session_id:
            context = (await self.kernel.context.get_context(session_id)).messages
        selection = await self.router.route(query, context, explicit_mode=mode)
        result = await self.handlers[selection.mode].handle(user_id=user_id, query=query, session_id=session_id)
        return selection, result


def build_application(
    settings: Optional[Settings] = None,
    *,
    provider: Optional[CompletionProvider] = None,
    kernel: Optional[Kernel] = None,
) -> Application:
    """Build the kernel, completion provider, router and handlers from settings."""
    settings = settings or get_settings()
    LOGGER.info("Building application...")

    kernel = kernel or BackendSelector(settings).build()
    LOGGER.info(f"  - Kernel variants: {kernel.variants}")

    provider = provider or LangChainCompletionProvider(build_model_resolver(settings.models))
    config = completion_config_from_settings(settings.models)

    handlers: Dict[str, ModeHandler] = {
        "ask": AskHandler(kernel, provider, settings, config),
        "plan": PlanHandler(kernel, provider, settings, config),
        "agent": AgentHandler(kernel, provider, settings, config),
    }
    return Application(
        settings=settings,
        kernel=kernel,
        provider=provider,
        router=ModeRouter(provider, config),
        handlers=handlers,
    )
