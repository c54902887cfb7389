"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from langchain_core.language_models import FakeListChatModel  # noqa: E402

from taskpilot.config.settings import BackendSettings, Settings  # noqa: E402
from taskpilot.kernel.context import SqliteContextStore  # noqa: E402
from taskpilot.kernel.events import InMemoryEventBus  # noqa: E402
from taskpilot.kernel.memory import LocalMemory  # noqa: E402
from taskpilot.kernel.selector import Kernel  # noqa: E402
from taskpilot.kernel.streams import SSEStreamManager  # noqa: E402
from taskpilot.llm.provider import CompletionConfig, LangChainCompletionProvider  # noqa: E402
from taskpilot.tools.builtin import calculator, now  # noqa: E402
from taskpilot.tools.registry import LocalToolRegistry  # noqa: E402


class EventRecorder:
    """Collects every event published on a bus."""

    def __init__(self):
        self.events: List[tuple] = []

    def __call__(self, topic, payload, context):
        self.events.append((topic, payload, context))

    @property
    def topics(self) -> List[str]:
        return [topic for topic, _, _ in self.events]

    def payloads(self, topic: str) -> List[Dict[str, Any]]:
        return [payload for t, payload, _ in self.events if t == topic]


@pytest.fixture
def completion_config():
    return CompletionConfig(model="gpt-test", temperature=0.7, max_tokens=500)


@pytest.fixture
def scripted_provider():
    """Build a provider whose chat model answers with the given responses in order."""

    def factory(*responses: str) -> LangChainCompletionProvider:
        model = FakeListChatModel(responses=list(responses))
        return LangChainCompletionProvider(lambda _model_id: model)

    return factory


@pytest.fixture
def tool_registry():
    return LocalToolRegistry([now, calculator])


@pytest.fixture
def settings(tmp_path):
    return Settings(
        backends=BackendSettings(
            context_store_type="sqlite",
            context_db_path=str(tmp_path / "contexts.db"),
            context_store_path=str(tmp_path / "contexts"),
        )
    )


@pytest.fixture
def event_recorder():
    return EventRecorder()


@pytest.fixture
def kernel(tmp_path, tool_registry, event_recorder):
    bus = InMemoryEventBus()
    bus.subscribe("*", event_recorder)
    return Kernel(
        tools=tool_registry,
        context=SqliteContextStore(str(tmp_path / "kernel.db")),
        memory=LocalMemory(),
        events=bus,
        streams=SSEStreamManager(),
        variants={"tools": "local", "context": "sqlite", "memory": "local", "events": "memory", "streams": "sse"},
    )
