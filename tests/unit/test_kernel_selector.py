"""Unit tests for configuration-driven backend selection."""

import pytest

from taskpilot.config.settings import BackendSettings, Settings
from taskpilot.kernel.context import LocalFileContextStore, SqliteContextStore, VectorContextStore
from taskpilot.kernel.events import HttpEventBus, InMemoryEventBus, NoOpEventBus
from taskpilot.kernel.memory import LocalMemory, VectorMemory
from taskpilot.kernel.selector import BackendSelector
from taskpilot.kernel.streams import BufferedStreamManager, SSEStreamManager
from taskpilot.tools.registry import LocalToolRegistry
from taskpilot.tools.remote import RemoteToolRegistry
from taskpilot.utils.error_handler import BackendInitializationError


def settings_with(tmp_path, **overrides):
    values = {
        "context_db_path": str(tmp_path / "contexts.db"),
        "context_store_path": str(tmp_path / "contexts"),
    }
    values.update(overrides)
    return Settings(backends=BackendSettings(**values))


class TestBackendSelector:
    def test_defaults(self, settings):
        kernel = BackendSelector(settings).build()

        assert isinstance(kernel.tools, LocalToolRegistry)
        assert isinstance(kernel.context, SqliteContextStore)
        assert isinstance(kernel.memory, LocalMemory)
        assert isinstance(kernel.events, InMemoryEventBus)
        assert isinstance(kernel.streams, SSEStreamManager)
        assert kernel.variants == {
            "tools": "local", "context": "sqlite", "memory": "local", "events": "memory", "streams": "sse",
        }

    def test_builtin_tools_registered_from_config(self, settings):
        kernel = BackendSelector(settings).build()
        names = {tool.name for tool in kernel.tools.list_tools()}
        assert {"now", "calculator"} <= names

    def test_alternative_variants(self, tmp_path):
        settings = settings_with(
            tmp_path,
            context_store_type="LOCAL",
            event_bus_type="none",
            stream_manager_type="buffer",
        )
        kernel = BackendSelector(settings).build()

        assert isinstance(kernel.context, LocalFileContextStore)
        assert isinstance(kernel.events, NoOpEventBus)
        assert isinstance(kernel.streams, BufferedStreamManager)

    def test_vector_backends_with_valid_credentials(self, tmp_path):
        settings = settings_with(
            tmp_path,
            context_store_type="vector",
            memory_system_type="vector",
            vector_api_url="https://vectors.test",
            vector_api_key="sk-test_12345678",
        )
        kernel = BackendSelector(settings).build()

        assert isinstance(kernel.context, VectorContextStore)
        assert isinstance(kernel.memory, VectorMemory)

    @pytest.mark.parametrize("api_key", [None, "", "short", "has spaces in it"])
    def test_vector_falls_back_once(self, tmp_path, api_key):
        settings = settings_with(
            tmp_path,
            context_store_type="vector",
            memory_system_type="vector",
            vector_api_url="https://vectors.test",
            vector_api_key=api_key,
        )
        kernel = BackendSelector(settings).build()

        assert isinstance(kernel.context, SqliteContextStore)
        assert isinstance(kernel.memory, LocalMemory)
        assert kernel.variants["context"] == "sqlite"
        assert kernel.variants["memory"] == "local"

    def test_fallback_failure_is_fatal(self, tmp_path):
        def broken(_settings):
            raise OSError("disk full")

        settings = settings_with(tmp_path, context_store_type="vector")
        selector = BackendSelector(settings, factories={"context": {"sqlite": broken}})

        with pytest.raises(BackendInitializationError, match="disk full"):
            selector.build()

    def test_event_bus_without_url_degrades_to_noop(self, tmp_path):
        kernel = BackendSelector(settings_with(tmp_path, event_bus_type="http")).build()
        assert isinstance(kernel.events, NoOpEventBus)
        assert kernel.variants["events"] == "none"

    def test_event_bus_with_url(self, tmp_path):
        kernel = BackendSelector(settings_with(
            tmp_path, event_bus_type="http", event_bus_url="https://hooks.test/events",
        )).build()
        assert isinstance(kernel.events, HttpEventBus)

    def test_unknown_event_bus_degrades_to_noop(self, tmp_path):
        kernel = BackendSelector(settings_with(tmp_path, event_bus_type="kafka")).build()
        assert isinstance(kernel.events, NoOpEventBus)

    def test_remote_tools_over_http(self, tmp_path):
        kernel = BackendSelector(settings_with(
            tmp_path, tool_registry_type="remote", remote_tools_url="https://tools.test/rpc",
        )).build()
        assert isinstance(kernel.tools, RemoteToolRegistry)
        assert kernel.tools.catalog.loaded is False

    def test_remote_tools_without_url_is_fatal(self, tmp_path):
        with pytest.raises(BackendInitializationError, match="REMOTE_TOOLS_URL"):
            BackendSelector(settings_with(tmp_path, tool_registry_type="remote")).build()

    @pytest.mark.parametrize("field,subsystem", [
        ("tool_registry_type", "tools"),
        ("context_store_type", "context"),
        ("memory_system_type", "memory"),
        ("stream_manager_type", "streams"),
    ])
    def test_unknown_variant_is_fatal(self, tmp_path, field, subsystem):
        with pytest.raises(BackendInitializationError, match=f"Unknown {subsystem} backend"):
            BackendSelector(settings_with(tmp_path, **{field: "mystery"})).build()

    def test_factory_override(self, settings):
        custom = SSEStreamManager(queue_size=5)
        selector = BackendSelector(settings, factories={"streams": {"sse": lambda _s: custom}})
        assert selector.build().streams is custom
