"""Unit tests for environment-bound settings and the tool config loader."""

import pytest
from pydantic import ValidationError

from taskpilot.config.settings import (
    BackendSettings,
    ModelSettings,
    OrchestrationSettings,
    Settings,
)
from taskpilot.tools.config_loader import load_tool_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "MODEL_ID", "MODEL_NAME", "MODEL_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY",
        "MAX_ITERATIONS", "ORCHESTRATION_MAX_ITERATIONS", "CONTEXT_STORE_TYPE", "CONTEXT_MANAGER_TYPE",
        "EVENT_BUS_TYPE", "REMOTE_TOOLS_ARGS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.models.model_id == "gpt-4o-mini"
        assert settings.orchestration.max_iterations == 3
        assert settings.orchestration.fail_on_tool_error is True
        assert settings.backends.context_store_type == "sqlite"
        assert settings.backends.event_bus_type == "memory"

    def test_environment_aliases(self, monkeypatch):
        monkeypatch.setenv("MODEL_NAME", "llama3.1")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("MAX_ITERATIONS", "5")
        monkeypatch.setenv("CONTEXT_MANAGER_TYPE", "vector")

        assert ModelSettings().model_id == "llama3.1"
        assert ModelSettings().api_key == "sk-env"
        assert OrchestrationSettings().max_iterations == 5
        assert BackendSettings().context_store_type == "vector"

    def test_list_values_from_json(self, monkeypatch):
        monkeypatch.setenv("REMOTE_TOOLS_ARGS", '["-m", "tool_server"]')
        assert BackendSettings().remote_tools_args == ["-m", "tool_server"]

    def test_env_file_is_read(self, tmp_path):
        (tmp_path / ".env").write_text("EVENT_BUS_TYPE=none\n", encoding="utf-8")
        assert BackendSettings().event_bus_type == "none"

    @pytest.mark.parametrize("value", ["0", "21"])
    def test_iteration_bounds(self, monkeypatch, value):
        monkeypatch.setenv("MAX_ITERATIONS", value)
        with pytest.raises(ValidationError):
            OrchestrationSettings()


class TestToolConfig:
    def test_packaged_config_enables_builtins(self):
        config = load_tool_config()
        assert {"now", "calculator"} <= set(config.get_enabled_builtin_tools())

    def test_disabled_and_bare_entries(self, tmp_path, monkeypatch):
        path = tmp_path / "tools.yaml"
        path.write_text(
            "builtin:\n"
            "  now:\n"
            "  calculator:\n"
            "    enabled: false\n"
            "mcp:\n"
            "  env:\n"
            "    TOKEN: ${TOOL_TOKEN}\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("TOOL_TOKEN", "secret")

        config = load_tool_config(path)

        assert config.get_enabled_builtin_tools() == ["now"]
        assert config.get_mcp_env() == {"TOKEN": "secret"}

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_tool_config(tmp_path / "absent.yaml")
        assert config.get_enabled_builtin_tools() == ["now", "calculator"]
        assert config.get_mcp_env() == {}
