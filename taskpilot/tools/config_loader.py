"""Tool configuration loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "tools.yaml"


class ToolConfig:
    """Tool configuration manager backed by tools.yaml."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.config = self._load_config()

    def _load_config(self) -> dict:
        if not self.config_path.exists():
            LOGGER.warning(f"Tools config not found: {self.config_path}, using defaults")
            return self._default_config()

        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
        LOGGER.info(f"Loaded tools configuration from {self.config_path}")
        return config or {}

    def _default_config(self) -> dict:
        return {
            "builtin": {
                "now": {"enabled": True},
                "calculator": {"enabled": True},
            },
            "mcp": {"env": {}},
        }

    def get_enabled_builtin_tools(self) -> List[str]:
        """Names of builtin tools whose entry is enabled (a bare entry counts as enabled)."""
        builtin = self.config.get("builtin") or {}
        enabled = []
        for name, settings in builtin.items():
            if settings is None or (isinstance(settings, dict) and settings.get("enabled", True)):
                enabled.append(name)
        return enabled

    def get_mcp_env(self) -> Dict[str, str]:
        env = (self.config.get("mcp") or {}).get("env") or {}
        return {str(key): os.path.expandvars(str(value)) for key, value in env.items()}


def load_tool_config(config_path: Optional[Path] = None) -> ToolConfig:
    return ToolConfig(config_path)
