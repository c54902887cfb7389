"""Configuration package."""

from .settings import (
    BackendSettings,
    ModelSettings,
    ObservabilitySettings,
    OrchestrationSettings,
    Settings,
    get_settings,
)

__all__ = [
    "BackendSettings",
    "ModelSettings",
    "ObservabilitySettings",
    "OrchestrationSettings",
    "Settings",
    "get_settings",
]
