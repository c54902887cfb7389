"""Tool capability backends and helpers."""

from .catalog import ToolCatalogCache
from .config_loader import ToolConfig, load_tool_config
from .registry import LocalToolRegistry, ToolCapability, spec_from_tool
from .schema import ToolInputSchema, ToolOutcome, ToolSpec, ValidationResult
from .validation import filter_catalog, validate_parameters

__all__ = [
    "LocalToolRegistry",
    "ToolCapability",
    "ToolCatalogCache",
    "ToolConfig",
    "ToolInputSchema",
    "ToolOutcome",
    "ToolSpec",
    "ValidationResult",
    "filter_catalog",
    "load_tool_config",
    "spec_from_tool",
    "validate_parameters",
]
