"""Tool catalog types exchanged with tool backends."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from taskpilot.schema import CamelModel


class ToolInputSchema(CamelModel):
    """JSON-schema style description of a tool's parameters."""

    type: Literal["object"] = "object"
    properties: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class ToolSpec(CamelModel):
    name: str = Field(min_length=1)
    description: str = ""
    input_schema: ToolInputSchema = Field(default_factory=ToolInputSchema)

    @classmethod
    def from_json_schema(cls, name: str, description: str, schema: Optional[Dict[str, Any]]) -> "ToolSpec":
        """Build a spec from a raw JSON schema (pydantic, MCP or remote catalog)."""
        schema = schema or {}
        return cls(
            name=name,
            description=description or "",
            input_schema=ToolInputSchema(
                properties={
                    key: value if isinstance(value, dict) else {}
                    for key, value in (schema.get("properties") or {}).items()
                },
                required=[item for item in schema.get("required") or [] if isinstance(item, str)],
            ),
        )


class ValidationResult(CamelModel):
    valid: bool
    errors: Optional[List[str]] = None


class ToolOutcome(CamelModel):
    """What a tool invocation returned. Tool-level failures use success=False."""

    success: bool
    data: Any = None
    error: Optional[str] = None
