"""Tool capability interface and the in-process registry."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from langchain_core.tools import BaseTool

from taskpilot.utils.logging_utils import log_tool_call, log_tool_result

from .schema import ToolOutcome, ToolSpec, ValidationResult
from .validation import filter_catalog, validate_parameters

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class ToolCapability(Protocol):
    """What the scheduler and handlers need from a tool backend."""

    async def discover(self, query: Optional[str] = None, limit: int = 100) -> List[ToolSpec]:
        ...

    async def validate(self, name: str, params: Any) -> ValidationResult:
        ...

    async def invoke(self, name: str, params: Dict[str, Any]) -> ToolOutcome:
        ...


def spec_from_tool(tool: BaseTool) -> ToolSpec:
    """Derive a ToolSpec from a LangChain tool's argument schema."""
    args_schema = tool.args_schema
    if isinstance(args_schema, dict):
        json_schema = args_schema
    elif args_schema is not None:
        json_schema = args_schema.model_json_schema()
    else:
        json_schema = tool.get_input_schema().model_json_schema()
    return ToolSpec.from_json_schema(tool.name, tool.description, json_schema)


class LocalToolRegistry:
    """Holds LangChain tools in-process and serves them as a ToolCapability."""

    def __init__(self, tools: Optional[Iterable[BaseTool]] = None) -> None:
        self._tools: Dict[str, BaseTool] = {}
        self._specs: Dict[str, ToolSpec] = {}
        if tools:
            for tool in tools:
                self.register_tool(tool)

    def register_tool(self, tool: BaseTool) -> None:
        self._tools[tool.name] = tool
        self._specs[tool.name] = spec_from_tool(tool)

    def get_tool(self, name: str) -> BaseTool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def list_tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    async def discover(self, query: Optional[str] = None, limit: int = 100) -> List[ToolSpec]:
        return filter_catalog(self._specs.values(), query, limit)

    async def validate(self, name: str, params: Any) -> ValidationResult:
        return validate_parameters(self._specs.get(name), name, params)

    async def invoke(self, name: str, params: Dict[str, Any]) -> ToolOutcome:
        tool = self._tools.get(name)
        if tool is None:
            return ToolOutcome(success=False, error=f"unknown tool: {name}")

        log_tool_call(LOGGER, name, params)
        try:
            data = await tool.ainvoke(dict(params))
        except Exception as e:
            LOGGER.warning(f"Tool {name} raised: {e}")
            log_tool_result(LOGGER, name, e, success=False)
            return ToolOutcome(success=False, error=str(e))

        log_tool_result(LOGGER, name, data)
        return ToolOutcome(success=True, data=data)
