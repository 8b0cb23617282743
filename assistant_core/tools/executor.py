import inspect
import json
from typing import Any, Dict, Iterable, List

from assistant_core.domain.exceptions import (
    ConfigurationError,
    ToolArgumentsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from .base import Tool
from .definitions import ToolCall, ToolDef, ToolResult


class ToolExecutor:
    """Tool registry plus dispatch of model tool calls.

    The registry maps tool name to Tool and is fixed after construction. Every
    failure to resolve a call is raised as a DispatchError subclass.
    """

    def __init__(self, tools: Iterable[Tool]):
        registry: Dict[str, Tool] = {}
        for tool in tools:
            if not isinstance(tool.name, str) or not tool.name.strip():
                raise ConfigurationError(
                    code="INVALID_TOOL_NAME",
                    message=f"{type(tool).__name__} must define a non-empty name",
                )
            if tool.name in registry:
                raise ConfigurationError(
                    code="DUPLICATE_TOOL",
                    message=f"Tool name {tool.name!r} registered twice",
                )
            registry[tool.name] = tool
        self._tools = registry

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    @property
    def tools(self) -> List[Tool]:
        return list(self._tools.values())

    def tool_defs(self) -> List[ToolDef]:
        defs: List[ToolDef] = []
        for tool in self._tools.values():
            defs.extend(tool.tool_defs())
        return defs

    def execute(self, call: ToolCall) -> ToolResult:
        tool_name, operation_name = self._split_name(call.name)
        tool = self._tools.get(tool_name)
        if tool is None:
            raise ToolNotFoundError(
                code="TOOL_NOT_FOUND",
                message=f"Tool {tool_name!r} is not registered",
                tool_call_id=call.id,
            )
        operation = tool.get_operation(operation_name)
        arguments = self._parse_arguments(call)
        try:
            inspect.signature(operation).bind(**arguments)
        except TypeError as exc:
            raise ToolArgumentsError(
                code="INVALID_ARGUMENTS",
                message=f"{call.name}: {exc}",
                tool_call_id=call.id,
            ) from exc
        try:
            result = operation(**arguments)
        except Exception as exc:
            raise ToolExecutionError(
                code="TOOL_FAILED",
                message=f"{call.name} failed: {exc}",
                tool_call_id=call.id,
            ) from exc
        return ToolResult(call_id=call.id, content=self._format_result(result))

    @staticmethod
    def _split_name(name: str) -> tuple:
        tool_name, sep, operation = (name or "").rpartition("-")
        if not sep or not tool_name or not operation:
            raise ToolNotFoundError(
                code="MALFORMED_TOOL_NAME",
                message=f"Expected '<tool>-<operation>', got {name!r}",
            )
        return tool_name, operation

    @staticmethod
    def _parse_arguments(call: ToolCall) -> Dict[str, Any]:
        raw = call.arguments
        if raw is None or raw == "":
            return {}
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, (str, bytes)):
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ToolArgumentsError(
                    code="MALFORMED_ARGUMENTS",
                    message=f"{call.name}: arguments are not valid JSON ({exc.msg})",
                    tool_call_id=call.id,
                ) from exc
            if isinstance(decoded, dict):
                return decoded
        raise ToolArgumentsError(
            code="MALFORMED_ARGUMENTS",
            message=f"{call.name}: arguments must be a JSON object",
            tool_call_id=call.id,
        )

    @staticmethod
    def _format_result(result: Any) -> str:
        if result is None:
            return ""
        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False, default=str)
