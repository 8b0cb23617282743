"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的两端：
- 将可用操作暴露给 LLM（ToolDef / ToolParam）。
- 保存模型发起的调用请求及其执行结果（ToolCall / ToolResult）。
"""

import json
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ToolParam:
    """单个操作参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class ToolDef:
    """一个可供 LLM 调用的操作定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam]


@dataclass(frozen=True)
class ToolCall:
    """模型发起的一次工具调用请求。

    - name: 组合标识 ``<tool>-<operation>``。
    - arguments: 模型给出的原始参数（通常是 JSON 字符串），
      只在分发执行时才解码。
    """

    id: str
    name: str
    arguments: Any = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], index: int = 0) -> "ToolCall":
        """从 OpenAI 风格的 ``{"id", "function": {"name", "arguments"}}`` 字典构造。"""

        func = payload.get("function") or {}
        arguments = func.get("arguments", payload.get("arguments", ""))
        if isinstance(arguments, dict):
            arguments = json.dumps(arguments, ensure_ascii=False)
        return cls(
            id=payload.get("id") or f"tool_call_{index}",
            name=func.get("name") or payload.get("name") or "",
            arguments=arguments if arguments is not None else "",
        )

    def to_payload(self) -> Dict[str, Any]:
        arguments = self.arguments
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments, ensure_ascii=False)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


@dataclass
class ToolResult:
    """工具执行结果的封装（文本形式）。"""

    call_id: str
    content: str
