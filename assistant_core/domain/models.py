"""统一的对话与模型交互数据模型。

Assistant、工具执行器与各 Provider 客户端共享以下结构：

- Message: 一条对话消息（system/user/assistant/tool）。
- ChatRequest: Assistant 交给模型客户端的一次请求。
- ChatResult: 客户端解析后的统一响应。

Provider 适配层负责在厂商 JSON 与这些模型之间转换，
Provider 之上的代码不会接触厂商原始报文。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, get_args

from assistant_core.domain.exceptions import ValidationError
from assistant_core.tools.definitions import ToolCall, ToolDef


# 消息角色（与 OpenAI 风格的 role 字段对应）
Role = Literal["system", "user", "assistant", "tool"]
ROLES: Tuple[str, ...] = get_args(Role)


@dataclass(frozen=True)
class Message:
    """一条对话消息，构造后不可修改。

    - role: 取值见 ROLES。
    - content: 文本内容；assistant 消息只携带工具调用时可以为空。
    - tool_calls: 模型发起的工具调用，仅 assistant 消息允许。
      传入 ToolCall 或 OpenAI 风格 dict 的列表时统一转换为 tuple。
    - tool_call_id: tool 消息所响应的调用 ID，仅 tool 消息允许且必填。
    - meta: 附加元数据（usage、provider 等），不会发给模型。
    """

    role: Role
    content: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValidationError(
                code="INVALID_ROLE",
                message=f"role must be one of {', '.join(ROLES)}; got {self.role!r}",
            )
        if self.content is None:
            object.__setattr__(self, "content", "")
        calls: List[ToolCall] = []
        for idx, call in enumerate(self.tool_calls or ()):
            if isinstance(call, ToolCall):
                calls.append(call)
            elif isinstance(call, dict):
                calls.append(ToolCall.from_payload(call, idx))
            else:
                raise ValidationError(
                    code="INVALID_MESSAGE",
                    message=f"tool_calls entries must be ToolCall or dict; got {type(call).__name__}",
                )
        object.__setattr__(self, "tool_calls", tuple(calls))
        if calls and self.role != "assistant":
            raise ValidationError(
                code="INVALID_MESSAGE",
                message="tool_calls are only allowed on assistant messages",
            )
        if self.role == "tool" and not self.tool_call_id:
            raise ValidationError(
                code="INVALID_MESSAGE",
                message="tool messages require a tool_call_id",
            )
        if self.role != "tool" and self.tool_call_id:
            raise ValidationError(
                code="INVALID_MESSAGE",
                message="tool_call_id is only allowed on tool messages",
            )


@dataclass
class ChatRequest:
    """一次模型调用。

    model 为逻辑模型名，由 Provider registry 映射为厂商模型；
    为 None 时使用客户端配置的默认模型。
    """

    messages: List[Message]
    tools: Optional[List[ToolDef]] = None
    tool_choice: Literal["auto", "none", "required"] = "auto"
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前只使用 index=0 的一条）。"""

    index: int
    message: Message
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次模型调用的解析结果。

    - provider / model: 实际路由到的 Provider 与逻辑模型名。
    - choices: 一个或多个候选回答。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试。
    """

    provider: str
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
