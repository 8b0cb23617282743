"""模型客户端能力协议。

Assistant 不直接依赖任何厂商 SDK，只依赖此协议：
任何具备 ``chat(req) -> ChatResult`` 方法的对象均可作为模型客户端。
"""

from typing import Protocol, runtime_checkable
from assistant_core.domain.models import ChatRequest, ChatResult


@runtime_checkable
class ProviderClient(Protocol):
    """LLM Provider 客户端。

    实现方以 ``req`` 中的完整消息历史执行一次非流式补全，
    返回解析后的 ChatResult；通常还会暴露用于日志的 ``name``。
    """

    def chat(self, req: ChatRequest) -> ChatResult:
        ...
