"""工具协议。

一个工具是带唯一名称的能力单元，暴露一个或多个操作：
- 每个操作是同名方法，接收关键字参数并返回文本；
- 参数说明登记在 ``operations`` 的 ToolDef 中，
  模型通过 ``<tool>-<operation>`` 名称发现并调用它。
"""

from abc import ABC
from typing import Callable, ClassVar, Dict, List

from assistant_core.domain.exceptions import ToolNotFoundError
from .definitions import ToolDef


class Tool(ABC):
    """所有可被 Assistant 分发调用的工具基类。"""

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    operations: ClassVar[Dict[str, ToolDef]] = {}

    def get_operation(self, operation: str) -> Callable[..., object]:
        func = getattr(self, operation, None) if operation in self.operations else None
        if not callable(func):
            raise ToolNotFoundError(
                code="OPERATION_NOT_FOUND",
                message=f"Tool {self.name!r} has no operation {operation!r}",
                tool=self.name,
            )
        return func

    def tool_defs(self) -> List[ToolDef]:
        """返回以 ``<tool>-<operation>`` 命名的操作定义，供模型发现。"""

        return [
            ToolDef(
                name=f"{self.name}-{op_name}",
                description=op.description or self.description,
                params=op.params,
            )
            for op_name, op in self.operations.items()
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
