"""Assistant Core 顶层包。

该包提供可调用工具的对话助手核心实现，
包括消息与 Thread 模型、工具注册与分发、Provider 适配、
以及负责调用模型并回填工具结果的 Assistant 循环。
"""

from assistant_core.agents.assistant import Assistant
from assistant_core.domain.models import Message
from assistant_core.domain.thread import Thread
from assistant_core.tools.base import Tool
from assistant_core.tools.calculator import Calculator

__all__ = ["Assistant", "Calculator", "Message", "Thread", "Tool"]
