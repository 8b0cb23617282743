"""面向应用层的辅助函数。

根据配置组装 Assistant，应用无需自行拼装 provider、thread 与 tools。
"""

from typing import Optional, Sequence

from assistant_core.agents.assistant import Assistant
from assistant_core.domain.thread import Thread
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.providers import create_provider
from assistant_core.tools.base import Tool


def create_assistant(
    tools: Sequence[Tool] = (),
    instructions: Optional[str] = None,
    thread: Optional[Thread] = None,
    provider_name: Optional[str] = None,
    auto_tool_execution: Optional[bool] = None,
) -> Assistant:
    """基于配置中（或指定名称）的 Provider 构建 Assistant。"""
    return Assistant(
        llm=create_provider(provider_name),
        thread=thread if thread is not None else Thread(),
        tools=tools,
        instructions=instructions,
        auto_tool_execution=auto_tool_execution,
    )


def ask(
    user_input: str,
    tools: Sequence[Tool] = (),
    instructions: Optional[str] = None,
    provider_name: Optional[str] = None,
) -> str:
    """在新会话上单次提问，自动执行工具。

    返回最后一条 assistant 消息的内容。
    """
    assistant = create_assistant(
        tools=tools,
        instructions=instructions,
        provider_name=provider_name,
        auto_tool_execution=True,
    )
    assistant.add_message(content=user_input)
    messages = assistant.run()
    answer = messages[-1].content if messages and messages[-1].role == "assistant" else ""
    logger.info("ask completed", extra={"extra": {"message_count": len(messages)}})
    return answer
