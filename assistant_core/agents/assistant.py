"""Assistant 编排循环。

驱动一次会话：携带 Thread 历史调用模型，追加其回答，
分发模型请求的工具调用并回填输出，直到模型不再请求工具。
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from uuid import uuid4
import logging

from assistant_core.config.settings import settings
from assistant_core.domain.exceptions import ApiError, ConfigurationError, DispatchError, LoopExceededError
from assistant_core.domain.models import ChatRequest, ChatResult, ChatUsage, Message, Role
from assistant_core.domain.thread import Thread
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.providers.base import ProviderClient
from assistant_core.tools.base import Tool
from assistant_core.tools.definitions import ToolCall
from assistant_core.tools.executor import ToolExecutor


class Assistant:
    def __init__(
        self,
        llm: ProviderClient,
        thread: Thread,
        tools: Sequence[Tool] = (),
        instructions: Optional[str] = None,
        auto_tool_execution: Optional[bool] = None,
        max_rounds: Optional[int] = None,
        model: Optional[str] = None,
    ):
        if not isinstance(llm, ProviderClient) or not callable(getattr(llm, "chat", None)):
            raise ConfigurationError(
                code="INVALID_LLM",
                message=f"{type(llm).__name__} does not implement chat()",
            )
        if not isinstance(thread, Thread):
            raise ConfigurationError(
                code="INVALID_THREAD",
                message=f"thread must be a Thread instance, got {type(thread).__name__}",
            )
        tools = list(tools or ())
        invalid = [t for t in tools if not isinstance(t, Tool)]
        if invalid:
            raise ConfigurationError(
                code="INVALID_TOOLS",
                message=f"tools must be Tool instances; got {', '.join(type(t).__name__ for t in invalid)}",
            )
        executor = ToolExecutor(tools)
        if max_rounds is None:
            max_rounds = settings.max_tool_rounds
        if max_rounds < 1:
            raise ConfigurationError(code="INVALID_MAX_ROUNDS", message="max_rounds must be >= 1")

        self._llm = llm
        self._thread = thread
        self._executor = executor
        self._instructions = instructions
        self.auto_tool_execution = (
            settings.auto_tool_execution if auto_tool_execution is None else auto_tool_execution
        )
        self.max_rounds = max_rounds
        self.model = model

        if instructions:
            if not thread.messages:
                self._thread.append(Message(role="system", content=instructions))
            else:
                logger.info(
                    "Thread already has messages; instructions not inserted",
                    extra={"extra": {"message_count": len(thread.messages)}},
                )

    @property
    def llm(self) -> ProviderClient:
        return self._llm

    @property
    def thread(self) -> Thread:
        return self._thread

    @property
    def tools(self) -> List[Tool]:
        return self._executor.tools

    @property
    def instructions(self) -> Optional[str]:
        return self._instructions

    @property
    def messages(self) -> List[Message]:
        return self._thread.messages

    def add_message(
        self,
        content: Optional[str] = "",
        role: Role = "user",
        tool_calls: Iterable[Union[ToolCall, Dict[str, Any]]] = (),
    ) -> Message:
        message = Message(role=role, content=content or "", tool_calls=tuple(tool_calls or ()))
        return self._thread.append(message)

    def submit_tool_output(self, tool_call_id: str, output: str) -> Message:
        """追加一次工具调用的输出，不会调用模型。"""

        if not any(call.id == tool_call_id for m in self._thread.messages for call in m.tool_calls):
            logger.warning(
                "Tool output does not match any requested tool call",
                extra={"extra": {"tool_call_id": tool_call_id}},
            )
        return self._thread.append(Message(role="tool", content=output or "", tool_call_id=tool_call_id))

    def run(self, auto_tool_execution: Optional[bool] = None) -> List[Message]:
        """运行会话，直到模型不再请求工具。

        未开启自动执行时，首个回答后即结束；其中的工具调用保持待处理，
        由调用方提交输出后再次运行。

        Raises:
            LoopExceededError: 所需模型调用次数超过 ``max_rounds``。
        """
        auto = self.auto_tool_execution if auto_tool_execution is None else auto_tool_execution
        if not self._thread.messages:
            logger.warning("No messages in the thread")
            return self._thread.messages

        log_ctx: Dict[str, Any] = {
            "run_id": f"run-{uuid4().hex}",
            "llm": getattr(self._llm, "name", type(self._llm).__name__),
            "auto_tool_execution": auto,
        }
        pending = self._pending_tool_calls()
        rounds = 0
        while True:
            if pending:
                if not auto:
                    self._log(logging.INFO, "Tool calls pending", log_ctx, call_count=len(pending))
                    return self._thread.messages
                self._dispatch(pending, log_ctx)

            if rounds >= self.max_rounds:
                self._log(logging.ERROR, "Reached max rounds", log_ctx, max_rounds=self.max_rounds)
                raise LoopExceededError(
                    code="LOOP_EXCEEDED",
                    message=f"Run did not finish within {self.max_rounds} model calls",
                    max_rounds=self.max_rounds,
                )
            rounds += 1
            reply = self._generate(log_ctx, rounds)
            if not reply.tool_calls:
                self._log(logging.INFO, "Run completed", log_ctx, rounds=rounds)
                return self._thread.messages
            pending = list(reply.tool_calls)

    def _generate(self, log_ctx: Dict[str, Any], round_num: int) -> Message:
        req = ChatRequest(
            messages=list(self._thread.messages),
            tools=self._executor.tool_defs() or None,
            tool_choice="auto",
            model=self.model,
        )
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            round=round_num,
            message_count=len(req.messages),
        )
        result: ChatResult = self._llm.chat(req)
        if not result.choices:
            raise ApiError(code="EMPTY_RESPONSE", message="Provider returned no choices")
        answer = result.choices[0].message
        if answer.role != "assistant":
            self._log(logging.WARNING, "Unexpected response role", log_ctx, role=answer.role)
        reply = Message(
            role="assistant",
            content=answer.content,
            tool_calls=answer.tool_calls,
            meta={"usage": self._usage_meta_from_usage(result.usage), "round": round_num},
        )
        self._thread.append(reply)
        self._log(
            logging.INFO,
            "Stored assistant message",
            log_ctx,
            round=round_num,
            tool_call_count=len(reply.tool_calls),
        )
        return reply

    def _dispatch(self, calls: List[ToolCall], log_ctx: Dict[str, Any]) -> None:
        for call in calls:
            self._log(
                logging.INFO,
                "Tool call received",
                log_ctx,
                tool_name=call.name,
                tool_call_id=call.id,
            )
            try:
                content = self._executor.execute(call).content
                self._log(
                    logging.INFO,
                    "Tool execution finished",
                    log_ctx,
                    tool_call_id=call.id,
                    result_preview=content[:200],
                )
            except DispatchError as e:
                self._log(
                    logging.ERROR,
                    "Tool execution failed",
                    log_ctx,
                    tool_call_id=call.id,
                    code=e.code,
                    error=e.message,
                )
                content = f"Error: {e.message}"
            self.submit_tool_output(call.id, content)

    def _pending_tool_calls(self) -> List[ToolCall]:
        """最近一条 assistant 消息中尚未有工具输出的调用。"""

        answered = set()
        for message in reversed(self._thread.messages):
            if message.role == "tool":
                answered.add(message.tool_call_id)
            elif message.role == "assistant":
                return [call for call in message.tool_calls if call.id not in answered]
            else:
                break
        return []

    @staticmethod
    def _usage_meta_from_usage(usage: Optional[ChatUsage]) -> Dict[str, Any]:
        if not usage:
            return {}
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
