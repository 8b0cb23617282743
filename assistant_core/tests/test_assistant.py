import logging

import pytest

from assistant_core.agents.assistant import Assistant
from assistant_core.domain.exceptions import ConfigurationError, LoopExceededError
from assistant_core.domain.models import ChatChoice, ChatResult, ChatUsage, Message
from assistant_core.domain.thread import Thread
from assistant_core.tools.calculator import Calculator
from assistant_core.tools.definitions import ToolCall


CALC_CALL = ToolCall(id="call_1", name="calculator-execute", arguments='{"input":"2+2"}')


def _result(message, usage=None):
    return ChatResult(provider="fake", model="chat", choices=[ChatChoice(index=0, message=message)], usage=usage)


class FakeProvider:
    name = "fake"

    def __init__(self, *replies):
        self._replies = list(replies)
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        return _result(self._replies.pop(0))


class LoopingProvider:
    name = "looping"

    def __init__(self):
        self.calls = 0

    def chat(self, req):
        self.calls += 1
        call = ToolCall(id=f"call_{self.calls}", name="calculator-execute", arguments='{"input": "1+1"}')
        return _result(Message(role="assistant", tool_calls=(call,)))


class RecordingCalculator(Calculator):
    def __init__(self):
        self.inputs = []

    def execute(self, input):
        self.inputs.append(input)
        return "4.0"


class BrokenTool(Calculator):
    name = "broken"

    def execute(self, input):
        raise RuntimeError("boom")


def _assistant(llm=None, thread=None, **kwargs):
    return Assistant(
        llm=llm or FakeProvider(),
        thread=thread if thread is not None else Thread(),
        tools=kwargs.pop("tools", [Calculator()]),
        **kwargs,
    )


def test_rejects_non_tool_entries():
    with pytest.raises(ConfigurationError):
        _assistant(tools=[Calculator(), "foo"])


def test_rejects_llm_without_chat():
    class NoChat:
        name = "nochat"

    with pytest.raises(ConfigurationError):
        _assistant(llm=NoChat())


def test_rejects_non_thread():
    with pytest.raises(ConfigurationError):
        _assistant(thread="foo")
    with pytest.raises(ConfigurationError):
        _assistant(thread=[])


def test_rejects_duplicate_tool_names():
    with pytest.raises(ConfigurationError):
        _assistant(tools=[Calculator(), Calculator()])


def test_rejects_tool_without_name():
    class Unnamed(Calculator):
        name = ""

    with pytest.raises(ConfigurationError):
        _assistant(tools=[Unnamed()])


def test_failed_construction_leaves_thread_untouched():
    thread = Thread()
    with pytest.raises(ConfigurationError):
        _assistant(thread=thread, tools=["foo"], instructions="You are an expert assistant")
    assert thread.messages == []


def test_instructions_become_first_system_message():
    thread = Thread()
    _assistant(thread=thread, instructions="You are an expert assistant")
    assert thread.messages[0].role == "system"
    assert thread.messages[0].content == "You are an expert assistant"


def test_instructions_not_inserted_into_populated_thread():
    thread = Thread([Message(role="user", content="hi")])
    _assistant(thread=thread, instructions="You are an expert assistant")
    assert [m.role for m in thread.messages] == ["user"]


def test_add_message_defaults_to_user():
    assistant = _assistant()
    assistant.add_message(content="foo")
    assert assistant.thread.messages[-1].role == "user"
    assert assistant.thread.messages[-1].content == "foo"


def test_submit_tool_output():
    assistant = _assistant()
    assistant.submit_tool_output(tool_call_id="123", output="bar")
    last = assistant.thread.messages[-1]
    assert last.role == "tool"
    assert last.content == "bar"
    assert last.tool_call_id == "123"


def test_run_manual_mode_leaves_tool_calls_pending():
    llm = FakeProvider(Message(role="assistant", content="", tool_calls=(CALC_CALL,)))
    assistant = _assistant(llm=llm)
    assistant.add_message(role="user", content="Please calculate 2+2")

    assistant.run(auto_tool_execution=False)

    last = assistant.thread.messages[-1]
    assert last.role == "assistant"
    assert last.tool_calls == (CALC_CALL,)
    assert not any(m.role == "tool" for m in assistant.thread.messages)
    assert len(llm.requests) == 1


def test_run_auto_mode_executes_tools_and_continues():
    calc = RecordingCalculator()
    llm = FakeProvider(
        Message(role="assistant", tool_calls=(CALC_CALL,)),
        Message(role="assistant", content="The result of 2 + 2 is 4."),
    )
    assistant = _assistant(llm=llm, tools=[calc])
    assistant.add_message(role="user", content="Please calculate 2+2")

    assistant.run(auto_tool_execution=True)

    messages = assistant.thread.messages
    assert calc.inputs == ["2+2"]
    assert messages[-2].role == "tool"
    assert messages[-2].content == "4.0"
    assert messages[-2].tool_call_id == "call_1"
    assert messages[-1].role == "assistant"
    assert messages[-1].content == "The result of 2 + 2 is 4."
    # the second model call sees the tool output
    assert [m.role for m in llm.requests[1].messages] == ["user", "assistant", "tool"]


def test_run_auto_mode_resolves_pending_calls_before_calling_model():
    llm = FakeProvider(Message(role="assistant", content="The result of 2 + 2 is 4."))
    assistant = _assistant(llm=llm, tools=[RecordingCalculator()])
    assistant.add_message(role="user", content="Please calculate 2+2")
    assistant.add_message(role="assistant", tool_calls=[CALC_CALL.to_payload()])

    assistant.run(auto_tool_execution=True)

    assert assistant.thread.messages[-2].role == "tool"
    assert assistant.thread.messages[-2].content == "4.0"
    assert assistant.thread.messages[-1].content == "The result of 2 + 2 is 4."
    assert len(llm.requests) == 1


def test_run_manual_mode_with_pending_calls_does_not_call_model():
    llm = FakeProvider()
    assistant = _assistant(llm=llm)
    assistant.add_message(role="user", content="Please calculate 2+2")
    assistant.add_message(role="assistant", tool_calls=[CALC_CALL])

    assistant.run()

    assert llm.requests == []


def test_run_after_manual_submit_calls_model_again():
    llm = FakeProvider(
        Message(role="assistant", tool_calls=(CALC_CALL,)),
        Message(role="assistant", content="It is 4."),
    )
    assistant = _assistant(llm=llm)
    assistant.add_message(content="Please calculate 2+2")
    assistant.run()
    assistant.submit_tool_output(tool_call_id="call_1", output="4.0")
    assistant.run()

    assert [m.role for m in assistant.thread.messages] == ["user", "assistant", "tool", "assistant"]
    assert assistant.thread.messages[-1].content == "It is 4."


def test_run_uses_configured_auto_tool_execution_default():
    llm = FakeProvider(
        Message(role="assistant", tool_calls=(CALC_CALL,)),
        Message(role="assistant", content="done"),
    )
    assistant = _assistant(llm=llm, auto_tool_execution=True)
    assistant.add_message(content="Please calculate 2+2")
    assistant.run()
    assert assistant.thread.messages[-2].content == "4.0"
    assert assistant.thread.messages[-1].content == "done"


def test_run_executes_multiple_calls_in_emitted_order():
    calls = (
        ToolCall(id="a", name="calculator-execute", arguments='{"input": "1+1"}'),
        ToolCall(id="b", name="calculator-execute", arguments='{"input": "3*3"}'),
    )
    llm = FakeProvider(
        Message(role="assistant", tool_calls=calls),
        Message(role="assistant", content="2 and 9"),
    )
    assistant = _assistant(llm=llm)
    assistant.add_message(content="compute")
    assistant.run(auto_tool_execution=True)

    tool_messages = [m for m in assistant.thread.messages if m.role == "tool"]
    assert [(m.tool_call_id, m.content) for m in tool_messages] == [("a", "2.0"), ("b", "9.0")]


@pytest.mark.parametrize(
    "call, expected",
    [
        (ToolCall(id="x", name="weather-forecast", arguments="{}"), "not registered"),
        (ToolCall(id="x", name="calculator-integrate", arguments="{}"), "no operation"),
        (ToolCall(id="x", name="calculator", arguments="{}"), "<tool>-<operation>"),
        (ToolCall(id="x", name="calculator-execute", arguments="{not json"), "not valid JSON"),
        (ToolCall(id="x", name="calculator-execute", arguments='{"expr": "1"}'), "calculator-execute"),
        (ToolCall(id="x", name="broken-execute", arguments='{"input": "1"}'), "boom"),
    ],
)
def test_dispatch_errors_are_fed_back_to_model(call, expected):
    llm = FakeProvider(
        Message(role="assistant", tool_calls=(call,)),
        Message(role="assistant", content="sorry"),
    )
    assistant = _assistant(llm=llm, tools=[Calculator(), BrokenTool()])
    assistant.add_message(content="go")
    assistant.run(auto_tool_execution=True)

    tool_message = assistant.thread.messages[-2]
    assert tool_message.role == "tool"
    assert tool_message.tool_call_id == "x"
    assert tool_message.content.startswith("Error:")
    assert expected in tool_message.content
    assert assistant.thread.messages[-1].content == "sorry"


def test_run_raises_when_rounds_exceeded():
    llm = LoopingProvider()
    assistant = _assistant(llm=llm, max_rounds=3)
    assistant.add_message(content="loop forever")

    with pytest.raises(LoopExceededError):
        assistant.run(auto_tool_execution=True)
    assert llm.calls == 3
    assert assistant.thread.messages[-1].role == "tool"


def test_run_on_empty_thread_warns_and_skips_model(caplog):
    llm = FakeProvider()
    assistant = _assistant(llm=llm)

    with caplog.at_level(logging.WARNING, logger="assistant_core"):
        assistant.run()

    assert assistant.thread.messages == []
    assert llm.requests == []
    assert "No messages in the thread" in caplog.messages


def test_run_sends_tool_definitions_and_records_usage():
    class UsageProvider(FakeProvider):
        def chat(self, req):
            self.requests.append(req)
            return _result(Message(role="assistant", content="hello"), ChatUsage(1, 2, 3))

    llm = UsageProvider()
    assistant = _assistant(llm=llm, instructions="be brief")
    assistant.add_message(content="hi")
    assistant.run()

    req = llm.requests[0]
    assert [t.name for t in req.tools] == ["calculator-execute"]
    assert [m.role for m in req.messages] == ["system", "user"]
    assert assistant.thread.messages[-1].meta["usage"]["total_tokens"] == 3


def test_messages_idempotent():
    assistant = _assistant(instructions="sys")
    assistant.add_message(content="a")
    assert assistant.messages == assistant.messages
    assert list(assistant.thread.messages) == list(assistant.thread.messages)
