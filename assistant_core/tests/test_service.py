from assistant_core.agents.assistant import Assistant
from assistant_core.api import service
from assistant_core.domain.models import ChatChoice, ChatResult, Message
from assistant_core.domain.thread import Thread
from assistant_core.tools.calculator import Calculator
from assistant_core.tools.definitions import ToolCall


class ScriptedProvider:
    name = "scripted"

    def __init__(self):
        self.replies = [
            Message(
                role="assistant",
                tool_calls=(ToolCall(id="call_1", name="calculator-execute", arguments='{"input": "6*7"}'),),
            ),
            Message(role="assistant", content="42"),
        ]

    def chat(self, req):
        return ChatResult(provider=self.name, model="chat", choices=[ChatChoice(index=0, message=self.replies.pop(0))])


def test_create_assistant_uses_named_provider(monkeypatch):
    seen = {}

    def fake_create_provider(name=None):
        seen["name"] = name
        return ScriptedProvider()

    monkeypatch.setattr(service, "create_provider", fake_create_provider)
    thread = Thread()
    assistant = service.create_assistant(tools=[Calculator()], instructions="sys", thread=thread, provider_name="kimi")

    assert isinstance(assistant, Assistant)
    assert seen["name"] == "kimi"
    assert assistant.thread is thread
    assert thread.messages[0].role == "system"


def test_ask_runs_tools_and_returns_answer(monkeypatch):
    monkeypatch.setattr(service, "create_provider", lambda name=None: ScriptedProvider())
    assert service.ask("what is 6*7?", tools=[Calculator()]) == "42"
