"""Minimal demonstration of an Assistant with the calculator tool."""

from assistant_core.api.service import ask
from assistant_core.tools.calculator import Calculator

if __name__ == "__main__":
    question = "What is (17 * 3) + sqrt(144)?"
    reply = ask(question, tools=[Calculator()], instructions="You are a helpful math assistant.")
    print("User:", question)
    print("Assistant:", reply)
