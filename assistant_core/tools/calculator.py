import ast
import math
import operator
from typing import Any, Callable, Dict

from .base import Tool
from .definitions import ToolDef, ToolParam


MAX_EXPONENT = 1000
# 单次乘方结果允许的最大十进制位数
MAX_RESULT_DIGITS = 1000

_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: Dict[str, Callable[..., float]] = {
    "abs": abs,
    "round": round,
    "sqrt": math.sqrt,
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "floor": math.floor,
    "ceil": math.ceil,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}


class Calculator(Tool):
    """Evaluates arithmetic expressions."""

    name = "calculator"
    description = "Useful for getting the result of a math expression."
    operations = {
        "execute": ToolDef(
            name="execute",
            description=(
                "Evaluates a pure math expression and returns the result as a number. "
                "Supports + - * / // % **, parentheses, sqrt, log, sin, cos, pi, e."
            ),
            params={
                "input": ToolParam(
                    name="input",
                    description="Math expression, e.g. '2 + 2' or 'sqrt(16) * pi'",
                    required=True,
                    schema={"type": "string"},
                )
            },
        )
    }

    def execute(self, input: str) -> str:
        try:
            tree = ast.parse(str(input).strip(), mode="eval")
        except SyntaxError as exc:
            raise ValueError(f"invalid expression {input!r}") from exc
        try:
            return str(float(_evaluate(tree.body)))
        except OverflowError as exc:
            raise ValueError(f"result of {input!r} is too large") from exc


def _check_power(base: Any, exponent: Any) -> None:
    if abs(exponent) > MAX_EXPONENT:
        raise ValueError(f"exponent {exponent} is too large")
    magnitude = abs(base)
    if magnitude > 1 and abs(exponent) * math.log10(magnitude) > MAX_RESULT_DIGITS:
        raise ValueError(f"power result is too large (over {MAX_RESULT_DIGITS} digits)")


def _evaluate(node: ast.AST) -> Any:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left, right = _evaluate(node.left), _evaluate(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        try:
            return _BINARY_OPS[type(node.op)](left, right)
        except ZeroDivisionError as exc:
            raise ValueError("division by zero") from exc
        except OverflowError as exc:
            raise ValueError("result is too large") from exc
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and not node.keywords
    ):
        args = [_evaluate(arg) for arg in node.args]
        try:
            return _FUNCTIONS[node.func.id](*args)
        except OverflowError as exc:
            raise ValueError(f"{node.func.id}() result is too large") from exc
        except TypeError as exc:
            raise ValueError(f"{node.func.id}(): {exc}") from exc
    raise ValueError(f"unsupported expression element: {ast.dump(node)[:40]}")
