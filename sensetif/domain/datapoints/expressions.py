"""
Datapoint Expressions
=====================
Evaluates the ``condition`` and ``scalefunc`` strings of a processing
descriptor.

Expressions use a small, side-effect free subset of Python syntax:

- numeric and boolean literals
- variables supplied by the caller (``x``, ``raw``, ``prev``, ...)
- ``+ - * / // % **``, unary ``- + not``
- comparisons (chained), ``and``/``or``, ``a if cond else b``
- calls to a fixed set of math functions (see ``FUNCTIONS``)

Example::

    evaluate("x > 0 and x < 250", {"x": 17.0})      # True
    evaluate("round(x * 1.8 + 32, 1)", {"x": 21.5}) # 70.7
"""

from __future__ import annotations

import ast
import math
import operator
from functools import lru_cache
from typing import Any, Callable, Mapping

from sensetif.domain.exceptions import ExpressionError

FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
    "sqrt": math.sqrt,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "floor": math.floor,
    "ceil": math.ceil,
    "pow": math.pow,
}

_BINARY_OPS: dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
}

_COMPARE_OPS: dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}


@lru_cache(maxsize=256)
def compile_expression(source: str) -> ast.Expression:
    """Parse and structurally check an expression. Results are cached."""
    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid expression {source!r}: {e.msg}", detail={"expression": source}) from None

    for node in ast.walk(tree):
        if isinstance(node, ast.Constant):
            if not isinstance(node.value, (int, float, bool)):
                raise ExpressionError(f"Unsupported literal {node.value!r} in {source!r}")
        elif isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
                raise ExpressionError(f"Unsupported function call in {source!r}")
            if node.keywords:
                raise ExpressionError(f"Keyword arguments are not supported in {source!r}")
        elif not isinstance(
            node,
            (
                ast.Expression,
                ast.Name,
                ast.Load,
                ast.BinOp,
                ast.UnaryOp,
                ast.BoolOp,
                ast.Compare,
                ast.IfExp,
                ast.And,
                ast.Or,
                *_BINARY_OPS,
                *_UNARY_OPS,
                *_COMPARE_OPS,
            ),
        ):
            raise ExpressionError(f"Unsupported syntax {type(node).__name__} in {source!r}")
    return tree


def evaluate(source: str, variables: Mapping[str, Any]) -> Any:
    """Evaluate ``source`` with the given variables.

    Raises:
        ExpressionError: the expression is invalid, refers to an unknown
            variable, or fails arithmetically.
    """
    tree = compile_expression(source)
    try:
        return _eval(tree.body, variables)
    except ExpressionError:
        raise
    except (ArithmeticError, ValueError, TypeError) as e:
        raise ExpressionError(f"Failed to evaluate {source!r}: {e}", detail={"expression": source}) from e


def _eval(node: ast.AST, variables: Mapping[str, Any]) -> Any:
    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, ast.Name):
        if node.id not in variables:
            raise ExpressionError(f"Unknown variable {node.id!r}")
        return variables[node.id]

    if isinstance(node, ast.BinOp):
        left = _eval(node.left, variables)
        right = _eval(node.right, variables)
        if isinstance(node.op, ast.Pow):
            # float power overflows instead of growing an unbounded integer
            return float(left) ** right
        return _BINARY_OPS[type(node.op)](left, right)

    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_eval(node.operand, variables))

    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            result: Any = True
            for value in node.values:
                result = _eval(value, variables)
                if not result:
                    return result
            return result
        result = False
        for value in node.values:
            result = _eval(value, variables)
            if result:
                return result
        return result

    if isinstance(node, ast.Compare):
        left = _eval(node.left, variables)
        for op, comparator in zip(node.ops, node.comparators):
            right = _eval(comparator, variables)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    if isinstance(node, ast.IfExp):
        if _eval(node.test, variables):
            return _eval(node.body, variables)
        return _eval(node.orelse, variables)

    if isinstance(node, ast.Call):
        args = [_eval(arg, variables) for arg in node.args]
        return FUNCTIONS[node.func.id](*args)

    raise ExpressionError(f"Unsupported syntax {type(node).__name__}")


class ExpressionEvaluator:
    """Default evaluator used by ``ProcessingDescriptor.transform``.

    Any object with the same two methods can be passed instead.
    """

    def condition(self, source: str, variables: Mapping[str, Any]) -> bool:
        return bool(evaluate(source, variables))

    def value(self, source: str, variables: Mapping[str, Any]) -> float:
        result = evaluate(source, variables)
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise ExpressionError(f"Expression {source!r} did not produce a number", detail={"expression": source})
        try:
            return float(result)
        except OverflowError:
            raise ExpressionError(
                f"Expression {source!r} is too large for a float", detail={"expression": source}
            ) from None
