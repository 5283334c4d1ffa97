"""Numeric semantics shared by the grammar helpers and the evaluator.

Values are IEEE-754 doubles (Python ``float``) or ``int``; integral float
results are normalised back to ``int`` so ``"=10/2"`` yields ``5``.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from plugincore.errors import DivisionByZeroError
from plugincore.expressions.parser import ASTNode, BinaryOp, Identifier, Literal

Number = int | float

# Largest integer a double represents exactly; larger integral floats stay floats.
MAX_SAFE_INTEGER = 2**53 - 1


def coerce_number(value: Any) -> Number | None:
    """Read a value as a finite number, or return None."""
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, (float, Decimal)):
        number = float(value)
        return normalize(number) if math.isfinite(number) else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
        return normalize(number) if math.isfinite(number) else None

    return None


def normalize(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
        return int(value)
    return value


def format_number(value: Number) -> str:
    return str(normalize(value))


def render(node: ASTNode, lookup: Callable[[Identifier], Number] | None = None) -> str:
    """Render an AST back to compact infix text, substituting resolved values."""
    if isinstance(node, Literal):
        return format_number(node.value)
    if isinstance(node, Identifier):
        if lookup is None:
            return f'"{node.name}"' if node.quoted else node.name
        return format_number(lookup(node))
    if isinstance(node, BinaryOp):
        return f"{render(node.left, lookup)}{node.operator}{render(node.right, lookup)}"
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def compute(node: ASTNode, lookup: Callable[[Identifier], Number], source: str) -> float:
    """Evaluate an AST with resolved operand values.

    ``source`` is the rendered expression used in the division-by-zero
    message. Results are raw floats; callers decide on inf/nan handling.
    """
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Identifier):
        return lookup(node)
    if isinstance(node, BinaryOp):
        left = compute(node.left, lookup, source)
        right = compute(node.right, lookup, source)
        return apply_operator(node.operator, left, right, source)
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def apply_operator(operator: str, left: Number, right: Number, source: str) -> Number:
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        if right == 0:
            raise DivisionByZeroError(
                f"The input expression contains a division by zero: `{source}`."
            )
        return left / right
    raise ValueError(f"Unknown operator: {operator}")


def finalize(result: Number, source: str) -> Number | None:
    """Apply the inf/nan policy to a computed result.

    Infinity is reported as a division by zero; NaN means "no value".
    """
    if isinstance(result, float):
        if math.isnan(result):
            return None
        if math.isinf(result):
            raise DivisionByZeroError(
                f"The input expression contains a division by zero: `{source}`."
            )
    return normalize(result)
