"""Shape checks and variable extraction for expression strings.

An expression is a string optionally prefixed with ``=``; the ``=`` marker
requests evaluation. Helpers here never look at a record context.
"""

import re
from typing import Any

from plugincore.expressions.arithmetic import Number, compute, finalize, render
from plugincore.expressions.lexer import LexerError
from plugincore.expressions.parser import ASTNode, ParseError, count_operators, parse

EXPRESSION_MARKER = "="

CLOSED_NUMERIC = re.compile(r"^\s*\d+(\.\d+)?(\s*[-+*/]\s*\d+(\.\d+)?)*\s*$")

VARIABLE_NAME = re.compile(r"[\"']?([a-zA-Z]+(?:[-/][a-zA-Z]+)*)[\"']?")


def has_marker(value: Any) -> bool:
    return isinstance(value, str) and value.lstrip().startswith(EXPRESSION_MARKER)


def strip_marker(value: str) -> str:
    """Remove the leading ``=`` (if any) and surrounding whitespace."""
    body = value.strip()
    if body.startswith(EXPRESSION_MARKER):
        body = body[len(EXPRESSION_MARKER):]
    return body.strip()


def try_parse(body: str) -> ASTNode | None:
    try:
        return parse(body)
    except (LexerError, ParseError):
        return None


def is_closed_numeric_expression(value: Any) -> bool:
    """True for strings made only of numbers and operators, ``=`` optional."""
    return isinstance(value, str) and bool(CLOSED_NUMERIC.match(strip_marker(value)))


def is_expression(value: Any) -> bool:
    """Check whether a value is a well-formed arithmetic expression.

    With the ``=`` marker any complete ``operand (op operand)*`` chain
    qualifies. Without it, the string must contain an operator and must not
    be a plain field name: ``cpu/energy`` and ``carbon-product`` are names,
    ``3*carbon`` is an (unmarked) expression.
    """
    if not isinstance(value, str):
        return False

    ast = try_parse(strip_marker(value))
    if ast is None:
        return False

    if has_marker(value):
        return True

    return count_operators(ast) > 0 and extract_variable_name(value) != value.strip()


def extract_variable_name(value: Any) -> str | None:
    """Return the first name-shaped token (letters joined by ``-`` or ``/``).

    Surrounding quotes are dropped. Returns None for non-strings or when no
    such token exists.
    """
    if not isinstance(value, str):
        return None

    match = VARIABLE_NAME.search(value)
    return match.group(1) if match else None


def evaluate_closed_numeric_expression(value: str) -> Number | None:
    """Evaluate a string of numbers and operators, ``=`` optional."""
    body = strip_marker(value)
    ast = parse(body)

    def no_variables(node):
        raise ValueError(f"Closed numeric expression expected, got `{value}`")

    source = render(ast)
    return finalize(compute(ast, no_variables, source), source)


def extract_variable(value: Any) -> Any:
    """Extract the variable name from an expression, or evaluate it if closed.

    Non-strings come back unchanged, closed numeric strings are evaluated,
    anything else yields its first name-shaped token or, when there is
    none, the value itself.
    """
    if not isinstance(value, str):
        return value

    if is_closed_numeric_expression(value):
        return evaluate_closed_numeric_expression(value)

    name = extract_variable_name(value)
    return value if name is None else name

