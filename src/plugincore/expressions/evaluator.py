"""Evaluator for plugincore arithmetic expressions.

Resolves identifier operands against a record context (recursively, when
the referenced field is itself an expression) and computes the result over
the AST. There is no ``eval``: only ``* + - /`` over numbers are supported.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from plugincore.errors import (
    DivisionByZeroError,
    MissingVariableError,
    NonNumericVariableError,
    WrongArithmeticExpressionError,
)
from plugincore.expressions.arithmetic import (
    Number,
    coerce_number,
    compute,
    finalize,
    render,
)
from plugincore.expressions.grammar import (
    evaluate_closed_numeric_expression,
    has_marker,
    is_closed_numeric_expression,
    is_expression,
    strip_marker,
)
from plugincore.expressions.lexer import LexerError
from plugincore.expressions.parser import (
    ASTNode,
    BinaryOp,
    Identifier,
    ParseError,
    iter_identifiers,
    parse,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "timestamp"

WRONG_OPERATOR_MESSAGE = (
    "The operator in `{expression}` should be one of these arithmetic "
    "operators: *, +, - or /."
)

INVALID_EXPRESSION_MESSAGE = (
    "The `{name}` contains an invalid arithmetic expression. It should start "
    "with `=` and include the symbols `*`, `+`, `-` and `/`."
)


def parse_expression(expression: str, name: str) -> ASTNode:
    """Parse an expression string, converting failures to plugin errors."""
    try:
        return parse(strip_marker(expression))
    except LexerError:
        raise WrongArithmeticExpressionError(
            WRONG_OPERATOR_MESSAGE.format(expression=expression)
        ) from None
    except ParseError:
        raise WrongArithmeticExpressionError(
            INVALID_EXPRESSION_MESSAGE.format(name=name)
        ) from None


class ExpressionEvaluator:
    """Evaluates expression strings against a variable context.

    Usage:
        evaluator = ExpressionEvaluator({"carbon": 3})
        evaluator.evaluate("=3*carbon", "input-parameter")  # 9

    An empty allow list means every field may be evaluated. A non-empty one
    restricts evaluation to the listed fields; fields referenced while
    resolving an operand are added to it for that resolution.
    """

    def __init__(
        self,
        context: Mapping[str, Any],
        allow_list: Sequence[str] = (),
    ):
        self.context = context
        self.allow_list = list(allow_list)

    def evaluate(self, expression: Any, field: str) -> Any:
        """Evaluate ``expression`` as the value of ``field``.

        Returns the value unchanged when it is not an expression or the field
        is not allowed, the computed number otherwise, and None when the
        computation produced NaN.
        """
        return self._evaluate(expression, field, (field,))

    def _evaluate(self, expression: Any, field: str, chain: tuple[str, ...]) -> Any:
        if field == TIMESTAMP_FIELD:
            return self.context.get(TIMESTAMP_FIELD, expression)

        if not isinstance(expression, str):
            return expression

        closed = is_closed_numeric_expression(expression)
        if not has_marker(expression) and not closed:
            return expression

        if self.allow_list and field not in self.allow_list:
            return expression

        if closed:
            return evaluate_closed_numeric_expression(expression)

        ast = parse_expression(expression, field)
        values: dict[int, Number] = {}
        self._resolve_operands(ast, ast, expression, chain, values)

        def lookup(node: Identifier) -> Number:
            return values[id(node)]

        source = render(ast, lookup)
        result = finalize(compute(ast, lookup, source), source)
        logger.debug("Evaluated `%s` for %s: %s -> %s", expression, field, source, result)
        return result

    def _resolve_operands(
        self,
        root: ASTNode,
        node: ASTNode,
        expression: str,
        chain: tuple[str, ...],
        values: dict[int, Number],
        divisor: bool = False,
    ) -> None:
        """Resolve identifiers left to right, checking divisors as they resolve."""
        if isinstance(node, BinaryOp):
            self._resolve_operands(root, node.left, expression, chain, values)
            self._resolve_operands(
                root, node.right, expression, chain, values, divisor=node.operator == "/"
            )
            return

        if not isinstance(node, Identifier):
            return

        value = self._resolve(node.name, expression, chain)
        values[id(node)] = value

        if divisor and value == 0:
            raise DivisionByZeroError(
                "The input expression contains a division by zero: "
                f"`{render(root, lambda n: values.get(id(n), n.name))}`."
            )

    def _resolve(self, name: str, expression: str, chain: tuple[str, ...]) -> Number:
        if self.context.get(name) is None:
            raise MissingVariableError(
                f"`{name}` is missing from the input array, or has nullish value."
            )

        value = self.context[name]

        if has_marker(value) or is_closed_numeric_expression(value):
            if name in chain:
                cycle = " -> ".join(chain + (name,))
                raise WrongArithmeticExpressionError(
                    f"The expression `{expression}` has a circular reference: {cycle}."
                )
            nested = ExpressionEvaluator(
                self.context,
                [*self.allow_list, name] if self.allow_list else (),
            )
            value = nested._evaluate(value, name, chain + (name,))
            if value is None:
                raise MissingVariableError(
                    f"`{name}` is missing from the input array, or has nullish value."
                )

        number = coerce_number(value)
        if number is None:
            raise NonNumericVariableError(
                f"The value of the `{name}` parameter in the input array is not a number."
            )
        return number


def evaluate_expression(
    expression: Any,
    field: str,
    allow_list: Sequence[str],
    context: Mapping[str, Any],
) -> Any:
    """Evaluate a single expression; see ExpressionEvaluator.evaluate."""
    return ExpressionEvaluator(context, allow_list).evaluate(expression, field)


def evaluate_simple(value: Any) -> Any:
    """Pre-evaluate closed numeric expressions, leave anything else as is.

    ``"=2+3"`` and ``"2+3"`` become ``5``; ``"=a+b"`` is returned unchanged.
    """
    if is_closed_numeric_expression(value):
        return evaluate_closed_numeric_expression(value)
    return value


def evaluate_arithmetic_output(
    output_parameter: str,
    output: Mapping[str, Any],
) -> dict[str, Any]:
    """Apply an output expression to a row produced by a plugin.

    For ``"=2*result"`` the plugin's raw value stored under ``"=2*result"``
    is substituted for ``result``, and the row gets ``result`` in place of
    the expression key. Parameters without ``=`` are copied through.
    """
    if not has_marker(output_parameter):
        if is_expression(output_parameter):
            raise WrongArithmeticExpressionError(
                INVALID_EXPRESSION_MESSAGE.format(name=output_parameter)
            )
        return {**output, output_parameter: output.get(output_parameter)}

    ast = parse_expression(output_parameter, output_parameter)
    target = next(iter_identifiers(ast), None)
    if target is None:
        raise WrongArithmeticExpressionError(
            INVALID_EXPRESSION_MESSAGE.format(name=output_parameter)
        )

    raw_value = coerce_number(output.get(output_parameter))
    if raw_value is None:
        raise NonNumericVariableError(
            f"The value of the `{output_parameter}` output parameter is not a number."
        )

    context = {**output, target.name: raw_value}
    result = ExpressionEvaluator(context).evaluate(output_parameter, target.name)

    evaluated: dict[str, Any] = {}
    for key, value in output.items():
        if key != output_parameter:
            evaluated[key] = value
        elif result is not None:
            evaluated[target.name] = result
    return evaluated
