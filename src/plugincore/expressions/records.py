"""Record- and config-level expression evaluation."""

from collections.abc import Mapping, Sequence
from typing import Any

from plugincore.errors import WrongArithmeticExpressionError
from plugincore.expressions.evaluator import (
    INVALID_EXPRESSION_MESSAGE,
    evaluate_expression,
)
from plugincore.expressions.grammar import (
    has_marker,
    is_closed_numeric_expression,
    is_expression,
)


def evaluate_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Evaluate every expression-shaped field of a record.

    Fields are evaluated in order against the partially evaluated copy, so
    a field may reference fields before or after it. A NaN result removes
    the field. The input record is not modified.
    """
    evaluated = dict(record)

    for field, value in record.items():
        result = evaluate_expression(value, field, [], evaluated)
        if result is None and value is not None:
            del evaluated[field]
        else:
            evaluated[field] = result

    return evaluated


def evaluate_config(
    config: Mapping[str, Any],
    input: Mapping[str, Any],
    allow_list: Sequence[str],
) -> dict[str, Any]:
    """Evaluate allow-listed config fields against an input row.

    Each allow-listed field is shape-checked first; fields outside the
    allow list are copied unchanged even when they look like expressions.
    """
    evaluated = dict(config)

    for field, value in config.items():
        if field not in allow_list:
            continue

        validate_arithmetic_expression(field, value)
        result = evaluate_expression(value, field, allow_list, input)
        if result is None and value is not None:
            del evaluated[field]
        else:
            evaluated[field] = result

    return evaluated


def validate_arithmetic_expression(name: str, value: Any) -> Any:
    """Check that the ``=`` marker and the shape of a value agree.

    Closed numeric strings are always accepted. Otherwise a marked value
    must be a valid expression and an unmarked one must not be.

    Raises:
        WrongArithmeticExpressionError: When marker and shape disagree
    """
    if not isinstance(value, str) or is_closed_numeric_expression(value):
        return value

    if has_marker(value) != is_expression(value):
        raise WrongArithmeticExpressionError(INVALID_EXPRESSION_MESSAGE.format(name=name))

    return value
