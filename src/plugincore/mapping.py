"""Parameter mapping between a plugin's internal names and pipeline names.

A mapping table maps internal name -> external name, e.g.
``{"carbon": "carbon-product"}`` lets a plugin that reads ``carbon`` run on
records that carry ``carbon-product``.
"""

from collections.abc import Mapping
from typing import Any

from plugincore.expressions.grammar import EXPRESSION_MARKER, extract_variable, has_marker
from plugincore.expressions.lexer import Lexer, LexerError, TokenType

MappingParams = dict[str, str]


def map_input(
    input: Mapping[str, Any],
    mapping: Mapping[str, str] | None,
) -> dict[str, Any]:
    """Expose external fields under their internal names.

    The external key is kept alongside the new internal one.
    """
    mapped = dict(input)

    for internal, external in (mapping or {}).items():
        if external in input:
            mapped[internal] = input[external]

    return mapped


def remove_mapped_input(
    input: Mapping[str, Any],
    mapping: Mapping[str, str] | None,
) -> dict[str, Any]:
    """Drop the internal-name copies a mapping pass added to a record."""
    if not mapping:
        return dict(input)

    return {key: value for key, value in input.items() if key not in mapping}


def map_output(
    output: Mapping[str, Any],
    mapping: Mapping[str, str] | None,
) -> dict[str, Any]:
    """Rename output keys found in the mapping; other keys pass through."""
    if not mapping:
        return dict(output)

    return {mapping.get(key, key): value for key, value in output.items()}


def map_config_entries(
    config: Any,
    mapping: Mapping[str, str] | None,
) -> tuple[Any, set[str]]:
    """Apply a mapping to a config tree without touching the mapping.

    Walks dicts and lists recursively. Keys and string values equal to a
    mapping key are renamed, and for ``=``-expressions the extracted
    variable is rewritten inside the expression text.

    Returns:
        The mapped config and the set of mapping keys that were applied.
        A falsy mapping or a non-container config is returned as is.
    """
    consumed: set[str] = set()

    if not mapping or not isinstance(config, (dict, list)):
        return config, consumed

    return _map_node(config, mapping, consumed), consumed


def map_config(config: Any, mapping: dict[str, str] | None) -> Any:
    """Map a config tree and consume the applied entries from ``mapping``.

    Applied entries are deleted from the caller's table, so a later call
    with the same table leaves those fields unmapped.
    """
    mapped, consumed = map_config_entries(config, mapping)

    for key in consumed:
        mapping.pop(key, None)

    return mapped


def _map_node(node: Any, mapping: Mapping[str, str], consumed: set[str]) -> Any:
    if isinstance(node, dict):
        result: dict[str, Any] = {}
        for key, value in node.items():
            if key in mapping:
                consumed.add(key)
                key = mapping[key]
            result[key] = _map_node(value, mapping, consumed)
        return result

    if isinstance(node, list):
        return [_map_node(item, mapping, consumed) for item in node]

    return _map_value(node, mapping, consumed)


def _map_value(value: Any, mapping: Mapping[str, str], consumed: set[str]) -> Any:
    if not isinstance(value, str):
        return value

    if value in mapping:
        consumed.add(value)
        return mapping[value]

    if has_marker(value):
        variable = extract_variable(value)
        if isinstance(variable, str) and variable in mapping:
            renamed = _rename_operand(value, variable, mapping[variable])
            if renamed is not None:
                consumed.add(variable)
                return renamed

    return value


def _rename_operand(expression: str, name: str, external: str) -> str | None:
    """Replace the first operand token called ``name`` with ``external``.

    The new name is quoted unless it lexes as a single bare identifier, so
    ``cpu/energy`` stays one operand instead of becoming a division. Returns
    None when the expression does not lex or has no such operand.
    """
    start = expression.index(EXPRESSION_MARKER) + len(EXPRESSION_MARKER)
    body = expression[start:]

    try:
        tokens = Lexer(body).tokenize()
    except LexerError:
        return None

    for token in tokens:
        if token.type == TokenType.IDENTIFIER and token.value == name:
            end = token.position + len(name)
            quote = None
        elif token.type == TokenType.QUOTED and token.value == name:
            end = token.position + len(name) + 2
            quote = body[token.position]
        else:
            continue

        if quote is None and _is_bare_identifier(external):
            replacement = external
        else:
            quote = quote or ('"' if '"' not in external else "'")
            replacement = f"{quote}{external}{quote}"

        return expression[:start] + body[:token.position] + replacement + body[end:]

    return None


def _is_bare_identifier(name: str) -> bool:
    try:
        tokens = Lexer(name).tokenize()
    except LexerError:
        return False
    return (
        len(tokens) == 2
        and tokens[0].type == TokenType.IDENTIFIER
        and tokens[0].value == name
    )
