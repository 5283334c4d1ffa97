"""Validation gateway for plugin configs and input rows.

Converts schema or validator-function failures into uniform, path-qualified
errors. Three validator variants are supported:

- SchemaValidator: pydantic models, TypedDicts or TypeAdapters (defaults are
  filled in, output is dumped by alias)
- JsonSchemaValidator: JSON Schema documents (Draft 2020-12)
- FunctionValidator: plain callables that return the validated value

``as_validator`` picks the variant once, when a plugin is declared.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, is_typeddict

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError as JsonSchemaError
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from plugincore.errors import (
    InputValidationError,
    PluginCoreError,
    PluginInitializationError,
)

UNION_CODE = "invalid_union"

PathPart = str | int


@dataclass(frozen=True)
class Issue:
    """A single schema finding.

    Attributes:
        path: Location of the offending value, e.g. ("foo", "bar", 2)
        message: Human-readable message from the schema library
        code: Machine-readable issue code (e.g. "int_parsing", "required")
    """

    path: tuple[PathPart, ...]
    message: str
    code: str


def flatten_path(path: tuple[PathPart, ...] | list[PathPart]) -> str:
    """Convert a path to dot/bracket notation: ("foo", "bar", 2) -> foo.bar[2]."""
    parts = []
    for part in path:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        else:
            parts.append(str(part))
    return ".".join(parts).replace(".[", "[")


def format_issue(issue: Issue, index: int | None = None) -> str:
    full_path = flatten_path(issue.path)

    if not full_path:
        return issue.message

    index_message = f" at index {index}" if index is not None else ""

    return (
        f'"{full_path}" parameter is {issue.message.lower()}{index_message}. '
        f"Error code: {issue.code}."
    )


def format_issues(issues: list[Issue], index: int | None = None) -> str:
    return "\n".join(format_issue(issue, index) for issue in issues)


# -----------------------------------------------------------------------------
# Validator variants
# -----------------------------------------------------------------------------


class Validator(Protocol):
    """Protocol implemented by every validator variant."""

    def validate_config(self, config: Any) -> Any:
        """Validate a plugin config and return the (possibly filled) config."""
        ...

    def validate_input(self, input: Any, config: Any, index: int) -> Any:
        """Validate one input row; ``config`` is the config seen by the row."""
        ...


@dataclass(frozen=True)
class PassThroughValidator:
    """Used when a plugin declares no validator."""

    def validate_config(self, config: Any) -> Any:
        return config

    def validate_input(self, input: Any, config: Any, index: int) -> Any:
        return input


@dataclass(frozen=True)
class FunctionValidator:
    """Wraps a callable.

    Config validators are called as ``function(config)``; input validators
    as ``function(input, config, index)``. Both return the validated value
    and raise to reject it.
    """

    function: Callable[..., Any]

    def validate_config(self, config: Any) -> Any:
        return self.function(config)

    def validate_input(self, input: Any, config: Any, index: int) -> Any:
        return self.function(input, config, index)


class SchemaValidator:
    """Validates with a pydantic model, TypedDict or TypeAdapter."""

    def __init__(self, schema: Any):
        self.adapter = schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)

    def parse(
        self,
        value: Any,
        index: int | None = None,
        error_class: type[PluginCoreError] = InputValidationError,
    ) -> Any:
        try:
            parsed = self.adapter.validate_python(value)
        except PydanticValidationError as exc:
            raise error_class(format_issues(_pydantic_issues(exc, value), index)) from None

        if isinstance(parsed, BaseModel):
            return parsed.model_dump(by_alias=True, exclude_none=True)
        return parsed

    def validate_config(self, config: Any) -> Any:
        return self.parse(config)

    def validate_input(self, input: Any, config: Any, index: int) -> Any:
        return self.parse(input, index)


class JsonSchemaValidator:
    """Validates with a JSON Schema document. Values are returned unchanged."""

    def __init__(self, schema: Mapping[str, Any]):
        Draft202012Validator.check_schema(schema)
        self.schema = schema
        self.validator = Draft202012Validator(schema)

    def parse(
        self,
        value: Any,
        index: int | None = None,
        error_class: type[PluginCoreError] = InputValidationError,
    ) -> Any:
        errors = sorted(
            self.validator.iter_errors(value),
            key=lambda e: [str(part) for part in e.absolute_path],
        )
        if errors:
            raise error_class(format_issues([_json_schema_issue(e) for e in errors], index))
        return value

    def validate_config(self, config: Any) -> Any:
        return self.parse(config)

    def validate_input(self, input: Any, config: Any, index: int) -> Any:
        return self.parse(input, index)


def as_validator(validator: Any) -> Validator:
    """Build the validator variant for a schema, function or None."""
    if validator is None:
        return PassThroughValidator()

    if isinstance(
        validator,
        (PassThroughValidator, FunctionValidator, SchemaValidator, JsonSchemaValidator),
    ):
        return validator

    schema = _as_schema(validator)
    if schema is not None:
        return schema

    if callable(validator):
        return FunctionValidator(validator)

    raise PluginInitializationError(
        f"Unsupported validator of type `{type(validator).__name__}`. "
        "Expected a pydantic model, a TypeAdapter, a JSON Schema or a function."
    )


def validate(
    schema: Any,
    value: Any,
    index: int | None = None,
    error_class: type[PluginCoreError] = InputValidationError,
) -> Any:
    """Validate ``value`` against ``schema`` and return the parsed value.

    Args:
        schema: Pydantic model / TypeAdapter / TypedDict, JSON Schema dict,
            or an already built SchemaValidator / JsonSchemaValidator
        value: The value to validate
        index: Row index reported in messages (" at index N")
        error_class: Error raised on failure

    Raises:
        error_class: With one formatted line per issue
    """
    if isinstance(schema, (SchemaValidator, JsonSchemaValidator)):
        validator = schema
    else:
        validator = _as_schema(schema)

    if validator is None:
        raise PluginInitializationError(
            f"Cannot validate with `{type(schema).__name__}`: not a schema."
        )

    return validator.parse(value, index, error_class)


# -----------------------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------------------


def _as_schema(schema: Any) -> SchemaValidator | JsonSchemaValidator | None:
    if isinstance(schema, TypeAdapter):
        return SchemaValidator(schema)
    if isinstance(schema, type) and (issubclass(schema, BaseModel) or is_typeddict(schema)):
        return SchemaValidator(schema)
    if isinstance(schema, Mapping):
        return JsonSchemaValidator(schema)
    return None


def _pydantic_issues(exc: PydanticValidationError, value: Any) -> list[Issue]:
    """Normalise pydantic errors; a failed union reports its first member only."""
    issues: list[Issue] = []
    reported_unions: set[tuple[PathPart, ...]] = set()

    for error in exc.errors(include_url=False):
        loc = tuple(error["loc"])
        tag_position = _union_tag_position(loc, value, error["type"])

        if tag_position is None:
            issues.append(Issue(loc, error["msg"], error["type"]))
            continue

        union_path = loc[:tag_position]
        if union_path in reported_unions:
            continue
        reported_unions.add(union_path)
        issues.append(Issue(union_path + loc[tag_position + 1:], error["msg"], UNION_CODE))

    return issues


def _union_tag_position(loc: tuple[PathPart, ...], value: Any, error_type: str) -> int | None:
    """Find the union member tag pydantic inserts into ``loc``, if any.

    Walking the input along ``loc``, a string step that does not exist in
    the data is a member tag (e.g. ``("amount", "int")``), unless it is the
    missing key of a "missing" error.
    """
    node = value
    last = len(loc) - 1

    for position, part in enumerate(loc):
        if isinstance(node, Mapping):
            if part in node:
                node = node[part]
                continue
            if position == last and error_type == "missing":
                return None
            return position if isinstance(part, str) else None

        if isinstance(node, (list, tuple)) and isinstance(part, int):
            if 0 <= part < len(node):
                node = node[part]
                continue
            return None

        return position if isinstance(part, str) else None

    return None


def _json_schema_issue(error: JsonSchemaError) -> Issue:
    if error.validator in ("anyOf", "oneOf") and error.context:
        first = min(error.context, key=lambda e: e.relative_schema_path[0])
        return Issue(tuple(first.absolute_path), first.message, UNION_CODE)
    return Issue(tuple(error.absolute_path), error.message, str(error.validator))
