"""Error catalog for plugincore.

Every error carries a human-readable ``message`` and exposes its kind via
``name``. ``ERRORS`` maps each kind name to its class so callers can look
errors up by name (e.g. when building a plugin error from a manifest).
"""


class PluginCoreError(Exception):
    """Base class for all plugincore errors."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PluginCoreError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


class ManifestValidationError(PluginCoreError):
    """Manifest-level (non-row) validation failed."""


class InputValidationError(PluginCoreError):
    """A row or config field failed schema or function validation."""


class ConfigError(PluginCoreError):
    """Configuration is missing or invalid."""


# -----------------------------------------------------------------------------
# Arithmetic
# -----------------------------------------------------------------------------


class WrongArithmeticExpressionError(PluginCoreError):
    """Malformed expression, disallowed operator or mismatched ``=`` marker."""


class MissingVariableError(InputValidationError):
    """An expression references a field absent from the context."""


class NonNumericVariableError(InputValidationError):
    """An expression references a field that is not a number."""


class ZeroDivisionArithmeticOperationError(PluginCoreError):
    """An arithmetic operation divided by zero."""


class DivisionByZeroError(ZeroDivisionArithmeticOperationError):
    """A divisor resolved to zero, or evaluation produced infinity."""


# -----------------------------------------------------------------------------
# Plugin lifecycle and the rest of the catalog
# -----------------------------------------------------------------------------


class InvalidGroupingError(PluginCoreError):
    pass


class WriteFileError(PluginCoreError):
    pass


class ParseCliParamsError(PluginCoreError):
    pass


class CliSourceFileError(PluginCoreError):
    pass


class CliTargetFileError(PluginCoreError):
    pass


class InvalidAggregationMethodError(PluginCoreError):
    pass


class InvalidDirectoryError(PluginCoreError):
    pass


class MissingAggregationParamError(PluginCoreError):
    pass


class MissingCliFlagsError(PluginCoreError):
    pass


class MissingManifestDependenciesError(PluginCoreError):
    pass


class MissingPluginMethodError(PluginCoreError):
    pass


class MissingPluginPathError(PluginCoreError):
    pass


class MissingPluginDependenciesError(PluginCoreError):
    pass


class PluginInitializationError(PluginCoreError):
    pass


class InvalidExhaustPluginError(PluginCoreError):
    pass


class WrongArithmeticOperationError(PluginCoreError):
    pass


class MissingInputDataError(PluginCoreError):
    pass


class ProcessExecutionError(PluginCoreError):
    pass


class RegexMismatchError(PluginCoreError):
    pass


class FetchingFileError(PluginCoreError):
    pass


class ReadFileError(PluginCoreError):
    pass


class MissingCSVColumnError(PluginCoreError):
    pass


class QueryDataNotFoundError(PluginCoreError):
    pass


class InvalidDateInInputError(PluginCoreError):
    pass


class InvalidPaddingError(PluginCoreError):
    pass


class InvalidInputError(PluginCoreError):
    pass


class ExhaustOutputArgError(PluginCoreError):
    pass


class CSVParseError(PluginCoreError):
    pass


class APIRequestError(PluginCoreError):
    pass


class AuthorizationError(PluginCoreError):
    pass


ERRORS: dict[str, type[PluginCoreError]] = {
    cls.__name__: cls
    for cls in (
        ManifestValidationError,
        InputValidationError,
        ConfigError,
        WrongArithmeticExpressionError,
        MissingVariableError,
        NonNumericVariableError,
        ZeroDivisionArithmeticOperationError,
        DivisionByZeroError,
        InvalidGroupingError,
        WriteFileError,
        ParseCliParamsError,
        CliSourceFileError,
        CliTargetFileError,
        InvalidAggregationMethodError,
        InvalidDirectoryError,
        MissingAggregationParamError,
        MissingCliFlagsError,
        MissingManifestDependenciesError,
        MissingPluginMethodError,
        MissingPluginPathError,
        MissingPluginDependenciesError,
        PluginInitializationError,
        InvalidExhaustPluginError,
        WrongArithmeticOperationError,
        MissingInputDataError,
        ProcessExecutionError,
        RegexMismatchError,
        FetchingFileError,
        ReadFileError,
        MissingCSVColumnError,
        QueryDataNotFoundError,
        InvalidDateInInputError,
        InvalidPaddingError,
        InvalidInputError,
        ExhaustOutputArgError,
        CSVParseError,
        APIRequestError,
        AuthorizationError,
    )
}
