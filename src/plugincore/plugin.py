"""Plugin declaration, instantiation and execution.

A PluginDescriptor bundles the implementation callback with its optional
validators, arithmetic allow list and default metadata. PluginFactory turns
a descriptor into PluginInstances bound to a config, a mapping table and
merged metadata. Each instance can ``execute`` any number of times.

Usage:
    plugin = PluginFactory(
        PluginDescriptor(
            implementation=multiply,
            config_validation=MultiplyConfig,
            allow_arithmetic_expressions=["input-parameters"],
        )
    )
    instance = plugin(config, parameters_metadata, mapping)
    outputs = await instance.execute(inputs)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from plugincore.config import PluginCoreConfig
from plugincore.errors import (
    ConfigError,
    MissingPluginMethodError,
    ProcessExecutionError,
)
from plugincore.expressions import (
    evaluate_arithmetic_output,
    evaluate_config,
    evaluate_record,
    evaluate_simple,
    extract_variable,
)
from plugincore.mapping import (
    MappingParams,
    map_config,
    map_input,
    map_output,
    remove_mapped_input,
)
from plugincore.metadata import InstanceMetadata, PluginParametersMetadata
from plugincore.validation import Validator, as_validator

logger = logging.getLogger(__name__)

PluginParams = dict[str, Any]
ConfigParams = dict[str, Any]

Implementation = Callable[
    [list[PluginParams], ConfigParams],
    list[PluginParams] | Awaitable[list[PluginParams]],
]


class PluginState(Enum):
    """Lifecycle of a plugin."""

    DECLARED = "declared"
    INSTANTIATED = "instantiated"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PluginDescriptor:
    """Static definition of a plugin.

    Attributes:
        implementation: ``(inputs, config) -> outputs``, sync or async
        config_validation: Schema, function or None (see plugincore.validation)
        input_validation: Schema, function or None
        allow_arithmetic_expressions: Config fields that may hold expressions.
            None disables arithmetic altogether; an empty list still
            evaluates input rows and plugin outputs.
        metadata: Declared parameter metadata (defaults for instances)
    """

    implementation: Implementation
    config_validation: Any = None
    input_validation: Any = None
    allow_arithmetic_expressions: Sequence[str] | None = None
    metadata: PluginParametersMetadata | dict[str, Any] | None = field(
        default_factory=PluginParametersMetadata
    )

    def __post_init__(self) -> None:
        if not callable(self.implementation):
            raise MissingPluginMethodError(
                "Plugin implementation must be a callable `(inputs, config) -> outputs`."
            )

        # Normalise once; the dataclass is frozen afterwards.
        object.__setattr__(self, "config_validation", as_validator(self.config_validation))
        object.__setattr__(self, "input_validation", as_validator(self.input_validation))
        object.__setattr__(self, "metadata", PluginParametersMetadata.coerce(self.metadata))
        if self.allow_arithmetic_expressions is not None:
            object.__setattr__(
                self,
                "allow_arithmetic_expressions",
                tuple(self.allow_arithmetic_expressions),
            )

    @property
    def state(self) -> PluginState:
        return PluginState.DECLARED

    @property
    def arithmetic_enabled(self) -> bool:
        return self.allow_arithmetic_expressions is not None


class PluginFactory:
    """Creates plugin instances from a descriptor.

    Accepts either a PluginDescriptor or the descriptor fields as keywords:

        plugin = PluginFactory(implementation=fn, allow_arithmetic_expressions=[])
        instance = plugin(config, parameters_metadata, mapping)
    """

    def __init__(
        self,
        descriptor: PluginDescriptor | None = None,
        *,
        settings: PluginCoreConfig | None = None,
        **params: Any,
    ):
        if descriptor is None:
            descriptor = PluginDescriptor(**params)
        elif params:
            raise TypeError("Pass either a PluginDescriptor or descriptor fields, not both")

        self.descriptor = descriptor
        self.settings = settings or PluginCoreConfig.from_env()

    def __call__(
        self,
        config: ConfigParams | None = None,
        parameters_metadata: PluginParametersMetadata | dict[str, Any] | None = None,
        mapping: MappingParams | None = None,
    ) -> PluginInstance:
        return PluginInstance(
            self.descriptor,
            config=config,
            parameters_metadata=parameters_metadata,
            mapping=mapping,
            settings=self.settings,
        )


class PluginInstance:
    """A plugin bound to a config, a mapping table and merged metadata."""

    def __init__(
        self,
        descriptor: PluginDescriptor,
        config: ConfigParams | None = None,
        parameters_metadata: PluginParametersMetadata | dict[str, Any] | None = None,
        mapping: MappingParams | None = None,
        settings: PluginCoreConfig | None = None,
    ):
        if config is not None and not isinstance(config, Mapping):
            raise ConfigError(
                f"Plugin config must be a mapping, got `{type(config).__name__}`."
            )

        self.descriptor = descriptor
        self.config: ConfigParams = dict(config or {})
        self.settings = settings or PluginCoreConfig()
        self.metadata = InstanceMetadata(
            kind="execute",
            parameters=descriptor.metadata.merge(
                PluginParametersMetadata.coerce(parameters_metadata)
            ),
        )

        # "shared" keeps the caller's table so config mapping consumes it
        # across calls; "snapshot" copies it here and again per execute.
        if self.settings.shares_mapping:
            self.mapping: MappingParams = mapping if mapping is not None else {}
        else:
            self.mapping = dict(mapping or {})

        self.state = PluginState.INSTANTIATED

    async def execute(self, inputs: Sequence[PluginParams]) -> list[PluginParams]:
        """Run the full validation/evaluation/mapping sequence around the plugin.

        Returns one merged record per input row, in input order.
        """
        self.state = PluginState.EXECUTING
        try:
            outputs = await self._execute(list(inputs))
        except Exception as exc:
            self.state = PluginState.FAILED
            logger.warning("Plugin execution failed: %s: %s", type(exc).__name__, exc)
            raise

        self.state = PluginState.COMPLETED
        return outputs

    async def _execute(self, inputs: list[PluginParams]) -> list[PluginParams]:
        descriptor = self.descriptor
        allow_list = descriptor.allow_arithmetic_expressions
        config_validation: Validator = descriptor.config_validation
        input_validation: Validator = descriptor.input_validation

        mapping = self.mapping if self.settings.shares_mapping else dict(self.mapping)
        mapped_config: ConfigParams = map_config(self.config, mapping)
        evaluated_config: ConfigParams | None = None

        if descriptor.arithmetic_enabled:
            mapped_config = {
                key: evaluate_simple(value) for key, value in mapped_config.items()
            }

            evaluated_inputs = []
            for row in inputs:
                evaluated_row = evaluate_record(row)
                evaluated_config = evaluate_config(mapped_config, evaluated_row, allow_list)
                evaluated_inputs.append(evaluated_row)
            inputs = evaluated_inputs

        safe_config = config_validation.validate_config(mapped_config)
        if safe_config is None:
            safe_config = mapped_config
        logger.debug("Validated config: %s", safe_config)

        clean_config: ConfigParams = {}
        if descriptor.arithmetic_enabled and isinstance(safe_config, Mapping):
            clean_config = {
                key: extract_variable(value) for key, value in safe_config.items()
            }

        row_config = clean_config or safe_config
        mapped_inputs = []
        for index, row in enumerate(inputs):
            safe_row = input_validation.validate_input(row, row_config, index)
            if safe_row is None:
                safe_row = row
            mapped_inputs.append({**row, **map_input(safe_row, mapping)})
        inputs = mapped_inputs

        plugin_config = {**safe_config, **(evaluated_config or {}), "mapping": mapping}
        outputs = descriptor.implementation(inputs, plugin_config)
        if inspect.isawaitable(outputs):
            outputs = await outputs
        outputs = list(outputs)

        if len(outputs) != len(inputs):
            raise ProcessExecutionError(
                f"Plugin returned {len(outputs)} row(s) for {len(inputs)} input row(s)."
            )

        if descriptor.arithmetic_enabled and outputs:
            output_parameter = next(
                (key for key in outputs[0] if key not in inputs[0]), None
            )
            if output_parameter is not None:
                logger.debug("Evaluating output parameter `%s`", output_parameter)
                outputs = [
                    evaluate_arithmetic_output(output_parameter, output)
                    for output in outputs
                ]

        return [
            {**remove_mapped_input(row, mapping), **map_output(output, mapping)}
            for row, output in zip(inputs, outputs)
        ]
