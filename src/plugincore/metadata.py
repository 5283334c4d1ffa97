"""Parameter metadata declared by plugins and overridden by callers.

Metadata travels in the pipeline's external (hyphenated) vocabulary:

    inputs:
      carbon:
        description: an amount of carbon emitted into the atmosphere
        unit: gCO2e
        aggregation-method:
          time: sum
          component: sum
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from plugincore.errors import InvalidAggregationMethodError


class AggregationMethodType(Enum):
    """How a parameter is aggregated over a dimension."""

    SUM = "sum"
    AVG = "avg"
    NONE = "none"
    COPY = "copy"

    @classmethod
    def parse(cls, value: Any, parameter: str) -> AggregationMethodType:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(method.value for method in cls)
            raise InvalidAggregationMethodError(
                f"Aggregation method `{value}` of `{parameter}` is not supported. "
                f"Please use one of: {allowed}."
            ) from None


@dataclass(frozen=True)
class AggregationMethod:
    """Aggregation operators for the time and component dimensions."""

    time: AggregationMethodType = AggregationMethodType.SUM
    component: AggregationMethodType = AggregationMethodType.SUM

    @classmethod
    def from_dict(cls, data: dict[str, Any], parameter: str = "") -> AggregationMethod:
        return cls(
            time=AggregationMethodType.parse(data.get("time", "sum"), parameter),
            component=AggregationMethodType.parse(data.get("component", "sum"), parameter),
        )

    def to_dict(self) -> dict[str, str]:
        return {"time": self.time.value, "component": self.component.value}


@dataclass(frozen=True)
class ParameterMetadata:
    """Description, unit and aggregation policy of one parameter."""

    description: str = ""
    unit: str = ""
    aggregation_method: AggregationMethod = field(default_factory=AggregationMethod)

    @classmethod
    def from_dict(cls, data: dict[str, Any], parameter: str = "") -> ParameterMetadata:
        aggregation = data.get("aggregation-method") or {}
        return cls(
            description=data.get("description", ""),
            unit=data.get("unit", ""),
            aggregation_method=AggregationMethod.from_dict(aggregation, parameter),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "unit": self.unit,
            "aggregation-method": self.aggregation_method.to_dict(),
        }


@dataclass(frozen=True)
class PluginParametersMetadata:
    """Input and output parameter metadata of a plugin.

    ``outputs`` is None when not declared, so an explicit empty declaration
    (``outputs: {}``) can be told apart from a missing one.
    """

    inputs: dict[str, ParameterMetadata] = field(default_factory=dict)
    outputs: dict[str, ParameterMetadata] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PluginParametersMetadata:
        """Create metadata from a YAML/JSON dict (or None)."""
        data = data or {}
        outputs = data.get("outputs")
        return cls(
            inputs=_parameters_from_dict(data.get("inputs")),
            outputs=_parameters_from_dict(outputs) if outputs is not None else None,
        )

    @classmethod
    def coerce(cls, value: PluginParametersMetadata | dict[str, Any] | None) -> PluginParametersMetadata:
        if isinstance(value, cls):
            return value
        return cls.from_dict(value)

    def merge(self, override: PluginParametersMetadata) -> PluginParametersMetadata:
        """Overlay a caller override on these (declared) defaults.

        Inputs merge per parameter with the override winning; outputs are
        taken from the override whenever it declares them, even as ``{}``.
        """
        return PluginParametersMetadata(
            inputs={**self.inputs, **override.inputs},
            outputs=override.outputs if override.outputs is not None else self.outputs,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "inputs": {name: meta.to_dict() for name, meta in self.inputs.items()},
        }
        if self.outputs is not None:
            result["outputs"] = {name: meta.to_dict() for name, meta in self.outputs.items()}
        return result


@dataclass(frozen=True)
class InstanceMetadata:
    """Metadata exposed by a plugin instance."""

    kind: str
    parameters: PluginParametersMetadata

    @property
    def inputs(self) -> dict[str, ParameterMetadata]:
        return self.parameters.inputs

    @property
    def outputs(self) -> dict[str, ParameterMetadata] | None:
        return self.parameters.outputs

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, **self.parameters.to_dict()}


def _parameters_from_dict(data: dict[str, Any] | None) -> dict[str, ParameterMetadata]:
    return {
        name: ParameterMetadata.from_dict(meta or {}, name)
        for name, meta in (data or {}).items()
    }
