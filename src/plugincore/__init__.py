"""plugincore: support layer for pipeline plugins.

Provides the arithmetic-expression engine used in plugin configs and
records, and the pipeline that wraps a plugin implementation with
mapping, validation and expression evaluation.
"""

from plugincore.config import PluginCoreConfig
from plugincore.errors import ERRORS, PluginCoreError
from plugincore.mapping import map_config, map_input, map_output, remove_mapped_input
from plugincore.metadata import (
    AggregationMethod,
    AggregationMethodType,
    InstanceMetadata,
    ParameterMetadata,
    PluginParametersMetadata,
)
from plugincore.plugin import PluginDescriptor, PluginFactory, PluginInstance, PluginState
from plugincore.validation import as_validator, validate

__version__ = "0.1.0"

__all__ = [
    "ERRORS",
    "AggregationMethod",
    "AggregationMethodType",
    "InstanceMetadata",
    "ParameterMetadata",
    "PluginCoreConfig",
    "PluginCoreError",
    "PluginDescriptor",
    "PluginFactory",
    "PluginInstance",
    "PluginParametersMetadata",
    "PluginState",
    "as_validator",
    "map_config",
    "map_input",
    "map_output",
    "remove_mapped_input",
    "validate",
]
