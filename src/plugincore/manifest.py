"""Run manifests: a YAML document naming a plugin and the data to run it on.

Example:
    plugin: my_plugins.multiply:Multiply
    config:
      input-parameters: [cpu, energy]
      output-parameter: "=2*result"
    mapping:
      cpu: cpu/energy
    parameter-metadata:
      inputs:
        cpu:
          unit: kWh
    inputs:
      - timestamp: 2024-02-26 00:00:00
        duration: 3600
        cpu/energy: 4

Usage:
    manifest = load_manifest(Path("manifest.yaml"))
    outputs = asyncio.run(manifest.execute())
"""

from __future__ import annotations

import importlib
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from plugincore.config import PluginCoreConfig
from plugincore.errors import (
    CliSourceFileError,
    ManifestValidationError,
    MissingPluginMethodError,
    MissingPluginPathError,
    PluginInitializationError,
    ReadFileError,
)
from plugincore.plugin import PluginDescriptor, PluginFactory
from plugincore.validation import validate

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
_MANIFEST_SCHEMA = "manifest.schema.json"


@dataclass
class Manifest:
    """A parsed run manifest."""

    plugin: str
    inputs: list[dict[str, Any]]
    config: dict[str, Any] = field(default_factory=dict)
    mapping: dict[str, str] = field(default_factory=dict)
    parameter_metadata: dict[str, Any] | None = None
    base_path: Path | None = None

    @classmethod
    def from_dict(cls, data: Any, base_path: Path | None = None) -> Manifest:
        validate(_load_schema(), data, error_class=ManifestValidationError)
        return cls(
            plugin=data["plugin"],
            inputs=list(data["inputs"]),
            config=data.get("config") or {},
            mapping=data.get("mapping") or {},
            parameter_metadata=data.get("parameter-metadata"),
            base_path=base_path,
        )

    def load_factory(self, settings: PluginCoreConfig | None = None) -> PluginFactory:
        return load_plugin(self.plugin, self.base_path, settings)

    async def execute(self, settings: PluginCoreConfig | None = None) -> list[dict[str, Any]]:
        factory = self.load_factory(settings)
        instance = factory(self.config, self.parameter_metadata, self.mapping)
        return await instance.execute(self.inputs)


def load_manifest(path: Path) -> Manifest:
    """Read and validate a YAML manifest file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ReadFileError(f"Failed to read manifest `{path}`: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CliSourceFileError(f"Manifest `{path}` is not valid YAML: {e}") from e

    return Manifest.from_dict(data, base_path=path.parent)


def load_plugin(
    target: str,
    base_path: Path | None = None,
    settings: PluginCoreConfig | None = None,
) -> PluginFactory:
    """Import ``module:attribute`` and return a PluginFactory for it.

    The attribute may be a PluginDescriptor or a PluginFactory. Modules are
    also searched for in ``base_path`` (the manifest's directory).
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise MissingPluginPathError(
            f"Plugin `{target}` must be given as `module:attribute`."
        )

    if base_path is not None and str(base_path) not in sys.path:
        sys.path.insert(0, str(base_path))

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise MissingPluginPathError(f"Cannot import plugin module `{module_name}`: {e}") from e

    plugin = getattr(module, attribute, None)
    if plugin is None:
        raise MissingPluginMethodError(
            f"Module `{module_name}` has no attribute `{attribute}`."
        )

    logger.debug("Loaded plugin %s", target)

    if isinstance(plugin, PluginFactory):
        if settings is not None:
            return PluginFactory(plugin.descriptor, settings=settings)
        return plugin
    if isinstance(plugin, PluginDescriptor):
        return PluginFactory(plugin, settings=settings)

    raise PluginInitializationError(
        f"`{target}` is a {type(plugin).__name__}, expected a PluginDescriptor "
        "or a PluginFactory."
    )


def _load_schema() -> dict[str, Any]:
    with open(_SCHEMAS_DIR / _MANIFEST_SCHEMA, encoding="utf-8") as f:
        return json.load(f)
