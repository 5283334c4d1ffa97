"""Runtime configuration for plugincore."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from plugincore.errors import ConfigError

MAPPING_MODES = ("snapshot", "shared")


@dataclass(frozen=True)
class PluginCoreConfig:
    """Process-wide settings.

    Attributes:
        log_level: Level name used by the CLI when configuring logging
        mapping_mode: ``snapshot`` gives every ``execute`` call its own copy
            of the mapping table; ``shared`` lets config mapping consume
            entries from the instance's table across calls
    """

    log_level: str = "WARNING"
    mapping_mode: str = "snapshot"

    def __post_init__(self) -> None:
        if self.mapping_mode not in MAPPING_MODES:
            raise ConfigError(
                f"Unsupported mapping mode `{self.mapping_mode}`. "
                f"Expected one of: {', '.join(MAPPING_MODES)}."
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level `{self.log_level}`.")

    @classmethod
    def from_env(cls) -> PluginCoreConfig:
        """Create config from environment variables.

        Reads PLUGINCORE_LOG_LEVEL and PLUGINCORE_MAPPING_MODE, falling back
        to the dataclass defaults.
        """
        return cls(
            log_level=os.environ.get("PLUGINCORE_LOG_LEVEL", cls.log_level).upper(),
            mapping_mode=os.environ.get(
                "PLUGINCORE_MAPPING_MODE", cls.mapping_mode
            ).lower(),
        )

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    @property
    def shares_mapping(self) -> bool:
        return self.mapping_mode == "shared"
