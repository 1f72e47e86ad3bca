"""Configuration handling for elog loggers.

This module defines the immutable configuration of a logger, the single merge
step every mutation goes through, and TOML parsing of configuration files.
"""

from collections.abc import Iterable
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import tomllib

from .diagnostics import DiagnosticsConfig, get_logger
from .fields import NO_FLAGS, Flag, Order, parse_flags, parse_order
from .log_levels import Level, parse_level
from .sinks import Sink, open_sinks

_log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Complete configuration of one logger.

    Instances are immutable. Use ``merge`` to derive a changed copy; it accepts
    loosely typed values (level names, flag names, file paths) and coerces
    them, while the constructor expects the exact types.

    Attributes:
        level:          Minimum severity printed
        flags:          Enabled header fields and modifiers
        prefix:         Text printed by the prefix field (requires Flag.MSGPREFIX)
        order:          Explicit field order, empty for the default sequence
        name:           Display name of the logger
        outputs:        Sinks every line is written to; empty means standard error
        diagnostics:    Settings for elog's own diagnostics, applied by the builder
    """

    level: Level = Level.INFO
    flags: Flag = NO_FLAGS
    prefix: str = ""
    order: tuple[Order, ...] = ()
    name: str = ""
    outputs: tuple[Sink, ...] = ()
    diagnostics: DiagnosticsConfig | None = None

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If a field holds a value of the wrong kind
        """
        if not isinstance(self.level, Level):
            msg = f"level must be a Level, got {self.level!r}"
            raise ValueError(msg)

        if not isinstance(self.flags, Flag):
            msg = f"flags must be a Flag, got {self.flags!r}"
            raise ValueError(msg)

        if not isinstance(self.prefix, str) or not isinstance(self.name, str):
            msg = "prefix and name must be strings"
            raise ValueError(msg)

        if not isinstance(self.order, tuple) or not all(isinstance(o, Order) for o in self.order):
            msg = f"order must be a tuple of Order members, got {self.order!r}"
            raise ValueError(msg)

    def merge(self, **changes: Any) -> "LoggerConfig":
        """Create a new instance with ``changes`` coerced and applied.

        Args:
            **changes: Field values; level, flags, order and outputs accept the
                       same loose forms as ``parse_level``, ``parse_flags``,
                       ``parse_order`` and ``open_sinks``

        Returns:
            New LoggerConfig instance

        Raises:
            TypeError:  If a change names an unknown field
            ValueError: If a value cannot be coerced
        """
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            msg = f"Unknown logger configuration field(s): {', '.join(sorted(unknown))}"
            raise TypeError(msg)

        if "level" in changes:
            changes["level"] = parse_level(changes["level"])
        if "flags" in changes:
            changes["flags"] = parse_flags(changes["flags"])
        if "order" in changes:
            changes["order"] = parse_order(changes["order"])
        if "outputs" in changes:
            changes["outputs"] = open_sinks(changes["outputs"])

        return replace(self, **changes)

    @classmethod
    def from_toml(cls, config_path: Path) -> "LoggerConfig":
        """Create LoggerConfig instance from a TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Configured LoggerConfig instance

        Raises:
            FileNotFoundError:  If the configuration file doesn't exist
            ValueError:         If the file is malformed, required keys are missing or values are invalid
        """
        try:
            config_data = cls._load_toml(config_path)
            config = cls._parse_config(config_data)

        except KeyError as e:
            msg = f"Missing required configuration key: {e.args[0]}"
            raise ValueError(msg) from e

        except (TypeError, ValueError) as e:
            msg = f"Invalid value in configuration file: {e!s}"
            raise ValueError(msg) from e

        _log.debug("config_loaded", path=str(config_path), name=config.name)
        return config

    @classmethod
    def _load_toml(cls, config_path: Path) -> dict:
        """Load and parse the TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError:  If the configuration file doesn't exist
            ValueError:         If the TOML file is malformed
        """
        try:
            with config_path.open("rb") as f:
                return tomllib.load(f)

        except FileNotFoundError as e:
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg) from e

        except tomllib.TOMLDecodeError as e:
            msg = f"Failed to parse TOML file {config_path}: {e}"
            raise ValueError(msg) from e

    @classmethod
    def _parse_config(cls, config_data: dict) -> "LoggerConfig":
        """Parse the configuration dictionary into a LoggerConfig instance.

        Args:
            config_data: Dictionary containing the configuration data

        Returns:
            Configured LoggerConfig instance
        """
        elog_config = config_data["elog"]

        return cls.create_default().merge(
            level=elog_config.get("level", "INFO"),
            flags=elog_config.get("flags", ()),
            prefix=str(elog_config.get("prefix", "")),
            order=elog_config.get("order", ()),
            name=str(elog_config.get("name", "")),
            outputs=_output_targets(elog_config.get("outputs", ())),
            diagnostics=cls._create_diagnostics_config(elog_config.get("diagnostics", {}))
        )

    @staticmethod
    def _create_diagnostics_config(diagnostics_config: dict) -> DiagnosticsConfig | None:
        """Create a DiagnosticsConfig from the configuration dictionary.

        Args:
            diagnostics_config: Dictionary containing diagnostics configuration

        Returns:
            Configured DiagnosticsConfig instance, or None if the section is absent
        """
        if not diagnostics_config:
            return None

        return DiagnosticsConfig(
            level=str(diagnostics_config.get("level", "WARNING")).upper(),
            colors=bool(diagnostics_config.get("colors", True)),
            rich_tracebacks=bool(diagnostics_config.get("rich_tracebacks", False))
        )

    @classmethod
    def create_default(cls) -> "LoggerConfig":
        """Create a default LoggerConfig instance.

        Creates a configuration with sensible defaults:
        - INFO level threshold
        - No header fields, no prefix, default field order
        - Output to standard error

        Returns:
            LoggerConfig instance with default settings
        """
        return cls()


def _output_targets(outputs: Iterable[Any] | str) -> list[str]:
    """Validate the ``outputs`` entry of a configuration file."""
    if isinstance(outputs, str):
        outputs = [outputs]
    targets = list(outputs)
    for target in targets:
        if not isinstance(target, str) or not target:
            msg = f"outputs entries must be non-empty strings, got {target!r}"
            raise ValueError(msg)
    return targets
