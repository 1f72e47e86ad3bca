"""Factory module for building loggers and holding the process-wide default.

This module provides the fluent builder used to create loggers from a
configuration file or from scratch, and the state behind the default logger.

The default logger is created lazily, under a lock, the first time it is
needed; importing elog never builds it. It can be replaced at any time with
``set_default`` or ``LoggerBuilder.install``.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from .config import LoggerConfig
from .diagnostics import DiagnosticsConfig, configure_diagnostics, get_logger as get_diagnostics_logger
from .fields import STD_FLAGS, Flag, Order
from .log_levels import Level
from .logger import Logger
from .sinks import Sink, open_sinks

DEFAULT_NAME: Final = "Global"
DEFAULT_PREFIX: Final = "[eLog]"

_log = get_diagnostics_logger(__name__)


class DefaultLoggerState:
    """Holds the process-wide default logger.

    Attributes:
        _logger:    Current default logger, None until first requested
        _lock:      Threading lock guarding creation and replacement
    """

    def __init__(self) -> None:
        """Initialize the state without creating a logger."""
        self._logger: Logger | None = None
        self._lock: Final = threading.Lock()

    def get(self) -> Logger:
        """Get the default logger, creating it on first use.

        Returns:
            The current default logger
        """
        with self._lock:
            if self._logger is None:
                self._logger = create_default_logger()
            return self._logger

    def set(self, logger: Logger) -> Logger | None:
        """Replace the default logger.

        Args:
            logger: Logger to use from now on

        Returns:
            The previous default logger, or None if none had been created
        """
        with self._lock:
            previous, self._logger = self._logger, logger
        _log.debug("default_logger_replaced", name=logger.name)
        return previous


# Global default logger state
_default_state: Final = DefaultLoggerState()


def create_default_logger() -> Logger:
    """Create a logger with the default-logger settings.

    INFO threshold, standard header flags, ``[eLog]`` prefix, output to
    standard error.
    """
    return Logger(
        Level.INFO,
        flags=STD_FLAGS,
        prefix=DEFAULT_PREFIX,
        name=DEFAULT_NAME,
    )


def default() -> Logger:
    """Get the process-wide default logger."""
    return _default_state.get()


def set_default(logger: Logger) -> Logger | None:
    """Make ``logger`` the process-wide default; returns the previous one.

    The previous logger is left open; call its ``close`` once it is unused.
    """
    return _default_state.set(logger)


def get_logger(name: str | None = None) -> Logger:
    """Get the default logger, or a named child of it.

    Args:
        name: Optional display name (typically __name__). When given, a new
              child of the default logger carrying that name is returned.

    Returns:
        Logger instance
    """
    logger = default()
    if name is None:
        return logger
    return logger.extend(name=name)


@dataclass
class LoggerBuilder:
    """Builder for logger configuration.

    Provides a fluent interface on top of a base configuration, usually read
    from a TOML file. Each ``with_*`` call replaces the corresponding setting;
    outputs accumulate.

    Attributes:
        _base_config:   Base configuration from TOML or defaults
        _outputs:       Sinks opened from the targets added with ``with_output``
    """

    _base_config: LoggerConfig
    _outputs: list[Sink] = field(default_factory=list)

    def with_level(self, level: Level | int | str) -> "LoggerBuilder":
        """Set the minimum printed level.

        Returns:
            Self for method chaining
        """
        self._base_config = self._base_config.merge(level=level)
        return self

    def with_flags(self, flags: Flag | int | list[str]) -> "LoggerBuilder":
        """Replace the header flags.

        Returns:
            Self for method chaining
        """
        self._base_config = self._base_config.merge(flags=flags)
        return self

    def with_prefix(self, prefix: str) -> "LoggerBuilder":
        self._base_config = self._base_config.merge(prefix=prefix)
        return self

    def with_order(self, *order: Order | str) -> "LoggerBuilder":
        """Replace the explicit field order.

        Returns:
            Self for method chaining
        """
        self._base_config = self._base_config.merge(order=order)
        return self

    def with_name(self, name: str) -> "LoggerBuilder":
        self._base_config = self._base_config.merge(name=name)
        return self

    def with_output(self, *targets: Any) -> "LoggerBuilder":
        """Add output targets.

        Targets are streams, sinks, ``"stderr"``/``"stdout"`` or file paths.
        They are opened here, once, and appended after the outputs of the base
        configuration.

        Returns:
            Self for method chaining
        """
        self._outputs.extend(open_sinks(targets))
        return self

    def with_diagnostics(
            self,
            level: str = "WARNING",
            colors: bool = True,
            rich_tracebacks: bool = False
    ) -> "LoggerBuilder":
        """Enable console output of elog's own diagnostics when building.

        Returns:
            Self for method chaining
        """
        diagnostics = DiagnosticsConfig(level=level.upper(), colors=colors, rich_tracebacks=rich_tracebacks)
        self._base_config = self._base_config.merge(diagnostics=diagnostics)
        return self

    def config(self) -> LoggerConfig:
        """Get the configuration the builder would build with."""
        if not self._outputs:
            return self._base_config
        return self._base_config.merge(outputs=(*self._base_config.outputs, *self._outputs))

    def build(self) -> Logger:
        """Build the logger.

        Applies the diagnostics settings first when the configuration has any.

        Returns:
            The new logger
        """
        config = self.config()
        if config.diagnostics is not None:
            configure_diagnostics(config.diagnostics)
        return Logger.from_config(config)

    def install(self) -> Logger:
        """Build the logger and make it the process-wide default.

        Returns:
            The new default logger
        """
        logger = self.build()
        set_default(logger)
        return logger


def configure_logger(config_path: str | Path | None = None) -> LoggerBuilder:
    """Start configuring a logger.

    If no configuration path is provided, it starts from the default
    configuration. The returned builder allows further customization before
    building.

    Args:
        config_path: Optional path to a TOML config file

    Returns:
        LoggerBuilder instance for method chaining
    """
    config = (
        LoggerConfig.from_toml(Path(config_path))
        if config_path is not None
        else LoggerConfig.create_default()
    )

    return LoggerBuilder(config)
