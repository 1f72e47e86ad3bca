"""Diagnostics of the elog package itself.

elog reports its own events (sink failures, configuration loading, default
logger replacement) through structlog bound loggers wrapping standard library
loggers below the ``elog`` namespace. Until ``configure_diagnostics`` is
called the namespace only has a ``NullHandler``, so a library user sees
nothing unless they opt in.
"""

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Any, Final, TextIO

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

DIAGNOSTICS_NAMESPACE: Final = "elog"

# Default processor configurations
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_TIMESTAMP_UTC = False

_VALID_DIAGNOSTICS_LEVELS: Final = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True, slots=True)
class DiagnosticsConfig:
    """Configuration for the package's own diagnostics output.

    Attributes:
        level:              Standard library level name (DEBUG ... CRITICAL)
        colors:             Enable colored console rendering
        rich_tracebacks:    Render exceptions with rich (requires the 'rich' library)
    """

    level: str = "WARNING"
    colors: bool = True
    rich_tracebacks: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the level is invalid
        """
        if self.level in _VALID_DIAGNOSTICS_LEVELS:
            return
        msg = (
            f"Invalid diagnostics level: {self.level!r}. "
            f"Must be one of: {', '.join(sorted(_VALID_DIAGNOSTICS_LEVELS))}"
        )
        raise ValueError(msg)


def create_shared_processors() -> list[Processor]:
    """Create the structlog processors shared by every diagnostics logger.

    Returns:
        List of processors run before the event reaches the stdlib handler
    """
    return [
        # Standard library integration
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,

        # Error handling and stack traces
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,

        # Timestamp handling
        structlog.processors.TimeStamper(
            fmt=DEFAULT_TIMESTAMP_FORMAT,
            utc=DEFAULT_TIMESTAMP_UTC
        ),
    ]


def get_logger(name: str = DIAGNOSTICS_NAMESPACE) -> BoundLogger:
    """Get a diagnostics logger for an elog module.

    The logger does not depend on the global structlog configuration, so an
    application configuring structlog for itself is left untouched.

    Args:
        name: Logger name (typically __name__, below the ``elog`` namespace)

    Returns:
        Structlog logger bound to the stdlib logger of that name
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            *create_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=BoundLogger,
    )


class _DiagnosticsState:
    """Thread-safe holder of the handler installed by ``configure_diagnostics``."""

    def __init__(self) -> None:
        self._handler: logging.Handler | None = None
        self._lock: Final = threading.Lock()

    def replace_handler(self, handler: logging.Handler | None, level: str) -> None:
        root = logging.getLogger(DIAGNOSTICS_NAMESPACE)
        with self._lock:
            if self._handler is not None:
                root.removeHandler(self._handler)
            self._handler = handler
            if handler is not None:
                root.addHandler(handler)
                root.propagate = False
            else:
                root.propagate = True
            root.setLevel(level)


_state: Final = _DiagnosticsState()

logging.getLogger(DIAGNOSTICS_NAMESPACE).addHandler(logging.NullHandler())


def configure_diagnostics(
        config: DiagnosticsConfig | None = None,
        stream: TextIO | None = None
) -> logging.Handler:
    """Send elog's own diagnostics to a console stream.

    Calling it again replaces the previously installed handler.

    Args:
        config: Diagnostics settings, defaults to ``DiagnosticsConfig()``
        stream: Destination stream, defaults to standard error

    Returns:
        The installed handler
    """
    config = config or DiagnosticsConfig()
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(_create_console_formatter(config))
    _state.replace_handler(handler, config.level)
    return handler


def reset_diagnostics() -> None:
    """Remove the handler installed by ``configure_diagnostics``."""
    _state.replace_handler(None, "NOTSET")


def _create_console_formatter(config: DiagnosticsConfig) -> structlog.stdlib.ProcessorFormatter:
    """Create a formatter for console output.

    Args:
        config: Diagnostics configuration

    Returns:
        Configured ProcessorFormatter for console output
    """
    exception_formatter: Any = (
        structlog.dev.rich_traceback if config.rich_tracebacks else structlog.dev.plain_traceback
    )

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=create_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(
                colors=config.colors,
                exception_formatter=exception_formatter
            ),
        ],
    )
