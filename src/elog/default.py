"""Free functions logging through the process-wide default logger.

Every call looks the default logger up again, so replacing it with
``set_default`` takes effect immediately. Call sites are reported as the
caller of these functions.
"""

from collections.abc import Iterable
from typing import Any

from .factory import default
from .fields import Flag, Order
from .log_levels import Level
from .logger import DEFAULT_CALL_DEPTH, Logger, sprint, sprintf
from .sinks import Sink


def _log(level: Level, msg: str) -> None:
    logger = default()
    # One extra frame: this helper sits between the public function and emit
    logger.emit(DEFAULT_CALL_DEPTH + 1, level, msg)


def _enabled(level: Level) -> bool:
    return default().is_enabled_for(level)


def trace(*args: object) -> None:
    if _enabled(Level.TRACE):
        _log(Level.TRACE, sprint(*args))


def debug(*args: object) -> None:
    if _enabled(Level.DEBUG):
        _log(Level.DEBUG, sprint(*args))


def info(*args: object) -> None:
    if _enabled(Level.INFO):
        _log(Level.INFO, sprint(*args))


def warn(*args: object) -> None:
    if _enabled(Level.WARN):
        _log(Level.WARN, sprint(*args))


def error(*args: object) -> None:
    if _enabled(Level.ERROR):
        _log(Level.ERROR, sprint(*args))


def panic(*args: object) -> None:
    if _enabled(Level.PANIC):
        _log(Level.PANIC, sprint(*args))


def fatal(*args: object) -> None:
    if _enabled(Level.FATAL):
        _log(Level.FATAL, sprint(*args))


def tracef(fmt: str, *args: object) -> None:
    if _enabled(Level.TRACE):
        _log(Level.TRACE, sprintf(fmt, *args))


def debugf(fmt: str, *args: object) -> None:
    if _enabled(Level.DEBUG):
        _log(Level.DEBUG, sprintf(fmt, *args))


def infof(fmt: str, *args: object) -> None:
    if _enabled(Level.INFO):
        _log(Level.INFO, sprintf(fmt, *args))


def warnf(fmt: str, *args: object) -> None:
    if _enabled(Level.WARN):
        _log(Level.WARN, sprintf(fmt, *args))


def errorf(fmt: str, *args: object) -> None:
    if _enabled(Level.ERROR):
        _log(Level.ERROR, sprintf(fmt, *args))


def panicf(fmt: str, *args: object) -> None:
    if _enabled(Level.PANIC):
        _log(Level.PANIC, sprintf(fmt, *args))


def fatalf(fmt: str, *args: object) -> None:
    if _enabled(Level.FATAL):
        _log(Level.FATAL, sprintf(fmt, *args))


def set_level(level: Level | int | str) -> Logger:
    return default().set_level(level)


def set_flags(flags: Flag | int | Iterable[str]) -> Logger:
    return default().set_flags(flags)


def add_flags(flags: Flag | int | Iterable[str]) -> Logger:
    return default().add_flags(flags)


def remove_flags(flags: Flag | int | Iterable[str]) -> Logger:
    return default().remove_flags(flags)


def set_prefix(prefix: str) -> Logger:
    return default().set_prefix(prefix)


def set_order(*order: Order | str) -> Logger:
    return default().set_order(*order)


def set_name(name: str) -> Logger:
    return default().set_name(name)


def set_output(*targets: Any) -> Logger:
    return default().set_output(*targets)


def level() -> Level:
    return default().level


def flags() -> Flag:
    return default().flags


def prefix() -> str:
    return default().prefix


def order() -> tuple[Order, ...]:
    return default().order


def name() -> str:
    return default().name


def output() -> Sink:
    """The sink the default logger writes to."""
    return default().output
