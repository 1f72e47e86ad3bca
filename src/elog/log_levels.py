"""Severity levels, their display labels and color escapes."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Final, Literal, get_args


class Level(IntEnum):
    """Severity of a log call, ordered from most verbose to most severe.

    A logger emits a call when ``call_level >= threshold``. ``DISCARD`` sits
    above every printable level, so using it as a threshold silences a logger.
    """

    TRACE = 1
    DEBUG = 2
    INFO = 3
    WARN = 4
    ERROR = 5
    PANIC = 6
    FATAL = 7
    DISCARD = 8


LevelName = Literal["TRACE", "DEBUG", "INFO", "WARN", "ERROR", "PANIC", "FATAL", "DISCARD"]
VALID_LEVEL_NAMES = frozenset(get_args(LevelName))

_ALIASES: Final = {"WARNING": "WARN", "CRITICAL": "FATAL"}

RESET: Final = "\x1b[0m"


@dataclass(frozen=True, slots=True)
class LevelStyle:
    """Rendering attributes of one printable level.

    Attributes:
        label:  Fixed-width (5 characters) label, e.g. ``"WARN "``
        badge:  Background escape used when the label is colored
        color:  Foreground escape used when the message is colored
    """

    label: str
    badge: str
    color: str


LEVEL_STYLES: Final[dict[Level, LevelStyle]] = {
    Level.FATAL: LevelStyle("FATAL", "\x1b[0;30;45m", "\x1b[1;35;40m"),
    Level.PANIC: LevelStyle("PANIC", "\x1b[1;37;45m", "\x1b[1;35;40m"),
    Level.ERROR: LevelStyle("ERROR", "\x1b[1;37;41m", "\x1b[1;31;40m"),
    Level.WARN: LevelStyle("WARN ", "\x1b[0;30;43m", "\x1b[1;33;40m"),
    Level.INFO: LevelStyle("INFO ", "\x1b[0;30;46m", "\x1b[1;36;40m"),
    Level.DEBUG: LevelStyle("DEBUG", "\x1b[0;37;44m", "\x1b[1;34;40m"),
    Level.TRACE: LevelStyle("TRACE", "\x1b[0;30;42m", "\x1b[1;32;40m"),
}


def style_for(level: Level) -> LevelStyle:
    """Return the label and colors for ``level``.

    Raises:
        ValueError: If ``level`` is not a printable level (``DISCARD``)
    """
    try:
        return LEVEL_STYLES[level]
    except KeyError:
        msg = f"Level {level!r} cannot be printed"
        raise ValueError(msg) from None


def parse_level(value: "Level | int | str") -> Level:
    """Coerce a level given as a member, an integer or a (case-insensitive) name.

    Args:
        value: Level to coerce

    Returns:
        The matching Level member

    Raises:
        ValueError: If the value names no level
    """
    if isinstance(value, Level):
        return value

    if isinstance(value, str):
        name = value.strip().upper()
        name = _ALIASES.get(name, name)
        if name in VALID_LEVEL_NAMES:
            return Level[name]
        msg = (
            f"Invalid logging level: {value!r}. "
            f"Must be one of: {', '.join(sorted(VALID_LEVEL_NAMES))}"
        )
        raise ValueError(msg)

    try:
        return Level(value)
    except ValueError as e:
        msg = f"Invalid logging level: {value!r}"
        raise ValueError(msg) from e
