"""Field formatters appending header fragments to a line buffer.

Every function here appends to a caller-owned ``bytearray`` and nothing else:
deciding *whether* a field is printed belongs to the ordering engine.
"""

import os
from datetime import datetime
from typing import Final

from .log_levels import RESET, Level, style_for

ENCODING: Final = "utf-8"
ENCODING_ERRORS: Final = "backslashreplace"

SPACE: Final = 0x20
NEWLINE: Final = 0x0A
_ZERO: Final = 0x30

_SEPARATORS: Final = frozenset({"/", os.sep})


def itoa(buf: bytearray, num: int, width: int) -> None:
    """Append ``num`` as decimal text, zero-padded to at least ``width`` digits.

    Digits are written straight into the tail of ``buf`` and reversed in place.
    A negative width disables padding. Values wider than ``width`` are never
    truncated.

    Args:
        buf:    Buffer to append to
        num:    Non-negative integer to encode
        width:  Minimum number of digits, or a negative number for no padding

    Raises:
        ValueError: If ``num`` is negative
    """
    if num < 0:
        msg = f"itoa expects a non-negative integer, got {num}"
        raise ValueError(msg)

    start = len(buf)
    while num >= 10 or width > 1:
        num, digit = divmod(num, 10)
        buf.append(_ZERO + digit)
        width -= 1
    buf.append(_ZERO + num)

    end = len(buf) - 1
    while start < end:
        buf[start], buf[end] = buf[end], buf[start]
        start += 1
        end -= 1


def add_space(buf: bytearray) -> None:
    """Append a single separator unless the buffer is empty or ends in one."""
    if buf and buf[-1] != SPACE:
        buf.append(SPACE)


def append_text(buf: bytearray, text: str) -> None:
    buf += text.encode(ENCODING, ENCODING_ERRORS)


def append_date(buf: bytearray, when: datetime) -> None:
    """Append ``YYYY/MM/DD``."""
    itoa(buf, when.year, 4)
    buf += b"/"
    itoa(buf, when.month, 2)
    buf += b"/"
    itoa(buf, when.day, 2)


def append_time(buf: bytearray, when: datetime, micro: bool) -> None:
    """Append ``HH:MM:SS``, followed by ``.NNNNNN`` when ``micro`` is set."""
    itoa(buf, when.hour, 2)
    buf += b":"
    itoa(buf, when.minute, 2)
    buf += b":"
    itoa(buf, when.second, 2)
    if micro:
        buf += b"."
        itoa(buf, when.microsecond, 6)


def append_level(buf: bytearray, level: Level, colored: bool) -> None:
    """Append the fixed-width level label, optionally as a colored badge."""
    style = style_for(level)
    if colored:
        append_text(buf, f"{style.badge} {style.label} {RESET}")
    else:
        append_text(buf, style.label)


def short_path(file: str) -> str:
    """Strip everything up to and including the last path separator."""
    cut = max(file.rfind(sep) for sep in _SEPARATORS)
    return file[cut + 1:] if cut > 0 else file


def append_path(buf: bytearray, file: str, line: int, short: bool) -> None:
    """Append ``file:line``, with the file reduced to its base name if ``short``."""
    append_text(buf, short_path(file) if short else file)
    buf += b":"
    itoa(buf, line, -1)


def append_prefix(buf: bytearray, prefix: str) -> None:
    append_text(buf, prefix)


def append_message(buf: bytearray, level: Level, message: str, colored: bool) -> None:
    """Append the message body without its line terminator.

    One trailing newline is dropped because the engine terminates the line
    itself. With ``colored`` the body is wrapped in the level's color and a
    reset escape.
    """
    if message.endswith("\n"):
        message = message[:-1]

    if colored:
        append_text(buf, f"{style_for(level).color}{message}{RESET}")
    else:
        append_text(buf, message)
