"""Ordering engine assembling one log line from its fields.

The explicit order of a logger is walked first, then the fixed default
sequence. A per-line working set of pending fields guarantees that every
enabled field is emitted exactly once however many times it is requested.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from .fields import DEFAULT_ORDER, FIELD_FLAGS, NO_FLAGS, Flag, Order
from .formatter import (
    NEWLINE,
    add_space,
    append_date,
    append_level,
    append_message,
    append_path,
    append_prefix,
    append_time,
)
from .log_levels import Level


@dataclass(frozen=True, slots=True)
class LogRecord:
    """Values printed for a single log call.

    Attributes:
        when:       Capture time, in local time unless converted by the UTC flag
        level:      Severity of the call
        file:       Source file of the caller, empty when not resolved
        line:       Line number of the caller
        message:    Fully rendered message text
    """

    when: datetime
    level: Level
    file: str
    line: int
    message: str


class PendingFields:
    """Working set of the fields a line still has to emit.

    Header fields are tracked by their flag bits; the message by a written
    guard, since it is printed regardless of flags.
    """

    __slots__ = ("_pending", "_message_written")

    def __init__(self, flags: Flag) -> None:
        self._pending = flags
        self._message_written = False

    def take(self, field: Order) -> Flag:
        """Claim a header field.

        Returns:
            The field's bits that were still pending (empty if the field is
            disabled or already emitted). They are cleared from the set.
        """
        bits = self._pending & FIELD_FLAGS.get(field, NO_FLAGS)
        self._pending &= ~bits
        return bits

    def take_message(self) -> bool:
        """Claim the message; True only on the first call."""
        if self._message_written:
            return False
        self._message_written = True
        return True


def render_line(
        buf: bytearray,
        record: LogRecord,
        *,
        flags: Flag,
        order: Sequence[Order] = (),
        prefix: str = ""
) -> None:
    """Append the complete, newline-terminated line for ``record`` to ``buf``.

    Args:
        buf:    Line buffer to append to
        record: Values of the log call
        flags:  Enabled fields and modifiers
        order:  Explicit field order, emitted before the default sequence
        prefix: Text printed by the prefix field
    """
    when = record.when
    if flags & Flag.UTC:
        when = when.astimezone(timezone.utc)

    pending = PendingFields(flags)
    end = len(buf)

    for field in (*order, *DEFAULT_ORDER):
        start = len(buf)

        if field is Order.MESSAGE:
            if not pending.take_message():
                continue
            append_message(buf, record.level, record.message, bool(flags & Flag.MSGCOLOR))
        else:
            bits = pending.take(field)
            if not bits:
                continue
            _append_field(buf, field, bits, flags, when, record, prefix)

        if len(buf) > start:
            end = len(buf)
        add_space(buf)

    # Drop the separator after the last fragment; the line ends here
    del buf[end:]
    buf.append(NEWLINE)


def _append_field(
        buf: bytearray,
        field: Order,
        bits: Flag,
        flags: Flag,
        when: datetime,
        record: LogRecord,
        prefix: str
) -> None:
    if field is Order.DATE:
        append_date(buf, when)
    elif field is Order.TIME:
        append_time(buf, when, bool(bits & Flag.MICROSECONDS))
    elif field is Order.LEVEL:
        append_level(buf, record.level, bool(flags & Flag.LEVEL_COLOR))
    elif field is Order.PATH:
        append_path(buf, record.file, record.line, bool(bits & Flag.SHORTFILE))
    elif field is Order.PREFIX:
        append_prefix(buf, prefix)
