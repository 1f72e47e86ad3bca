"""Header field flags and field identifiers.

A ``Flag`` value selects which header fields a logger prints and how. An
``Order`` sequence optionally overrides the position of those fields within
the line.
"""

from collections.abc import Iterable
from enum import Enum, IntFlag
from typing import Final


class Flag(IntFlag):
    """Named bits controlling the header of every printed line."""

    DATE = 1 << 0
    TIME = 1 << 1
    MICROSECONDS = 1 << 2  # implies TIME
    UTC = 1 << 3
    LONGFILE = 1 << 4
    SHORTFILE = 1 << 5  # wins over LONGFILE
    MSGPREFIX = 1 << 6
    MSGCOLOR = 1 << 7
    LEVEL = 1 << 8
    LEVEL_COLOR = 1 << 9


NO_FLAGS: Final = Flag(0)
STD_FLAGS: Final = Flag.DATE | Flag.TIME | Flag.SHORTFILE | Flag.LEVEL
PATH_FLAGS: Final = Flag.LONGFILE | Flag.SHORTFILE
_ALL_BITS: Final = sum(member.value for member in Flag)


class Order(str, Enum):
    """Identifiers of the fields that can be placed by an explicit order."""

    DATE = "Date"
    TIME = "Time"
    LEVEL = "Level"
    PREFIX = "Prefix"
    PATH = "Path"
    MESSAGE = "Message"


DEFAULT_ORDER: Final = (
    Order.DATE,
    Order.TIME,
    Order.LEVEL,
    Order.PATH,
    Order.PREFIX,
    Order.MESSAGE,
)

# Bits that make each header field eligible; the message has none
FIELD_FLAGS: Final[dict[Order, Flag]] = {
    Order.DATE: Flag.DATE,
    Order.TIME: Flag.TIME | Flag.MICROSECONDS,
    Order.LEVEL: Flag.LEVEL,
    Order.PATH: PATH_FLAGS,
    Order.PREFIX: Flag.MSGPREFIX,
}


def parse_flags(value: "Flag | int | str | Iterable[str]") -> Flag:
    """Coerce flags given as a Flag, an integer, or flag names.

    Names are the lowercase member names (``"date"``, ``"level_color"``);
    ``"std"`` stands for STD_FLAGS.

    Raises:
        ValueError: If a name is unknown or the integer has undefined bits
    """
    if isinstance(value, Flag):
        return value

    if isinstance(value, int):
        if value & ~_ALL_BITS:
            msg = f"Invalid flag bits: {value:#x}"
            raise ValueError(msg)
        return Flag(value)

    names = [value] if isinstance(value, str) else list(value)
    flags = NO_FLAGS
    for name in names:
        key = str(name).strip().upper()
        if key == "STD":
            flags |= STD_FLAGS
            continue
        try:
            flags |= Flag[key]
        except KeyError:
            valid = ", ".join(sorted(member.name.lower() for member in Flag))
            msg = f"Invalid flag: {name!r}. Must be one of: std, {valid}"
            raise ValueError(msg) from None
    return flags


def parse_order(values: "Iterable[Order | str]") -> tuple[Order, ...]:
    """Coerce an order sequence into a tuple of Order members.

    Accepts members, their values (``"Date"``) or their names (``"date"``),
    case-insensitively.

    Raises:
        ValueError: If an entry names no field
    """
    if isinstance(values, (str, Order)):
        values = [values]

    order = []
    for value in values:
        if isinstance(value, Order):
            order.append(value)
            continue
        key = str(value).strip().upper()
        try:
            order.append(Order[key])
        except KeyError:
            valid = ", ".join(member.value for member in Order)
            msg = f"Invalid order field: {value!r}. Must be one of: {valid}"
            raise ValueError(msg) from None
    return tuple(order)
