"""Leveled text logger.

A ``Logger`` owns an immutable ``LoggerConfig``, the sink derived from it and a
scratch buffer reused for every line. One lock guards all three: configuration
reads and writes, and the whole format-and-write sequence of ``out``. The lock
is only let go while the caller's frame is looked up.
"""

import os
import sys
import threading
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Final, NoReturn

from .config import LoggerConfig
from .diagnostics import get_logger
from .errors import PanicError, SinkWriteError
from .fields import NO_FLAGS, PATH_FLAGS, Flag, Order, parse_flags
from .log_levels import Level
from .ordering import LogRecord, render_line
from .sinks import FileSink, Sink, merge_sinks, owned_files

# Frames between ``out`` and user code for the leveled methods
DEFAULT_CALL_DEPTH: Final = 2

UNKNOWN_FILE: Final = "???"

# Name given to children of a logger when ``extend`` sets none
CHILD_NAME_PREFIX: Final = "SonBy"

_log = get_logger(__name__)


def sprint(*args: object) -> str:
    """Render arguments the way ``print`` does: ``str`` of each, space separated."""
    return " ".join(str(arg) for arg in args)


def sprintf(fmt: str, *args: object) -> str:
    """Interpolate ``args`` into ``fmt`` with %-formatting; no args leaves it as is."""
    return fmt % args if args else fmt


def _caller(depth: int) -> tuple[str, int]:
    """Return file and line of the frame ``depth`` levels above our caller."""
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return UNKNOWN_FILE, 0
    return frame.f_code.co_filename, frame.f_lineno


class Logger:
    """Thread-safe leveled logger writing formatted lines to its outputs.

    Args:
        level:      Minimum severity printed
        flags:      Enabled header fields (Flag, int or flag names)
        prefix:     Text printed by the prefix field
        order:      Explicit field order
        outputs:    Output targets; none means standard error
        name:       Display name
    """

    def __init__(
            self,
            level: Level | int | str = Level.INFO,
            *,
            flags: Flag | int | Iterable[str] = NO_FLAGS,
            prefix: str = "",
            order: Iterable[Order | str] = (),
            outputs: Any = (),
            name: str = ""
    ) -> None:
        self._lock: Final = threading.Lock()
        self._buf = bytearray()
        self._owned: tuple[FileSink, ...] = ()
        self._apply(LoggerConfig.create_default().merge(
            level=level,
            flags=flags,
            prefix=prefix,
            order=order,
            outputs=outputs,
            name=name,
        ))

    @classmethod
    def from_config(cls, config: LoggerConfig) -> "Logger":
        """Create a logger running with ``config``."""
        logger = cls()
        logger._apply(config)
        return logger

    def extend(self, **overrides: Any) -> "Logger":
        """Create a child logger starting from a snapshot of this one.

        The child shares the parent's sinks but nothing mutable: changing
        either logger afterwards never affects the other. Unless a name is
        given, the child is called ``"SonBy" + parent name``.

        Args:
            **overrides: Configuration fields to change in the child, as for
                         ``LoggerConfig.merge``

        Returns:
            The new logger
        """
        config = self.config
        overrides.setdefault("name", CHILD_NAME_PREFIX + config.name)
        return Logger.from_config(config.merge(**overrides))

    def _apply(self, config: LoggerConfig) -> None:
        # Callers hold the lock, except during construction
        owned = owned_files(config.outputs)
        for sink in owned:
            sink.retain()
        for sink in self._owned:
            sink.release()

        self._owned = owned
        self._config = config
        self._sink: Sink = merge_sinks(config.outputs)

    def close(self) -> None:
        """Close the files this logger opened from paths.

        Files still used by another logger (e.g. an ``extend`` child) stay
        open, and caller-supplied streams and sinks are never closed. Lines
        logged afterwards to a closed file raise SinkWriteError.
        """
        with self._lock:
            owned, self._owned = self._owned, ()
            for sink in owned:
                sink.release()

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _update(self, **changes: Any) -> "Logger":
        with self._lock:
            self._apply(self._config.merge(**changes))
        return self

    # Getters

    @property
    def config(self) -> LoggerConfig:
        with self._lock:
            return self._config

    @property
    def level(self) -> Level:
        with self._lock:
            return self._config.level

    @property
    def flags(self) -> Flag:
        with self._lock:
            return self._config.flags

    @property
    def prefix(self) -> str:
        with self._lock:
            return self._config.prefix

    @property
    def order(self) -> tuple[Order, ...]:
        with self._lock:
            return self._config.order

    @property
    def name(self) -> str:
        with self._lock:
            return self._config.name

    @property
    def output(self) -> Sink:
        """The sink lines are written to (a MultiSink for several outputs)."""
        with self._lock:
            return self._sink

    # Setters, chainable

    def set_level(self, level: Level | int | str) -> "Logger":
        return self._update(level=level)

    def set_flags(self, flags: Flag | int | Iterable[str]) -> "Logger":
        """Replace all flags."""
        return self._update(flags=flags)

    def add_flags(self, flags: Flag | int | Iterable[str]) -> "Logger":
        """Enable ``flags`` in addition to the current ones."""
        with self._lock:
            config = self._config
            self._apply(config.merge(flags=config.flags | parse_flags(flags)))
        return self

    def remove_flags(self, flags: Flag | int | Iterable[str]) -> "Logger":
        """Disable ``flags``, keeping the others."""
        with self._lock:
            config = self._config
            self._apply(config.merge(flags=config.flags & ~parse_flags(flags)))
        return self

    def set_prefix(self, prefix: str) -> "Logger":
        return self._update(prefix=prefix)

    def set_order(self, *order: Order | str) -> "Logger":
        """Replace the explicit field order; no arguments restores the default."""
        return self._update(order=order)

    def set_name(self, name: str) -> "Logger":
        return self._update(name=name)

    def set_output(self, *targets: Any) -> "Logger":
        """Replace the outputs; several targets receive every line."""
        return self._update(outputs=targets)

    def is_enabled_for(self, level: Level) -> bool:
        with self._lock:
            return level >= self._config.level

    # Record assembly

    def out(self, calldepth: int, level: Level, msg: str) -> None:
        """Format one line and write it to the sink.

        Args:
            calldepth:  Frames to skip above this method when resolving the
                        caller (1 is the direct caller of ``out``)
            level:      Severity of the line
            msg:        Rendered message

        Raises:
            SinkWriteError: If the sink fails to accept the line
        """
        now = datetime.now()
        file, line = "", 0

        self._lock.acquire()
        try:
            config, sink = self._config, self._sink

            if config.flags & PATH_FLAGS:
                # Frame lookup is slow; don't hold up other callers for it
                self._lock.release()
                try:
                    file, line = _caller(calldepth)
                finally:
                    self._lock.acquire()

            buf = self._buf
            buf.clear()
            render_line(
                buf,
                LogRecord(when=now, level=level, file=file, line=line, message=msg),
                flags=config.flags,
                order=config.order,
                prefix=config.prefix,
            )

            try:
                sink.write(bytes(buf))
            except Exception as e:
                _log.warning("sink_write_failed", name=config.name, sink=repr(sink), exc_info=e)
                reason = f"Failed to write log line to {sink!r}: {e}"
                raise SinkWriteError(reason) from e
        finally:
            self._lock.release()

    def emit(self, calldepth: int, level: Level, msg: str) -> None:
        """Write a line through ``out`` and apply the panic and fatal semantics.

        No level check happens here; ``calldepth`` counts frames above this
        method, as for ``out``.
        """
        if level < Level.PANIC:
            self.out(calldepth + 1, level, msg)
            return

        try:
            self.out(calldepth + 1, level, msg)
        except Exception as e:
            _abort(level, msg, e)
        _abort(level, msg)

    # Leveled methods

    def trace(self, *args: object) -> None:
        if self.is_enabled_for(Level.TRACE):
            self.emit(DEFAULT_CALL_DEPTH, Level.TRACE, sprint(*args))

    def debug(self, *args: object) -> None:
        if self.is_enabled_for(Level.DEBUG):
            self.emit(DEFAULT_CALL_DEPTH, Level.DEBUG, sprint(*args))

    def info(self, *args: object) -> None:
        """Log the arguments, joined by single spaces, at INFO level."""
        if self.is_enabled_for(Level.INFO):
            self.emit(DEFAULT_CALL_DEPTH, Level.INFO, sprint(*args))

    def warn(self, *args: object) -> None:
        if self.is_enabled_for(Level.WARN):
            self.emit(DEFAULT_CALL_DEPTH, Level.WARN, sprint(*args))

    def error(self, *args: object) -> None:
        if self.is_enabled_for(Level.ERROR):
            self.emit(DEFAULT_CALL_DEPTH, Level.ERROR, sprint(*args))

    def panic(self, *args: object) -> None:
        """Log at PANIC level, then raise PanicError with the message.

        Raises:
            PanicError: Always when the level is enabled, even if the write failed
        """
        if self.is_enabled_for(Level.PANIC):
            self.emit(DEFAULT_CALL_DEPTH, Level.PANIC, sprint(*args))

    def fatal(self, *args: object) -> None:
        """Log at FATAL level, then terminate the process with status 1.

        Outside the main thread the process exits through ``os._exit``.

        Raises:
            SystemExit: Always when the level is enabled, even if the write failed
        """
        if self.is_enabled_for(Level.FATAL):
            self.emit(DEFAULT_CALL_DEPTH, Level.FATAL, sprint(*args))

    def tracef(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.TRACE):
            self.emit(DEFAULT_CALL_DEPTH, Level.TRACE, sprintf(fmt, *args))

    def debugf(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.DEBUG):
            self.emit(DEFAULT_CALL_DEPTH, Level.DEBUG, sprintf(fmt, *args))

    def infof(self, fmt: str, *args: object) -> None:
        """Log ``fmt % args`` at INFO level."""
        if self.is_enabled_for(Level.INFO):
            self.emit(DEFAULT_CALL_DEPTH, Level.INFO, sprintf(fmt, *args))

    def warnf(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.WARN):
            self.emit(DEFAULT_CALL_DEPTH, Level.WARN, sprintf(fmt, *args))

    def errorf(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.ERROR):
            self.emit(DEFAULT_CALL_DEPTH, Level.ERROR, sprintf(fmt, *args))

    def panicf(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.PANIC):
            self.emit(DEFAULT_CALL_DEPTH, Level.PANIC, sprintf(fmt, *args))

    def fatalf(self, fmt: str, *args: object) -> None:
        if self.is_enabled_for(Level.FATAL):
            self.emit(DEFAULT_CALL_DEPTH, Level.FATAL, sprintf(fmt, *args))

    def __repr__(self) -> str:
        config = self.config
        return (
            f"Logger(name={config.name!r}, level={config.level.name}, "
            f"flags={config.flags!r}, order={[o.value for o in config.order]})"
        )


def _abort(level: Level, msg: str, cause: BaseException | None = None) -> NoReturn:
    """Terminate a panic or fatal call once its line has been written.

    Fatal raises SystemExit(1) on the main thread. Other threads swallow
    SystemExit, so there the standard streams are flushed and the process
    exits immediately.
    """
    if level is not Level.FATAL:
        raise PanicError(msg) from cause

    if threading.current_thread() is not threading.main_thread():
        try:
            for stream in (sys.stdout, sys.stderr):
                if stream is not None:
                    stream.flush()
        finally:
            os._exit(1)
    raise SystemExit(1) from cause
