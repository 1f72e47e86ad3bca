"""Byte sinks receiving formatted log lines.

A sink is anything with a ``write(data: bytes)`` method that raises on
failure. This module adapts the usual targets (standard streams, text and
binary streams, files) to that contract and fans one write out to several
sinks.
"""

import io
import sys
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from .formatter import ENCODING, ENCODING_ERRORS

STANDARD_STREAMS: Final = frozenset({"stderr", "stdout"})


@runtime_checkable
class Sink(Protocol):
    """Destination of formatted lines.

    ``write`` receives one complete line per call and signals failure by
    raising. Its return value is ignored.
    """

    def write(self, data: bytes) -> Any: ...


class StreamSink:
    """Sink over an already open stream.

    Text streams (``io.TextIOBase``) receive decoded text, any other stream
    receives bytes. The stream is flushed after every write when it can be.
    """

    def __init__(self, stream: Any) -> None:
        self.stream = stream
        self._text = isinstance(stream, io.TextIOBase)

    def write(self, data: bytes) -> None:
        if self._text:
            self.stream.write(data.decode(ENCODING, ENCODING_ERRORS))
        else:
            self.stream.write(data)
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def __repr__(self) -> str:
        return f"StreamSink({self.stream!r})"


class StandardStreamSink:
    """Sink over ``sys.stderr`` or ``sys.stdout``, looked up at every write.

    Late lookup keeps the sink valid when the stream is replaced after the
    logger was created (redirection, test capture).
    """

    def __init__(self, name: str = "stderr") -> None:
        if name not in STANDARD_STREAMS:
            msg = f"Unknown standard stream: {name!r}. Must be one of: stderr, stdout"
            raise ValueError(msg)
        self.name = name

    def write(self, data: bytes) -> None:
        StreamSink(getattr(sys, self.name)).write(data)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StandardStreamSink) and other.name == self.name

    def __hash__(self) -> int:
        return hash((StandardStreamSink, self.name))

    def __repr__(self) -> str:
        return f"StandardStreamSink({self.name!r})"


class FileSink:
    """Append-mode file sink.

    Parent directories are created on construction. The file stays open until
    ``close`` is called and every line is flushed as it is written.

    A sink opened by elog from a path is ``owned``: loggers using it call
    ``retain`` and ``release``, and the file is closed when the last of them
    lets go. Sinks created by the caller are never closed by a logger.
    """

    def __init__(self, path: str | Path, encoding: str = ENCODING, *, owned: bool = False) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self.owned = owned
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("ab")
        self._lock = threading.Lock()
        self._users = 0

    def retain(self) -> None:
        """Register one more logger writing here, reopening the file if needed."""
        with self._lock:
            if self._file.closed:
                self._file = self.path.open("ab")
            self._users += 1

    def release(self) -> None:
        """Unregister a logger; the file is closed once no logger is left."""
        with self._lock:
            self._users = max(self._users - 1, 0)
            if not self._users:
                self._file.close()

    def write(self, data: bytes) -> None:
        if self.encoding != ENCODING:
            data = data.decode(ENCODING, ENCODING_ERRORS).encode(self.encoding, "replace")
        with self._lock:
            self._file.write(data)
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __repr__(self) -> str:
        return f"FileSink({str(self.path)!r})"


class MultiSink:
    """Fan-out sink duplicating every write to each of its sinks in order.

    Writing stops at the first failing sink and its exception propagates;
    sinks before it have already received the line.
    """

    def __init__(self, *sinks: Sink) -> None:
        flat: list[Sink] = []
        for sink in sinks:
            if isinstance(sink, MultiSink):
                flat.extend(sink.sinks)
            else:
                flat.append(sink)
        self.sinks = tuple(flat)

    def write(self, data: bytes) -> None:
        for sink in self.sinks:
            sink.write(data)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MultiSink) and other.sinks == self.sinks

    def __hash__(self) -> int:
        return hash((MultiSink, self.sinks))

    def __repr__(self) -> str:
        return f"MultiSink{self.sinks!r}"


def open_sink(target: Any) -> Sink:
    """Turn an output target into a sink.

    Args:
        target: ``"stderr"``/``"stdout"``, a file path (str or Path), a stream,
                or an object already satisfying the Sink contract

    Returns:
        Sink writing to the target

    Raises:
        TypeError: If the target has no ``write`` method
    """
    if isinstance(target, (StreamSink, StandardStreamSink, FileSink, MultiSink)):
        return target

    if isinstance(target, str) and target in STANDARD_STREAMS:
        return StandardStreamSink(target)

    if isinstance(target, (str, Path)):
        return FileSink(target, owned=True)

    if target is sys.stderr:
        return StandardStreamSink("stderr")
    if target is sys.stdout:
        return StandardStreamSink("stdout")

    if isinstance(target, io.IOBase):
        return StreamSink(target)

    if callable(getattr(target, "write", None)):
        return target

    msg = f"Output target has no write() method: {target!r}"
    raise TypeError(msg)


def open_sinks(targets: Iterable[Any]) -> tuple[Sink, ...]:
    """Open every target of ``targets``; a single str/Path counts as one target."""
    if isinstance(targets, (str, Path)) or callable(getattr(targets, "write", None)):
        targets = [targets]
    return tuple(open_sink(target) for target in targets)


def owned_files(sinks: Iterable[Sink]) -> tuple[FileSink, ...]:
    """Return the file sinks among ``sinks`` that elog opened from a path."""
    return tuple(sink for sink in sinks if isinstance(sink, FileSink) and sink.owned)


def merge_sinks(sinks: Iterable[Sink]) -> Sink:
    """Combine sinks into the one sink a logger writes to.

    No sinks means standard error, one sink is used as is, several fan out.
    """
    sinks = tuple(sinks)
    if not sinks:
        return StandardStreamSink("stderr")
    if len(sinks) == 1:
        return sinks[0]
    return MultiSink(*sinks)
