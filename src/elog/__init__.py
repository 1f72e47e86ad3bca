"""Leveled text logging with configurable, orderable line headers.

This package formats log lines made of optional header fields (date, time with
microseconds, level label, caller file and line, prefix) followed by the
message, and writes each line synchronously to one or more outputs.

Key Features:
    - Seven levels from TRACE to FATAL, plus DISCARD to silence a logger
    - Header fields selected with Flag bits, each printed at most once
    - Explicit field order with the default sequence as fallback
    - Colored level badges and messages
    - Thread-safe loggers; concurrent lines never interleave
    - Child loggers with ``extend``, independent of their parent
    - TOML-based configuration and a fluent builder
    - Lazily created process-wide default logger with free functions

Basic Usage:
    ```python
    import sys

    from elog import Flag, Level, Logger, Order

    log = Logger(Level.DEBUG, flags=Flag.DATE | Flag.TIME | Flag.LEVEL | Flag.SHORTFILE)
    log.info("server started on port", 8080)
    # 2024/05/01 12:30:45 INFO main.py:6 server started on port 8080

    log.set_order(Order.LEVEL, Order.PATH).add_flags(Flag.MICROSECONDS)
    log.warnf("disk usage at %d%%", 91)
    # WARN main.py:9 2024/05/01 12:30:45.123456 disk usage at 91%

    # Child loggers start as a copy and then live their own life
    db_log = log.extend(prefix="[db]", flags=Flag.LEVEL | Flag.MSGPREFIX)
    db_log.error("connection lost")
    # ERROR [db] connection lost

    # Several outputs receive every line
    log.set_output(sys.stdout, "logs/app.log")
    ```

    The default logger is available through free functions:

    ```python
    from elog import default

    default.info("using the default logger")
    default.set_level("debug")
    ```

Configuration:
    A logger can be described in a TOML file:

    ```toml
    [elog]
    level = "INFO"
    flags = ["date", "time", "shortfile", "level"]
    prefix = "[app]"
    order = ["Level", "Date"]
    name = "app"
    outputs = ["stderr", "logs/app.log"]

    [elog.diagnostics]
    level = "WARNING"
    colors = true
    ```

    ```python
    from elog import configure_logger

    log = configure_logger("config/elog.toml").with_output("logs/extra.log").build()
    ```

    All keys are optional. Without outputs a logger writes to standard error.

Implementation Notes:
    - Every call formats and writes before returning; there is no buffering
    - A failing output raises SinkWriteError from every leveled method
    - panic() raises PanicError and fatal() raises SystemExit(1) after writing;
      outside the main thread fatal() ends the process with os._exit(1)
    - Files opened from paths are closed by Logger.close() or a with block
    - Timestamps are local time unless Flag.UTC is set
    - elog's own diagnostics go through structlog and stay silent until
      configure_diagnostics() is called
"""

from . import default
from .config import LoggerConfig
from .diagnostics import DiagnosticsConfig, configure_diagnostics
from .errors import ElogError, PanicError, SinkWriteError
from .factory import LoggerBuilder, configure_logger, get_logger, set_default
from .factory import default as default_logger
from .fields import STD_FLAGS, Flag, Order
from .log_levels import Level
from .logger import Logger
from .sinks import FileSink, MultiSink, Sink, StandardStreamSink, StreamSink

__all__ = [
    "STD_FLAGS",
    "DiagnosticsConfig",
    "ElogError",
    "FileSink",
    "Flag",
    "Level",
    "Logger",
    "LoggerBuilder",
    "LoggerConfig",
    "MultiSink",
    "Order",
    "PanicError",
    "Sink",
    "SinkWriteError",
    "StandardStreamSink",
    "StreamSink",
    "configure_diagnostics",
    "configure_logger",
    "default",
    "default_logger",
    "get_logger",
    "set_default",
]
