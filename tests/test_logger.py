"""Tests for Logger: leveled output, configuration, extend, errors and threads."""

import io
import os
import re
import subprocess
import sys
import textwrap
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

import elog
from conftest import (
    REG_DATE,
    REG_LEVEL,
    REG_MICROSECONDS,
    REG_PREFIX,
    REG_TIME,
    TEST_PREFIX,
    reg_longfile,
    reg_shortfile,
)
from elog import Flag, Level, Logger, Order, PanicError, SinkWriteError
from elog.fields import STD_FLAGS
from elog.logger import UNKNOWN_FILE

THIS_FILE = "test_logger.py"
REG_LONGFILE = reg_longfile(THIS_FILE)
REG_SHORTFILE = reg_shortfile(THIS_FILE)
SRC_DIR = Path(elog.__file__).resolve().parent.parent


def current_line() -> int:
    return sys._getframe(1).f_lineno


FORMAT_CASES = [
    pytest.param(Level.ERROR, Flag(0), "", (), "", id="no-flags"),
    pytest.param(Level.DEBUG, Flag(0), TEST_PREFIX, (), "", id="prefix-without-flag"),
    pytest.param(Level.INFO, Flag.MSGPREFIX, TEST_PREFIX, (), REG_PREFIX, id="prefix"),
    pytest.param(Level.INFO, Flag.LEVEL | Flag.LEVEL_COLOR, "", (), REG_LEVEL, id="level"),
    pytest.param(Level.INFO, Flag.DATE, "", (), REG_DATE, id="date"),
    pytest.param(Level.TRACE, Flag.TIME, "", (), REG_TIME, id="time"),
    pytest.param(Level.WARN, Flag.TIME | Flag.MSGPREFIX, TEST_PREFIX, (), REG_TIME + REG_PREFIX, id="time-prefix"),
    pytest.param(
        Level.INFO, Flag.TIME | Flag.MICROSECONDS, TEST_PREFIX, (), REG_TIME + REG_MICROSECONDS, id="microseconds"
    ),
    pytest.param(Level.INFO, Flag.MICROSECONDS, "", (), REG_TIME + REG_MICROSECONDS, id="microseconds-imply-time"),
    pytest.param(Level.ERROR, Flag.LONGFILE, "", (), REG_LONGFILE, id="longfile"),
    pytest.param(Level.ERROR, Flag.SHORTFILE, "", (), REG_SHORTFILE, id="shortfile"),
    pytest.param(Level.ERROR, Flag.LONGFILE | Flag.SHORTFILE, "", (), REG_SHORTFILE, id="shortfile-wins"),
    pytest.param(
        Level.ERROR,
        Flag.DATE | Flag.TIME | Flag.MICROSECONDS | Flag.LEVEL | Flag.LEVEL_COLOR | Flag.LONGFILE,
        TEST_PREFIX,
        (),
        REG_DATE + REG_TIME + REG_MICROSECONDS + REG_LEVEL + REG_LONGFILE,
        id="all-long",
    ),
    pytest.param(
        Level.ERROR,
        Flag.DATE | Flag.TIME | Flag.MICROSECONDS | Flag.LEVEL | Flag.LEVEL_COLOR | Flag.SHORTFILE | Flag.MSGPREFIX,
        TEST_PREFIX,
        (),
        REG_DATE + REG_TIME + REG_MICROSECONDS + REG_LEVEL + REG_SHORTFILE + REG_PREFIX,
        id="all-short-prefix",
    ),
    pytest.param(
        Level.ERROR,
        Flag.MSGPREFIX | Flag.DATE | Flag.SHORTFILE,
        TEST_PREFIX,
        (Order.LEVEL, Order.PREFIX, Order.DATE, Order.PATH),
        REG_PREFIX + REG_DATE + REG_SHORTFILE,
        id="order-skips-disabled",
    ),
    pytest.param(
        Level.ERROR,
        Flag.MSGPREFIX | Flag.DATE | Flag.SHORTFILE | Flag.LEVEL | Flag.LEVEL_COLOR,
        TEST_PREFIX,
        (Order.LEVEL, Order.PREFIX, Order.DATE, Order.PATH),
        REG_LEVEL + REG_PREFIX + REG_DATE + REG_SHORTFILE,
        id="order",
    ),
]


@pytest.mark.parametrize(("level", "flags", "prefix", "order", "pattern"), FORMAT_CASES)
@pytest.mark.parametrize("use_format", [False, True], ids=["print", "printf"])
def test_line_format(out, level, flags, prefix, order, pattern, use_format):
    log = Logger(level, outputs=out, flags=flags, prefix=prefix, order=order)
    method = level.name.lower()

    if use_format:
        getattr(log, method + "f")("hello %d word", 18)
    else:
        getattr(log, method)("hello", 18, "word")

    got = out.getvalue().decode()
    assert re.fullmatch(pattern + r"hello 18 word\n", got), got


def test_short_path_example(out):
    log = Logger(Level.TRACE, outputs=out, flags=Flag.SHORTFILE)
    line = current_line() + 1
    log.info("hello", 18, "word")
    assert out.getvalue() == f"{THIS_FILE}:{line} hello 18 word\n".encode()


def test_full_header_example(out):
    flags = Flag.DATE | Flag.TIME | Flag.MICROSECONDS | Flag.LEVEL | Flag.LEVEL_COLOR | Flag.LONGFILE
    log = Logger(Level.INFO, outputs=out, flags=flags, prefix="PREFIX")
    line = current_line() + 1
    log.warn("hello", 18, "word")

    pattern = (
        r"[0-9]{4}/[0-9]{2}/[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{6} "
        r"\x1b\[0;30;43m WARN  \x1b\[0m "
        + r".*[/\\]" + re.escape(THIS_FILE) + f":{line} "
        + r"hello 18 word\n"
    )
    assert re.fullmatch(pattern, out.getvalue().decode())


def test_out_with_level_flag(out):
    log = Logger(Level.INFO, outputs=out)
    log.add_flags(Flag.LEVEL)
    log.warn("test")
    assert out.getvalue() == b"WARN test\n"


def test_level_threshold(out):
    log = Logger(Level.INFO, outputs=out)
    log.info("info level message")
    log.debug("debug level message")
    log.warn("warn level message")
    log.error("error level as well")
    assert out.getvalue() == b"info level message\nwarn level message\nerror level as well\n"


def test_discard_silences_every_level(out):
    log = Logger(Level.DISCARD, outputs=out)
    for method in ("trace", "debug", "info", "warn", "error", "panic", "fatal"):
        getattr(log, method)("nothing")
    assert out.getvalue() == b""


def test_level_from_name():
    assert Logger("debug").level is Level.DEBUG
    assert Logger("warning").level is Level.WARN
    with pytest.raises(ValueError):
        Logger("verbose")


def test_extend_is_independent_of_parent():
    parent = Logger(
        Level.INFO, outputs=io.BytesIO(), flags=Flag.LEVEL | Flag.DATE, prefix="Test: ",
        order=(Order.DATE, Order.LEVEL),
    )
    child = parent.extend()
    assert child.config == parent.config.merge(name="SonBy")

    child.set_order(Order.MESSAGE, Order.LEVEL)
    assert child.config != parent.config
    assert parent.order == (Order.DATE, Order.LEVEL)

    parent.set_order(Order.TIME)
    assert child.order == (Order.MESSAGE, Order.LEVEL)

    grandchild = child.extend(prefix="Boii: ")
    assert grandchild.prefix == "Boii: "
    assert child.prefix == "Test: "


def test_extend_names_child_after_parent():
    parent = Logger(Level.INFO, outputs=io.BytesIO(), name="app")
    assert parent.extend().name == "SonByapp"
    assert parent.extend(name="db").name == "db"
    assert parent.extend().extend().name == "SonBySonByapp"


def test_extend_shares_outputs(out):
    parent = Logger(Level.INFO, outputs=out)
    parent.extend(name="child").info("from child")
    assert out.getvalue() == b"from child\n"


def test_method_chaining(out):
    parent = Logger(Level.INFO).set_flags(Flag.LEVEL).set_name("chaining").set_output(out)
    assert parent.flags == Flag.LEVEL
    assert parent.name == "chaining"

    child = parent.extend().add_flags(Flag.DATE)
    assert child.flags == Flag.LEVEL | Flag.DATE
    assert parent.flags == Flag.LEVEL


def test_flag_setting(out):
    log = Logger(Level.INFO, outputs=out, flags=STD_FLAGS)
    assert log.flags == STD_FLAGS

    log.set_flags(log.flags | Flag.MICROSECONDS)
    assert log.flags == STD_FLAGS | Flag.MICROSECONDS

    log.add_flags(Flag.MSGCOLOR)
    assert log.flags == STD_FLAGS | Flag.MICROSECONDS | Flag.MSGCOLOR

    log.remove_flags(Flag.MSGCOLOR)
    assert log.flags == STD_FLAGS | Flag.MICROSECONDS

    log.set_flags(["date", "level"])
    assert log.flags == Flag.DATE | Flag.LEVEL


def test_prefix_setting(out):
    log = Logger(Level.INFO, outputs=out, flags=STD_FLAGS | Flag.MSGPREFIX | Flag.LEVEL_COLOR, prefix="Test: ")
    assert log.prefix == "Test: "

    log.set_prefix("Boii: ")
    assert log.prefix == "Boii: "

    log.warn("test string")
    pattern = REG_DATE + REG_TIME + REG_LEVEL + REG_SHORTFILE + r"Boii: test string\n"
    assert re.fullmatch(pattern, out.getvalue().decode())


def test_order_setting(out):
    log = Logger(Level.INFO, outputs=out)
    assert log.order == ()

    log.set_order(Order.LEVEL, Order.TIME, Order.DATE)
    assert len(log.order) == 3

    # Without flags the order has nothing to place
    log.warn("test string")
    assert out.getvalue() == b"test string\n"

    out.seek(0)
    out.truncate()
    log.set_flags(Flag.LEVEL | Flag.LEVEL_COLOR | Flag.DATE | Flag.TIME)
    log.warn("test string")
    assert re.fullmatch(REG_LEVEL + REG_TIME + REG_DATE + r"test string\n", out.getvalue().decode())

    out.seek(0)
    out.truncate()
    log.add_flags(Flag.MSGPREFIX).set_prefix(TEST_PREFIX)
    log.warn("test string")
    assert re.fullmatch(REG_LEVEL + REG_TIME + REG_DATE + REG_PREFIX + r"test string\n", out.getvalue().decode())

    # A new order replaces the old one entirely
    out.seek(0)
    out.truncate()
    log.set_order(Order.TIME, Order.LEVEL)
    log.set_flags(Flag.LEVEL | Flag.LEVEL_COLOR | Flag.TIME | Flag.DATE)
    log.warn("test string")
    assert re.fullmatch(REG_TIME + REG_LEVEL + REG_DATE + r"test string\n", out.getvalue().decode())


def test_order_accepts_names(out):
    log = Logger(Level.INFO, outputs=out, flags=Flag.SHORTFILE | Flag.MSGPREFIX, prefix="Test:")
    log.set_order("prefix", "Message", "path")
    line = current_line() + 1
    log.info("You can set the output order.")
    assert out.getvalue() == f"Test: You can set the output order. {THIS_FILE}:{line}\n".encode()


def test_utc_flag(out):
    log = Logger(Level.INFO, outputs=out, prefix="Boii: ", flags=Flag.DATE | Flag.TIME | Flag.UTC | Flag.LEVEL)
    now = datetime.now(timezone.utc)
    log.info("Hello")

    got = out.getvalue().decode()
    candidates = [
        (now + timedelta(seconds=delta)).strftime("%Y/%m/%d %H:%M:%S") + " INFO Hello\n"
        for delta in (0, 1)
    ]
    assert got in candidates


def test_empty_print_creates_line(out):
    log = Logger(Level.INFO, outputs=out, prefix="Boii:", flags=Flag.DATE | Flag.TIME | Flag.MSGPREFIX)
    log.info()
    log.info("non-empty")
    output = out.getvalue().decode()
    assert output.count("Boii:") == 2
    assert output.count("\n") == 2


def test_printf_without_args_is_not_interpolated(out):
    log = Logger(Level.INFO, outputs=out)
    log.infof("100%")
    log.infof("%s%%", 100)
    assert out.getvalue() == b"100%\n100%\n"


def test_message_ending_in_newline_is_not_doubled(out):
    log = Logger(Level.INFO, outputs=out)
    log.info("line\n")
    assert out.getvalue() == b"line\n"


def test_out_reports_its_direct_caller(out):
    log = Logger(Level.INFO, outputs=out, flags=Flag.SHORTFILE)
    line = current_line() + 1
    log.out(1, Level.INFO, "direct")
    assert out.getvalue() == f"{THIS_FILE}:{line} direct\n".encode()


def test_unresolved_caller_uses_placeholder(out):
    log = Logger(Level.INFO, outputs=out, flags=Flag.SHORTFILE)
    log.out(10_000, Level.INFO, "deep")
    assert out.getvalue() == f"{UNKNOWN_FILE}:0 deep\n".encode()


def test_sink_failure_is_raised(failing_sink):
    log = Logger(Level.INFO, outputs=failing_sink)
    with pytest.raises(SinkWriteError) as exc_info:
        log.info("lost")
    assert isinstance(exc_info.value.__cause__, OSError)
    assert failing_sink.attempts == 1


def test_closed_stream_is_a_sink_failure(out):
    log = Logger(Level.INFO, outputs=out)
    out.close()
    with pytest.raises(SinkWriteError):
        log.error("too late")


def test_panic_writes_then_raises(out):
    log = Logger(Level.INFO, outputs=out, flags=Flag.LEVEL)
    with pytest.raises(PanicError) as exc_info:
        log.panicf("boom %d", 1)
    assert exc_info.value.message == "boom 1"
    assert out.getvalue() == b"PANIC boom 1\n"


def test_panic_raises_even_when_write_fails(failing_sink):
    log = Logger(Level.INFO, outputs=failing_sink)
    with pytest.raises(PanicError) as exc_info:
        log.panic("boom")
    assert isinstance(exc_info.value.__cause__, SinkWriteError)


def test_fatal_writes_then_exits(out):
    log = Logger(Level.INFO, outputs=out)
    with pytest.raises(SystemExit) as exc_info:
        log.fatal("bye")
    assert exc_info.value.code == 1
    assert out.getvalue() == b"bye\n"


def test_fatal_exits_even_when_write_fails(failing_sink):
    log = Logger(Level.INFO, outputs=failing_sink)
    with pytest.raises(SystemExit) as exc_info:
        log.fatalf("bye %s", "now")
    assert exc_info.value.code == 1
    assert failing_sink.attempts == 1


class TextOnlySink:
    """Sink accepting str only, like a text stream used without adaptation."""

    def write(self, data):
        if not isinstance(data, str):
            msg = f"write() argument must be str, not {type(data).__name__}"
            raise TypeError(msg)


def test_any_sink_exception_becomes_sink_write_error():
    log = Logger(Level.INFO, outputs=TextOnlySink())
    with pytest.raises(SinkWriteError) as exc_info:
        log.info("wrong type")
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_panic_raises_whatever_the_sink_raised():
    log = Logger(Level.INFO, outputs=TextOnlySink())
    with pytest.raises(PanicError) as exc_info:
        log.panic("boom")
    assert isinstance(exc_info.value.__cause__, SinkWriteError)
    assert isinstance(exc_info.value.__cause__.__cause__, TypeError)


def test_fatal_exits_whatever_the_sink_raised():
    log = Logger(Level.INFO, outputs=TextOnlySink())
    with pytest.raises(SystemExit) as exc_info:
        log.fatal("bye")
    assert exc_info.value.code == 1


def run_script(tmp_path: Path, source: str) -> subprocess.CompletedProcess:
    script = tmp_path / "script.py"
    script.write_text(textwrap.dedent(source), encoding="utf-8")
    python_path = os.pathsep.join(filter(None, [str(SRC_DIR), os.environ.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, str(script)],
        capture_output=True,
        text=True,
        env={**os.environ, "PYTHONPATH": python_path},
        timeout=60,
    )


def test_fatal_in_worker_thread_exits_process(tmp_path):
    result = run_script(
        tmp_path,
        """
        import threading

        from elog import Level, Logger

        log = Logger(Level.INFO, outputs="stdout")
        worker = threading.Thread(target=log.fatal, args=("bye",))
        worker.start()
        worker.join()
        print("STILL-RUNNING")
        """,
    )
    assert result.returncode == 1
    assert result.stdout == "bye\n"


def test_fatal_in_worker_thread_exits_when_write_fails(tmp_path):
    result = run_script(
        tmp_path,
        """
        import threading

        from elog import Level, Logger

        class Broken:
            def write(self, data):
                raise RuntimeError("sink down")

        log = Logger(Level.INFO, outputs=Broken())
        worker = threading.Thread(target=log.fatalf, args=("bye %d", 1))
        worker.start()
        worker.join()
        print("STILL-RUNNING")
        """,
    )
    assert result.returncode == 1
    assert "STILL-RUNNING" not in result.stdout


def test_multiple_outputs(out):
    second = io.BytesIO()
    log = Logger(Level.INFO, flags=Flag.SHORTFILE, outputs=out)
    log.set_output(out, second)
    line = current_line() + 1
    log.info("This is multiple output example")
    expected = f"{THIS_FILE}:{line} This is multiple output example\n".encode()
    assert out.getvalue() == expected
    assert second.getvalue() == expected


def test_concurrent_lines_never_interleave(collecting_sink):
    workers, lines = 8, 250
    log = Logger(Level.INFO, outputs=collecting_sink, flags=Flag.LEVEL | Flag.SHORTFILE | Flag.MSGPREFIX, prefix="[a]")
    barrier = threading.Barrier(workers + 1)
    stop = threading.Event()

    def work(worker: int) -> None:
        barrier.wait()
        for i in range(lines):
            log.info(f"worker-{worker}", f"line-{i}")

    def reconfigure() -> None:
        barrier.wait()
        while not stop.is_set():
            log.set_prefix("[b]")
            log.set_prefix("[a]")

    threads = [threading.Thread(target=work, args=(n,)) for n in range(workers)]
    mutator = threading.Thread(target=reconfigure)
    for thread in (*threads, mutator):
        thread.start()
    for thread in threads:
        thread.join()
    stop.set()
    mutator.join()

    pattern = re.compile(rb"INFO " + reg_shortfile(THIS_FILE).encode() + rb"\[[ab]\] worker-(\d+) line-(\d+)\n")
    seen = set()
    for chunk in collecting_sink.writes:
        match = pattern.fullmatch(chunk)
        assert match, chunk
        seen.add((int(match[2]), int(match[3])))

    assert len(collecting_sink.writes) == workers * lines
    assert seen == {(w, i) for w in range(workers) for i in range(lines)}


def test_concurrent_setters_do_not_break_output(out):
    log = Logger(Level.INFO, outputs=out)
    threads = [threading.Thread(target=log.set_flags, args=(Flag(0),)) for _ in range(100)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    log.info("still fine")
    assert out.getvalue() == b"still fine\n"
