import io
import signal
from pathlib import Path

from shellmate.core.executor import (
    CAPTURE_LIMIT,
    SPAWN_FAILURE_CODE,
    BoundedCapture,
    ProcessExecutor,
    normalize_exit_code,
)


def _executor(sink: io.BytesIO, **kwargs) -> ProcessExecutor:
    return ProcessExecutor("/bin/sh", live_sink=lambda: sink, **kwargs)


def test_exit_code_is_authoritative(tmp_path: Path) -> None:
    sink = io.BytesIO()
    result = _executor(sink).run("exit 3", tmp_path)
    assert result.exit_code == 3
    assert result.ok is False


def test_stderr_is_teed_to_sink_and_capture(tmp_path: Path) -> None:
    sink = io.BytesIO()
    result = _executor(sink).run("echo oops >&2; exit 1", tmp_path)
    assert sink.getvalue() == b"oops\n"
    assert result.captured_stderr == "oops\n"
    assert result.truncated is False


def test_capture_is_bounded_while_live_stream_is_complete(tmp_path: Path) -> None:
    sink = io.BytesIO()
    total = CAPTURE_LIMIT + 200_000
    command = f"head -c {total} /dev/zero | tr '\\000' 'x' >&2"
    result = _executor(sink).run(command, tmp_path)
    assert result.exit_code == 0
    assert len(sink.getvalue()) == total
    assert len(result.captured_stderr) == CAPTURE_LIMIT
    assert result.truncated is True


def test_command_runs_in_given_cwd_and_env(tmp_path: Path) -> None:
    sink = io.BytesIO()
    env = {"PATH": "/usr/bin:/bin", "PWD_CHECK": "yes", "EXPECTED": str(tmp_path.resolve())}
    result = _executor(sink).run('[ "$PWD_CHECK" = yes ] && [ "$(pwd -P)" = "$EXPECTED" ]', tmp_path, env)
    assert result.exit_code == 0


def test_spawn_failure_is_reported_as_127(tmp_path: Path) -> None:
    sink = io.BytesIO()
    executor = ProcessExecutor(str(tmp_path / "no-such-shell"), live_sink=lambda: sink)
    result = executor.run("true", tmp_path)
    assert result.exit_code == SPAWN_FAILURE_CODE
    assert b"failed to execute" in sink.getvalue()


def test_closed_live_sink_does_not_stop_capture(tmp_path: Path) -> None:
    sink = io.BytesIO()
    sink.close()
    result = _executor(sink).run("echo still captured >&2; exit 2", tmp_path)
    assert result.exit_code == 2
    assert result.captured_stderr == "still captured\n"


def test_signal_deaths_map_to_one() -> None:
    assert normalize_exit_code(-9) == 1
    assert normalize_exit_code(0) == 0
    assert normalize_exit_code(255) == 255


def test_bounded_capture_counts_dropped_bytes() -> None:
    capture = BoundedCapture(limit=4)
    capture.feed(b"abc")
    capture.feed(b"def")
    assert capture.getvalue() == b"abcd"
    assert capture.dropped == 2
    assert capture.truncated is True
    assert len(capture) == 4


def test_live_stream_is_byte_exact_and_capture_is_decoded(tmp_path: Path) -> None:
    sink = io.BytesIO()
    command = "printf '10%%\\r20%%\\r\\033[31mred\\033[0m\\377\\376\\n' >&2"
    result = _executor(sink).run(command, tmp_path)
    assert sink.getvalue() == b"10%\r20%\r\x1b[31mred\x1b[0m\xff\xfe\n"
    assert result.captured_stderr == "10%\r20%\r\x1b[31mred\x1b[0m��\n"


def test_sigint_shield_ignores_interrupt_while_child_runs(tmp_path: Path) -> None:
    sink = io.BytesIO()
    previous = signal.getsignal(signal.SIGINT)
    result = _executor(sink, shield_sigint=True).run("kill -INT $PPID; sleep 0.2; exit 0", tmp_path)
    assert result.exit_code == 0
    assert signal.getsignal(signal.SIGINT) is previous


def test_sigint_shield_is_off_by_default(tmp_path: Path) -> None:
    seen: list[int] = []
    previous = signal.signal(signal.SIGINT, lambda signum, frame: seen.append(signum))
    try:
        result = _executor(io.BytesIO()).run("kill -INT $PPID; sleep 0.2; exit 0", tmp_path)
    finally:
        signal.signal(signal.SIGINT, previous)
    assert result.exit_code == 0
    assert seen == [signal.SIGINT]
