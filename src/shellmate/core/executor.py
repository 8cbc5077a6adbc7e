"""Running commands through the POSIX shell.

stdin and stdout are inherited so pagers, editors and other interactive
programs behave as they would in a plain shell. stderr goes through a pipe:
one drain thread per run copies every chunk to the real error stream as soon
as it arrives and keeps a bounded copy for the recovery flow.
"""

from __future__ import annotations

import contextlib
import signal
import subprocess
import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from loguru import logger

CAPTURE_LIMIT = 1024 * 1024
READ_CHUNK = 4096
SPAWN_FAILURE_CODE = 127
SIGNAL_EXIT_CODE = 1


@dataclass(frozen=True)
class RunResult:
    """Outcome of one command run."""

    exit_code: int
    captured_stderr: str
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BoundedCapture:
    """Byte buffer that stops growing at `limit` and counts what it dropped."""

    def __init__(self, limit: int = CAPTURE_LIMIT) -> None:
        self.limit = limit
        self.dropped = 0
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> None:
        room = self.limit - len(self._buffer)
        if room > 0:
            self._buffer += chunk[:room]
        self.dropped += max(0, len(chunk) - room)

    @property
    def truncated(self) -> bool:
        return self.dropped > 0

    def __len__(self) -> int:
        return len(self._buffer)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def text(self) -> str:
        return self._buffer.decode("utf-8", errors="replace")


def _default_sink() -> BinaryIO:
    return sys.stderr.buffer


class ProcessExecutor:
    """Spawn `<shell> -c <command>` and tee its stderr."""

    def __init__(
        self,
        shell: str = "bash",
        *,
        live_sink: Callable[[], BinaryIO] = _default_sink,
        capture_limit: int = CAPTURE_LIMIT,
        shield_sigint: bool = False,
    ) -> None:
        self.shell = shell
        self._live_sink = live_sink
        self._capture_limit = capture_limit
        self._shield_sigint = shield_sigint

    def run(self, command: str, cwd: Path | str, env: Mapping[str, str] | None = None) -> RunResult:
        """Run `command` to completion. Never raises for spawn failures."""

        sink = self._live_sink()
        logger.debug("run: {!r} in {}", command, cwd)
        try:
            process = subprocess.Popen(  # noqa: S603
                [self.shell, "-c", command],
                cwd=cwd,
                env=dict(env) if env is not None else None,
                stdin=None,
                stdout=None,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError) as exc:
            message = f"failed to execute: {exc}"
            logger.debug("spawn failure for {!r}: {}", command, exc)
            _write_live(sink, f"shellmate: {message}\n".encode())
            return RunResult(exit_code=SPAWN_FAILURE_CODE, captured_stderr=message)

        capture = BoundedCapture(self._capture_limit)
        drain = threading.Thread(
            target=_drain,
            args=(process.stderr, sink, capture),
            name="stderr-drain",
            daemon=True,
        )
        drain.start()
        with self._sigint_shield():
            returncode = process.wait()
            drain.join()

        exit_code = normalize_exit_code(returncode)
        if capture.truncated:
            logger.debug("stderr capture truncated, {} bytes not kept", capture.dropped)
        logger.debug("exit {} for {!r}", exit_code, command)
        return RunResult(exit_code=exit_code, captured_stderr=capture.text(), truncated=capture.truncated)

    @contextlib.contextmanager
    def _sigint_shield(self) -> Iterator[None]:
        if not self._shield_sigint or threading.current_thread() is not threading.main_thread():
            yield
            return
        previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, previous)


def normalize_exit_code(returncode: int) -> int:
    """Map a Popen return code into [0, 255]; signal deaths become 1."""

    if returncode < 0 or returncode > 255:
        return SIGNAL_EXIT_CODE
    return returncode


def _drain(pipe: BinaryIO | None, sink: BinaryIO, capture: BoundedCapture) -> None:
    if pipe is None:
        return
    live = True
    with pipe:
        while chunk := pipe.read1(READ_CHUNK):  # type: ignore[attr-defined]
            if live:
                live = _write_live(sink, chunk)
            capture.feed(chunk)


def _write_live(sink: BinaryIO, chunk: bytes) -> bool:
    try:
        sink.write(chunk)
        sink.flush()
    except (OSError, ValueError) as exc:
        logger.warning("live stderr stream closed: {}", exc)
        return False
    return True
