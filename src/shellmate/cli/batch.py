"""Non-interactive line processing: piped stdin, script files, the rc file."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from shellmate.core.dispatcher import Dispatcher, LineOutcome


def run_lines(dispatcher: Dispatcher, lines: Iterable[str]) -> LineOutcome:
    """Handle each line in order and stop early on `exit`.

    Blank lines and comments leave the last exit code untouched.
    """
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        outcome = dispatcher.handle_line(line)
        if outcome.exit_requested:
            return outcome
    return LineOutcome(dispatcher.session.last_exit)


def read_script(path: Path) -> list[str] | None:
    """Read a script file, or None when it cannot be read."""
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        logger.debug("cannot read {}: {}", path, exc)
        return None
