"""Runtime logging helpers."""

from __future__ import annotations

import sys
from logging import Handler
from pathlib import Path
from typing import Literal

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

LogProfile = Literal["interactive", "batch"]

_BATCH_FORMAT = "shellmate: {level:<7} | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"
_CONFIGURED: tuple[LogProfile, str, Path | None] | None = None


def _build_interactive_handler() -> Handler:
    return RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(
    *,
    profile: LogProfile = "batch",
    level: str = "WARNING",
    log_file: Path | None = None,
) -> None:
    """Configure process-level logging once per distinct setup.

    The console sink stays at WARNING by default so diagnostics never
    interleave with the output of the commands being run.
    """
    global _CONFIGURED
    key = (profile, level.upper(), log_file)
    if key == _CONFIGURED:
        return

    logger.remove()
    if profile == "interactive":
        logger.add(
            _build_interactive_handler(),
            level=level.upper(),
            format="{message}",
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=level.upper(),
            format=_BATCH_FORMAT,
            backtrace=False,
            diagnose=False,
        )
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format=_FILE_FORMAT,
            rotation="10 MB",
            retention=5,
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED = key
