"""Snapshot of executable names on the search path."""

from __future__ import annotations

import os

from loguru import logger

PathCommandSet = frozenset[str]


def build_path_command_set(search_path: str | None = None) -> PathCommandSet:
    """Scan every directory on `search_path` (default: `$PATH`) once.

    The result is never refreshed; a `PATH` change later in the session is
    not picked up.
    """
    if search_path is None:
        search_path = os.environ.get("PATH", "")

    names: set[str] = set()
    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if _is_executable(entry):
                        names.add(entry.name)
        except OSError:
            continue

    logger.debug("indexed {} executables from PATH", len(names))
    return frozenset(names)


def _is_executable(entry: os.DirEntry[str]) -> bool:
    try:
        if entry.is_dir():
            return False
    except OSError:
        return False
    return os.access(entry.path, os.X_OK)
