"""Adapter for the external AI assistant CLI."""

from __future__ import annotations

import getpass
import platform
import re
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from loguru import logger

from shellmate.errors import AssistantUnavailableError

FENCE_OPEN_RE = re.compile(r"\A```[\w+-]*[ \t]*\n?")


class Assistant(Protocol):
    """Text in, optional text out."""

    available: bool

    def require(self) -> None:
        """Raise AssistantUnavailableError when the assistant cannot be called."""
        ...

    def invoke(
        self, system_prompt: str, user_message: str, cwd: Path, env: Mapping[str, str] | None = None
    ) -> str | None: ...


class AssistantCLI:
    """Calls the assistant executable in one-shot print mode."""

    def __init__(
        self,
        command: str = "claude",
        *,
        timeout: float | None = None,
    ) -> None:
        self.command = command
        self.timeout = timeout
        self.path = shutil.which(command)
        self.available = self.path is not None

    def require(self) -> None:
        if not self.available:
            raise AssistantUnavailableError(f"'{self.command}' CLI not found in PATH")

    def invoke(
        self, system_prompt: str, user_message: str, cwd: Path, env: Mapping[str, str] | None = None
    ) -> str | None:
        if self.path is None:
            logger.error("assistant '{}' is not available", self.command)
            return None

        context = build_context(user_message, cwd)
        try:
            completed = subprocess.run(  # noqa: S603
                [self.path, "--print", "--system-prompt", system_prompt, context],
                cwd=cwd,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except KeyboardInterrupt:
            logger.warning("assistant interrupted")
            return None
        except subprocess.TimeoutExpired:
            logger.error("assistant timed out after {}s", self.timeout)
            return None
        except OSError as exc:
            logger.error("failed to run {}: {}", self.command, exc)
            return None

        if completed.returncode != 0:
            detail = completed.stderr.decode("utf-8", errors="replace").strip()
            logger.error("assistant error: {}", detail or f"exit {completed.returncode}")
            return None

        text = completed.stdout.decode("utf-8", errors="replace").strip()
        return text or None


def build_context(user_message: str, cwd: Path) -> str:
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    return (
        f"Current directory: {cwd}\n"
        f"OS: {platform.system().lower()}\n"
        "Shell: shellmate\n"
        f"User: {user}\n\n"
        f"User input: {user_message}"
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""

    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    body = FENCE_OPEN_RE.sub("", stripped, count=1)
    closing = body.rfind("```")
    if closing != -1:
        body = body[:closing]
    return body.strip()


def split_fix_reply(text: str) -> tuple[str, str | None]:
    """Split a fix reply on its first blank line into (explanation, command)."""

    explanation, sep, command = text.partition("\n\n")
    if not sep:
        return text.strip(), None
    command = command.strip()
    return explanation.strip(), command or None
