"""Failure recovery: elevation retry and AI-assisted fixes.

The flow is an explicit state machine. It runs at most one extra round
(an elevated retry that fails gets one more fix offer), and a command
suggested by the assistant is run without re-entering the flow. Without an
assistant only the elevation retry is offered.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Protocol

from loguru import logger

from shellmate.config import PromptTemplates
from shellmate.core.assistant import Assistant, split_fix_reply, strip_code_fences
from shellmate.core.executor import RunResult
from shellmate.core.terminal import FIX_ANSWERS, RUN_ANSWERS, YES_ANSWERS, Terminal, normalize_answer

PERMISSION_MARKERS: tuple[str, ...] = (
    "Permission denied",
    "permission denied",
    "EACCES",
    "Operation not permitted",
    "must be root",
    "Access denied",
)
ELEVATION_PREFIX = "sudo "
MAX_EXTRA_ROUNDS = 1


class Runner(Protocol):
    def run(self, command: str, cwd: Path | str, env: Mapping[str, str] | None = None) -> RunResult: ...


class RecoveryState(Enum):
    FAILED = auto()
    PERMISSION_OFFER = auto()
    RETRY = auto()
    FIX_OFFER = auto()
    DONE = auto()


@dataclass(frozen=True)
class RecoveryContext:
    """Everything known about one failed run."""

    command: str
    stderr_capture: str
    exit_code: int
    cwd: Path

    def describe(self) -> str:
        return f"Command: {self.command}\nExit code: {self.exit_code}\nStderr:\n{self.stderr_capture}"


def has_permission_signal(stderr: str) -> bool:
    return any(marker in stderr for marker in PERMISSION_MARKERS)


class RecoveryOrchestrator:
    """Runs the interactive recovery flow after a non-zero exit."""

    def __init__(
        self,
        runner: Runner,
        assistant: Assistant,
        terminal: Terminal,
        prompts: PromptTemplates,
        *,
        unattended: bool = False,
    ) -> None:
        self._runner = runner
        self._assistant = assistant
        self._terminal = terminal
        self._prompts = prompts
        self._unattended = unattended

    def recover(
        self,
        command: str,
        result: RunResult,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> int:
        """Offer help for a failed `command`. Returns the exit code to record."""

        context = RecoveryContext(command, result.captured_stderr, result.exit_code, cwd)
        exit_code = result.exit_code
        state = RecoveryState.FAILED
        extra_rounds = 0
        logger.debug("recovery for {!r} (exit {})", command, exit_code)

        while state is not RecoveryState.DONE:
            if state is RecoveryState.FAILED:
                state = self._after_failure(context)
            elif state is RecoveryState.PERMISSION_OFFER:
                answer = normalize_answer(self._terminal.ask("permission denied - retry with sudo? [y/N] "))
                state = RecoveryState.RETRY if answer in YES_ANSWERS else RecoveryState.FIX_OFFER
            elif state is RecoveryState.RETRY:
                elevated = f"{ELEVATION_PREFIX}{context.command}"
                self._terminal.remember(elevated)
                retry = self._runner.run(elevated, cwd, env)
                exit_code = retry.exit_code
                if retry.ok or extra_rounds >= MAX_EXTRA_ROUNDS:
                    state = RecoveryState.DONE
                else:
                    extra_rounds += 1
                    context = RecoveryContext(elevated, retry.captured_stderr, retry.exit_code, cwd)
                    state = RecoveryState.FIX_OFFER
            elif state is RecoveryState.FIX_OFFER:
                if not self._assistant.available:
                    break
                answer = normalize_answer(
                    self._terminal.ask(f"exit {context.exit_code} - press f for AI help or enter to continue ")
                )
                if answer in FIX_ANSWERS:
                    fixed = self.offer_fix(context, env)
                    if fixed is not None:
                        exit_code = fixed
                state = RecoveryState.DONE

        return exit_code

    def _after_failure(self, context: RecoveryContext) -> RecoveryState:
        if has_permission_signal(context.stderr_capture) and not context.command.startswith(ELEVATION_PREFIX):
            return RecoveryState.PERMISSION_OFFER
        return RecoveryState.FIX_OFFER

    def offer_fix(self, context: RecoveryContext, env: Mapping[str, str] | None = None) -> int | None:
        """Ask the assistant for a diagnosis. Returns the fix's exit code if one ran."""

        with self._terminal.thinking("analyzing..."):
            reply = self._assistant.invoke(self._prompts.system_prompt("fix"), context.describe(), context.cwd, env)
        if reply is None:
            self._terminal.error("couldn't analyze that")
            return None

        explanation, suggestion = split_fix_reply(strip_code_fences(reply))
        if suggestion is not None:
            suggestion = strip_code_fences(suggestion)
        if explanation:
            self._terminal.explanation(explanation)
        if not suggestion:
            return None

        self._terminal.suggest(suggestion)
        if not self._unattended:
            answer = normalize_answer(self._terminal.ask("[enter] run / [s]kip "))
            if answer not in RUN_ANSWERS:
                self._terminal.info("skipped")
                return None

        self._terminal.remember(suggestion)
        return self._runner.run(suggestion, context.cwd, env).exit_code
