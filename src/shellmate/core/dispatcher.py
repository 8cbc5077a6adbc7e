"""Routing classified input to its handler."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from shellmate.config import PromptKind, PromptTemplates
from shellmate.core.assistant import Assistant, strip_code_fences
from shellmate.core.classifier import classify
from shellmate.core.executor import RunResult
from shellmate.core.path_commands import PathCommandSet
from shellmate.core.recovery import RecoveryOrchestrator, Runner
from shellmate.core.session import SessionContext
from shellmate.core.terminal import RUN_ANSWERS, Terminal, normalize_answer
from shellmate.core.types import (
    Ask,
    ChangeDirectory,
    ClassifiedInput,
    Comment,
    Exit,
    Explain,
    ExportAssignment,
    ForceShell,
    HelpRequest,
    HistoryRequest,
    NaturalLanguage,
    ShellCommand,
    SourceFile,
    UnsetVariable,
)
from shellmate.errors import AssistantUnavailableError, BuiltinError

NOT_FOUND_CODE = 127

# Requests that read like several steps get the script prompt.
SCRIPT_MARKERS: tuple[str, ...] = (
    " and then ",
    " step by step",
    "script",
    "automate",
    "set up",
    "setup",
    "install and configure",
    "create a project",
)


@dataclass(frozen=True)
class LineOutcome:
    """Result of handling one input line."""

    exit_code: int
    exit_requested: bool = False


def prompt_kind_for(text: str) -> PromptKind:
    lowered = text.lower()
    if any(marker in lowered for marker in SCRIPT_MARKERS):
        return "script"
    return "generate"


class Dispatcher:
    """Handles one line at a time for a session.

    In interactive mode failed commands enter the recovery flow and
    generated commands ask for confirmation. In batch mode (piped stdin,
    script files, the rc file) neither happens.
    """

    def __init__(
        self,
        session: SessionContext,
        path_commands: PathCommandSet,
        runner: Runner,
        assistant: Assistant,
        terminal: Terminal,
        prompts: PromptTemplates,
        *,
        shell: str = "bash",
        interactive: bool = False,
        unattended: bool = False,
    ) -> None:
        self.session = session
        self.path_commands = path_commands
        self.interactive = interactive
        self._runner = runner
        self._assistant = assistant
        self._terminal = terminal
        self._prompts = prompts
        self._shell = shell
        self._unattended = unattended
        self._recovery = RecoveryOrchestrator(runner, assistant, terminal, prompts, unattended=unattended)

    def handle_line(self, line: str) -> LineOutcome:
        """Classify and handle `line`, recording its exit code on the session."""

        classified = classify(line, self.path_commands)
        logger.debug("{!r} -> {}", line, type(classified).__name__)
        outcome = self.dispatch(classified)
        self.session.last_exit = outcome.exit_code
        return outcome

    def dispatch(self, item: ClassifiedInput) -> LineOutcome:
        match item:
            case Comment():
                return LineOutcome(self.session.last_exit)
            case Exit(code=code):
                return LineOutcome(self.session.last_exit if code is None else code, exit_requested=True)
            case HelpRequest():
                self._terminal.show_help()
                return LineOutcome(0)
            case HistoryRequest():
                self._terminal.show_history()
                return LineOutcome(0)
            case ChangeDirectory(path=path):
                return self._builtin(self._change_directory, path)
            case ExportAssignment(text=text):
                return self._builtin(self._export, text)
            case UnsetVariable(name=name):
                self.session.unset(name)
                return LineOutcome(0)
            case SourceFile(path=path):
                return self._builtin(self._source, path)
            case ForceShell(command=command) | ShellCommand(command=command):
                return LineOutcome(self.run_command(command))
            case Explain(subject=subject):
                return LineOutcome(self._consult("explain", subject, "couldn't explain that"))
            case Ask(question=question):
                return LineOutcome(self._consult("ask", question, "couldn't answer that"))
            case NaturalLanguage(text=text):
                return LineOutcome(self._natural_language(text))
        raise TypeError(f"unhandled input: {item!r}")

    def run_command(self, command: str) -> int:
        """Run `command` in the session; interactive failures enter recovery."""

        result = self._run(command)
        if result.ok or not self.interactive:
            return result.exit_code
        return self._recovery.recover(command, result, self.session.cwd, self.session.env)

    def _run(self, command: str) -> RunResult:
        return self._runner.run(command, self.session.cwd, self.session.env)

    def _builtin(self, handler: Callable[[str], int], argument: str) -> LineOutcome:
        try:
            return LineOutcome(handler(argument))
        except BuiltinError as exc:
            self._terminal.error(str(exc))
            return LineOutcome(1)

    def _change_directory(self, target: str) -> int:
        destination = self.session.change_directory(target)
        if target == "-":
            self._terminal.output(str(destination))
        return 0

    def _export(self, assignment: str) -> int:
        if not self.session.export(assignment):
            self._terminal.info("(variable already exported to child processes)")
        return 0

    def _source(self, path: str) -> int:
        return self.session.source(path, self._shell)

    def _assistant_ready(self) -> bool:
        try:
            self._assistant.require()
        except AssistantUnavailableError as exc:
            logger.debug("{}", exc)
            return False
        return True

    def _consult(self, kind: PromptKind, text: str, failure: str) -> int:
        if not self._assistant_ready():
            self._terminal.error("assistant not available")
            return 1
        reply = self._ask_assistant(kind, text)
        if reply is None:
            self._terminal.error(failure)
            return 1
        self._terminal.answer(reply)
        return 0

    def _ask_assistant(self, kind: PromptKind, text: str, label: str = "thinking...") -> str | None:
        with self._terminal.thinking(label):
            return self._assistant.invoke(
                self._prompts.system_prompt(kind),
                text,
                self.session.cwd,
                self.session.env,
            )

    def _natural_language(self, text: str) -> int:
        if not self._assistant_ready():
            if self.interactive:
                self._terminal.error("not a recognized command and the assistant is unavailable")
            else:
                self._terminal.error(f"command not found: {text}")
            return NOT_FOUND_CODE

        kind = prompt_kind_for(text) if self.interactive else "generate"
        reply = self._ask_assistant(kind, text)
        if reply is None:
            self._terminal.error("couldn't generate a command for that")
            return 1
        command = strip_code_fences(reply)
        if not command:
            self._terminal.error("couldn't generate a command for that")
            return 1

        if not self.interactive:
            if self._unattended:
                return self._run(command).exit_code
            self._terminal.output(command)
            return 0

        self._terminal.suggest(command)
        if self._unattended:
            self._terminal.remember(command)
            return self.run_command(command)
        return self._confirm_generated(command)

    def _confirm_generated(self, command: str) -> int:
        choice = normalize_answer(self._terminal.ask("[enter] run / [e]dit / [s]kip "))
        if choice in RUN_ANSWERS:
            self._terminal.remember(command)
            return self.run_command(command)
        if choice in ("e", "edit"):
            edited = (self._terminal.edit(command) or "").strip()
            if not edited:
                return 0
            return self.run_command(edited)
        self._terminal.info("skipped")
        return 0
