"""Input classification.

Every line typed at the prompt (or read from a script) is mapped to exactly
one `ClassifiedInput` variant. The rules run in a fixed order and the first
match wins; there is no scoring. When a line could be either a command or a
sentence, it is treated as a command.
"""

from __future__ import annotations

import re

from shellmate.core.path_commands import PathCommandSet
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

EXIT_WORDS = frozenset({"exit", "quit", "logout"})

SHELL_SENTINELS = frozenset("/.~({[$<>")

COMMAND_PREFIXES: tuple[str, ...] = (
    "sudo ",
    "env ",
    "nohup ",
    "time ",
    "nice ",
    "strace ",
    "watch ",
    "xargs ",
)

SHELL_BUILTINS = frozenset({
    "cd", "exit", "quit", "export", "unset", "source", "history", "help", "alias", "unalias",
    "set", "shopt", "type", "hash", "ulimit", "umask", "wait", "jobs", "fg", "bg", "disown",
    "builtin", "command", "declare", "local", "readonly", "typeset", "let", "eval", "exec",
    "trap", "return", "shift", "getopts", "read", "mapfile", "readarray", "printf", "echo",
    "test", "true", "false", "for", "while", "if", "case", "select", "until", "do", "done",
    "then", "else", "elif", "fi", "esac", "in",
})  # fmt: skip

ASSIGNMENT_NAME_RE = re.compile(r"[A-Za-z0-9_]+")
TOKEN_CUT_RE = re.compile(r"[|;&]")


def classify(line: str, path_commands: PathCommandSet) -> ClassifiedInput:
    """Classify one input line. Pure and total."""

    text = line.strip()
    if not text or text.startswith("#"):
        return Comment()

    directive = _classify_directive(text)
    if directive is not None:
        return directive

    if is_shell_like(text, path_commands):
        return ShellCommand(text)
    return NaturalLanguage(text)


def _classify_directive(text: str) -> ClassifiedInput | None:
    if text in EXIT_WORDS:
        return Exit()
    words = text.split()
    if len(words) == 2 and words[0] == "exit":
        return Exit(_parse_exit_code(words[1]))

    if text == "help":
        return HelpRequest()
    if text == "history":
        return HistoryRequest()

    forced = _strip_marker(text, "!")
    if forced:
        return ForceShell(forced)

    # `??` must be checked before `?`.
    question = _strip_marker(text, "??")
    if question:
        return Ask(question)
    subject = _strip_marker(text, "?")
    if subject:
        return Explain(subject)

    if text == "cd":
        return ChangeDirectory("")
    if text.startswith("cd "):
        return ChangeDirectory(text[3:].strip())
    if text.startswith("export "):
        return ExportAssignment(text[len("export ") :].strip())
    if text.startswith("unset "):
        return UnsetVariable(text[len("unset ") :].strip())
    if text.startswith("source "):
        return SourceFile(text[len("source ") :].strip())
    if text.startswith(". "):
        return SourceFile(text[2:].strip())
    return None


def _strip_marker(text: str, marker: str) -> str:
    if not text.startswith(marker):
        return ""
    return text[len(marker) :].strip()


def _parse_exit_code(raw: str) -> int | None:
    try:
        return int(raw) & 0xFF
    except ValueError:
        return None


def is_shell_like(text: str, path_commands: PathCommandSet) -> bool:
    """Return True when `text` should be forwarded to the shell verbatim."""

    if text[0] in SHELL_SENTINELS:
        return True
    if _is_assignment(text):
        return True
    if text.startswith(COMMAND_PREFIXES):
        return True

    token = first_token(text)
    if token in SHELL_BUILTINS or token in path_commands:
        return True
    return "/" in token


def _is_assignment(text: str) -> bool:
    name, sep, _ = text.partition("=")
    return bool(sep) and ASSIGNMENT_NAME_RE.fullmatch(name) is not None


def first_token(text: str) -> str:
    """First whitespace word, cut at the first `|`, `;` or `&`."""

    words = text.split(maxsplit=1)
    if not words:
        return ""
    return TOKEN_CUT_RE.split(words[0], maxsplit=1)[0]
