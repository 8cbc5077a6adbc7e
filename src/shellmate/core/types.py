"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Exit:
    """Leave the session, optionally with an explicit code."""

    code: int | None = None


@dataclass(frozen=True)
class Comment:
    """A `#` line; skipped silently."""


@dataclass(frozen=True)
class HelpRequest:
    pass


@dataclass(frozen=True)
class HistoryRequest:
    pass


@dataclass(frozen=True)
class ChangeDirectory:
    path: str = ""


@dataclass(frozen=True)
class ExportAssignment:
    text: str


@dataclass(frozen=True)
class UnsetVariable:
    name: str


@dataclass(frozen=True)
class SourceFile:
    path: str


@dataclass(frozen=True)
class ForceShell:
    """`!cmd`: run verbatim, skipping every other rule."""

    command: str


@dataclass(frozen=True)
class Explain:
    subject: str


@dataclass(frozen=True)
class Ask:
    question: str


@dataclass(frozen=True)
class ShellCommand:
    command: str


@dataclass(frozen=True)
class NaturalLanguage:
    text: str


ClassifiedInput = (
    Exit
    | Comment
    | HelpRequest
    | HistoryRequest
    | ChangeDirectory
    | ExportAssignment
    | UnsetVariable
    | SourceFile
    | ForceShell
    | Explain
    | Ask
    | ShellCommand
    | NaturalLanguage
)
