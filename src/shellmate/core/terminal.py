"""What the core needs from the terminal front end."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

YES_ANSWERS = frozenset({"y", "yes"})
RUN_ANSWERS = frozenset({"", "r", "run", "y", "yes"})
FIX_ANSWERS = frozenset({"f", "fix"})


class Terminal(Protocol):
    """Interactive prompt and rendering collaborator."""

    def ask(self, message: str) -> str | None:
        """Read one line after showing `message`. None on end of input."""
        ...

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def explanation(self, text: str) -> None: ...

    def output(self, text: str) -> None: ...

    def answer(self, text: str) -> None: ...

    def suggest(self, command: str) -> None: ...

    def thinking(self, label: str = "thinking...") -> AbstractContextManager[object]:
        """Show a busy indicator while an assistant call runs."""
        ...

    def edit(self, command: str) -> str | None:
        """Let the user edit `command` before it runs. None on end of input.

        The accepted line is added to the history by the editor itself.
        """
        ...

    def show_help(self) -> None: ...

    def show_history(self) -> None: ...

    def remember(self, command: str) -> None:
        """Add a command the user ran indirectly to the line-editor history."""
        ...


def normalize_answer(raw: str | None) -> str | None:
    if raw is None:
        return None
    return raw.strip().lower()
