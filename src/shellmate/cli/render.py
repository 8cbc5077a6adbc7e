"""Terminal rendering and line input for shellmate."""

from __future__ import annotations

import os
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from rich.console import Console
from rich.markup import escape

HELP_TEXT = """\
[bold magenta]shellmate[/bold magenta] - a shell that understands plain English

[bold]Usage:[/bold]
  [green]any command[/green]            run it directly through the shell
  [green]plain english[/green]          the assistant writes a command, you confirm
  [yellow]! command[/yellow]              force shell execution
  [yellow]? command[/yellow]              explain what a command does
  [yellow]?? question[/yellow]            ask the assistant anything

[bold]When a command fails:[/bold]
  permission errors offer a [yellow]sudo[/yellow] retry
  press [yellow]f[/yellow] for a diagnosis and a suggested fix

[bold]After a command is generated:[/bold]
  [yellow]enter[/yellow] run it, [yellow]e[/yellow] edit it first, [yellow]s[/yellow] skip it

[bold]Builtins:[/bold]
  [green]cd[/green] [dim]\\[dir][/dim]               change directory ([green]cd -[/green] for the previous one)
  [green]export[/green] [dim]KEY=VALUE[/dim]       set an environment variable
  [green]unset[/green] [dim]VAR[/dim]              remove an environment variable
  [green]source[/green] [dim]FILE[/dim]            run FILE and keep its environment
  [green]history[/green]                show command history
  [green]exit[/green] [dim]\\[code][/dim] / [green]quit[/green]     leave the shell
  [green]help[/green]                   this message

[bold]Modes:[/bold]
  [dim]shellmate[/dim]                interactive shell
  [dim]shellmate -c "cmd"[/dim]       run one command and exit
  [dim]shellmate script.sh[/dim]      run a script file
  [dim]echo "cmd" | shellmate[/dim]   read commands from stdin
  [dim]shellmate -l[/dim]             login shell (sources profile files)

[bold]Configuration:[/bold] [dim]~/.shellmate/[/dim]
  [dim]personality[/dim]              tone of the assistant
  [dim]prompts/*.txt[/dim]            system prompt overrides
  [dim]shellmaterc[/dim]              startup commands
  [dim]history[/dim]                  command history
"""

WELCOME_TEXT = (
    "\n  [bold magenta]shellmate[/bold magenta] - AI-assisted shell\n"
    "  [dim]type commands as usual, or say what you want in plain English[/dim]\n"
    "  [dim]type[/dim] help [dim]for more[/dim]\n"
)


def display_path(cwd: Path, home: Path) -> str:
    """Show `cwd` relative to `home` as `~/...` when it lies inside it."""
    try:
        relative = cwd.relative_to(home)
    except ValueError:
        return str(cwd)
    if relative == Path("."):
        return "~"
    return f"~/{relative}"


def prompt_fragments(cwd: Path, home: Path, last_exit: int, *, is_root: bool) -> FormattedText:
    """Build the main prompt: path, last exit code when non-zero, sigil."""
    fragments: list[tuple[str, str]] = [("ansimagenta", display_path(cwd, home))]
    if last_exit != 0:
        fragments.append(("ansired", f" [{last_exit}]"))
    fragments.append(("ansicyan bold", f" {'#' if is_root else '>'} "))
    return FormattedText(fragments)


def is_root_user() -> bool:
    return os.geteuid() == 0


class Renderer:
    """Rich output plus prompt_toolkit line editing.

    Diagnostics, banners and questions go to stderr; generated commands
    and assistant answers go to stdout so they can be piped.
    """

    def __init__(self, history_path: Path | None = None, *, interactive: bool = True) -> None:
        self.console = Console(stderr=True, highlight=False)
        self.out = Console(highlight=False)
        self.interactive = interactive
        self._history: History = FileHistory(str(history_path)) if history_path else InMemoryHistory()
        self._prompt_session: PromptSession[str] | None = None

    @property
    def prompt_session(self) -> PromptSession[str]:
        """Line editor, created on first use."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession(history=self._history)
        return self._prompt_session

    def read_line(self, prompt: FormattedText | str) -> str:
        """Read a command line. Raises EOFError and KeyboardInterrupt."""
        return self.prompt_session.prompt(prompt)

    def welcome(self) -> None:
        """Render the welcome banner."""
        self.console.print(WELCOME_TEXT)

    def warning(self, message: str) -> None:
        """Render a warning."""
        self.console.print(f"[bold yellow]warning:[/bold yellow] {escape(message)}")

    def info(self, message: str) -> None:
        """Render an info message."""
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[red]shellmate: {escape(message)}[/red]")

    def explanation(self, text: str) -> None:
        """Render the assistant's diagnosis of a failure."""
        self.console.print(f"[yellow]{escape(text)}[/yellow]")

    def output(self, text: str) -> None:
        """Write plain text to stdout."""
        self.out.print(text, markup=False)

    def answer(self, text: str) -> None:
        """Render an assistant answer on stdout."""
        self.out.print(text, markup=False)

    def suggest(self, command: str) -> None:
        """Render a suggested command."""
        self.out.print(f"[bold cyan]>[/bold cyan] [bold]{escape(command)}[/bold]")

    def thinking(self, label: str = "thinking...") -> AbstractContextManager[object]:
        """Spinner while the assistant works; a no-op outside a terminal."""
        if not self.interactive:
            return nullcontext()
        return self.console.status(f"[dim]{escape(label)}[/dim]", spinner="dots")

    def ask(self, message: str) -> str | None:
        """Ask a confirmation question. None on end of input or Ctrl-C."""
        try:
            return self.console.input(f"[yellow]{escape(message)}[/yellow]")
        except (EOFError, KeyboardInterrupt):
            self.console.print()
            return None

    def edit(self, command: str) -> str | None:
        """Prefill the line editor with `command`. None on end of input or Ctrl-C."""
        try:
            return self.prompt_session.prompt("edit> ", default=command)
        except (EOFError, KeyboardInterrupt):
            return None

    def show_help(self) -> None:
        """Render the help text."""
        self.console.print(HELP_TEXT)

    def show_history(self) -> None:
        """List history entries, oldest first."""
        entries = list(reversed(list(self._history.load_history_strings())))
        for index, entry in enumerate(entries, start=1):
            self.out.print(f"{index:>5}  {entry}", markup=False)

    def remember(self, command: str) -> None:
        """Add a command to the history."""
        self._history.append_string(command)
