"""CLI entry point for shellmate."""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from shellmate.cli.batch import read_script, run_lines
from shellmate.cli.interactive import run_interactive
from shellmate.cli.render import Renderer
from shellmate.config import PromptTemplates, Settings, ensure_home, get_settings, load_prompts
from shellmate.core.assistant import AssistantCLI
from shellmate.core.dispatcher import NOT_FOUND_CODE, Dispatcher
from shellmate.core.executor import ProcessExecutor
from shellmate.core.path_commands import PathCommandSet, build_path_command_set
from shellmate.core.session import SessionContext
from shellmate.errors import ConfigurationError
from shellmate.logging_utils import configure_logging

app = typer.Typer(
    name="shellmate",
    help="A POSIX shell front end that turns plain English into commands.",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _invoked_as_login_shell() -> bool:
    return Path(sys.argv[0]).name.startswith("-") if sys.argv else False


def _executable_path() -> str:
    argv0 = sys.argv[0] if sys.argv else ""
    if os.path.sep in argv0:
        return str(Path(argv0.lstrip("-")).resolve())
    return shutil.which(argv0.lstrip("-")) or sys.executable


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as exc:
        typer.echo(f"shellmate: {exc}", err=True)
        raise typer.Exit(2) from exc


def _build_dispatcher(
    session: SessionContext,
    path_commands: PathCommandSet,
    settings: Settings,
    prompts: PromptTemplates,
    renderer: Renderer,
    assistant: AssistantCLI,
    *,
    interactive: bool,
) -> Dispatcher:
    return Dispatcher(
        session,
        path_commands,
        ProcessExecutor(settings.shell, shield_sigint=interactive),
        assistant,
        renderer,
        prompts,
        shell=settings.shell,
        interactive=interactive,
        unattended=settings.unattended,
    )


@app.command()
def shell(
    command: Annotated[
        str | None,
        typer.Option("-c", help="Run COMMAND through the shell and exit with its status.", metavar="COMMAND"),
    ] = None,
    login: Annotated[bool, typer.Option("-l", "--login", help="Source profile files first.")] = False,
    script: Annotated[Path | None, typer.Argument(help="Script file to run line by line.")] = None,
) -> None:
    """Start shellmate: interactive on a terminal, otherwise read commands from stdin."""

    settings = _load_settings()
    interactive = command is None and script is None and sys.stdin.isatty()
    configure_logging(
        profile="interactive" if interactive else "batch",
        level=settings.log_level,
        log_file=settings.log_file,
    )
    ensure_home(settings.home)

    session = SessionContext.from_process()
    if login or _invoked_as_login_shell():
        session.source_profile(settings.shell)

    if command is not None:
        result = ProcessExecutor(settings.shell).run(command, session.cwd, session.env)
        raise typer.Exit(result.exit_code)

    prompts = load_prompts(settings.home)
    assistant = AssistantCLI(settings.assistant_command, timeout=settings.assistant_timeout)
    logger.debug("assistant {} available: {}", settings.assistant_command, assistant.available)
    path_commands = build_path_command_set(session.env.get("PATH"))

    if not interactive:
        lines: Iterable[str] | None = sys.stdin
        if script is not None:
            lines = read_script(script)
            if lines is None:
                typer.echo(f"shellmate: {script}: cannot read file", err=True)
                raise typer.Exit(NOT_FOUND_CODE)
        renderer = Renderer(interactive=False)
        batch = _build_dispatcher(session, path_commands, settings, prompts, renderer, assistant, interactive=False)
        raise typer.Exit(run_lines(batch, lines).exit_code)

    session.env["SHELL"] = _executable_path()
    session.env["PWD"] = str(session.cwd)

    renderer = Renderer(settings.history_path, interactive=True)
    if not assistant.available:
        renderer.warning(f"'{settings.assistant_command}' CLI not found in PATH. AI features disabled.")
    dispatcher = _build_dispatcher(session, path_commands, settings, prompts, renderer, assistant, interactive=True)
    rc_dispatcher = _build_dispatcher(session, path_commands, settings, prompts, renderer, assistant, interactive=False)
    raise typer.Exit(run_interactive(dispatcher, renderer, rc_dispatcher=rc_dispatcher, rc_path=settings.rc_path))


def main() -> None:
    app()
