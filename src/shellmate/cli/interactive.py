"""Interactive read-eval loop."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from shellmate.cli.batch import read_script, run_lines
from shellmate.cli.render import Renderer, is_root_user, prompt_fragments
from shellmate.core.dispatcher import Dispatcher

INTERRUPTED_CODE = 130


def run_interactive(
    dispatcher: Dispatcher,
    renderer: Renderer,
    *,
    rc_dispatcher: Dispatcher | None = None,
    rc_path: Path | None = None,
) -> int:
    """Run the prompt loop until `exit` or end of input. Returns the exit code."""

    session = dispatcher.session
    if rc_path is not None and rc_dispatcher is not None and rc_path.is_file():
        lines = read_script(rc_path)
        if lines is None:
            renderer.warning(f"could not read {rc_path}")
        else:
            logger.debug("running {}", rc_path)
            outcome = run_lines(rc_dispatcher, lines)
            if outcome.exit_requested:
                return outcome.exit_code

    renderer.welcome()
    is_root = is_root_user()

    while True:
        prompt = prompt_fragments(session.cwd, session.home, session.last_exit, is_root=is_root)
        try:
            line = renderer.read_line(prompt)
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        if not line.strip():
            continue
        try:
            outcome = dispatcher.handle_line(line)
        except KeyboardInterrupt:
            # Ctrl-C outside a child, e.g. while waiting on the assistant.
            logger.debug("interrupted: {!r}", line)
            session.last_exit = INTERRUPTED_CODE
            continue
        if outcome.exit_requested:
            renderer.info("bye")
            return outcome.exit_code

    renderer.info("bye")
    return session.last_exit
