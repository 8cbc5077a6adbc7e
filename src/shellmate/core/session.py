"""Session state and the builtins that change it.

`SessionContext` is the only owner of the working directory and the
environment handed to child processes. It is mutated on the main thread by
the builtin handlers below, never while a child is running.
"""

from __future__ import annotations

import os
import re
import subprocess
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from shellmate.errors import BuiltinError

PROFILE_SCRIPT = """\
[ -f /etc/profile ] && . /etc/profile 2>/dev/null
[ -f "$HOME/.profile" ] && . "$HOME/.profile" 2>/dev/null
[ -f "$HOME/.bashrc" ] && . "$HOME/.bashrc" 2>/dev/null
env -0 > "$1"
"""

SOURCE_SCRIPT = """\
. "$1"
status=$?
env -0 > "$2"
exit $status
"""

# Variables the capturing shell sets for itself.
_VOLATILE_VARS = frozenset({"_", "SHLVL", "OLDPWD"})
_ENV_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_VAR_RE = re.compile(r"\$(\w+)|\$\{(\w+)\}")


def _unquote(value: str) -> str:
    for quote in ('"', "'"):
        if len(value) >= 2 and value.startswith(quote) and value.endswith(quote):
            return value[1:-1]
    return value


@dataclass
class SessionContext:
    """Working directory and environment for one shell session."""

    cwd: Path
    env: dict[str, str] = field(default_factory=dict)
    last_exit: int = 0

    @classmethod
    def from_process(cls) -> SessionContext:
        try:
            cwd = Path.cwd()
        except OSError:
            cwd = Path("/")
        env = dict(os.environ)
        env["PWD"] = str(cwd)
        return cls(cwd=cwd, env=env)

    @property
    def home(self) -> Path:
        return Path(self.env.get("HOME") or Path.home())

    def expand(self, text: str) -> str:
        """Expand a leading `~` and `$VAR` references against the session env."""

        if text == "~":
            text = str(self.home)
        elif text.startswith("~/"):
            text = f"{self.home}/{text[2:]}"
        return _VAR_RE.sub(lambda m: self.env.get(m.group(1) or m.group(2), m.group(0)), text)

    def resolve(self, raw: str) -> Path:
        path = Path(self.expand(_unquote(raw.strip())))
        if not path.is_absolute():
            path = self.cwd / path
        return path

    def change_directory(self, target: str) -> Path:
        """`cd`: empty means home, `-` means the previous directory."""

        if not target:
            destination = self.home
        elif target == "-":
            previous = self.env.get("OLDPWD")
            if not previous:
                raise BuiltinError("cd: OLDPWD not set")
            destination = Path(previous)
        else:
            destination = self.resolve(target)

        try:
            real = destination.resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            raise BuiltinError(f"cd: no such directory: {destination}") from exc
        if not real.is_dir():
            raise BuiltinError(f"cd: not a directory: {destination}")

        self.env["OLDPWD"] = str(self.cwd)
        self.cwd = real
        self.env["PWD"] = str(real)
        logger.debug("cd -> {}", real)
        return real

    def export(self, assignment: str) -> bool:
        """`export KEY=VALUE`. Returns False for a bare `export KEY` (a no-op)."""

        key, sep, value = assignment.partition("=")
        key = key.strip()
        if _ENV_NAME_RE.fullmatch(key) is None:
            raise BuiltinError(f"export: not a valid identifier: {key}")
        if not sep:
            return False
        self.env[key] = _unquote(value.strip())
        return True

    def unset(self, names: str) -> None:
        for name in names.split():
            self.env.pop(name, None)

    def import_environment(self, captured: Mapping[str, str]) -> None:
        """Replace the environment with one captured from a shell."""

        kept = {key: value for key, value in self.env.items() if key in _VOLATILE_VARS}
        self.env = {key: value for key, value in captured.items() if key not in _VOLATILE_VARS}
        self.env.update(kept)

        pwd = self.env.get("PWD")
        if pwd and pwd != str(self.cwd) and Path(pwd).is_dir():
            self.env["OLDPWD"] = str(self.cwd)
            self.cwd = Path(pwd)
        self.env["PWD"] = str(self.cwd)

    def source(self, raw_path: str, shell: str) -> int:
        """`source FILE`: run it in `shell` and adopt the resulting environment."""

        path = self.resolve(raw_path)
        if not path.is_file():
            raise BuiltinError(f"source: {raw_path}: No such file or directory")
        status, captured = capture_environment(shell, SOURCE_SCRIPT, [str(path)], cwd=self.cwd, env=self.env)
        if captured is not None:
            self.import_environment(captured)
        return status

    def source_profile(self, shell: str) -> None:
        """Load login profile files the way a login shell would."""

        _, captured = capture_environment(
            shell,
            PROFILE_SCRIPT,
            [],
            cwd=self.cwd,
            env=self.env,
            quiet=True,
        )
        if captured is None:
            logger.warning("profile sourcing produced no environment")
            return
        self.import_environment(captured)


def parse_env_block(raw: bytes) -> dict[str, str]:
    """Parse `env -0` output."""

    result: dict[str, str] = {}
    for entry in raw.decode("utf-8", errors="replace").split("\0"):
        key, sep, value = entry.partition("=")
        if sep and key:
            result[key] = value
    return result


def capture_environment(
    shell: str,
    script: str,
    args: list[str],
    *,
    cwd: Path,
    env: Mapping[str, str],
    quiet: bool = False,
) -> tuple[int, dict[str, str] | None]:
    """Run `script` in `shell` and return its status and final environment.

    The script receives `args` as `$1..`, followed by the path of a
    temporary file it must write `env -0` output into.
    """

    with tempfile.TemporaryDirectory(prefix="shellmate-") as tmp:
        env_file = Path(tmp) / "env"
        try:
            completed = subprocess.run(  # noqa: S603
                [shell, "-c", script, "shellmate", *args, str(env_file)],
                cwd=cwd,
                env=dict(env),
                stdout=subprocess.DEVNULL if quiet else None,
                stderr=subprocess.DEVNULL if quiet else None,
                check=False,
            )
        except OSError as exc:
            logger.warning("could not run {}: {}", shell, exc)
            return 127, None
        if not env_file.exists():
            return completed.returncode, None
        return completed.returncode, parse_env_block(env_file.read_bytes())
