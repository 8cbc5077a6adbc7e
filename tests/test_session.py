import os
from pathlib import Path

import pytest

from shellmate.core.session import SessionContext, parse_env_block
from shellmate.errors import BuiltinError


def _session(tmp_path: Path) -> SessionContext:
    env = {"HOME": str(tmp_path), "PATH": os.environ.get("PATH", "/usr/bin:/bin"), "PWD": str(tmp_path)}
    return SessionContext(cwd=tmp_path.resolve(), env=env)


def test_cd_changes_session_cwd_only(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    session = _session(tmp_path)
    before = Path.cwd()
    session.change_directory("sub")
    assert session.cwd == (tmp_path / "sub").resolve()
    assert session.env["PWD"] == str(session.cwd)
    assert session.env["OLDPWD"] == str(tmp_path.resolve())
    assert Path.cwd() == before


def test_cd_dash_swaps_to_previous_directory(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    session = _session(tmp_path)
    session.change_directory("a")
    assert session.change_directory("-") == tmp_path.resolve()
    assert session.env["OLDPWD"] == str((tmp_path / "a").resolve())


def test_cd_without_argument_goes_home(tmp_path: Path) -> None:
    (tmp_path / "deep").mkdir()
    session = _session(tmp_path)
    session.change_directory("deep")
    session.change_directory("")
    assert session.cwd == tmp_path.resolve()


def test_cd_expands_tilde_and_variables(tmp_path: Path) -> None:
    (tmp_path / "proj").mkdir()
    session = _session(tmp_path)
    session.change_directory("~/proj")
    assert session.cwd.name == "proj"
    session.env["TARGET"] = str(tmp_path)
    session.change_directory("$TARGET")
    assert session.cwd == tmp_path.resolve()


def test_cd_errors_raise_builtin_error(tmp_path: Path) -> None:
    (tmp_path / "file.txt").write_text("x")
    session = _session(tmp_path)
    with pytest.raises(BuiltinError, match="not a directory"):
        session.change_directory("file.txt")
    with pytest.raises(BuiltinError, match="no such directory"):
        session.change_directory("missing")
    with pytest.raises(BuiltinError, match="OLDPWD not set"):
        session.change_directory("-")
    assert session.cwd == tmp_path.resolve()


def test_export_strips_one_pair_of_quotes(tmp_path: Path) -> None:
    session = _session(tmp_path)
    assert session.export('GREETING="hello world"') is True
    assert session.env["GREETING"] == "hello world"
    session.export("SINGLE='a b'")
    assert session.env["SINGLE"] == "a b"
    session.export("NESTED=\"'kept'\"")
    assert session.env["NESTED"] == "'kept'"


def test_bare_export_is_a_noop(tmp_path: Path) -> None:
    session = _session(tmp_path)
    assert session.export("PATH") is False


def test_export_rejects_invalid_names(tmp_path: Path) -> None:
    session = _session(tmp_path)
    with pytest.raises(BuiltinError, match="not a valid identifier"):
        session.export("1BAD=x")


def test_unset_removes_each_name(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.env.update({"A": "1", "B": "2"})
    session.unset("A B MISSING")
    assert "A" not in session.env
    assert "B" not in session.env


def test_source_imports_environment_and_directory(tmp_path: Path) -> None:
    (tmp_path / "work").mkdir()
    script = tmp_path / "env.sh"
    script.write_text(f'export FROM_SCRIPT=yes\ncd "{tmp_path / "work"}"\n')
    session = _session(tmp_path)
    status = session.source("env.sh", "/bin/sh")
    assert status == 0
    assert session.env["FROM_SCRIPT"] == "yes"
    assert session.cwd.resolve() == (tmp_path / "work").resolve()


def test_source_returns_script_status(tmp_path: Path) -> None:
    (tmp_path / "fail.sh").write_text("false\n")
    session = _session(tmp_path)
    assert session.source(str(tmp_path / "fail.sh"), "/bin/sh") == 1


def test_source_missing_file_raises(tmp_path: Path) -> None:
    session = _session(tmp_path)
    with pytest.raises(BuiltinError, match="No such file"):
        session.source("nope.sh", "/bin/sh")


def test_parse_env_block_handles_values_with_equals_and_newlines() -> None:
    parsed = parse_env_block(b"A=1\0B=x=y\0C=line1\nline2\0\0")
    assert parsed == {"A": "1", "B": "x=y", "C": "line1\nline2"}


def test_source_profile_imports_login_environment(tmp_path: Path) -> None:
    (tmp_path / ".profile").write_text("export FROM_PROFILE=yes\n")
    session = _session(tmp_path)
    session.source_profile("/bin/sh")
    assert session.env["FROM_PROFILE"] == "yes"
    assert session.env["HOME"] == str(tmp_path)
    assert session.cwd.resolve() == tmp_path.resolve()


def test_source_profile_with_missing_shell_keeps_environment(tmp_path: Path) -> None:
    session = _session(tmp_path)
    before = dict(session.env)
    session.source_profile(str(tmp_path / "no-such-shell"))
    assert session.env == before
