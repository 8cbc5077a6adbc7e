from pathlib import Path

from fakes import PROMPTS, FakeAssistant, FakeRunner, FakeTerminal

from shellmate.core.executor import RunResult
from shellmate.core.recovery import RecoveryContext, RecoveryOrchestrator, has_permission_signal

DENIED = RunResult(1, "cat: /etc/shadow: Permission denied\n")


def _orchestrator(runner, assistant, terminal, *, unattended: bool = False) -> RecoveryOrchestrator:
    return RecoveryOrchestrator(runner, assistant, terminal, PROMPTS, unattended=unattended)


def test_permission_signal_offers_elevation_first(tmp_path: Path) -> None:
    runner = FakeRunner()
    terminal = FakeTerminal(answers=["y"])
    code = _orchestrator(runner, FakeAssistant(), terminal).recover("cat /etc/shadow", DENIED, tmp_path)
    assert "sudo" in terminal.questions[0]
    assert runner.calls == ["sudo cat /etc/shadow"]
    assert terminal.history == ["sudo cat /etc/shadow"]
    assert code == 0
    assert len(terminal.questions) == 1


def test_declined_elevation_falls_through_to_fix_offer(tmp_path: Path) -> None:
    runner = FakeRunner()
    terminal = FakeTerminal(answers=["n", ""])
    assistant = FakeAssistant()
    code = _orchestrator(runner, assistant, terminal).recover("cat /etc/shadow", DENIED, tmp_path)
    assert "sudo" in terminal.questions[0]
    assert "press f" in terminal.questions[1]
    assert runner.calls == []
    assert assistant.calls == []
    assert code == 1


def test_already_elevated_command_skips_elevation(tmp_path: Path) -> None:
    terminal = FakeTerminal(answers=[""])
    _orchestrator(FakeRunner(), FakeAssistant(), terminal).recover("sudo cat /x", DENIED, tmp_path)
    assert terminal.questions == ["exit 1 - press f for AI help or enter to continue "]


def test_failed_retry_gets_one_fix_offer_with_retry_context(tmp_path: Path) -> None:
    runner = FakeRunner(results={"sudo cat /etc/shadow": RunResult(1, "sudo: a password is required\n")})
    assistant = FakeAssistant(replies=["The password was not accepted.\n\nsudo -k cat /etc/shadow"])
    terminal = FakeTerminal(answers=["y", "f", ""])
    code = _orchestrator(runner, assistant, terminal).recover("cat /etc/shadow", DENIED, tmp_path)
    assert runner.calls == ["sudo cat /etc/shadow", "sudo -k cat /etc/shadow"]
    assert "Command: sudo cat /etc/shadow" in assistant.calls[0][1]
    assert "a password is required" in assistant.calls[0][1]
    assert terminal.kinds("suggest") == ["sudo -k cat /etc/shadow"]
    assert code == 0


def test_fix_command_failure_does_not_recurse(tmp_path: Path) -> None:
    runner = FakeRunner(results={"make -B": RunResult(2, "make: *** fail\n")})
    assistant = FakeAssistant(replies=["Stale targets.\n\nmake -B"])
    terminal = FakeTerminal(answers=["f", ""])
    code = _orchestrator(runner, assistant, terminal).recover("make", RunResult(2, "make: *** error\n"), tmp_path)
    assert runner.calls == ["make -B"]
    assert len(terminal.questions) == 2
    assert code == 2


def test_fix_reply_without_blank_line_is_explanation_only(tmp_path: Path) -> None:
    runner = FakeRunner()
    assistant = FakeAssistant(replies=["The file does not exist, check the path."])
    terminal = FakeTerminal(answers=["f"])
    code = _orchestrator(runner, assistant, terminal).recover("cat nope", RunResult(1, "No such file\n"), tmp_path)
    assert terminal.kinds("explanation") == ["The file does not exist, check the path."]
    assert terminal.kinds("suggest") == []
    assert runner.calls == []
    assert code == 1


def test_fenced_fix_suggestion_is_unwrapped(tmp_path: Path) -> None:
    runner = FakeRunner()
    assistant = FakeAssistant(replies=["Missing directory.\n\n```bash\nmkdir -p out\n```"])
    terminal = FakeTerminal(answers=["fix", "r"])
    _orchestrator(runner, assistant, terminal).recover("touch out/x", RunResult(1, "No such file\n"), tmp_path)
    assert runner.calls == ["mkdir -p out"]
    assert terminal.history == ["mkdir -p out"]


def test_skipped_fix_keeps_failure_code(tmp_path: Path) -> None:
    runner = FakeRunner()
    assistant = FakeAssistant(replies=["Why.\n\nfix it"])
    terminal = FakeTerminal(answers=["f", "s"])
    code = _orchestrator(runner, assistant, terminal).recover("bad", RunResult(4, "err\n"), tmp_path)
    assert runner.calls == []
    assert terminal.kinds("info") == ["skipped"]
    assert code == 4


def test_unattended_runs_fix_without_asking(tmp_path: Path) -> None:
    runner = FakeRunner()
    assistant = FakeAssistant(replies=["Why.\n\nls -a"])
    terminal = FakeTerminal(answers=["f"])
    _orchestrator(runner, assistant, terminal, unattended=True).recover("ls -z", RunResult(2, "bad\n"), tmp_path)
    assert runner.calls == ["ls -a"]
    assert len(terminal.questions) == 1


def test_assistant_failure_reports_and_keeps_code(tmp_path: Path) -> None:
    terminal = FakeTerminal(answers=["f"])
    code = _orchestrator(FakeRunner(), FakeAssistant(), terminal).recover("x", RunResult(3, ""), tmp_path)
    assert terminal.kinds("error") == ["couldn't analyze that"]
    assert code == 3


def test_unavailable_assistant_only_offers_elevation(tmp_path: Path) -> None:
    terminal = FakeTerminal(answers=["n"])
    assistant = FakeAssistant(available=False)
    code = _orchestrator(FakeRunner(), assistant, terminal).recover("cat /etc/shadow", DENIED, tmp_path)
    assert len(terminal.questions) == 1
    assert code == 1

    quiet = FakeTerminal()
    _orchestrator(FakeRunner(), assistant, quiet).recover("false", RunResult(1, ""), tmp_path)
    assert quiet.questions == []


def test_end_of_input_declines(tmp_path: Path) -> None:
    runner = FakeRunner()
    terminal = FakeTerminal(answers=[None, None])
    code = _orchestrator(runner, FakeAssistant(), terminal).recover("cat /etc/shadow", DENIED, tmp_path)
    assert runner.calls == []
    assert code == 1


def test_permission_markers_are_case_sensitive() -> None:
    assert has_permission_signal("rm: cannot remove 'x': Operation not permitted")
    assert has_permission_signal("EACCES: permission denied")
    assert not has_permission_signal("PERMISSION DENIED")


def test_context_description_layout(tmp_path: Path) -> None:
    context = RecoveryContext("ls /root", "denied\n", 2, tmp_path)
    assert context.describe() == "Command: ls /root\nExit code: 2\nStderr:\ndenied\n"
