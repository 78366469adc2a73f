import builtins
import errno
import os
import time

import pytest

from chainsh import Shell
from chainsh.cli import _signal_handlers, main


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_cli_exec_outputs(capfd):
    with pytest.raises(SystemExit) as exc:
        main(["exec", "echo hi"])
    assert exc.value.code == 0
    captured = capfd.readouterr()
    assert "hi" in captured.out


def test_cli_exec_returns_exit_status(capfd):
    with pytest.raises(SystemExit) as exc:
        main(["exec", "exit 4"])
    assert exc.value.code == 4


def test_cli_exec_parse_error(capfd):
    with pytest.raises(SystemExit) as exc:
        main(["exec", "echo hi >"])
    assert exc.value.code == 2
    assert "missing filename" in capfd.readouterr().err


def test_cli_exec_short_circuit_flag(capfd):
    with pytest.raises(SystemExit) as exc:
        main(["exec", "--short-circuit", "false && echo skipped"])
    assert exc.value.code == 1
    assert "skipped" not in capfd.readouterr().out


def test_cli_script_runs_every_line(workdir, capfd):
    script = workdir / "script.sh"
    script.write_text("echo one\n\necho two > out.txt\ncat out.txt\n")
    with pytest.raises(SystemExit) as exc:
        main(["script", str(script)])
    assert exc.value.code == 0
    assert capfd.readouterr().out == "one\ntwo\n"


def test_cli_script_missing_file(workdir, capfd):
    with pytest.raises(SystemExit) as exc:
        main(["script", str(workdir / "missing.sh")])
    assert exc.value.code == 1
    assert "error opening script" in capfd.readouterr().err


def test_cli_shell_repl(monkeypatch, capfd):
    inputs = iter(["echo hello", "prompt >>>", "history", "exit 5"])
    prompts = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return next(inputs)

    monkeypatch.setattr(builtins, "input", fake_input)
    with pytest.raises(SystemExit) as exc:
        main(["shell"])
    assert exc.value.code == 5
    captured = capfd.readouterr()
    assert "hello" in captured.out
    assert "1 echo hello\n2 prompt >>>\n3 history\n" in captured.out
    assert prompts[:3] == ["% ", "% ", ">>> "]


def test_cli_shell_ends_on_eof(monkeypatch, capfd):
    def fake_input(_: str) -> str:
        raise EOFError

    monkeypatch.setattr(builtins, "input", fake_input)
    with pytest.raises(SystemExit) as exc:
        main(["shell", "--prompt", "$"])
    assert exc.value.code == 0


def test_cli_script_passes_undecodable_bytes_through(workdir, capfdbinary):
    script = workdir / "latin1.sh"
    script.write_bytes(b"echo one\necho caf\xe9\necho two\n")
    with pytest.raises(SystemExit) as exc:
        main(["script", str(script)])
    assert exc.value.code == 0
    assert capfdbinary.readouterr().out == b"one\ncaf\xe9\ntwo\n"


def test_cli_failed_stream_restore_is_fatal(monkeypatch, capfd):
    real_dup2 = os.dup2
    calls = []

    def failing_restore(fd, fd2, *args, **kwargs):
        result = real_dup2(fd, fd2, *args, **kwargs)
        calls.append((fd, fd2))
        if len(calls) == 2:
            raise OSError(errno.EBADF, "Bad file descriptor")
        return result

    monkeypatch.setattr(os, "dup2", failing_restore)
    with pytest.raises(SystemExit) as exc:
        main(["exec", "pwd > out.txt ; echo never"])
    monkeypatch.undo()
    assert exc.value.code == 1
    captured = capfd.readouterr()
    assert "failed to restore standard streams: Bad file descriptor" in captured.err
    assert "never" not in captured.out


def test_sigchld_reaps_background_jobs(workdir):
    shell = Shell()
    with _signal_handlers(shell, interactive=False):
        assert shell.run_line("sleep 0.2 &") == 0
        deadline = time.monotonic() + 5
        while shell.jobs and time.monotonic() < deadline:
            time.sleep(0.02)
    assert shell.jobs == []
