import os

import pytest

from chainsh import Shell, ShellExit
from chainsh.shell.registry import COMMAND_REGISTRY, resolve_builtin


@pytest.fixture
def shell(tmp_path, monkeypatch) -> Shell:
    monkeypatch.chdir(tmp_path)
    return Shell()


def test_builtin_table_is_closed():
    assert resolve_builtin("ls") is None
    assert {spec.name for spec in COMMAND_REGISTRY.iter_commands()} == {
        "cd",
        "exit",
        "history",
        "prompt",
        "pwd",
    }
    assert COMMAND_REGISTRY.frozen
    with pytest.raises(RuntimeError):
        COMMAND_REGISTRY.register("ls", lambda shell, args: None)


def test_history_empty_prints_nothing(shell, capfd):
    assert shell.run_line("history") == 0
    assert capfd.readouterr().out == ""


def test_history_lists_entries(shell, capfd):
    shell.submit("echo a")
    shell.submit("history")
    captured = capfd.readouterr()
    assert captured.out == "a\n1 echo a\n2 history\n"


def test_history_invalid_index_leaves_store(shell, capfd):
    shell.history.append("echo a")
    assert shell.run_line("history 5") == 1
    assert shell.run_line("history 0") == 1
    assert "history: invalid index" in capfd.readouterr().err
    assert list(shell.history) == ["echo a"]


def test_history_prefix_without_match(shell, capfd):
    shell.history.append("echo a")
    assert shell.run_line("history cat") == 1
    assert "no matching command found" in capfd.readouterr().err


def test_history_too_many_arguments(shell, capfd):
    assert shell.run_line("history 1 2") == 1
    assert "too many arguments" in capfd.readouterr().err


def test_history_propagates_rerun_status(shell):
    shell.history.append("false")
    assert shell.run_line("history 1") == 1


def test_history_reentry_can_nest(shell, capfd):
    shell.history.append("echo nested")
    shell.history.append("history 1")
    assert shell.run_line("!2") == 0
    assert capfd.readouterr().out == "nested\n"
    assert shell.history_depth == 0


def test_history_self_reference_hits_depth_limit(tmp_path, monkeypatch, capfd):
    monkeypatch.chdir(tmp_path)
    shell = Shell(max_history_depth=5)
    shell.history.append("history 1")
    assert shell.run_line("history 1") == 1
    assert "reentry depth exceeded" in capfd.readouterr().err
    assert shell.history_depth == 0


def test_history_output_redirection(shell, tmp_path):
    shell.history.append("echo a")
    shell.run_line("history > hist.txt")
    assert (tmp_path / "hist.txt").read_text() == "1 echo a\n"


def test_cd_changes_directory(shell, tmp_path):
    (tmp_path / "sub").mkdir()
    assert shell.run_line("cd sub") == 0
    assert os.getcwd() == str((tmp_path / "sub").resolve())


def test_cd_without_argument_goes_home(shell, tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    assert shell.run_line("cd") == 0
    assert os.getcwd() == str(home.resolve())


def test_cd_errors(shell, capfd):
    assert shell.run_line("cd a b") == 1
    assert shell.run_line("cd missing-dir") == 1
    err = capfd.readouterr().err
    assert "cd: too many arguments" in err
    assert "cd: missing-dir:" in err


def test_pwd_rejects_arguments(shell, capfd):
    assert shell.run_line("pwd extra") == 1
    assert "pwd: too many arguments" in capfd.readouterr().err


def test_builtin_error_follows_stderr_redirection(shell, tmp_path, capfd):
    assert shell.run_line("pwd extra 2> err.txt") == 1
    assert "too many arguments" in (tmp_path / "err.txt").read_text()
    assert capfd.readouterr().err == ""


def test_prompt(shell, capfd):
    assert shell.prompt == "%"
    assert shell.run_line("prompt $") == 0
    assert shell.prompt == "$"
    assert shell.run_line("prompt") == 1
    assert shell.run_line("prompt a b") == 1
    assert shell.prompt == "$"


def test_exit_raises_with_status(shell, capfd):
    with pytest.raises(ShellExit) as exc:
        shell.run_line("exit 3")
    assert exc.value.code == 3
    assert capfd.readouterr().out == "exit\n"
    with pytest.raises(ShellExit) as exc:
        shell.run_line("exit")
    assert exc.value.code == 0


def test_exit_rejects_bad_arguments(shell, capfd):
    assert shell.run_line("exit abc") == 1
    assert shell.run_line("exit 1 2") == 1
    err = capfd.readouterr().err
    assert "exit: expects a numerical argument" in err
    assert "exit: too many arguments" in err


def test_exit_releases_remaining_descriptors(shell, tmp_path):
    before = set(os.listdir("/proc/self/fd"))
    with pytest.raises(ShellExit):
        shell.run_line("exit ; echo never > out.txt")
    assert set(os.listdir("/proc/self/fd")) == before


def test_cd_null_byte_is_builtin_error(shell, tmp_path, capfd):
    assert shell.run_line("cd a\x00b") == 1
    assert "cd: 'a\\x00b': embedded null byte" in capfd.readouterr().err
    assert os.getcwd() == str(tmp_path)
