import os

import pytest

from minish.builtins import (
    ShellExit,
    builtin_cd,
    builtin_echo,
    builtin_env,
    builtin_exit,
    builtin_export,
    builtin_pwd,
    builtin_unset,
    exit_code_from_arg,
    export_lines,
    is_builtin,
    is_echo_n_flag,
    is_numeric,
    is_valid_key,
    run_builtin,
    safe_atol,
)
from minish.env import EnvEntry, Environment
from minish.parser import Command


def make(args, env=None):
    return Command(env=env if env is not None else Environment(), args=list(args))


@pytest.mark.parametrize("name", ["pwd", "echo", "cd", "export", "unset", "env", "exit"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "", None, "ECHO"])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


@pytest.mark.parametrize("text", ["42", "-7", "+3", "  12", "-"])
def test_is_numeric_true(text):
    assert is_numeric(text) is True


@pytest.mark.parametrize("text", ["", "abc", "12a", "1 2", None])
def test_is_numeric_false(text):
    assert is_numeric(text) is False


def test_safe_atol_limits():
    assert safe_atol("9223372036854775807") == 9223372036854775807
    assert safe_atol("-9223372036854775808") == -9223372036854775808
    assert safe_atol("9223372036854775808") is None
    assert safe_atol("-9223372036854775809") is None
    assert safe_atol("99999999999999999999999") is None
    assert safe_atol("  42") == 42


def test_exit_code_from_arg(capsys):
    command = make(["exit", "42"])
    assert exit_code_from_arg("42", command) == 42
    assert capsys.readouterr().out == "exit\n"
    assert exit_code_from_arg("-1", command) == 255


def test_exit_code_from_arg_invalid(capsys):
    command = make(["exit", "abc"])
    assert exit_code_from_arg("abc", command) == 2
    assert "numeric argument required" in capsys.readouterr().err
    assert exit_code_from_arg("9223372036854775808", command) == 2


@pytest.mark.parametrize("arg", ["FOO", "_x", "A1=value", "B=", "C=1=2"])
def test_is_valid_key_true(arg):
    assert is_valid_key(arg) is True


@pytest.mark.parametrize("arg", ["", "1ABC", "=x", "A-B=1", "A B"])
def test_is_valid_key_false(arg):
    assert is_valid_key(arg) is False


def test_is_echo_n_flag():
    assert is_echo_n_flag("-n") is True
    assert is_echo_n_flag("-nnn") is True
    assert is_echo_n_flag("-") is False
    assert is_echo_n_flag("-na") is False
    assert is_echo_n_flag("n") is False


def test_echo_plain(capsys):
    assert builtin_echo(make(["echo", "hello", "world"])) == 0
    assert capsys.readouterr().out == "hello world\n"


def test_echo_no_args(capsys):
    builtin_echo(make(["echo"]))
    assert capsys.readouterr().out == "\n"


def test_echo_n_flag_suppresses_newline(capsys):
    builtin_echo(make(["echo", "-n", "-nn", "hi"]))
    out = capsys.readouterr().out
    assert not out.endswith("\n")
    assert out.strip() == "hi"


def test_pwd(capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert builtin_pwd() == 0
    assert capsys.readouterr().out == os.getcwd() + "\n"


def test_env_prints_valued_entries(capsys):
    env = Environment([EnvEntry("A", "1"), EnvEntry("B"), EnvEntry("C", "")])
    assert builtin_env(make(["env"], env)) == 0
    assert capsys.readouterr().out == "A=1\nC=\n"


def test_env_empty_is_error(capsys):
    command = make(["env"])
    assert builtin_env(command) == 1
    assert command.exit_status == 2
    assert "no environment variables set" in capsys.readouterr().err


def test_export_lines_sorted():
    env = Environment([EnvEntry("B", "2"), EnvEntry("A", "1"), EnvEntry("C")])
    assert export_lines(env) == ["declare -x A=1", "declare -x B=2", "declare -x C"]


def test_export_without_args_prints(capsys):
    env = Environment([EnvEntry("B", "2"), EnvEntry("A", "1")])
    assert builtin_export(make(["export"], env)) == 0
    assert capsys.readouterr().out == "declare -x A=1\ndeclare -x B=2\n"


def test_export_adds_and_updates():
    env = Environment([EnvEntry("FOO", "old")])
    command = make(["export", "FOO=new", "BAR=baz", "EMPTY=", "NOVAL"], env)
    assert builtin_export(command) == 0
    assert env.get("FOO") == "new"
    assert env.get("BAR") == "baz"
    assert env.get("EMPTY") == ""
    assert "NOVAL" in env
    assert env.get("NOVAL") == ""


def test_export_existing_without_value_keeps_value():
    env = Environment([EnvEntry("FOO", "old")])
    builtin_export(make(["export", "FOO"], env))
    assert env.get("FOO") == "old"


def test_export_invalid_identifier(capsys):
    env = Environment([EnvEntry("A", "1")])
    command = make(["export", "1bad", "GOOD=yes"], env)
    assert builtin_export(command) == 1
    assert command.exit_status == 2
    assert env.get("GOOD") == "yes"
    assert "not a valid identifier" in capsys.readouterr().err


def test_unset_removes():
    env = Environment([EnvEntry("A", "1"), EnvEntry("B", "2")])
    assert builtin_unset(make(["unset", "A", "MISSING"], env)) == 0
    assert env.keys() == ["B"]


def test_cd_changes_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    start = os.getcwd()
    sub = tmp_path / "sub"
    sub.mkdir()
    env = Environment([EnvEntry("HOME", str(tmp_path))])
    assert builtin_cd(make(["cd", "sub"], env)) == 0
    assert os.path.realpath(os.getcwd()) == os.path.realpath(sub)
    assert env.get("OLDPWD") == start
    assert env.get("PWD") == os.getcwd()


def test_cd_home_and_dash(tmp_path, monkeypatch):
    sub = tmp_path / "sub"
    sub.mkdir()
    monkeypatch.chdir(sub)
    env = Environment([EnvEntry("HOME", str(tmp_path))])
    assert builtin_cd(make(["cd"], env)) == 0
    assert os.path.realpath(os.getcwd()) == os.path.realpath(tmp_path)
    assert builtin_cd(make(["cd", "-"], env)) == 0
    assert os.path.realpath(os.getcwd()) == os.path.realpath(sub)


def test_cd_home_not_set(capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    command = make(["cd"])
    assert builtin_cd(command) == 1
    assert "HOME not set" in capsys.readouterr().err


def test_cd_missing_directory(capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert builtin_cd(make(["cd", "nowhere"])) == 1
    assert "cd: nowhere: No such file or directory" in capsys.readouterr().err
    assert os.getcwd() == str(tmp_path) or os.path.samefile(os.getcwd(), tmp_path)


def test_cd_too_many_arguments(capsys):
    command = make(["cd", "a", "b"])
    assert builtin_cd(command) == 1
    assert command.exit_status == 1
    assert "too many arguments" in capsys.readouterr().err


def test_exit_with_code(capsys):
    with pytest.raises(ShellExit) as info:
        builtin_exit(make(["exit", "42"]))
    assert info.value.status == 42
    assert capsys.readouterr().out == "exit\n"


def test_exit_without_args():
    with pytest.raises(ShellExit) as info:
        builtin_exit(make(["exit"]))
    assert info.value.status == 0


def test_exit_non_numeric():
    with pytest.raises(ShellExit) as info:
        builtin_exit(make(["exit", "abc"]))
    assert info.value.status == 2


def test_exit_too_many_arguments(capsys):
    command = make(["exit", "1", "2"])
    assert builtin_exit(command) == 1
    captured = capsys.readouterr()
    assert captured.out == "exit\n"
    assert "too many arguments" in captured.err


def test_run_builtin_dispatch_and_cleanup(capsys):
    env = Environment([EnvEntry("KEEP", "1")])
    env.append("TEMP", "x")
    assert run_builtin(make(["echo", "hi"], env)) == 0
    assert capsys.readouterr().out == "hi\n"
    assert env.keys() == ["KEEP"]


def test_run_builtin_unknown():
    assert run_builtin(make(["ls"])) == 1


def test_run_builtin_exit_raises():
    with pytest.raises(ShellExit) as info:
        run_builtin(make(["exit", "7"]))
    assert info.value.status == 7