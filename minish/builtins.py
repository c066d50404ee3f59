"""The shell's built-in commands: cd, echo, env, exit, export, pwd, unset."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable

from .env import Environment
from .parser import Command

BUILTINS = frozenset({"pwd", "echo", "cd", "export", "unset", "env", "exit"})

_SPACES = " \t\n\v\f\r"
_DIGITS = "0123456789"
_LLONG_MAX = 2**63 - 1
_ULLONG_MAX = 2**64 - 1
_NUMERIC_REQUIRED = "exit: numeric argument required"


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(f"exit {status}")
        self.status = status


def _out(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def is_builtin(name: str | None) -> bool:
    """True if ``name`` names one of the built-in commands."""
    return bool(name) and name in BUILTINS


def is_numeric(text: str | None) -> bool:
    """True for optional leading whitespace, an optional sign, then only digits."""
    if not text:
        return False
    rest = text.lstrip(_SPACES)
    if rest[:1] in ("-", "+"):
        rest = rest[1:]
    return all(char in _DIGITS for char in rest)


def safe_atol(text: str) -> int | None:
    """Parse a signed 64-bit integer; None when the value does not fit."""
    rest = text.lstrip(_SPACES)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    result = 0
    for char in rest:
        if char not in _DIGITS:
            break
        digit = ord(char) - ord("0")
        if result > (_ULLONG_MAX - digit) // 10:
            return None
        result = result * 10 + digit
    if result == _ULLONG_MAX:
        return None
    if sign == -1:
        if result > _LLONG_MAX + 1:
            return None
        return -result
    if result > _LLONG_MAX:
        return None
    return result


def exit_code_from_arg(arg: str, command: Command) -> int:
    """Announce ``exit`` and turn ``arg`` into a status in 0..255.

    A non-numeric or out-of-range argument is reported and gives 2.
    """
    _out("exit\n")
    if not is_numeric(arg):
        command.fail(_NUMERIC_REQUIRED, 0)
        return 2
    value = safe_atol(arg)
    if value is None:
        command.fail(_NUMERIC_REQUIRED, 0)
        return 2
    return value % 256


def is_valid_key(arg: str | None) -> bool:
    """True if the part of ``arg`` before ``=`` is a valid variable name."""
    if not arg:
        return False
    key = arg.partition("=")[0]
    first = arg[0]
    if not (first.isascii() and (first.isalpha() or first == "_")):
        return False
    return all(char.isascii() and (char.isalnum() or char == "_") for char in key[1:])


def is_echo_n_flag(text: str | None) -> bool:
    """True for ``-n``, ``-nn`` and so on."""
    if not text or len(text) < 2 or text[0] != "-":
        return False
    return all(char == "n" for char in text[1:])


def export_lines(env: Environment) -> list[str]:
    """The ``declare -x`` listing of ``env``, sorted."""
    return [f"declare -x {item}" for item in sorted(env.to_list())]


def _cd_target(command: Command) -> str | None:
    arg = command.args[1] if len(command.args) > 1 else None
    if arg is None or arg == "~":
        target = command.env.get("HOME")
        if target is None:
            command.fail("cd: HOME not set", 0)
        return target
    if arg == "-":
        target = command.env.get("OLDPWD")
        if target is None:
            command.fail("cd: OLDPWD not set", 0)
        return target
    return arg


def builtin_cd(command: Command) -> int:
    """Change directory and update ``OLDPWD`` and ``PWD``."""
    if len(command.args) > 2:
        return command.fail("cd: too many arguments", 1)
    try:
        current = os.getcwd()
    except OSError as error:
        sys.stderr.write(f"getcwd: {error.strerror}\n")
        return 1
    target = _cd_target(command)
    if target is None:
        return 1
    try:
        os.chdir(target)
    except OSError:
        sys.stderr.write(f"cd: {target}: No such file or directory\n")
        return 1
    command.env.set("OLDPWD", current)
    command.env.set("PWD", os.getcwd())
    return 0


def builtin_echo(command: Command) -> int:
    """Print the arguments; leading ``-n`` flags suppress the newline."""
    args = command.args
    first = 1
    newline = True
    while first < len(args) and is_echo_n_flag(args[first]):
        newline = False
        first += 1
    pieces = [
        (" " if index > 1 else "") + arg
        for index, arg in enumerate(args[first:], start=first)
    ]
    _out("".join(pieces) + ("\n" if newline else ""))
    return 0


def builtin_pwd() -> int:
    """Print the working directory."""
    try:
        cwd = os.getcwd()
    except OSError:
        return 1
    _out(cwd + "\n")
    return 0


def builtin_env(command: Command) -> int:
    """Print every variable that has a value."""
    if len(command.env) == 0:
        return command.fail("env: no environment variables set", 0)
    _out(
        "".join(
            f"{entry.key}={entry.value}\n"
            for entry in command.env
            if entry.value is not None
        )
    )
    return 0


def _export_one(command: Command, arg: str) -> bool:
    if not is_valid_key(arg):
        command.fail("export: not a valid identifier", 0)
        return False
    key, sep, value = arg.partition("=")
    if command.env.get(key) is not None:
        if sep:
            command.env.set(key, value)
    else:
        command.env.append(key, value if sep else None)
    return True


def builtin_export(command: Command) -> int:
    """List exported variables, or set each ``KEY[=VALUE]`` argument."""
    if len(command.args) < 2:
        lines = export_lines(command.env)
        _out("".join(line + "\n" for line in lines))
        return 0
    results = [_export_one(command, arg) for arg in command.args[1:]]
    return 0 if all(results) else 1


def builtin_unset(command: Command) -> int:
    """Remove each named variable."""
    for name in command.args[1:]:
        command.env.remove(name)
    return 0


def builtin_exit(command: Command) -> int:
    """Raise ShellExit with the requested status.

    With more than one argument nothing is raised and 1 is returned.
    """
    if len(command.args) > 2:
        _out("exit\n")
        command.fail("exit: too many arguments", 0)
        return 1
    if len(command.args) == 2:
        status = exit_code_from_arg(command.args[1], command)
    else:
        _out("exit\n")
        status = 0
    raise ShellExit(status)


_DISPATCH: dict[str, Callable[[Command], int]] = {
    "pwd": lambda command: builtin_pwd(),
    "echo": builtin_echo,
    "cd": builtin_cd,
    "export": builtin_export,
    "unset": builtin_unset,
    "env": builtin_env,
    "exit": builtin_exit,
}


def run_builtin(command: Command) -> int:
    """Run the built-in named by ``args[0]``, then drop temporary variables.

    Returns 1 when the name is not a built-in.
    """
    handler = _DISPATCH.get(command.args[0]) if command.args else None
    result = handler(command) if handler is not None else 1
    command.env.cleanup()
    return result