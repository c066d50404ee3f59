"""Turn a command line into a pipeline of parsed commands."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .env import Environment
from .expand import expand_argument, needs_expansion, toggle_quotes
from .lexer import (
    buffer_size,
    has_single_quotes,
    is_redirection,
    is_token_quoted,
    pipe_split,
    redirect_split,
    split_words,
)

NEWLINE_TOKEN_MESSAGE = "minishell: syntax error near unexpected token `newline'"
UNEXPECTED_TOKEN_MESSAGE = "minishell: syntax error near unexpected token"
SYNTAX_ERROR_STATUS = 2


class ParseError(Exception):
    """Raised when a command segment has a malformed redirection."""

    def __init__(self, message: str, status: int = SYNTAX_ERROR_STATUS) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class Command:
    """One simple command of a pipeline, with its arguments and redirections."""

    env: Environment = field(default_factory=Environment)
    args: list[str] = field(default_factory=list)
    skip_expansion: list[bool] = field(default_factory=list)
    input_files: list[str] = field(default_factory=list)
    output_files: list[str] = field(default_factory=list)
    append_files: list[str] = field(default_factory=list)
    heredocs: list[str] = field(default_factory=list)
    argc: int = 0
    exit_status: int = 0
    dollar: bool = False

    def fail(self, message: str, code: int) -> int:
        """Report ``message`` on stderr and set the exit status.

        A ``code`` of zero or less records status 2. Returns 1 (failure).
        """
        if message:
            if not message.endswith("\n"):
                message += "\n"
            sys.stderr.write(message)
            sys.stderr.flush()
        self.exit_status = code if code > 0 else SYNTAX_ERROR_STATUS
        return 1

    def has_redirections(self) -> bool:
        """True if any input, output, append or here-document redirection is set."""
        return bool(
            self.input_files or self.output_files or self.append_files or self.heredocs
        )

    def _targets(self, operator: str) -> list[str]:
        return {
            "<<": self.heredocs,
            ">>": self.append_files,
            "<": self.input_files,
            ">": self.output_files,
        }[operator]


def split_preserving_quotes(text: str, delimiter: str) -> list[str]:
    """Split on unquoted ``delimiter``, keeping the quote characters in place."""
    limit = buffer_size(text, delimiter) - 1
    tokens: list[str] = []
    in_single = in_double = False
    start = pos = 0
    while pos < len(text):
        char = text[pos]
        if char == delimiter and not in_single and not in_double:
            if pos > start:
                if len(tokens) >= limit:
                    return tokens
                tokens.append(text[start:pos])
            while pos < len(text) and text[pos] == delimiter:
                pos += 1
            start = pos
            continue
        in_single, in_double = toggle_quotes(char, in_single, in_double)
        pos += 1
    if pos > start and len(tokens) < limit:
        tokens.append(text[start:pos])
    return tokens


def space_join(parts: Iterable[str]) -> str:
    """Join ``parts`` with single spaces."""
    return " ".join(parts)


def split_redirects(segment: str) -> list[str]:
    """Separate the unquoted redirection operators of one pipe segment."""
    return redirect_split([segment])


def _check_redirection(command: Command, tokens: Sequence[str], index: int) -> None:
    if index + 1 >= len(tokens):
        message = NEWLINE_TOKEN_MESSAGE
    elif is_redirection(tokens[index + 1]):
        message = UNEXPECTED_TOKEN_MESSAGE
    else:
        return
    command.exit_status = SYNTAX_ERROR_STATUS
    raise ParseError(message)


def count_arguments(
    command: Command, tokens: Sequence[str], original_tokens: Sequence[str] | None
) -> int:
    """Count the tokens that are arguments rather than redirections.

    Raises ParseError when a redirection lacks a valid target.
    """
    count = 0
    index = 0
    while index < len(tokens):
        if is_redirection(tokens[index]) and not is_token_quoted(original_tokens, index):
            _check_redirection(command, tokens, index)
            index += 2
        else:
            count += 1
            index += 1
    return count


def _add_redirection(command: Command, tokens: Sequence[str], index: int) -> None:
    if index + 1 >= len(tokens):
        command.fail(NEWLINE_TOKEN_MESSAGE, SYNTAX_ERROR_STATUS)
        return
    command._targets(tokens[index]).append(tokens[index + 1])


def parse_argv(command: Command, tokens: Sequence[str], original: str) -> None:
    """Fill ``command`` with arguments and redirections from ``tokens``.

    ``original`` is the segment text with its quotes, used to tell quoted
    operators from real ones and to mark single-quoted arguments.
    """
    original_tokens = split_preserving_quotes(original, " ")
    command.argc = count_arguments(command, tokens, original_tokens)
    index = 0
    if command.argc == 0:
        while index < len(tokens):
            if is_redirection(tokens[index]):
                _add_redirection(command, tokens, index)
                index += 2
            else:
                index += 1
        return
    while index < len(tokens):
        token = tokens[index]
        if is_redirection(token) and not is_token_quoted(original_tokens, index):
            _add_redirection(command, tokens, index)
            index += 2
            continue
        command.args.append(token)
        command.skip_expansion.append(
            index < len(original_tokens) and has_single_quotes(original_tokens[index])
        )
        index += 1


def process_single_command(segment: str, env: Environment) -> Command:
    """Parse one pipe segment into a Command bound to ``env``."""
    joined = space_join(split_redirects(segment))
    tokens = split_words(joined, " ")
    command = Command(env=env)
    parse_argv(command, tokens, joined)
    return command


def expand_arguments(commands: Iterable[Command]) -> None:
    """Expand ``$`` references in every argument not marked to skip expansion."""
    for command in commands:
        for index, (arg, skip) in enumerate(zip(command.args, command.skip_expansion)):
            if skip:
                continue
            command.dollar = needs_expansion(arg)
            command.args[index] = expand_argument(arg, command.env)


def build_pipeline(segments: Iterable[str], env: Environment) -> list[Command]:
    """Parse each segment and expand the arguments of the whole pipeline."""
    commands = [process_single_command(segment, env) for segment in segments]
    expand_arguments(commands)
    return commands


def parse_line(line: str, env: Environment) -> list[Command]:
    """Parse a full command line into its pipeline.

    Raises ShellSyntaxError for misplaced pipes and ParseError for bad
    redirections.
    """
    return build_pipeline(pipe_split(line), env)