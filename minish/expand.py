"""Dollar-variable expansion for arguments and here-document lines."""

from __future__ import annotations

from .env import Environment

# Expanded text is never allowed to push an argument past this length.
MAX_EXPANDED_LENGTH = 499


def is_var_char(char: str) -> bool:
    """True for ASCII letters, digits and underscore."""
    return len(char) == 1 and char.isascii() and (char.isalnum() or char == "_")


def toggle_quotes(char: str, in_single: bool, in_double: bool) -> tuple[bool, bool]:
    """Return the quote state after reading ``char``."""
    if char == "'" and not in_double:
        return not in_single, in_double
    if char == '"' and not in_single:
        return in_single, not in_double
    return in_single, in_double


def expand_var(text: str, pos: int, env: Environment) -> tuple[str, int]:
    """Expand the variable whose ``$`` is at ``pos``.

    Returns the replacement text and the index just past the reference.
    """
    start = pos + 1
    if start < len(text) and text[start] == "?":
        return env.lookup("?"), start + 1
    end = start
    while end < len(text) and is_var_char(text[end]):
        end += 1
    if end == start:
        return "$", start
    return env.lookup(text[start:end]), end


def _starts_reference(text: str, pos: int) -> bool:
    following = text[pos + 1 : pos + 2]
    return text[pos] == "$" and bool(following) and (
        is_var_char(following) or following == "?"
    )


def needs_expansion(text: str) -> bool:
    """True if ``text`` holds a ``$`` reference outside single quotes."""
    in_single = in_double = False
    for pos, char in enumerate(text):
        in_single, in_double = toggle_quotes(char, in_single, in_double)
        if not in_single and _starts_reference(text, pos):
            return True
    return False


def expand_argument(text: str, env: Environment) -> str:
    """Expand ``$NAME`` and ``$?`` outside single quotes; quotes are kept."""
    parts: list[str] = []
    length = 0
    in_single = in_double = False
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in "'\"":
            in_single, in_double = toggle_quotes(char, in_single, in_double)
            parts.append(char)
            length += 1
            pos += 1
        elif not in_single and _starts_reference(text, pos):
            value, pos = expand_var(text, pos, env)
            value = value[: max(0, MAX_EXPANDED_LENGTH - length)]
            parts.append(value)
            length += len(value)
        else:
            parts.append(char)
            length += 1
            pos += 1
    return "".join(parts)


def expand_heredoc_line(line: str, env: Environment) -> str:
    """Expand ``$NAME`` references in a here-document line, ignoring quotes."""
    if "$" not in line:
        return line
    parts: list[str] = []
    pos = 0
    while pos < len(line):
        following = line[pos + 1 : pos + 2]
        if line[pos] == "$" and following and is_var_char(following):
            end = pos + 1
            while end < len(line) and is_var_char(line[end]):
                end += 1
            parts.append(env.lookup(line[pos + 1 : end]))
            pos = end
        else:
            parts.append(line[pos])
            pos += 1
    return "".join(parts)