"""Quote-aware splitting of command lines into pipe segments and words."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .expand import toggle_quotes

REDIRECTIONS = frozenset({"<<", ">>", "<", ">"})
_REDIRECT_CHARS = "<>"
_MIN_BUFFER = 20
_MAX_BUFFER = 1000


class ShellSyntaxError(Exception):
    """Raised when a command line cannot be split into valid segments."""

    def __init__(self, message: str = "syntax error near unexpected token") -> None:
        super().__init__(message)


def _word_end(text: str, start: int, delimiter: str) -> int:
    """Index of the first ``delimiter`` at or after ``start`` outside quotes."""
    in_single = in_double = False
    pos = start
    while pos < len(text) and (text[pos] != delimiter or in_single or in_double):
        in_single, in_double = toggle_quotes(text[pos], in_single, in_double)
        pos += 1
    return pos


def _word_spans(text: str, delimiter: str) -> Iterator[tuple[int, int]]:
    pos = 0
    while pos < len(text):
        while pos < len(text) and text[pos] == delimiter:
            pos += 1
        if pos < len(text):
            end = _word_end(text, pos, delimiter)
            yield pos, end
            pos = end


def count_words(text: str, delimiter: str) -> int:
    """Number of words separated by ``delimiter``; quoted delimiters don't split."""
    return sum(1 for _ in _word_spans(text, delimiter))


def remove_quotes(word: str, delimiter: str) -> str:
    """The first word of ``word`` with its enclosing quote characters removed."""
    kept: list[str] = []
    in_single = in_double = False
    for char in word:
        if char == delimiter and not in_single and not in_double:
            break
        if (char == "'" and not in_double) or (char == '"' and not in_single):
            in_single, in_double = toggle_quotes(char, in_single, in_double)
        else:
            kept.append(char)
    return "".join(kept)


def split_words(text: str, delimiter: str) -> list[str]:
    """Split on unquoted ``delimiter`` and strip quotes from each word."""
    return [
        remove_quotes(text[start:end], delimiter)
        for start, end in _word_spans(text, delimiter)
    ]


def buffer_size(text: str, delimiter: str) -> int:
    """Capacity used when splitting ``text`` while keeping quotes."""
    estimated = text.count(delimiter) + 1 + 10
    return max(_MIN_BUFFER, min(_MAX_BUFFER, estimated))


def inside_quote(text: str, pos: int) -> bool:
    """True if position ``pos`` of ``text`` lies inside single or double quotes."""
    in_single = in_double = False
    for char in text[:pos]:
        in_single, in_double = toggle_quotes(char, in_single, in_double)
    return in_single or in_double


def find_next_redirect(text: str, start: int) -> int:
    """Index of the next unquoted ``<`` or ``>`` from ``start``, or ``len(text)``."""
    pos = start
    while pos < len(text) and (
        text[pos] not in _REDIRECT_CHARS or inside_quote(text, pos)
    ):
        pos += 1
    return pos


def find_redirection_pos(token: str) -> int:
    """Index of the first unquoted ``<`` or ``>``, or ``len(token)``."""
    return find_next_redirect(token, 0)


def _redirect_parts(text: str, pos: int) -> Iterator[str]:
    """Pieces of ``text`` with the operator at ``pos`` and later ones separated."""
    while True:
        if pos > 0:
            yield text[:pos]
        width = 2 if text[pos + 1 : pos + 2] == text[pos] else 1
        yield text[pos : pos + width]
        rest_start = pos + width
        following = find_next_redirect(text, rest_start)
        if following < len(text):
            if following > rest_start:
                yield text[rest_start:following]
            text, pos = text[following:], 0
            continue
        if rest_start < len(text):
            yield text[rest_start:]
        return


def redirect_split(segments: Iterable[str]) -> list[str]:
    """Separate unquoted redirection operators from the text around them."""
    result: list[str] = []
    for segment in segments:
        pos = find_redirection_pos(segment)
        if pos < len(segment):
            result.extend(_redirect_parts(segment, pos))
        else:
            result.append(segment)
    return result


def _unquoted_chars(line: str) -> Iterator[tuple[int, str]]:
    """Yield ``(index, char)`` for characters outside quotes, quotes excluded."""
    in_single = in_double = False
    for pos, char in enumerate(line):
        if (char == "'" and not in_double) or (char == '"' and not in_single):
            in_single, in_double = toggle_quotes(char, in_single, in_double)
        elif not in_single and not in_double:
            yield pos, char


def pipe_count(line: str) -> int:
    """Number of unquoted ``|`` characters in ``line``."""
    return sum(1 for _, char in _unquoted_chars(line) if char == "|")


def _pipe_at_edges(line: str) -> bool:
    stripped = line.strip(" ")
    return stripped.startswith("|") or stripped.endswith("|")


def _double_pipes(line: str) -> bool:
    for pos, char in _unquoted_chars(line):
        if char != "|":
            continue
        if line[pos + 1 : pos + 2] == "|" or line[pos + 1 : pos + 3] == " |":
            return True
    return False


def validate_pipes(line: str) -> bool:
    """False when a pipe starts or ends the line or two pipes are adjacent."""
    return not _pipe_at_edges(line) and not _double_pipes(line)


def pipe_split(line: str) -> list[str]:
    """Split ``line`` on unquoted pipes, trimming spaces from each segment.

    Raises ShellSyntaxError when the pipes are misplaced.
    """
    if not validate_pipes(line):
        raise ShellSyntaxError()
    segments: list[str] = []
    start = 0
    for pos, char in _unquoted_chars(line):
        if char == "|":
            segments.append(line[start:pos].strip(" "))
            start = pos + 1
    segments.append(line[start:].strip(" "))
    return segments


def has_single_quotes(text: str) -> bool:
    """True if ``text`` contains a single quote."""
    return "'" in text


def is_redirection(token: str) -> bool:
    """True if ``token`` is exactly one of ``<``, ``>``, ``<<`` or ``>>``."""
    return token in REDIRECTIONS


def is_token_quoted(tokens: Sequence[str] | None, index: int) -> bool:
    """True if ``tokens[index]`` starts and ends with the same quote character."""
    if not tokens or index < 0 or index >= len(tokens):
        return False
    token = tokens[index]
    if not token or len(token) < 2:
        return False
    return token[0] == token[-1] and token[0] in "'\""