"""Tokenizer and token classification predicates."""

from __future__ import annotations

PIPE = "|"
OUTPUT_REDIRECT = ">"
APPEND_REDIRECT = ">>"
INPUT_REDIRECT = "<"
STDERR_REDIRECT = "2>"
SEQUENCE = ";"
BACKGROUND = "&"
AND = "&&"
OR = "||"
HISTORY_MARKER = "!"

CHAINING_OPERATORS = frozenset({SEQUENCE, BACKGROUND, AND, OR})


def tokenize(line: str, delimiter: str = " ") -> list[str]:
    """Split a raw line on ``delimiter``.

    Consecutive delimiters yield empty tokens, which the parser ignores. The end
    of the returned list is the terminator.
    """

    line = line.rstrip("\r\n")
    if not line:
        return []
    return line.split(delimiter)


def is_pipe(token: str) -> bool:
    return token == PIPE


def is_output_redirect(token: str) -> bool:
    return token in (OUTPUT_REDIRECT, APPEND_REDIRECT)


def is_append(token: str) -> bool:
    return token == APPEND_REDIRECT


def is_input_redirect(token: str) -> bool:
    return token == INPUT_REDIRECT


def is_stderr_redirect(token: str) -> bool:
    return token == STDERR_REDIRECT


def is_chaining_operator(token: str) -> bool:
    return token in CHAINING_OPERATORS


def is_background(token: str | None) -> bool:
    return token == BACKGROUND


def is_ignorable(token: str) -> bool:
    return not token.strip()


def is_operator(token: str) -> bool:
    return (
        is_pipe(token)
        or is_output_redirect(token)
        or is_input_redirect(token)
        or is_stderr_redirect(token)
        or is_chaining_operator(token)
    )


def is_history_reference(token: str) -> bool:
    return len(token) > 1 and token.startswith(HISTORY_MARKER)


__all__ = [
    "AND",
    "APPEND_REDIRECT",
    "BACKGROUND",
    "CHAINING_OPERATORS",
    "HISTORY_MARKER",
    "INPUT_REDIRECT",
    "OR",
    "OUTPUT_REDIRECT",
    "PIPE",
    "SEQUENCE",
    "STDERR_REDIRECT",
    "is_append",
    "is_background",
    "is_chaining_operator",
    "is_history_reference",
    "is_ignorable",
    "is_input_redirect",
    "is_operator",
    "is_output_redirect",
    "is_pipe",
    "is_stderr_redirect",
    "tokenize",
]
