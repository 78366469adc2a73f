"""Compile a token sequence into a chain of pipelines."""

from __future__ import annotations

import glob
import logging
import os
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from .exceptions import ParseError
from .lexer import (
    is_append,
    is_chaining_operator,
    is_history_reference,
    is_ignorable,
    is_input_redirect,
    is_operator,
    is_output_redirect,
    is_pipe,
    is_stderr_redirect,
)
from .pipeline import Chain, Pipeline, Stage

if TYPE_CHECKING:
    from .shell.registry import CommandSpec

logger = logging.getLogger(__name__)

Resolver = Callable[[str], "CommandSpec | None"]

_FILE_MODE = 0o644
_QUOTES = str.maketrans("", "", "'\"")


def _default_resolver(name: str) -> CommandSpec | None:
    from .shell.registry import resolve_builtin

    return resolve_builtin(name)


def strip_quotes(token: str) -> str:
    return token.translate(_QUOTES)


def expand_word(word: str) -> list[str]:
    """Tilde and wildcard expansion; an unmatched pattern is kept literally."""

    matches = sorted(glob.glob(os.path.expanduser(word)))
    return matches or [word]


class _ChainBuilder:
    """Holds the in-progress state of one parse."""

    def __init__(self, tokens: Sequence[str], resolve: Resolver) -> None:
        self.tokens = list(tokens)
        self.resolve = resolve
        self.chain = Chain()
        self.pipeline = Pipeline()
        self.stage = Stage()
        self.idx = 0

    def discard(self) -> None:
        self.chain.close()
        self.pipeline.close()
        self.stage.close()

    def build(self) -> Chain:
        while self.idx < len(self.tokens):
            token = self.tokens[self.idx]
            if is_chaining_operator(token):
                self._close_pipeline(token)
            elif is_pipe(token):
                self._pipe(token)
            elif is_output_redirect(token):
                self._redirect_output(token)
            elif is_input_redirect(token):
                self._redirect_input(token)
            elif is_stderr_redirect(token):
                self._redirect_stderr(token)
            elif is_ignorable(token):
                pass
            elif self.stage.name is None and is_history_reference(token):
                self.stage.push("history")
                self.stage.push(token[1:])
            else:
                for word in expand_word(strip_quotes(token)):
                    self.stage.push(word)
            self.idx += 1
        self._close_pipeline(None)
        return self.chain

    # ------------------------------------------------------------------
    # Stage and pipeline commits
    # ------------------------------------------------------------------
    def _commit_stage(self) -> None:
        stage = self.stage
        stage.builtin = self.resolve(stage.name)
        self.pipeline.add(stage)
        self.stage = Stage()

    def _close_pipeline(self, operator: str | None) -> None:
        if self.stage.name is not None:
            self._commit_stage()
        elif self.stage.stdin is not None:
            raise ParseError("missing command after pipe")

        if not self.pipeline.stages:
            if operator is None:
                return
            raise ParseError(f"syntax error near unexpected token '{operator}'")
        self.pipeline.seal(operator)
        self.chain.add(self.pipeline)
        self.pipeline = Pipeline()

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    def _require_command(self, token: str) -> None:
        if self.stage.name is None:
            if is_pipe(token):
                raise ParseError("pipe with no preceding command")
            raise ParseError(f"redirection '{token}' with no preceding command")

    def _pipe(self, token: str) -> None:
        self._require_command(token)
        if self.stage.stdout is not None:
            raise ParseError("cannot pipe to multiple commands")
        try:
            read_fd, write_fd = os.pipe()
        except OSError as exc:
            raise ParseError(f"failed to create pipe: {exc.strerror}") from exc
        self.stage.stdout = write_fd
        self._commit_stage()
        self.stage.stdin = read_fd

    def _target(self, token: str) -> str:
        self.idx += 1
        while self.idx < len(self.tokens) and is_ignorable(self.tokens[self.idx]):
            self.idx += 1
        if self.idx >= len(self.tokens) or is_operator(self.tokens[self.idx]):
            raise ParseError(f"missing filename for redirection '{token}'")
        return os.path.expanduser(strip_quotes(self.tokens[self.idx]))

    def _open(self, path: str, flags: int, purpose: str) -> int:
        try:
            return os.open(path, flags, _FILE_MODE)
        except OSError as exc:
            raise ParseError(f"{path}: failed to open for {purpose}: {exc.strerror}") from exc
        except ValueError as exc:
            raise ParseError(f"{path!r}: failed to open for {purpose}: {exc}") from exc

    def _redirect_output(self, token: str) -> None:
        self._require_command(token)
        if self.stage.stdout is not None:
            raise ParseError("cannot redirect output to multiple files")
        path = self._target(token)
        flags = os.O_WRONLY | os.O_CREAT
        flags |= os.O_APPEND if is_append(token) else os.O_TRUNC
        self.stage.stdout = self._open(path, flags, "output redirection")

    def _redirect_input(self, token: str) -> None:
        self._require_command(token)
        if self.stage.stdin is not None:
            raise ParseError("cannot redirect input from multiple files")
        path = self._target(token)
        self.stage.stdin = self._open(path, os.O_RDONLY, "input redirection")

    def _redirect_stderr(self, token: str) -> None:
        self._require_command(token)
        if self.stage.stderr is not None:
            raise ParseError("cannot redirect stderr to multiple files")
        path = self._target(token)
        flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
        self.stage.stderr = self._open(path, flags, "stderr redirection")


def parse_chain(tokens: Sequence[str], resolve: Resolver | None = None) -> Chain:
    """Build a :class:`Chain` from ``tokens`` or raise :class:`ParseError`.

    On failure every pipeline, stage and descriptor built so far is released
    before the error propagates.
    """

    builder = _ChainBuilder(tokens, resolve or _default_resolver)
    try:
        chain = builder.build()
    except BaseException:
        builder.discard()
        raise
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("parsed chain:\n%s", chain.describe())
    return chain


__all__ = ["expand_word", "parse_chain", "strip_quotes"]
