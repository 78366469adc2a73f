"""Exception hierarchy for chainsh."""

from __future__ import annotations


class ShellError(Exception):
    """Base error for interpreter failures that are reported and survived."""


class ParseError(ShellError):
    """Raised when a line cannot be compiled into a chain."""


class BuiltinError(ShellError):
    """Raised by builtins on bad arguments or failed operations."""


class FatalShellError(ShellError):
    """Interpreter state can no longer be trusted (e.g. stdio not restored)."""


class ShellExit(Exception):
    """Raised by ``exit`` to end the interpreter loop."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code


__all__ = [
    "BuiltinError",
    "FatalShellError",
    "ParseError",
    "ShellError",
    "ShellExit",
]
