"""chainsh package: a small command interpreter with pipes and redirections."""

from .exceptions import BuiltinError, FatalShellError, ParseError, ShellError, ShellExit
from .history import HistoryStore
from .lexer import tokenize
from .pipeline import Chain, Pipeline, Stage
from .policies import SHORT_CIRCUIT, UNCONDITIONAL, ChainPolicy, WaitMode
from .shell import CommandResult, Shell
from .shell_parser import parse_chain

__all__ = [
    "BuiltinError",
    "Chain",
    "ChainPolicy",
    "CommandResult",
    "FatalShellError",
    "HistoryStore",
    "ParseError",
    "Pipeline",
    "SHORT_CIRCUIT",
    "Shell",
    "ShellError",
    "ShellExit",
    "Stage",
    "UNCONDITIONAL",
    "WaitMode",
    "parse_chain",
    "tokenize",
]
