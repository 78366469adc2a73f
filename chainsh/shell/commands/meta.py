"""Builtins that act on interpreter state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..common import CommandResult
from ..registry import COMMAND_REGISTRY
from ...exceptions import BuiltinError, ShellExit

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from ..core import Shell

logger = logging.getLogger(__name__)


@COMMAND_REGISTRY.command("history", description="List or re-run previous commands")
def history(shell: "Shell", args: list[str]) -> CommandResult | int:
    if len(args) > 1:
        raise BuiltinError("too many arguments")
    if not args:
        lines = [f"{idx} {line}\n" for idx, line in enumerate(shell.history, start=1)]
        return CommandResult(stdout="".join(lines))

    ref = args[0]
    if ref.isascii() and ref.isdigit():
        line = shell.history.get(int(ref))
        if line is None:
            raise BuiltinError("invalid index")
    else:
        line = shell.history.find_latest_with_prefix(ref)
        if line is None:
            raise BuiltinError("no matching command found")

    limit = shell.max_history_depth
    if limit is not None and shell.history_depth >= limit:
        logger.warning("history reentry stopped at depth %d while running %r", limit, line)
        raise BuiltinError("reentry depth exceeded")
    shell.history_depth += 1
    try:
        return shell.run_line(line)
    finally:
        shell.history_depth -= 1


@COMMAND_REGISTRY.command("prompt", description="Change the interactive prompt")
def prompt(shell: "Shell", args: list[str]) -> CommandResult:
    if not args:
        raise BuiltinError("too few arguments")
    if len(args) > 1:
        raise BuiltinError("too many arguments")
    shell.prompt = args[0]
    return CommandResult()


@COMMAND_REGISTRY.command("exit", description="Exit the interpreter")
def exit_shell(shell: "Shell", args: list[str]) -> CommandResult:
    if len(args) > 1:
        raise BuiltinError("too many arguments")
    code = 0
    if args:
        if not (args[0].isascii() and args[0].isdigit()):
            raise BuiltinError("expects a numerical argument")
        code = int(args[0])
    print("exit")
    raise ShellExit(code)
