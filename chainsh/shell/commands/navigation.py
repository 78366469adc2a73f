"""Working-directory builtins."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from ..common import CommandResult
from ..registry import COMMAND_REGISTRY
from ...exceptions import BuiltinError

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from ..core import Shell


@COMMAND_REGISTRY.command("cd", description="Change directory")
def cd(shell: "Shell", args: list[str]) -> CommandResult:
    if len(args) > 1:
        raise BuiltinError("too many arguments")
    if args:
        path = args[0]
    else:
        path = os.environ.get("HOME")
        if not path:
            raise BuiltinError("HOME not set")
    try:
        os.chdir(path)
    except OSError as exc:
        raise BuiltinError(f"{path}: {exc.strerror}") from exc
    except ValueError as exc:
        raise BuiltinError(f"{path!r}: {exc}") from exc
    return CommandResult()


@COMMAND_REGISTRY.command("pwd", description="Print working directory")
def pwd(shell: "Shell", args: list[str]) -> CommandResult:
    if args:
        raise BuiltinError("too many arguments")
    try:
        cwd = os.getcwd()
    except OSError as exc:
        raise BuiltinError(exc.strerror or str(exc)) from exc
    return CommandResult(stdout=f"{cwd}\n")
