"""Builtin dispatch table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Iterable

from .common import ShellCommand


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    handler: ShellCommand
    description: str = ""


class CommandRegistry:
    """Name to builtin mapping, closed once the command modules are loaded."""

    def __init__(self) -> None:
        self._commands: dict[str, CommandSpec] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        handler: ShellCommand,
        *,
        description: str = "",
    ) -> ShellCommand:
        if self._frozen:
            raise RuntimeError(f"Cannot register '{name}': builtin table is frozen")
        if name in self._commands:
            raise ValueError(f"Builtin '{name}' is already registered")
        self._commands[name] = CommandSpec(name, handler, description)
        return handler

    def command(
        self,
        name: str,
        *,
        description: str = "",
    ) -> Callable[[ShellCommand], ShellCommand]:
        """Decorator variant for registering builtins."""

        def decorator(func: ShellCommand) -> ShellCommand:
            return self.register(name, func, description=description)

        return decorator

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str | None) -> CommandSpec | None:
        if name is None:
            return None
        return self._commands.get(name)

    def iter_commands(self) -> Iterable[CommandSpec]:
        return tuple(self._commands.values())


COMMAND_REGISTRY = CommandRegistry()


def resolve_builtin(name: str | None) -> CommandSpec | None:
    """Return the builtin bound to ``name``; ``None`` means an external program."""

    # Importing the command modules registers them and closes the table.
    from . import commands  # noqa: F401

    return COMMAND_REGISTRY.lookup(name)


__all__ = ["COMMAND_REGISTRY", "CommandRegistry", "CommandSpec", "resolve_builtin"]
