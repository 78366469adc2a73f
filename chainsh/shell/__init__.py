"""Shell facade: interpreter context, execution engine and builtins."""

from .common import CommandResult
from .core import Shell

__all__ = ["CommandResult", "Shell"]
