"""Import builtin modules for their registration side-effects."""

from ..registry import COMMAND_REGISTRY
from . import meta as _meta  # noqa: F401
from . import navigation as _navigation  # noqa: F401

# The builtin set is fixed for the life of the process.
COMMAND_REGISTRY.freeze()

__all__ = []
