"""Chaining and wait policies for the execution engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .lexer import AND, OR


@dataclass(frozen=True)
class ChainPolicy:
    """Decides whether a pipeline runs given the previous one's outcome.

    ``short_circuit`` off runs every pipeline regardless of ``&&``/``||``.
    """

    short_circuit: bool = False

    def should_run(self, previous_operator: str | None, previous_status: int) -> bool:
        if not self.short_circuit:
            return True
        if previous_operator == AND:
            return previous_status == 0
        if previous_operator == OR:
            return previous_status != 0
        return True


UNCONDITIONAL = ChainPolicy()
SHORT_CIRCUIT = ChainPolicy(short_circuit=True)


class WaitMode(str, Enum):
    """How foreground pipeline stages are waited on."""

    PER_STAGE = "per-stage"
    PIPELINE = "pipeline"


__all__ = ["ChainPolicy", "SHORT_CIRCUIT", "UNCONDITIONAL", "WaitMode"]
