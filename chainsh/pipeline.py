"""Chain, pipeline and stage structures produced by the parser."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .lexer import is_background

if TYPE_CHECKING:
    from .shell.registry import CommandSpec

logger = logging.getLogger(__name__)


def _close_fd(fd: int | None) -> None:
    if fd is None:
        return
    try:
        os.close(fd)
    except OSError as exc:
        logger.debug("close(%d) failed: %s", fd, exc)


@dataclass
class Stage:
    """One program or builtin invocation inside a pipeline.

    Descriptor slots hold ``None`` while the stage inherits the interpreter's
    stream; otherwise the stage owns the descriptor until :meth:`close`.
    """

    args: list[str] = field(default_factory=list)
    name: str | None = None
    stdin: int | None = None
    stdout: int | None = None
    stderr: int | None = None
    deferred_wait: bool = False
    builtin: CommandSpec | None = None
    pid: int | None = None
    process: subprocess.Popen | None = field(default=None, repr=False)

    @property
    def argc(self) -> int:
        return len(self.args)

    @property
    def is_builtin(self) -> bool:
        return self.builtin is not None

    def push(self, word: str) -> None:
        """Append an argument; the first one becomes the program name."""

        self.args.append(str(word))
        if len(self.args) == 1:
            self.name = self.args[0]

    def close(self) -> None:
        """Release every descriptor the stage still owns."""

        _close_fd(self.stdin)
        _close_fd(self.stdout)
        _close_fd(self.stderr)
        self.stdin = self.stdout = self.stderr = None


@dataclass
class Pipeline:
    stages: list[Stage] = field(default_factory=list)
    background: bool = False
    operator: str | None = None

    def add(self, stage: Stage) -> None:
        self.stages.append(stage)

    def seal(self, operator: str | None) -> None:
        """Record the terminator that closed this pipeline."""

        self.operator = operator
        if is_background(operator):
            self.background = True
            for stage in self.stages:
                stage.deferred_wait = True

    def close(self) -> None:
        for stage in self.stages:
            stage.close()


@dataclass
class Chain:
    pipelines: list[Pipeline] = field(default_factory=list)

    def __iter__(self):
        return iter(self.pipelines)

    def __len__(self) -> int:
        return len(self.pipelines)

    def add(self, pipeline: Pipeline) -> None:
        self.pipelines.append(pipeline)

    def close(self) -> None:
        for pipeline in self.pipelines:
            pipeline.close()

    def describe(self) -> str:
        lines: list[str] = []
        for idx, pipeline in enumerate(self.pipelines, start=1):
            lines.append(f"[link {idx}] operator={pipeline.operator!r} background={pipeline.background}")
            for stage in pipeline.stages:
                lines.append(
                    f"  {stage.args} in={stage.stdin} out={stage.stdout} err={stage.stderr}"
                    f" builtin={stage.is_builtin}"
                )
        return "\n".join(lines)


__all__ = ["Chain", "Pipeline", "Stage"]
