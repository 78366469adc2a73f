"""Core Shell implementation: interpreter context and execution engine."""

from __future__ import annotations

import logging
import subprocess
import sys

from ..exceptions import FatalShellError, ParseError, ShellError
from ..history import HistoryStore
from ..lexer import tokenize
from ..pipeline import Chain, Pipeline, Stage
from ..policies import UNCONDITIONAL, ChainPolicy, WaitMode
from ..shell_parser import parse_chain
from .common import CommandResult
from .process import redirected_streams, report, spawn_process, status_from_returncode, wait_process
from .registry import resolve_builtin

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "%"
PARSE_ERROR_STATUS = 2


class Shell:
    """Parses lines into chains and runs them as processes and builtins."""

    def __init__(
        self,
        *,
        prompt: str = DEFAULT_PROMPT,
        history: HistoryStore | None = None,
        chain_policy: ChainPolicy = UNCONDITIONAL,
        wait_mode: WaitMode = WaitMode.PER_STAGE,
        max_history_depth: int | None = 64,
    ) -> None:
        self.prompt = prompt
        self.history = history if history is not None else HistoryStore()
        self.chain_policy = chain_policy
        self.wait_mode = WaitMode(wait_mode)
        self.max_history_depth = max_history_depth
        self.history_depth = 0
        self.last_status = 0
        self.jobs: list[subprocess.Popen] = []
        self._reaping = False

    # ------------------------------------------------------------------
    # Line entry points
    # ------------------------------------------------------------------
    def submit(self, line: str) -> int:
        """Record ``line`` in history and run it."""

        line = line.rstrip("\r\n")
        if not line.strip():
            return self.last_status
        self.history.append(line)
        return self.run_line(line)

    def run_line(self, line: str) -> int:
        """Tokenize, parse, execute and release one line."""

        tokens = tokenize(line)
        logger.debug("tokens: %r", tokens)
        try:
            chain = parse_chain(tokens, resolve_builtin)
        except ParseError as exc:
            sys.stderr.write(f"chainsh: {exc}\n")
            sys.stderr.flush()
            self.last_status = PARSE_ERROR_STATUS
            return self.last_status
        try:
            self.last_status = self.execute(chain)
        finally:
            chain.close()
        logger.debug("line %r finished with status %d", line, self.last_status)
        return self.last_status

    # ------------------------------------------------------------------
    # Execution engine
    # ------------------------------------------------------------------
    def execute(self, chain: Chain) -> int:
        status = 0
        previous: Pipeline | None = None
        for pipeline in chain:
            if previous is not None and not self.chain_policy.should_run(previous.operator, status):
                logger.debug("skipping pipeline after %r (status %d)", previous.operator, status)
                pipeline.close()
                previous = pipeline
                continue
            status = self.execute_pipeline(pipeline)
            previous = pipeline
        return status

    def execute_pipeline(self, pipeline: Pipeline) -> int:
        if pipeline.background or self.wait_mode is WaitMode.PER_STAGE:
            return self._run_sequential(pipeline)
        return self._run_then_wait(pipeline)

    def _run_sequential(self, pipeline: Pipeline) -> int:
        for stage in pipeline.stages:
            status = self.run_stage(stage)
            if status != 0:
                return status
        return 0

    def _run_then_wait(self, pipeline: Pipeline) -> int:
        launched: list[tuple[Stage, int]] = []
        for stage in pipeline.stages:
            try:
                if stage.builtin is not None:
                    status = self.run_builtin(stage)
                else:
                    status = spawn_process(stage)
            finally:
                stage.close()
            launched.append((stage, status))
            if status != 0:
                break
        result = 0
        for stage, status in launched:
            if status == 0 and stage.process is not None:
                status = wait_process(stage)
            if status != 0 and result == 0:
                result = status
        return result

    def run_stage(self, stage: Stage) -> int:
        """Run one stage with its bound runner and release its descriptors."""

        logger.debug("running stage %s", stage.args)
        try:
            if stage.builtin is not None:
                return self.run_builtin(stage)
            return self.run_process(stage)
        finally:
            stage.close()

    def run_process(self, stage: Stage) -> int:
        status = spawn_process(stage)
        if status != 0 or stage.process is None:
            return status
        if stage.deferred_wait:
            self.jobs.append(stage.process)
            # The child may have exited before it was registered.
            self.reap_background()
            return 0
        # Descriptors go before the wait so a downstream reader sees EOF.
        stage.close()
        return wait_process(stage)

    def run_builtin(self, stage: Stage) -> int:
        spec = stage.builtin
        if spec is None:
            raise ValueError(f"stage {stage.name!r} is not bound to a builtin")
        try:
            with redirected_streams(stage):
                result = spec.handler(self, stage.args[1:])
                return self._emit(result)
        except FatalShellError:
            raise
        except ShellError as exc:
            report(stage, f"{spec.name}: {exc}")
            return 1

    def _emit(self, result: CommandResult | str | int | None) -> int:
        if result is None:
            return 0
        if isinstance(result, int):
            return result
        if isinstance(result, str):
            result = CommandResult(stdout=result)
        if result.stdout:
            sys.stdout.write(result.stdout)
            sys.stdout.flush()
        return result.exit_code

    # ------------------------------------------------------------------
    # Background jobs
    # ------------------------------------------------------------------
    def reap_background(self) -> list[tuple[int, int]]:
        """Collect finished background children without blocking.

        A call made while another is in progress (the SIGCHLD handler firing
        during a prompt-time pass) returns nothing; the running pass owns the
        job list.
        """

        if self._reaping:
            return []
        self._reaping = True
        try:
            finished: list[tuple[int, int]] = []
            running: list[subprocess.Popen] = []
            for process in self.jobs:
                returncode = process.poll()
                if returncode is None:
                    running.append(process)
                    continue
                status = status_from_returncode(returncode)
                logger.debug("reaped background pid %d (status %d)", process.pid, status)
                finished.append((process.pid, status))
            self.jobs = running
        finally:
            self._reaping = False
        return finished


__all__ = ["DEFAULT_PROMPT", "PARSE_ERROR_STATUS", "Shell"]
