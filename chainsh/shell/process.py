"""Process spawning and standard-stream redirection for stages."""

from __future__ import annotations

import contextlib
import logging
import os
import subprocess
import sys
from collections.abc import Iterator

from ..exceptions import BuiltinError, FatalShellError
from ..pipeline import Stage

logger = logging.getLogger(__name__)

STDIN_FD = 0
STDOUT_FD = 1
STDERR_FD = 2

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


def report(stage: Stage, message: str) -> None:
    """Write a diagnostic line to the stage's error stream."""

    line = message if message.endswith("\n") else f"{message}\n"
    if stage.stderr is not None:
        try:
            os.write(stage.stderr, line.encode(errors="surrogateescape"))
            return
        except OSError as exc:
            logger.debug("could not write to stderr fd %d: %s", stage.stderr, exc)
    sys.stderr.write(line)
    sys.stderr.flush()


def status_from_returncode(returncode: int) -> int:
    if returncode < 0:
        return 128 - returncode
    return returncode


def spawn_process(stage: Stage) -> int:
    """Start ``stage`` as a child process with its descriptors bound.

    Returns 0 once the child runs the new image, or the failure status after
    reporting why the image could not be started.
    """

    try:
        process = subprocess.Popen(
            stage.args,
            stdin=stage.stdin,
            stdout=stage.stdout,
            stderr=stage.stderr,
        )
    except FileNotFoundError:
        report(stage, f"{stage.name}: command not found")
        return EXIT_NOT_FOUND
    except PermissionError as exc:
        report(stage, f"{stage.name}: {exc.strerror}")
        return EXIT_NOT_EXECUTABLE
    except OSError as exc:
        report(stage, f"{stage.name}: {exc.strerror or exc}")
        return EXIT_NOT_EXECUTABLE
    except ValueError as exc:
        report(stage, f"{stage.name!r}: {exc}")
        return EXIT_NOT_FOUND
    stage.process = process
    stage.pid = process.pid
    logger.debug("launched %s as pid %d", stage.args, process.pid)
    return 0


def wait_process(stage: Stage) -> int:
    if stage.process is None:
        raise ValueError(f"stage {stage.name!r} has not been spawned")
    status = status_from_returncode(stage.process.wait())
    logger.debug("pid %d exited with status %d", stage.process.pid, status)
    return status


def _flush_std_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        with contextlib.suppress(ValueError, OSError):
            stream.flush()


@contextlib.contextmanager
def redirected_streams(stage: Stage) -> Iterator[None]:
    """Bind the stage's overridden descriptors onto fds 0-2 for a builtin.

    Only overridden slots are touched. The previous descriptors are saved and
    restored on exit; a failed restore raises :class:`FatalShellError`.
    """

    overrides = [
        (target, fd)
        for target, fd in ((STDIN_FD, stage.stdin), (STDOUT_FD, stage.stdout), (STDERR_FD, stage.stderr))
        if fd is not None
    ]
    if not overrides:
        yield
        return

    saved: list[tuple[int, int]] = []
    _flush_std_streams()
    with contextlib.ExitStack() as streams:
        try:
            for target, fd in overrides:
                saved.append((target, os.dup(target)))
                os.dup2(fd, target)
        except OSError as exc:
            _restore(saved)
            raise BuiltinError(f"cannot redirect standard streams: {exc.strerror}") from exc
        if stage.stdout is not None:
            out = streams.enter_context(open(STDOUT_FD, "w", closefd=False))
            streams.enter_context(contextlib.redirect_stdout(out))
        if stage.stderr is not None:
            err = streams.enter_context(open(STDERR_FD, "w", closefd=False))
            streams.enter_context(contextlib.redirect_stderr(err))
        try:
            yield
        finally:
            _flush_std_streams()
            streams.close()
            _restore(saved)


def _restore(saved: list[tuple[int, int]]) -> None:
    error: OSError | None = None
    for target, copy in reversed(saved):
        try:
            os.dup2(copy, target)
        except OSError as exc:
            error = exc
        finally:
            os.close(copy)
    if error is not None:
        raise FatalShellError(f"failed to restore standard streams: {error.strerror}")


__all__ = [
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "redirected_streams",
    "report",
    "spawn_process",
    "status_from_returncode",
    "wait_process",
]
