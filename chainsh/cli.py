"""Command-line interface for chainsh."""

from __future__ import annotations

import argparse
import contextlib
import logging
import signal
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path

from .exceptions import FatalShellError, ShellExit
from .policies import SHORT_CIRCUIT, UNCONDITIONAL, WaitMode
from .shell import Shell
from .shell.core import DEFAULT_PROMPT

logger = logging.getLogger(__name__)

_IGNORED_SIGNALS = ("SIGINT", "SIGTSTP", "SIGQUIT")


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--prompt",
        default=DEFAULT_PROMPT,
        help="Interactive prompt text (default: %(default)s).",
    )
    parser.add_argument(
        "--short-circuit",
        action="store_true",
        help="Skip pipelines after && on failure and after || on success.",
    )
    parser.add_argument(
        "--wait-all",
        action="store_true",
        help="Launch every stage of a pipeline before waiting on any of them.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log tokens, parsed chains and process lifecycle to stderr.",
    )


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_shell(args: argparse.Namespace) -> Shell:
    _configure_logging(args.debug)
    return Shell(
        prompt=args.prompt,
        chain_policy=SHORT_CIRCUIT if args.short_circuit else UNCONDITIONAL,
        wait_mode=WaitMode.PIPELINE if args.wait_all else WaitMode.PER_STAGE,
    )


@contextlib.contextmanager
def _signal_handlers(shell: Shell, *, interactive: bool) -> Iterator[None]:
    def ignore(signo: int, _frame: object) -> None:
        logger.debug("ignored signal %d", signo)

    def reap(_signo: int, _frame: object) -> None:
        shell.reap_background()

    wanted: dict[signal.Signals, object] = {signal.SIGCHLD: reap}
    if interactive:
        for name in _IGNORED_SIGNALS:
            signo = getattr(signal, name, None)
            if signo is not None:
                wanted[signo] = ignore
    previous = {signo: signal.signal(signo, handler) for signo, handler in wanted.items()}
    try:
        yield
    finally:
        for signo, handler in previous.items():
            if handler is not None:
                signal.signal(signo, handler)


def _interactive_lines(shell: Shell) -> Iterator[str]:
    while True:
        shell.reap_background()
        try:
            yield input(f"{shell.prompt} ")
        except KeyboardInterrupt:
            sys.stdout.write("\n")
        except EOFError:
            return


def _run_lines(shell: Shell, lines: Iterable[str]) -> int:
    status = 0
    try:
        for line in lines:
            status = shell.submit(line)
    except ShellExit as exc:
        return exc.code
    except FatalShellError as exc:
        sys.stderr.write(f"chainsh: {exc}\n")
        return 1
    return status


def _run_exec(args: argparse.Namespace) -> int:
    shell = _build_shell(args)
    with _signal_handlers(shell, interactive=False):
        return _run_lines(shell, [args.command])


def _run_script(args: argparse.Namespace) -> int:
    shell = _build_shell(args)
    path = Path(args.script)
    try:
        handle = path.open(errors="surrogateescape")
    except OSError as exc:
        sys.stderr.write(f"chainsh: error opening script {path}: {exc.strerror}\n")
        return 1
    with handle, _signal_handlers(shell, interactive=False):
        return _run_lines(shell, handle)


def _run_shell(args: argparse.Namespace) -> int:
    shell = _build_shell(args)
    with _signal_handlers(shell, interactive=True):
        return _run_lines(shell, _interactive_lines(shell))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="chainsh")
    subparsers = parser.add_subparsers(dest="command_name", required=True)

    exec_parser = subparsers.add_parser("exec", help="Run a single command line")
    _add_common_flags(exec_parser)
    exec_parser.add_argument("command", help="Command line to execute")
    exec_parser.set_defaults(func=_run_exec)

    script_parser = subparsers.add_parser("script", help="Run every line of a script file")
    _add_common_flags(script_parser)
    script_parser.add_argument("script", help="Path to the script")
    script_parser.set_defaults(func=_run_script)

    shell_parser = subparsers.add_parser("shell", help="Start an interactive shell")
    _add_common_flags(shell_parser)
    shell_parser.set_defaults(func=_run_shell)

    args = parser.parse_args(argv)
    exit_code = args.func(args)
    raise SystemExit(exit_code)


__all__ = ["main"]
