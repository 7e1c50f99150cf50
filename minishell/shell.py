"""The interactive loop: prompt, read a line, parse it, run it."""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TextIO

from minishell.executor import remove_heredoc_files, run_pipeline
from minishell.heredoc import HeredocInterrupted
from minishell.quoting import insert_str
from minishell.syntax import ShellSyntaxError, parse_line
from minishell.tokens import collect_heredocs, mark_shadowed_redirections, tokenize

try:
    import readline  # noqa: F401  (line editing and history for input())
except ImportError:  # pragma: no cover - platform without readline
    readline = None

_BOLD_CYAN = "\001\033[36;1m\002"
_BOLD_GREEN = "\001\033[32;1m\002"
_RESET = "\001\033[0m\002"
_PROMPT_TEMPLATE = f"{_BOLD_CYAN}minishell ({_BOLD_GREEN}/{_BOLD_CYAN}) {_RESET}"
# Position just after the "/" in the template, where the directory name goes.
_PROMPT_DIR_INDEX = 30

_INTERRUPTED_STATUS = 130

_LOGO_ROWS = (
    "|   /██      /██ /██████ /██   /██ /██████  /██████  /██   /██ /████████"
    " /██       /██ \t      |",
    "|  | ███    /███|_  ██_/| ███ | ██|_  ██_/ /██__  ██| ██  | ██| ██_____/"
    "| ██      | ██ \t      |",
    "|  | ████  /████  | ██  | ████| ██  | ██  | ██  \\__/| ██  | ██| ██      "
    "| ██      | ██ \t      |",
    "|  | ██ ██/██ ██  | ██  | ██ ██ ██  | ██  |  ██████ | ████████| █████   "
    "| ██      | ██ \t      |",
    "|  | ██  ███| ██  | ██  | ██  ████  | ██   \\____  ██| ██__  ██| ██__/   "
    "| ██      | ██ \t      |",
    "|  | ██\\  █ | ██  | ██  | ██\\  ███  | ██   /██  \\ ██| ██  | ██| ██      "
    "| ██      | ██ \t      |",
    "|  | ██ \\/  | ██ /██████| ██ \\  ██ /██████|  ██████/| ██  | ██| ████████"
    "| ████████| ████████  |",
    "|  |__/     |__/|______/|__/  \\__/|______/ \\______/ |__/  |__/|________/"
    "|________/|________/  | ",
)
_LOGO_BLANK = "\t" * 11 + "      |"
_LOGO_TOP = "-" * 59 + "-" * 34
_LOGO_BOTTOM = "-" * 6 + "-" * 81 + "-" * 6


def logo() -> str:
    """The coloured start-up banner."""
    body = "\t\n".join((_LOGO_BLANK,) + _LOGO_ROWS)
    return (
        f"\033[32;1m {_LOGO_TOP}\n|{body}\n|{_LOGO_BLANK}\n {_LOGO_BOTTOM}\n\n\033[0m"
    )


def prompt_text(cwd: str | None) -> str:
    """The prompt for working directory ``cwd``; None gives the bare prompt."""
    if cwd is None:
        return f"{_BOLD_CYAN}minishell{_RESET}"
    name = cwd.rsplit("/", 1)[-1]
    return insert_str(_PROMPT_TEMPLATE, name, _PROMPT_DIR_INDEX)


def _current_dir() -> str | None:
    try:
        return os.getcwd()
    except OSError:
        return None


def _isatty(stream: object) -> bool:
    try:
        return bool(stream.isatty())  # type: ignore[attr-defined]
    except (AttributeError, ValueError):
        return False


def _do_nothing(signum: int, frame: object) -> None:
    """A handler that swallows the signal; children get the default after exec."""


@contextmanager
def _signal_handlers(handlers: Mapping[int, object]) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = {sig: signal.signal(sig, handler) for sig, handler in handlers.items()}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)


def _quit_handlers() -> dict[int, object]:
    if hasattr(signal, "SIGQUIT"):
        return {signal.SIGQUIT: _do_nothing}
    return {}


class Shell:
    """A command interpreter bound to an environment and an input stream.

    When input or error output is not a terminal the shell reads plain lines
    from ``stdin`` and stops at the first line it cannot parse.
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
        stderr: TextIO | None = None,
        interactive: bool | None = None,
    ) -> None:
        self.env: dict[str, str] = dict(os.environ if env is None else env)
        self.stdin = sys.stdin if stdin is None else stdin
        self.stderr = sys.stderr if stderr is None else stderr
        if interactive is None:
            interactive = _isatty(self.stdin) and _isatty(self.stderr)
        self.interactive = interactive
        self.last_status = 0
        self._interrupted = False

    def read_line(self) -> str | None:
        """Read the next command line, or None at end of input."""
        if not self.interactive:
            line = self.stdin.readline()
            return line.removesuffix("\n") if line else None
        while True:
            try:
                return input(prompt_text(_current_dir()))
            except EOFError:
                return None
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                sys.stdout.flush()
                self.last_status = _INTERRUPTED_STATUS
                self._interrupted = True

    def _read_heredoc_line(self) -> str | None:
        if not self.interactive:
            return self.read_line()
        try:
            return input(">")
        except EOFError:
            return None

    def execute(self, line: str) -> int:
        """Run one command line and return its exit status.

        Outside interactive mode a line that cannot be parsed ends the shell
        with SystemExit carrying the status.
        """
        interrupted, self._interrupted = self._interrupted, False
        status_in = _INTERRUPTED_STATUS if interrupted else self.last_status
        if not line:
            self.last_status = status_in if interrupted else 0
            return self.last_status
        status = 0
        segments: list[str] = []
        try:
            segments = parse_line(line, self.env, status_in)
        except ShellSyntaxError as exc:
            self.stderr.write(exc.message + "\n")
            status = exc.status
        if not segments:
            if not self.interactive:
                self.stderr.write(line)
                self.stderr.flush()
                raise SystemExit(status)
            self.last_status = status
            return status
        self.last_status = self._run(segments, status_in)
        return self.last_status

    def _run(self, segments: list[str], status_in: int) -> int:
        try:
            tokens = mark_shadowed_redirections(tokenize(segments))
            tokens = collect_heredocs(
                tokens, self._read_heredoc_line, self.env, status_in
            )
        except ShellSyntaxError as exc:
            self.stderr.write(exc.message + "\n")
            return exc.status
        except HeredocInterrupted as exc:
            return exc.status
        try:
            self.stderr.flush()
            with _signal_handlers({signal.SIGINT: _do_nothing}):
                return run_pipeline(tokens, self.env)
        finally:
            remove_heredoc_files(tokens)

    def run(self) -> int:
        """Read and execute lines until end of input; return the last status."""
        with _signal_handlers(_quit_handlers()):
            try:
                line = self.read_line()
                while line is not None:
                    self.execute(line)
                    line = self.read_line()
            except SystemExit as exc:
                return exc.code if isinstance(exc.code, int) else 1
        if self.interactive:
            self.stderr.write("exit\n")
        return self.last_status


def main(argv: list[str] | None = None) -> int:
    """Start the shell on the process's standard streams; arguments are ignored."""
    return Shell().run()