"""Running a tokenised pipeline: redirections, command lookup and child processes."""

from __future__ import annotations

import errno
import os
import signal
import subprocess
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from minishell.tokens import Token, TokenKind

_HEREDOC_KINDS = (TokenKind.DELIMITER, TokenKind.DELIMITER_QUOTED)


class CommandError(Exception):
    """A command could not be started; ``status`` is the exit status it yields."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class Command:
    """One command of a pipeline: its arguments and its redirection tokens."""

    argv: list[str] = field(default_factory=list)
    quoted: list[bool] = field(default_factory=list)
    redirections: list[Token] = field(default_factory=list)

    def has(self, kind: TokenKind) -> bool:
        """True if a token of ``kind`` not aimed at standard output is present."""
        if kind is TokenKind.COMMAND:
            return any(not is_stdout_path(word) for word in self.argv)
        return any(
            token.kind is kind and not is_stdout_path(token.text)
            for token in self.redirections
        )

    def heredoc_path(self) -> str | None:
        """Path of the first active here-document of this command, if any."""
        for token in self.redirections:
            if token.kind in _HEREDOC_KINDS:
                return token.heredoc_path
        return None


def is_stdout_path(s: str) -> bool:
    """True if ``s`` names the standard-output device, as in ``/dev/stdout``."""
    parts = [part for part in s.split("/") if part]
    if len(parts) < 2:
        return False
    return "dev".startswith(parts[0]) and "stdout".startswith(parts[1])


def search_path(env: Mapping[str, str]) -> list[str]:
    """Directories listed in the ``PATH`` entry of ``env``."""
    for key, value in env.items():
        if "PATH".startswith(key):
            return [part for part in value.split(":") if part]
    return []


def _exists(path: str) -> bool:
    return os.access(path, os.F_OK)


def _permission_denied(name: str) -> CommandError:
    return CommandError(f"{name}: {os.strerror(errno.EACCES)}", 126)


def resolve_command(name: str, env: Mapping[str, str]) -> str:
    """Find the file to execute for ``name``; raise CommandError if there is none."""
    if not name:
        raise CommandError(": Command not found", 127)
    if name in (".", ".."):
        raise CommandError(f"{name}: Command not found", 127)
    if name[0] in "/." and not _exists(name):
        raise CommandError(f"{name}: No such file or directory", 127)
    if _exists(name):
        if not os.access(name, os.X_OK):
            raise _permission_denied(name)
        return name
    for directory in search_path(env):
        candidate = f"{directory}/{name}"
        if _exists(candidate):
            if not os.access(candidate, os.X_OK):
                raise _permission_denied(name)
            return candidate
    if "/" in name:
        raise CommandError(f"{name}: No such file or directory", 127)
    raise CommandError(f"{name}: Command not found", 127)


def env_list(env: Mapping[str, str]) -> list[str]:
    """The environment as ``KEY=VALUE`` strings, in order."""
    return [f"{key}={value}" for key, value in env.items()]


def split_commands(tokens: Iterable[Token]) -> list[Command]:
    """Group tokens into one Command per pipeline stage."""
    commands = [Command()]
    for token in tokens:
        if token.kind is TokenKind.PIPE:
            commands.append(Command())
        elif token.kind is TokenKind.COMMAND:
            commands[-1].argv.append(token.text)
            commands[-1].quoted.append(token.quoted)
        else:
            commands[-1].redirections.append(token)
    return commands


def _open(token: Token, flags: int) -> int:
    try:
        return os.open(token.text, flags, 0o644)
    except OSError as exc:
        raise CommandError(f"{token.text}: {exc.strerror}", 1) from exc


_APPEND_FLAGS = os.O_CREAT | os.O_RDWR | os.O_APPEND
_TRUNCATE_FLAGS = os.O_CREAT | os.O_RDWR | os.O_TRUNC


def _apply_redirections(command: Command, opened: list[int]) -> tuple[int | None, int | None]:
    fd_in: int | None = None
    fd_out: int | None = None
    for token in command.redirections:
        kind = token.kind
        if kind is TokenKind.FALSE_INFILE:
            os.close(_open(token, os.O_RDWR))
        elif kind is TokenKind.FALSE_APPEND:
            os.close(_open(token, _APPEND_FLAGS))
        elif kind is TokenKind.FALSE_TRUNCATE:
            os.close(_open(token, _TRUNCATE_FLAGS))
        elif kind is TokenKind.APPEND:
            fd_out = _open(token, _APPEND_FLAGS)
            opened.append(fd_out)
        elif kind is TokenKind.TRUNCATE:
            fd_out = _open(token, _TRUNCATE_FLAGS)
            opened.append(fd_out)
        elif kind is TokenKind.INFILE:
            fd_in = _open(token, os.O_RDONLY)
            opened.append(fd_in)
    return fd_in, fd_out


def _choose_stdin(
    command: Command, index: int, fd_in: int | None, pipe_in: int | None, opened: list[int]
) -> int | None:
    path = command.heredoc_path()
    if command.has(TokenKind.DELIMITER) or command.has(TokenKind.DELIMITER_QUOTED):
        if path is None:
            return None
        try:
            fd = os.open(path, os.O_RDONLY)
        except OSError:
            return None
        opened.append(fd)
        return fd
    if index == 0 or command.has(TokenKind.INFILE):
        return fd_in
    return pipe_in


def _start(
    command: Command,
    index: int,
    last: int,
    env: Mapping[str, str],
    pipe_in: int | None,
    pipe_out: int | None,
) -> subprocess.Popen | int:
    opened: list[int] = []
    try:
        fd_in, fd_out = _apply_redirections(command, opened)
        if not command.has(TokenKind.COMMAND):
            return 0
        path = resolve_command(command.argv[0], env)
        stdin = _choose_stdin(command, index, fd_in, pipe_in, opened)
        redirected_out = command.has(TokenKind.APPEND) or command.has(TokenKind.TRUNCATE)
        stdout = fd_out if redirected_out or index == last else pipe_out
        executable = path if "/" in path else os.path.abspath(path)
        try:
            return subprocess.Popen(
                command.argv,
                executable=executable,
                stdin=stdin,
                stdout=stdout,
                env=dict(env),
                close_fds=True,
            )
        except OSError as exc:
            if exc.errno == errno.EACCES:
                raise CommandError(f"{command.argv[0]}: Is a directory", 126) from exc
            raise CommandError(exc.strerror or str(exc), exc.errno or 1) from exc
    except CommandError as exc:
        sys.stderr.write(exc.message + "\n")
        return exc.status
    finally:
        for fd in opened:
            os.close(fd)


def _wait(result: subprocess.Popen | int) -> int:
    if isinstance(result, int):
        return result
    code = result.wait()
    if code < 0:
        return 128 - code
    return code


def run_pipeline(tokens: Iterable[Token], env: Mapping[str, str]) -> int:
    """Run every command of the pipeline and return the last one's exit status."""
    commands = split_commands(tokens)
    last = len(commands) - 1
    results: list[subprocess.Popen | int] = []
    previous_read: int | None = None
    for index, command in enumerate(commands):
        read_end = write_end = None
        if index != last:
            read_end, write_end = os.pipe()
        try:
            results.append(_start(command, index, last, env, previous_read, write_end))
        finally:
            if previous_read is not None:
                os.close(previous_read)
            if write_end is not None:
                os.close(write_end)
        previous_read = read_end
    statuses = [_wait(result) for result in results]
    status = statuses[-1]
    if status == 128 + signal.SIGQUIT:
        sys.stderr.write("Quit (core dumped)\n")
    return status


def remove_heredoc_files(tokens: Iterable[Token]) -> None:
    """Delete the temporary files holding here-document bodies."""
    for token in tokens:
        if token.heredoc_path is not None:
            try:
                os.unlink(token.heredoc_path)
            except FileNotFoundError:
                pass