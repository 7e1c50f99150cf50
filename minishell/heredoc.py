"""Reading here-document bodies into temporary files."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable, Iterator, Mapping

from minishell.expansion import expand_heredoc_line

ReadLine = Callable[[], "str | None"]


class HeredocInterrupted(Exception):
    """Reading a here-document was interrupted by the user."""

    status = 130

    def __init__(self, delimiter: str) -> None:
        super().__init__(f"here-document for {delimiter!r} interrupted")
        self.delimiter = delimiter


def _body_lines(
    delimiter: str,
    read_line: ReadLine,
    env: Mapping[str, str],
    last_status: int,
    literal: bool,
) -> Iterator[str]:
    while True:
        try:
            line = read_line()
        except KeyboardInterrupt as exc:
            raise HeredocInterrupted(delimiter) from exc
        if line is None:
            sys.stderr.write(
                "warning: here-document delimited by end-of-file "
                f"(wanted '{delimiter}')\n"
            )
            return
        line = line.removesuffix("\n")
        if not literal:
            line = expand_heredoc_line(line, env, last_status, delimiter)
        if line == delimiter:
            return
        yield line


def read_heredoc(
    delimiter: str,
    read_line: ReadLine,
    env: Mapping[str, str] | None = None,
    last_status: int = 0,
    write: bool = True,
    literal: bool = False,
) -> str | None:
    """Read lines from ``read_line`` until ``delimiter`` or end of input.

    ``read_line`` returns one line, or None at end of input. Unless
    ``literal`` is set, variables in each line are expanded. With ``write``
    the body goes to a new temporary file whose path is returned; otherwise
    the lines are consumed and None is returned. Raises HeredocInterrupted
    if ``read_line`` raises KeyboardInterrupt.
    """
    env = {} if env is None else env
    lines = _body_lines(delimiter, read_line, env, last_status, literal)
    if not write:
        for _ in lines:
            pass
        return None
    fd, path = tempfile.mkstemp(prefix="hd_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as out:
            for line in lines:
                out.write(line + "\n")
    except BaseException:
        os.unlink(path)
        raise
    return path