"""Syntax checks and normalisation of a command line before it is tokenised."""

from __future__ import annotations

import sys
from collections.abc import Mapping

from minishell.expansion import UNSET_MARKER, expand_variables
from minishell.quoting import WHITESPACE, QuoteState, is_ws
from minishell.splitting import split_quoted_keep

_REDIRECTIONS = "<>"


class ShellSyntaxError(Exception):
    """A command line was rejected; ``status`` is the exit status it leads to."""

    def __init__(self, message: str, status: int = 2) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def has_non_ascii(s: str) -> bool:
    """Return True if ``s`` holds any character beyond 7-bit ASCII."""
    return any(ord(c) > 127 for c in s)


def check_and_or(s: str) -> str:
    """Reject unquoted ``&`` and ``||``; return ``s`` unchanged when it is valid."""
    quotes = QuoteState()
    for i, c in enumerate(s):
        quotes.update(c)
        if quotes.quoted():
            continue
        if c == "&":
            raise ShellSyntaxError("error: unexpected `&'")
        if c == "|" and s[i + 1 : i + 2] == "|":
            raise ShellSyntaxError("error: unexpected `||'")
    return s


def check_pipes(s: str) -> str:
    """Reject a pipe with nothing before or after it; return ``s`` when valid."""
    quotes = QuoteState()
    for i, c in enumerate(s):
        quotes.update(c)
        if quotes.quoted() or c != "|":
            continue
        if not s[:i].strip(WHITESPACE):
            raise ShellSyntaxError("syntax error near unexpected token `|'")
        if not s[i + 1 :].lstrip(WHITESPACE):
            raise ShellSyntaxError("syntax error near unexpected token`newline'")
    return s


def check_redirections(s: str) -> str:
    """Reject a redirection that is not followed by a word; return ``s`` when valid."""
    quotes = QuoteState()
    for i, c in enumerate(s):
        quotes.update(c)
        if quotes.quoted() or c not in _REDIRECTIONS or s[i + 1 : i + 2] == c:
            continue
        rest = s[i + 1 :].lstrip(WHITESPACE)
        if not rest:
            raise ShellSyntaxError("syntax error near unexpected token `newline'")
        if rest[0] in "<>|":
            raise ShellSyntaxError(f"syntax error near unexpected token `{rest[0]}'")
    return s


def _after_redirection(s: str, i: int) -> bool:
    before = s[:i].rstrip(WHITESPACE)
    return bool(before) and before[-1] in _REDIRECTIONS


def check_ambiguous(s: str) -> bool:
    """Return True if an unset variable stands where a redirection expects a file."""
    quotes = QuoteState()
    for i, c in enumerate(s):
        quotes.update(c)
        if not quotes.quoted() and c == UNSET_MARKER and _after_redirection(s, i):
            return True
    return False


def remove_unset_markers(s: str) -> str:
    """Drop the placeholders of unset variables.

    A placeholder that is the target of a redirection removes its whole
    pipeline segment; any other placeholder is simply deleted.
    """
    while (i := s.find(UNSET_MARKER)) != -1:
        if _after_redirection(s, i):
            start = max(s.rfind("|", 0, i), 0)
            end = s.find("|", i)
            if end == -1:
                end = len(s)
            s = s[:start] + s[end:]
        else:
            s = s[:i] + s[i + 1 :]
    return s


def _opens_redirection(c: str, nxt: str) -> bool:
    return (c == "<" and nxt not in ("<", " ", "")) or (
        c == ">" and nxt not in (">", " ", "")
    )


def _precedes_redirection(c: str, nxt: str) -> bool:
    return (c not in ("<", " ") and nxt == "<") or (c not in (">", " ") and nxt == ">")


def normalize_spacing(s: str) -> str:
    """Collapse unquoted runs of whitespace and put spaces around redirections.

    Raises ShellSyntaxError when a quote is left open.
    """
    in_dq = in_sq = False
    i = 0
    while i < len(s):
        c = s[i]
        if c == '"' and not in_sq:
            if i == 0 or s[i - 1] != "\\":
                in_dq = not in_dq
        elif c == "'" and not in_dq:
            in_sq = not in_sq
        nxt = s[i + 1 : i + 2]
        unquoted = not in_dq and not in_sq
        if unquoted and is_ws(c) and is_ws(nxt):
            s = s[:i] + s[i + 1 :]
        elif unquoted and _opens_redirection(c, nxt):
            i += 1
            s = s[:i] + " " + s[i:]
        elif unquoted and _precedes_redirection(c, nxt):
            s = s[: i + 1] + " " + s[i + 1 :]
            i += 2
        else:
            i += 1
    if in_dq or in_sq:
        raise ShellSyntaxError("Quotes error")
    return s


def _strip_one_space(segment: str) -> str:
    if segment and is_ws(segment[0]):
        segment = segment[1:]
    if segment and is_ws(segment[-1]):
        segment = segment[:-1]
    return segment


def parse_line(line: str, env: Mapping[str, str], last_status: int) -> list[str]:
    """Expand, check and split a command line into pipeline pieces.

    The result alternates command segments and ``"|"`` items; an empty list
    means there is nothing to run. Raises ShellSyntaxError on bad input.
    """
    if has_non_ascii(line):
        raise ShellSyntaxError("ASCII over 127", status=last_status)
    s = expand_variables(line, env, last_status).strip(WHITESPACE)
    if not s:
        return []
    s = normalize_spacing(s)
    check_and_or(s)
    check_redirections(s)
    check_pipes(s)
    if check_ambiguous(s):
        sys.stderr.write("ambiguous redirect\n")
    s = remove_unset_markers(s)
    if not s:
        return []
    return [_strip_one_space(segment) for segment in split_quoted_keep(s, "|")]