"""Expansion of ``$NAME`` and ``$?`` in command lines and here-document lines."""

from __future__ import annotations

import string
from collections.abc import Mapping

from minishell.quoting import QUOTE_CHARS, QuoteState, insert_str, is_ws

# Placeholder left where an unknown variable was expanded.
UNSET_MARKER = "\xff"

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_?")


def _at(s: str, i: int) -> str:
    return s[i] if 0 <= i < len(s) else ""


def var_name_length(s: str) -> int:
    """Length of the variable reference at the start of ``s``, ``$`` included."""
    if _at(s, 1) in string.digits and _at(s, 1):
        return 2
    for i in range(1, len(s)):
        if s[i] not in _NAME_CHARS:
            return i
    return max(len(s), 1)


def lookup_variable(s: str, env: Mapping[str, str], last_status: int) -> str:
    """Value of the variable named at the start of ``s`` (the text after ``$``).

    ``?`` yields ``last_status``; an unknown name yields ``UNSET_MARKER``.
    """
    if s.startswith("?"):
        return str(last_status)
    n = var_name_length(s)
    prefix = s[:n]
    for key, value in env.items():
        if key[:n] == prefix:
            return value
    return UNSET_MARKER


def follows_heredoc(s: str, i: int) -> bool:
    """True if position ``i`` is the word right after a ``<<`` operator."""
    j = i - 1
    while j >= 0 and (is_ws(s[j]) or s[j] in QUOTE_CHARS):
        j -= 1
    return j > 0 and s[j - 1 : j + 1] == "<<"


def _replace_reference(s: str, i: int, value: str) -> str:
    n = var_name_length(s[i:])
    return insert_str(s[:i] + s[i + n :], value, i)


def expand_variables(s: str, env: Mapping[str, str], last_status: int) -> str:
    """Expand variable references in a command line outside single quotes."""
    quotes = QuoteState()
    i = 0
    while i < len(s):
        c = s[i]
        if c in QUOTE_CHARS:
            quotes.update(c)
        nxt = _at(s, i + 1)
        if quotes.quoted() and c == "$" and (nxt in QUOTE_CHARS or is_ws(nxt)):
            i += 1
        nxt = _at(s, i + 1)
        if _at(s, i) == "$" and nxt and not is_ws(nxt) and not quotes.single:
            value = lookup_variable(s[i + 1 :], env, last_status)
            if follows_heredoc(s, i):
                i += 1
            else:
                s = _replace_reference(s, i, value)
        else:
            i += 1
    return s


def expand_heredoc_line(
    s: str, env: Mapping[str, str], last_status: int, delimiter: str
) -> str:
    """Expand variable references in one line of here-document input."""
    quotes = QuoteState()
    i = 0
    while i < len(s):
        c = s[i]
        if c in QUOTE_CHARS:
            quotes.update(c)
        nxt = _at(s, i + 1)
        if c == "$" and nxt and not is_ws(nxt) and not quotes.single:
            value = lookup_variable(s[i + 1 :], env, last_status)
            if delimiter[: len(s)] != s:
                s = _replace_reference(s, i, value)
        i += 1
    return s