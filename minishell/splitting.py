"""Splitting of command lines on separator characters, with or without quote awareness."""

from __future__ import annotations

from itertools import groupby

from minishell.quoting import QuoteState


def _is_sep(c: str, sep: str) -> bool:
    return c in sep


def split_keep(s: str, sep: str) -> list[str]:
    """Split ``s`` on the characters of ``sep``, keeping each separator as its own item."""
    pieces: list[str] = []
    for is_separator, group in groupby(s, key=lambda c: _is_sep(c, sep)):
        if is_separator:
            pieces.extend(group)
        else:
            pieces.append("".join(group))
    return pieces


def split_leave(s: str, sep: str) -> list[str]:
    """Split ``s`` on the characters of ``sep``, dropping separators and empty words."""
    return [
        "".join(group)
        for is_separator, group in groupby(s, key=lambda c: _is_sep(c, sep))
        if not is_separator
    ]


def _split_quoted(s: str, sep: str, keep: bool) -> list[str]:
    quotes = QuoteState()
    pieces: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(s):
        c = s[i]
        quotes.update(c)
        if _is_sep(c, sep) and not quotes.quoted():
            if current:
                pieces.append("".join(current))
                current = []
            if keep:
                # The whole separator string is emitted and skipped over.
                pieces.append(sep)
                i += len(sep)
                continue
        else:
            current.append(c)
        i += 1
    if current:
        pieces.append("".join(current))
    return pieces


def split_quoted(s: str, sep: str) -> list[str]:
    """Split ``s`` on separators that are outside quotes, dropping the separators.

    Quote characters are kept in the words; an unclosed quote runs to the end.
    """
    return _split_quoted(s, sep, keep=False)


def split_quoted_keep(s: str, sep: str) -> list[str]:
    """Split ``s`` on separators outside quotes, emitting ``sep`` for each one found."""
    return _split_quoted(s, sep, keep=True)