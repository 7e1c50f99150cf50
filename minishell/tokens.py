"""Turning pipeline segments into typed tokens and preparing their redirections."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import IntEnum

from minishell.heredoc import read_heredoc
from minishell.quoting import QUOTE_CHARS, is_ws
from minishell.splitting import split_quoted
from minishell.syntax import ShellSyntaxError


class TokenKind(IntEnum):
    """What a word of a command line stands for."""

    INFILE = 0
    DELIMITER = 1
    FALSE_INFILE = 2
    FALSE_DELIMITER = 3
    DELIMITER_QUOTED = 4
    PIPE = 5
    APPEND = 6
    TRUNCATE = 7
    FALSE_APPEND = 8
    FALSE_TRUNCATE = 9
    COMMAND = 10


@dataclass(frozen=True)
class Token:
    """One word of a command line with its role.

    ``quoted`` is True when the word started with a quote character;
    ``heredoc_path`` names the file holding a here-document body.
    """

    kind: TokenKind
    text: str
    quoted: bool = False
    heredoc_path: str | None = None


_OPERATORS = frozenset({"<", "<<", ">", ">>"})

_TARGET_KINDS = {
    "<": TokenKind.INFILE,
    ">": TokenKind.TRUNCATE,
    ">>": TokenKind.APPEND,
}

_HEREDOC_KINDS = frozenset(
    {TokenKind.DELIMITER, TokenKind.DELIMITER_QUOTED, TokenKind.FALSE_DELIMITER}
)


def clean_quotes(s: str) -> str:
    """Remove the quote characters that open or close a quoted section."""
    in_dq = in_sq = False
    kept: list[str] = []
    for c in s:
        if c == '"' and not in_sq:
            in_dq = not in_dq
        elif c == "'" and not in_dq:
            in_sq = not in_sq
        else:
            kept.append(c)
    return "".join(kept)


def _first_non_chevron(s: str) -> str:
    return next((c for c in s if c != "<" and not is_ws(c)), "")


def heredoc_is_quoted(segment: str) -> bool:
    """True if some ``<<`` in ``segment`` is followed by a quoted delimiter."""
    for end in range(len(segment), 1, -1):
        if segment[end - 2 : end] == "<<" and end != len(segment):
            if _first_non_chevron(segment[end:]) in QUOTE_CHARS - {""}:
                return True
    return False


def has_double_infile(words: Iterable[str]) -> bool:
    """True if two ``<`` words follow each other."""
    previous = None
    for word in words:
        if word == "<" and previous == "<":
            return True
        previous = word
    return False


def _make_token(kind: TokenKind, word: str) -> Token:
    return Token(kind=kind, text=clean_quotes(word), quoted=word[:1] in QUOTE_CHARS)


def tokenize(segments: list[str]) -> list[Token]:
    """Turn the pieces produced by ``parse_line`` into a flat token list.

    Operator words are consumed; the word after an operator becomes its
    target. Quotes are removed from every word. Raises ShellSyntaxError on
    two ``<`` operators in a row.
    """
    tokens: list[Token] = []
    pipes = 0
    for segment in segments:
        words = split_quoted(segment, " ")
        if has_double_infile(words):
            raise ShellSyntaxError("syntax error near unexpected token `<'")
        previous: str | None = None
        for word in words:
            if word in _OPERATORS:
                previous = word
                continue
            if word == "|":
                tokens.append(_make_token(TokenKind.PIPE, word))
                pipes += 1
            elif previous == "<<":
                # The quoting is looked up by pipe count among the pieces.
                quoted = heredoc_is_quoted(segments[pipes])
                kind = TokenKind.DELIMITER_QUOTED if quoted else TokenKind.DELIMITER
                tokens.append(_make_token(kind, word))
            else:
                kind = _TARGET_KINDS.get(previous or "", TokenKind.COMMAND)
                tokens.append(_make_token(kind, word))
            previous = word
    return tokens


def mark_shadowed_redirections(tokens: list[Token]) -> list[Token]:
    """Mark redirections overridden by a later one in the same command.

    Within each command only the last output redirection and the last
    input redirection (file or here-document) stay active; earlier ones get
    their ``FALSE_*`` kind. Returns a new list.
    """
    marked: list[Token] = []
    seen_out = seen_in = False
    for token in reversed(tokens):
        kind = token.kind
        if kind is TokenKind.PIPE:
            seen_out = seen_in = False
        elif kind in (TokenKind.APPEND, TokenKind.TRUNCATE):
            if seen_out:
                kind = (
                    TokenKind.FALSE_APPEND
                    if kind is TokenKind.APPEND
                    else TokenKind.FALSE_TRUNCATE
                )
            seen_out = True
        elif kind is TokenKind.INFILE:
            if seen_in:
                kind = TokenKind.FALSE_INFILE
            seen_in = True
        elif kind in (TokenKind.DELIMITER, TokenKind.DELIMITER_QUOTED):
            if seen_in:
                kind = TokenKind.FALSE_DELIMITER
            seen_in = True
        marked.append(dataclasses.replace(token, kind=kind))
    marked.reverse()
    return marked


def count_pipes(tokens: Iterable[Token]) -> int:
    """Number of pipe tokens."""
    return sum(1 for token in tokens if token.kind is TokenKind.PIPE)


def collect_heredocs(
    tokens: list[Token],
    read_line: Callable[[], str | None],
    env: Mapping[str, str] | None = None,
    last_status: int = 0,
) -> list[Token]:
    """Read every here-document in order and return tokens with their files.

    Shadowed here-documents are read but not stored. If reading is
    interrupted, files already written are removed and HeredocInterrupted
    propagates.
    """
    env = {} if env is None else env
    result: list[Token] = []
    written: list[str] = []
    try:
        for token in tokens:
            if token.kind not in _HEREDOC_KINDS:
                result.append(token)
                continue
            if token.kind is TokenKind.FALSE_DELIMITER:
                read_heredoc(token.text, read_line, env, last_status, write=False)
                result.append(token)
                continue
            path = read_heredoc(
                token.text,
                read_line,
                env,
                last_status,
                write=True,
                literal=token.kind is TokenKind.DELIMITER_QUOTED,
            )
            if path is not None:
                written.append(path)
            result.append(dataclasses.replace(token, heredoc_path=path))
    except BaseException:
        for path in written:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        raise
    return result