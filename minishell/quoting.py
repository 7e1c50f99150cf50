"""Quote tracking, whitespace tests and small string helpers used by the parser."""

from __future__ import annotations

from dataclasses import dataclass

WHITESPACE = " \n\t\f\r\v"
QUOTE_CHARS = frozenset({'"', "'"})


@dataclass
class QuoteState:
    """Tracks whether a scan is inside single or double quotes."""

    double: bool = False
    single: bool = False

    def update(self, c: str) -> None:
        """Toggle the quote state for character ``c``."""
        if c == '"' and not self.single:
            self.double = not self.double
        if c == "'" and not self.double:
            self.single = not self.single

    def quoted(self) -> bool:
        """Return True while inside either kind of quotes."""
        return self.double or self.single


def is_ws(c: str) -> bool:
    """Return True if ``c`` is a single whitespace character."""
    return len(c) == 1 and c in WHITESPACE


def _trimmable(s: str, i: int) -> bool:
    return s[i] in QUOTE_CHARS and (i == 0 or s[i - 1] != "\\")


def strtrim_quotes(s: str) -> str:
    """Strip unescaped quote characters from both ends of ``s``."""
    start = next((i for i in range(len(s)) if not _trimmable(s, i)), len(s))
    end = next((i for i in reversed(range(len(s))) if not _trimmable(s, i)), -1)
    if not s or end < start:
        return ""
    return s[start : end + 1]


def insert_str(dest: str, src: str, index: int) -> str:
    """Return ``dest`` with ``src`` inserted before position ``index``."""
    if not 0 <= index <= len(dest):
        raise IndexError(f"insertion index {index} out of range for length {len(dest)}")
    return dest[:index] + src + dest[index:]