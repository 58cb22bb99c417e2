"""Small helpers for scanning raw source text."""

import re

ACCESSORS = ("->", "::")

NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_\\"
)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def normalize_line_breaks(source: str) -> str:
    """Replace line breaks with spaces, keeping every offset in place."""
    return _LINE_BREAK.sub(lambda m: " " * len(m.group(0)), source)


def skip_back(text: str, pos: int, chars: str = " ") -> int:
    """Return the first position at or before `pos` not in `chars` (may be -1)."""
    while pos >= 0 and pos < len(text) and text[pos] in chars:
        pos -= 1
    return pos


def word_bounds(text: str, pos: int) -> tuple[int, int]:
    """Span of name characters touching `pos`; empty when there is none."""
    if pos < 0 or pos >= len(text) or text[pos] not in NAME_CHARS:
        return pos, pos

    start = pos
    while start > 0 and text[start - 1] in NAME_CHARS:
        start -= 1

    end = pos + 1
    while end < len(text) and text[end] in NAME_CHARS:
        end += 1

    return start, end
