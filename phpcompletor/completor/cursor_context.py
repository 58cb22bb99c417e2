"""
Locate the accessor token in front of the cursor.

The text at the cursor is usually incomplete while the user types, so this
works on raw text instead of a syntax tree: it scans backwards for the
closest `->` or `::` and splits the line into the receiver expression (which
ends at the corrected offset) and the member name typed so far.

Known limits: only spaces and line breaks are skipped (not tabs), and
accessor-like pairs inside strings or comments are not recognised as such.
"""

from __future__ import annotations

from dataclasses import dataclass

from phpcompletor.exceptions import NoAccessorFound
from phpcompletor.parser.text import ACCESSORS, normalize_line_breaks, skip_back


@dataclass(frozen=True)
class CursorContext:
    corrected_offset: int
    partial_text: str


def resolve_offset(source: str, offset: int) -> CursorContext:
    """
    Find the offset to reflect for a member completion at `offset`.

    Examples (| is the cursor):
        `$foo->ba|`      -> corrected offset at the end of `$foo`, partial "ba"
        `Foo :: |`       -> corrected offset at the end of `Foo`, partial " "

    Raises:
        NoAccessorFound: when no accessor token precedes the cursor
    """
    until_cursor = normalize_line_breaks(source)[:offset]

    pos = skip_back(until_cursor, len(until_cursor) - 1)
    anchor = None
    while pos > 0:
        if until_cursor[pos:pos + 2] in ACCESSORS:
            anchor = pos
            break
        pos -= 1

    if anchor is None:
        raise NoAccessorFound(offset)

    scope_end = skip_back(until_cursor, anchor - 1) + 1
    accessor_length = (anchor - scope_end) + 2

    return CursorContext(
        corrected_offset=scope_end,
        partial_text=until_cursor[scope_end + accessor_length:],
    )
