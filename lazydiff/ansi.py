"""ANSI-aware measurement and viewport shaping for the diff pane.

Pager and external-diff output arrives pre-colored. Escape sequences count as
zero columns so pane borders stay aligned, and the active color is replayed
when the pane is scrolled horizontally past the point where it was set.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    """Return the columns ``ch`` occupies when drawn at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch) or unicodedata.category(ch) == "Cc":
        return 0
    return 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1


def _segments(text: str) -> Iterator[tuple[str, int, int]]:
    """Yield ``(piece, column, width)`` for every escape and character in ``text``.

    Escapes have width 0. Tabs come out as the spaces that reach the next tab
    stop.
    """
    col = 0
    pos = 0
    while pos < len(text):
        escape = ANSI_ESCAPE_RE.match(text, pos) if text[pos] == "\x1b" else None
        if escape is not None:
            yield escape.group(0), col, 0
            pos = escape.end()
            continue
        ch = text[pos]
        width = char_display_width(ch, col)
        yield (" " * width if ch == "\t" else ch), col, width
        col += width
        pos += 1


def display_width(text: str) -> int:
    """Return terminal column width for ANSI-styled text."""
    return sum(width for _, _, width in _segments(text))


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Keep the leading ``max_cols`` columns of ``text``, escapes included.

    A character that would cross the limit is dropped rather than split.
    """
    if max_cols <= 0:
        return ""
    out: list[str] = []
    for piece, col, width in _segments(text):
        if col + width > max_cols:
            break
        out.append(piece)
    return "".join(out)


def slice_ansi_line(text: str, start_cols: int, max_cols: int) -> str:
    """Return the ``max_cols`` wide window of ``text`` beginning at ``start_cols``.

    The last SGR escape seen left of the window is replayed at its edge so
    scrolled text keeps its color. A wide character or tab cut by the left
    edge shows as blanks for its visible part.
    """
    if max_cols <= 0:
        return ""
    start_cols = max(0, start_cols)
    end_cols = start_cols + max_cols
    out: list[str] = []
    carried_sgr = ""

    for piece, col, width in _segments(text):
        if col + width > end_cols:
            break
        if col < start_cols:
            if not width and piece.endswith("m"):
                carried_sgr = piece
            visible = col + width - start_cols
            if visible <= 0:
                continue
            piece = " " * visible
        if carried_sgr:
            out.append(carried_sgr)
            carried_sgr = ""
        out.append(piece)
    return "".join(out)


def pad_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad it with spaces."""
    clipped = clip_ansi_line(text, width)
    return clipped + " " * max(0, width - display_width(clipped))
