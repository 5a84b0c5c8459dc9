"""Search projection over flattened display rows."""

from __future__ import annotations

from collections.abc import Iterable

from .types import DisplayRow


def row_matches_query(row: DisplayRow, query: str) -> bool:
    """Return whether ``query`` is a case-insensitive substring of the row path."""
    return query.casefold() in row.full_path.casefold()


def filter_rows(rows: Iterable[DisplayRow], query: str) -> list[DisplayRow]:
    """Keep rows whose ``full_path`` contains ``query``, preserving order.

    An empty query keeps every row.
    """
    if not query:
        return list(rows)
    return [row for row in rows if row_matches_query(row, query)]
