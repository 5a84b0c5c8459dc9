"""Tree-model creation, search filtering, and row formatting.

Defines ``DisplayRow`` and the builder that groups per-file diff records into
a collapsible directory tree with aggregated change statistics.
"""

from __future__ import annotations

from .build import (
    build_display_rows,
    build_tree,
    compare_records,
    flatten_tree,
    sort_records,
)
from .filtering import filter_rows, row_matches_query
from .rendering import file_color_for, format_display_row, stats_label, tree_prefix
from .types import DisplayRow, TreeNode

__all__ = [
    "DisplayRow",
    "TreeNode",
    "build_display_rows",
    "build_tree",
    "compare_records",
    "flatten_tree",
    "sort_records",
    "filter_rows",
    "row_matches_query",
    "file_color_for",
    "format_display_row",
    "stats_label",
    "tree_prefix",
]
