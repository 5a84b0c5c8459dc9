"""Diff-text model: per-file records and the unified-diff parser."""

from __future__ import annotations

from .parser import count_changes, parse_boundary_path, parse_diff, parse_index_hashes
from .types import DiffIdentity, FileDiffRecord

__all__ = [
    "DiffIdentity",
    "FileDiffRecord",
    "count_changes",
    "parse_boundary_path",
    "parse_diff",
    "parse_index_hashes",
]
