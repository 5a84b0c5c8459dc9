"""Tree construction from per-file diff records.

Groups records into a directory hierarchy, aggregates change statistics
bottom-up, and flattens the result into display rows honoring collapse state.
Every collapse toggle re-runs the full build; there is no incremental patching.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import cmp_to_key
from posixpath import dirname, basename

from ..diff_model import FileDiffRecord
from .types import DisplayRow, TreeNode

ROOT_DIRECTORY = "."


def _parent_directory(path: str) -> str:
    parent = dirname(path)
    return parent if parent else ROOT_DIRECTORY


def _cmp(left: str, right: str) -> int:
    return (left > right) - (left < right)


def compare_records(a: FileDiffRecord, b: FileDiffRecord) -> int:
    """Order records so files of one directory stay contiguous.

    Nested directories sort before their ancestors' remaining entries and
    top-level files sort after every directory group. Ties fall back to the
    raw full path.
    """
    dir_a = _parent_directory(a.path)
    dir_b = _parent_directory(b.path)

    if dir_a != ROOT_DIRECTORY and dir_a == dir_b:
        by_name = _cmp(basename(a.path).lower(), basename(b.path).lower())
        if by_name:
            return by_name
        return _cmp(a.path, b.path)

    if dir_a != ROOT_DIRECTORY and dir_b == ROOT_DIRECTORY:
        return -1
    if dir_b != ROOT_DIRECTORY and dir_a == ROOT_DIRECTORY:
        return 1

    if dir_a != ROOT_DIRECTORY and dir_b != ROOT_DIRECTORY:
        if dir_a.startswith(f"{dir_b}/"):
            return -1
        if dir_b.startswith(f"{dir_a}/"):
            return 1

    return _cmp(a.path, b.path)


def sort_records(records: Iterable[FileDiffRecord]) -> list[FileDiffRecord]:
    """Return records in directory-clustered order."""
    return sorted(records, key=cmp_to_key(compare_records))


def _path_parts(path: str) -> list[str]:
    parts = [part for part in path.split("/") if part]
    return parts if parts else [path]


def _merge_records(first: FileDiffRecord, second: FileDiffRecord) -> FileDiffRecord:
    """Join two blocks for one path; the identity survives only if both agree."""
    return FileDiffRecord.from_content(
        first.path,
        first.raw_content + second.raw_content,
        identity=first.identity if first.identity == second.identity else None,
        old_label=first.old_label,
        new_label=second.new_label,
    )


def _insert_record(root: TreeNode, record: FileDiffRecord) -> None:
    """Walk/create directory nodes for ``record.path`` and attach its file leaf."""
    parts = _path_parts(record.path)
    current = root
    for depth, part in enumerate(parts[:-1]):
        child = next(
            (node for node in current.children if node.is_directory and node.name == part),
            None,
        )
        if child is None:
            child = TreeNode(
                name=part,
                full_path="/".join(parts[: depth + 1]),
                is_directory=True,
            )
            current.children.append(child)
        current = child

    existing = next(
        (node for node in current.children if not node.is_directory and node.full_path == record.path),
        None,
    )
    if existing is not None:
        # The same path twice (e.g. unstaged then staged output) shares one leaf.
        record = _merge_records(existing.record, record)
        existing.record = record
        existing.added = record.added_count
        existing.removed = record.removed_count
        return

    current.children.append(
        TreeNode(
            name=parts[-1],
            full_path=record.path,
            is_directory=False,
            record=record,
            file_count=1,
            added=record.added_count,
            removed=record.removed_count,
        )
    )


def _sort_children(node: TreeNode) -> None:
    """Directories first, then files, each case-insensitive by name."""
    node.children.sort(key=lambda child: (not child.is_directory, child.name.lower()))
    for child in node.children:
        _sort_children(child)


def _aggregate(node: TreeNode) -> tuple[int, int, int]:
    """Post-order pass filling directory ``file_count``/``added``/``removed``."""
    if not node.is_directory:
        return node.file_count, node.added, node.removed

    files = added = removed = 0
    for child in node.children:
        child_files, child_added, child_removed = _aggregate(child)
        files += child_files
        added += child_added
        removed += child_removed
    node.file_count = files
    node.added = added
    node.removed = removed
    return files, added, removed


def build_tree(records: Iterable[FileDiffRecord]) -> TreeNode:
    """Build the synthetic root node with sorted children and aggregates."""
    root = TreeNode(name="", full_path="", is_directory=True)
    for record in sort_records(records):
        _insert_record(root, record)
    _sort_children(root)
    _aggregate(root)
    return root


def flatten_tree(root: TreeNode, collapsed: set[str] | frozenset[str]) -> list[DisplayRow]:
    """Pre-order flatten of ``root``'s descendants, skipping collapsed subtrees."""
    rows: list[DisplayRow] = []

    def walk(node: TreeNode, depth: int, ancestor_flags: tuple[bool, ...]) -> None:
        last_index = len(node.children) - 1
        for index, child in enumerate(node.children):
            is_last = index == last_index
            is_expanded = child.full_path not in collapsed
            rows.append(
                DisplayRow(
                    name=child.name,
                    full_path=child.full_path,
                    is_directory=child.is_directory,
                    depth=depth,
                    is_last_sibling=is_last,
                    ancestor_last_flags=ancestor_flags,
                    is_expanded=is_expanded,
                    file_count=child.file_count,
                    added=child.added,
                    removed=child.removed,
                    record=child.record,
                )
            )
            if child.is_directory and is_expanded:
                walk(child, depth + 1, ancestor_flags + (is_last,))

    walk(root, 0, ())
    return rows


def build_display_rows(
    records: Iterable[FileDiffRecord],
    collapsed: set[str] | frozenset[str] | None = None,
) -> list[DisplayRow]:
    """Build flattened display rows for ``records`` honoring ``collapsed`` directories."""
    return flatten_tree(build_tree(records), collapsed or frozenset())
