"""Tree node and display-row datatypes used across tree-pane modules."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..diff_model import FileDiffRecord


@dataclass
class TreeNode:
    """Owning directory/file node; directories aggregate their descendants."""

    name: str
    full_path: str
    is_directory: bool
    record: FileDiffRecord | None = None
    children: list[TreeNode] = field(default_factory=list)
    file_count: int = 0
    added: int = 0
    removed: int = 0


@dataclass(frozen=True)
class DisplayRow:
    """One rendered row in the tree pane.

    ``ancestor_last_flags`` holds one flag per ancestor column; a true flag
    means that ancestor was the last of its siblings, so no vertical connector
    is drawn in that column.
    """

    name: str
    full_path: str
    is_directory: bool
    depth: int
    is_last_sibling: bool
    ancestor_last_flags: tuple[bool, ...] = ()
    is_expanded: bool = True
    file_count: int = 0
    added: int = 0
    removed: int = 0
    record: FileDiffRecord | None = None
