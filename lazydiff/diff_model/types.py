"""Per-file diff record datatypes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiffIdentity:
    """Blob-hash pair plus path correlating a file diff with persisted check state."""

    from_hash: str
    to_hash: str
    file_path: str


@dataclass(frozen=True)
class FileDiffRecord:
    """One file's verbatim diff block with its change counts.

    Counts are derived from ``raw_content`` by the parser and never set
    independently; use ``FileDiffRecord.from_content`` to build one by hand.
    """

    path: str
    raw_content: str
    added_count: int = 0
    removed_count: int = 0
    identity: DiffIdentity | None = None
    old_label: str | None = None
    new_label: str | None = None

    @classmethod
    def from_content(
        cls,
        path: str,
        raw_content: str,
        identity: DiffIdentity | None = None,
        old_label: str | None = None,
        new_label: str | None = None,
    ) -> FileDiffRecord:
        """Build a record whose counts are computed from ``raw_content``."""
        from .parser import count_changes

        added, removed = count_changes(raw_content)
        return cls(
            path=path,
            raw_content=raw_content,
            added_count=added,
            removed_count=removed,
            identity=identity,
            old_label=old_label if old_label is not None else f"a/{path}",
            new_label=new_label if new_label is not None else f"b/{path}",
        )
