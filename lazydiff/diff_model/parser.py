"""Unified-diff text parsing into per-file records.

Splits ``git diff`` style output on ``diff --git`` boundary markers and keeps
each file's block verbatim. Malformed headers never raise; optional fields are
simply left unset.
"""

from __future__ import annotations

from .types import DiffIdentity, FileDiffRecord

FILE_BOUNDARY_PREFIX = "diff --git"
INDEX_PREFIX = "index "
OLD_LABEL_PREFIX = "--- "
NEW_LABEL_PREFIX = "+++ "
HUNK_PREFIX = "@@"


def _iter_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping the empty tail after a final newline.

    ``str.splitlines`` is avoided because diff bodies may legitimately contain
    form feeds and other separators that are not line breaks for git.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def count_changes(text: str) -> tuple[int, int]:
    """Return ``(added, removed)`` line counts for one file's diff block.

    ``+++``/``---`` lines are file-label markers while they appear before the
    first hunk header and are not counted; inside hunks every ``+``/``-`` line
    counts.
    """
    added = 0
    removed = 0
    in_header = True
    for line in _iter_lines(text):
        if line.startswith(FILE_BOUNDARY_PREFIX):
            in_header = True
            continue
        if line.startswith(HUNK_PREFIX):
            in_header = False
            continue
        if line.startswith("+"):
            if in_header and line.startswith("+++"):
                continue
            added += 1
        elif line.startswith("-"):
            if in_header and line.startswith("---"):
                continue
            removed += 1
    return added, removed


def parse_boundary_path(line: str) -> str | None:
    """Extract the file path from a ``diff --git a/<path> b/<path>`` marker.

    Paths containing spaces are recovered when both sides name the same file.
    Returns ``None`` for markers too short to carry two paths.
    """
    tokens = line.split()
    if len(tokens) < 4:
        return None

    body = line[len(FILE_BOUNDARY_PREFIX):].strip()
    if body.startswith("a/"):
        # Unrenamed files repeat the same path on both sides: "a/<p> b/<p>".
        half = (len(body) - 1) // 2
        old_side = body[:half]
        new_side = body[half + 1:]
        if new_side.startswith("b/") and old_side[2:] == new_side[2:]:
            return old_side[2:]

    first = tokens[2]
    return first[2:] if first.startswith("a/") else first


def parse_index_hashes(line: str) -> tuple[str, str] | None:
    """Parse ``index <from>..<to> [mode]`` into its hash pair."""
    if not line.startswith(INDEX_PREFIX):
        return None
    parts = line.split()
    if len(parts) < 2:
        return None
    from_hash, sep, to_hash = parts[1].partition("..")
    if not sep:
        return None
    return from_hash, to_hash


class _OpenRecord:
    """Mutable accumulator for the record currently being parsed."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.lines: list[str] = []
        self.identity: DiffIdentity | None = None
        self.old_label = f"a/{path}"
        self.new_label = f"b/{path}"
        self.in_header = True

    def finalize(self) -> FileDiffRecord:
        content = "".join(self.lines)
        added, removed = count_changes(content)
        return FileDiffRecord(
            path=self.path,
            raw_content=content,
            added_count=added,
            removed_count=removed,
            identity=self.identity,
            old_label=self.old_label,
            new_label=self.new_label,
        )


def parse_diff(text: str) -> list[FileDiffRecord]:
    """Parse unified-diff text into ordered per-file records.

    Order follows appearance in ``text``. Input without boundary markers
    yields an empty list.
    """
    records: list[FileDiffRecord] = []
    current: _OpenRecord | None = None

    for line in _iter_lines(text):
        if line.startswith(FILE_BOUNDARY_PREFIX):
            if current is not None:
                records.append(current.finalize())
            path = parse_boundary_path(line)
            current = _OpenRecord(path) if path is not None else None
        elif current is not None:
            if line.startswith(HUNK_PREFIX):
                current.in_header = False
            elif current.in_header:
                if line.startswith(INDEX_PREFIX):
                    hashes = parse_index_hashes(line)
                    if hashes is not None:
                        current.identity = DiffIdentity(hashes[0], hashes[1], current.path)
                elif line.startswith(OLD_LABEL_PREFIX):
                    current.old_label = line[len(OLD_LABEL_PREFIX):]
                elif line.startswith(NEW_LABEL_PREFIX):
                    current.new_label = line[len(NEW_LABEL_PREFIX):]

        if current is not None:
            current.lines.append(line + "\n")

    if current is not None:
        records.append(current.finalize())
    return records
