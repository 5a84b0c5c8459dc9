"""Formatting helpers for tree-pane rows."""

from __future__ import annotations

from posixpath import splitext

from ..ansi import display_width
from ..ui_theme import DEFAULT_THEME, UITheme
from .types import DisplayRow

BRANCH_GLYPH = "├ "
LAST_BRANCH_GLYPH = "╰ "
VERTICAL_GLYPH = "│ "
BLANK_GLYPH = "  "
CHECKED_BOX = "☑"
UNCHECKED_BOX = "☐"


def file_color_for(name: str, theme: UITheme | None = None) -> str:
    """Return ANSI color used for file names based on suffix."""
    active_theme = theme or DEFAULT_THEME
    suffix = splitext(name)[1].lower()
    if suffix in {".py", ".pyi", ".pyw"}:
        return active_theme.tree_file_python
    return active_theme.tree_file_default


def tree_prefix(row: DisplayRow) -> str:
    """Build connector glyphs for ``row``.

    Each ancestor column shows a vertical line unless that ancestor was the
    last of its siblings; nested rows end with a branch connector.
    """
    parts: list[str] = []
    for column in range(row.depth):
        if column < len(row.ancestor_last_flags) and not row.ancestor_last_flags[column]:
            parts.append(VERTICAL_GLYPH)
        else:
            parts.append(BLANK_GLYPH)
    if row.depth > 0:
        parts.append(LAST_BRANCH_GLYPH if row.is_last_sibling else BRANCH_GLYPH)
    return "".join(parts)


def stats_label(row: DisplayRow) -> str:
    """Return the stats suffix for a row.

    Files always show ``+added -removed``; directories only summarize their
    subtree while collapsed.
    """
    if row.is_directory:
        if row.is_expanded or row.file_count <= 0:
            return ""
        noun = "file" if row.file_count == 1 else "files"
        return f"{row.file_count} {noun} +{row.added} -{row.removed}"
    return f"+{row.added} -{row.removed}"


def _color_stats(label: str, theme: UITheme) -> str:
    colored: list[str] = []
    for part in label.split(" "):
        if part.startswith("+"):
            colored.append(f"{theme.status_added}{part}{theme.reset}")
        elif part.startswith("-"):
            colored.append(f"{theme.status_removed}{part}{theme.reset}")
        else:
            colored.append(part)
    return " ".join(colored)


def format_display_row(
    row: DisplayRow,
    width: int,
    checked: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Render one display row as ANSI text fitting ``width`` columns.

    Names are truncated with ``...`` when the stats suffix would not fit;
    stats are right-aligned and dropped entirely when there is no room.
    """
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset
    prefix = tree_prefix(row)

    if row.is_directory:
        marker = "▾ " if row.is_expanded else "▸ "
        lead = f"{active_theme.tree_line}{prefix}{reset}{active_theme.tree_marker}{marker}{reset}"
        name_color = active_theme.tree_dir
        name = f"{row.name}/"
    else:
        box = CHECKED_BOX if checked else UNCHECKED_BOX
        lead = f"{active_theme.tree_line}{prefix}{reset}{active_theme.tree_checkbox}{box} {reset}"
        name_color = file_color_for(row.name, active_theme)
        if checked:
            name_color = active_theme.dim + name_color
        name = row.name

    lead_width = display_width(lead)
    stats = stats_label(row)
    stats_width = len(stats) + 1 if stats else 0
    available = max(0, width - lead_width - stats_width)
    if len(name) > available and available > 3:
        name = name[: available - 3] + "..."
    elif len(name) > available:
        name = name[:available]
        stats = ""

    text = f"{lead}{name_color}{name}{reset}"
    if stats:
        padding = max(1, width - lead_width - len(name) - len(stats))
        text += " " * padding + _color_stats(stats, active_theme)
    return text
