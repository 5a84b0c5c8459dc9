"""Rendering engine for the split tree/diff terminal view.

Defines render context data and composes full ANSI frames: the file tree on
the left (with the search prompt above it while searching), the bordered diff
pane on the right, and a reverse-video status line at the bottom.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

from .ansi import clip_ansi_line, display_width, pad_ansi_line, slice_ansi_line
from .tree_model import DisplayRow, format_display_row
from .ui_theme import DEFAULT_THEME, UITheme

TREE_PANE_PERCENT = 20
MIN_TREE_WIDTH = 16
MIN_DIFF_WIDTH = 10
SEARCH_PROMPT = "/"
SEARCH_PLACEHOLDER = "type to filter files"
BROWSE_HINT = "│ / search  tab check  r reload  q quit"
SEARCH_TYPING_HINT = "│ enter confirm  esc cancel"
SEARCH_BROWSING_HINT = "│ / new search  q/esc clear"


def split_widths(width: int) -> tuple[int, int]:
    """Return ``(tree_width, diff_area_width)`` for a terminal ``width``."""
    tree_width = max(MIN_TREE_WIDTH, width * TREE_PANE_PERCENT // 100)
    tree_width = max(0, min(tree_width, width - MIN_DIFF_WIDTH))
    return tree_width, max(0, width - tree_width)


def content_rows_for(height: int) -> int:
    """Rows available above the status line."""
    return max(1, height - 1)


def scroll_into_view(start: int, selected: int, visible: int) -> int:
    """Return a list offset that keeps ``selected`` within ``visible`` rows."""
    if visible <= 0:
        return 0
    if selected < start:
        return selected
    if selected >= start + visible:
        return selected - visible + 1
    return max(0, start)


def selected_with_ansi(text: str) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text:
        return text

    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace("\033[0m", "\033[0;7m") + "\033[0m"


def build_status_line(left_text: str, width: int, right_text: str = BROWSE_HINT) -> str:
    usable = max(1, width - 1)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left = left_text[:left_limit]
    gap = " " * (usable - len(left) - len(right_text))
    return f"{left}{gap}{right_text}"


@dataclass
class RenderContext:
    rows: list[DisplayRow]
    selected_index: int
    tree_start: int
    content: str
    vertical_scroll: int
    horizontal_scroll: int
    width: int
    height: int
    checked_files: set[str] = field(default_factory=set)
    title: str = ""
    mode_label: str = ""
    tool_label: str = ""
    search_active: bool = False
    search_typing: bool = False
    search_query: str = ""
    status_message: str = ""
    theme: UITheme = DEFAULT_THEME


def tree_visible_rows(context: RenderContext) -> int:
    rows = content_rows_for(context.height)
    return max(0, rows - 1) if context.search_active else rows


def _search_prompt_line(context: RenderContext, width: int) -> str:
    theme = context.theme
    if context.search_query:
        text = f"{theme.search_query}{SEARCH_PROMPT}{context.search_query}{theme.reset}"
    elif context.search_typing:
        text = f"{theme.search_query}{SEARCH_PROMPT}{theme.reset}{theme.search_hint}{SEARCH_PLACEHOLDER}{theme.reset}"
    else:
        text = f"{theme.search_query}{SEARCH_PROMPT}{theme.reset}"
    if context.search_typing:
        text += "\033[5m_\033[0m"
    return pad_ansi_line(text, width)


def _tree_lines(context: RenderContext, width: int) -> list[str]:
    rows_available = content_rows_for(context.height)
    lines: list[str] = []
    if context.search_active:
        lines.append(_search_prompt_line(context, width))

    visible = tree_visible_rows(context)
    start = context.tree_start
    for index in range(start, start + visible):
        if index >= len(context.rows):
            lines.append(" " * width)
            continue
        row = context.rows[index]
        checked = not row.is_directory and row.full_path in context.checked_files
        text = pad_ansi_line(format_display_row(row, width, checked, context.theme), width)
        if index == context.selected_index:
            text = selected_with_ansi(text)
        lines.append(text)
    return lines[:rows_available]


def _diff_box_lines(context: RenderContext, width: int) -> list[str]:
    rows_available = content_rows_for(context.height)
    theme = context.theme
    if width < 2 or rows_available < 2:
        return [" " * width for _ in range(rows_available)]

    inner_width = width - 2
    inner_height = rows_available - 2
    border = theme.divider
    reset = theme.reset

    title = clip_ansi_line(f" {context.title} ", inner_width) if context.title else ""
    top = f"{border}┌{reset}{theme.status_path}{title}{reset}{border}"
    top += "─" * max(0, inner_width - display_width(title)) + f"┐{reset}"
    lines = [top]

    content_lines = context.content.splitlines()
    for offset in range(inner_height):
        index = context.vertical_scroll + offset
        if index < len(content_lines):
            text = slice_ansi_line(content_lines[index], context.horizontal_scroll, inner_width)
        else:
            text = ""
        lines.append(f"{border}│{reset}{pad_ansi_line(text, inner_width)}{reset}{border}│{reset}")

    lines.append(f"{border}└" + "─" * inner_width + f"┘{reset}")
    return lines


def _status_left(context: RenderContext) -> str:
    parts = [part for part in (context.mode_label, context.tool_label) if part]
    total = len(context.rows)
    position = context.selected_index + 1 if total else 0
    parts.append(f"{position}/{total}")
    if context.checked_files:
        parts.append(f"checked {len(context.checked_files)}")
    return " " + " | ".join(parts)


def _status_hint(context: RenderContext) -> str:
    if context.search_typing:
        return SEARCH_TYPING_HINT
    if context.search_active:
        return SEARCH_BROWSING_HINT
    return BROWSE_HINT


def build_frame(context: RenderContext) -> str:
    """Compose one full-screen frame as a single ANSI string."""
    tree_width, diff_width = split_widths(context.width)
    tree_lines = _tree_lines(context, tree_width)
    diff_lines = _diff_box_lines(context, diff_width)

    out: list[str] = ["\033[H\033[J"]
    for row in range(content_rows_for(context.height)):
        left = tree_lines[row] if row < len(tree_lines) else " " * tree_width
        right = diff_lines[row] if row < len(diff_lines) else ""
        out.append(left)
        out.append(right)
        out.append("\033[0m\r\n")

    if context.status_message:
        theme = context.theme
        message = build_status_line(f" {context.status_message}", context.width, _status_hint(context))
        out.append(f"{theme.warning}\033[7m{message}\033[0m")
    else:
        status = build_status_line(_status_left(context), context.width, _status_hint(context))
        out.append("\033[7m")
        out.append(status)
        out.append("\033[0m")

    return "".join(out)


def render_frame(context: RenderContext) -> None:
    os.write(sys.stdout.fileno(), build_frame(context).encode("utf-8", errors="replace"))
