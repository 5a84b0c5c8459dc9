"""Main interactive event loop for the terminal UI.

Polls for one key at a time, applies it through the key handler, keeps the
external tool in step with the terminal width, and redraws when dirty.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .ansi import strip_ansi
from .diff_model import FileDiffRecord
from .errors import LazyDiffError
from .highlight import DEFAULT_STYLE, colorize_diff
from .input import read_key
from .key_handlers import KeyContext, KeyHandler
from .navigation import NavigationController
from .render import (
    RenderContext,
    content_rows_for,
    render_frame,
    scroll_into_view,
    split_widths,
    tree_visible_rows,
)
from .terminal import TerminalController
from .tree_model import stats_label
from .ui_theme import DEFAULT_THEME, UITheme

logger = logging.getLogger(__name__)

POLL_TIMEOUT_MS = 120
DEFAULT_TERMINAL_SIZE = (80, 24)


@dataclass(frozen=True)
class RuntimeOptions:
    """Display settings fixed for the whole session."""

    mode_label: str = ""
    tool_label: str = ""
    theme: UITheme = DEFAULT_THEME
    no_color: bool = False
    style: str = DEFAULT_STYLE


@dataclass
class LoopState:
    tree_start: int = 0
    dirty: bool = True
    quit_requested: bool = False
    last_size: tuple[int, int] = (0, 0)
    content_source: str | None = None
    content_rendered: str = ""


def displayed_content(loop_state: LoopState, content: str, options: RuntimeOptions) -> str:
    """Return diff-pane text styled for display, cached per content string."""
    if content == loop_state.content_source:
        return loop_state.content_rendered
    if options.no_color:
        rendered = strip_ansi(content)
    else:
        rendered = colorize_diff(content, options.style)
    loop_state.content_source = content
    loop_state.content_rendered = rendered
    return rendered


def pane_title(controller: NavigationController) -> str:
    row = controller.selected_row
    if row is None:
        return ""
    if row.is_directory:
        return f"{row.full_path}/"
    return f"{row.full_path} {stats_label(row)}"


def build_render_context(
    controller: NavigationController,
    loop_state: LoopState,
    options: RuntimeOptions,
    width: int,
    height: int,
) -> RenderContext:
    state = controller.state
    return RenderContext(
        rows=controller.active_rows,
        selected_index=state.selected_index,
        tree_start=loop_state.tree_start,
        content=displayed_content(loop_state, state.content, options),
        vertical_scroll=state.vertical_scroll,
        horizontal_scroll=state.horizontal_scroll,
        width=width,
        height=height,
        checked_files=state.checked_files,
        title=pane_title(controller),
        mode_label=options.mode_label,
        tool_label=options.tool_label,
        search_active=state.search_active,
        search_typing=state.search_typing,
        search_query=state.search_query,
        status_message=state.status_message,
        theme=options.theme,
    )


def make_reload_action(
    controller: NavigationController,
    load_records: Callable[[], Sequence[FileDiffRecord]] | None,
) -> Callable[[], bool]:
    """Build the ``r`` key action that re-runs the comparison."""

    def reload_action() -> bool:
        if load_records is None:
            controller.set_status_message("Reload is unavailable for piped input")
            return True
        try:
            records = load_records()
        except LazyDiffError as exc:
            logger.warning("reload failed: %s", exc)
            controller.set_status_message(f"Reload failed: {exc}")
            return True
        except KeyboardInterrupt:
            controller.set_status_message("Reload cancelled")
            return True
        controller.reload(records)
        controller.set_status_message(f"Reloaded {len(records)} files")
        return True

    return reload_action


def run_main_loop(
    controller: NavigationController,
    terminal: TerminalController,
    stdin_fd: int,
    options: RuntimeOptions,
    load_records: Callable[[], Sequence[FileDiffRecord]] | None = None,
) -> None:
    """Run the interactive TUI loop until a quit action occurs."""
    loop_state = LoopState()

    def request_quit() -> None:
        loop_state.quit_requested = True

    handler = KeyHandler(
        KeyContext(
            controller=controller,
            reload=make_reload_action(controller, load_records),
            request_quit=request_quit,
        )
    )

    with terminal.raw_mode():
        while not loop_state.quit_requested:
            term = shutil.get_terminal_size(DEFAULT_TERMINAL_SIZE)
            size = (term.columns, term.lines)
            if size != loop_state.last_size:
                loop_state.last_size = size
                loop_state.dirty = True
            if controller.clear_expired_status():
                loop_state.dirty = True

            _, diff_width = split_widths(term.columns)
            try:
                if controller.refresh_for_width(diff_width, term.columns):
                    loop_state.dirty = True
            except KeyboardInterrupt:
                controller.set_status_message("Diff tool cancelled")
                loop_state.dirty = True

            if loop_state.dirty:
                controller.clamp_scroll(content_rows_for(term.lines), diff_width)
                context = build_render_context(controller, loop_state, options, term.columns, term.lines)
                visible = tree_visible_rows(context)
                start = scroll_into_view(loop_state.tree_start, controller.state.selected_index, visible)
                loop_state.tree_start = max(0, min(start, max(0, len(context.rows) - visible)))
                context.tree_start = loop_state.tree_start
                render_frame(context)
                loop_state.dirty = False

            try:
                key = read_key(stdin_fd, timeout_ms=POLL_TIMEOUT_MS)
            except KeyboardInterrupt:
                # SIGINT while idle is the Ctrl+C key.
                key = "CTRL_C"
            if not key:
                continue
            try:
                if handler.handle(key):
                    loop_state.dirty = True
            except KeyboardInterrupt:
                controller.set_status_message("Interrupted")
                loop_state.dirty = True