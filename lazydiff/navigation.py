"""Navigation and search state machine for the file tree.

Owns which display rows are active, which one is selected, and what the diff
pane shows for it. Every transition returns whether it changed anything so the
control loop knows when to redraw.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .ansi import display_width
from .diff_model import DiffIdentity, FileDiffRecord
from .errors import LazyDiffError
from .external_tool import ExternalToolInvoker
from .tree_model import DisplayRow, build_display_rows, filter_rows

logger = logging.getLogger(__name__)

BROWSING = "browsing"
SEARCH_TYPING = "search_typing"
SEARCH_BROWSING = "search_browsing"

WIDTH_REFRESH_THRESHOLD = 5
STATUS_MESSAGE_SECONDS = 3.0
BORDER_CELLS = 2


def directory_placeholder(path: str) -> str:
    return f"Directory: {path}"


@dataclass
class NavigationState:
    selected_index: int = 0
    vertical_scroll: int = 0
    horizontal_scroll: int = 0
    collapsed_directories: set[str] = field(default_factory=set)
    checked_files: set[str] = field(default_factory=set)
    search_query: str = ""
    search_active: bool = False
    search_typing: bool = False
    content: str = ""
    status_message: str = ""
    status_message_until: float = 0.0
    last_render_width: int = 0
    last_terminal_width: int = 0

    @property
    def mode(self) -> str:
        if not self.search_active:
            return BROWSING
        return SEARCH_TYPING if self.search_typing else SEARCH_BROWSING


class NavigationController:
    """Drive selection, search, collapse, and diff-pane content.

    Collaborators are optional. ``content_source`` returns fresh diff text for
    a file path and may raise ``LazyDiffError``; ``invoker`` post-processes
    that text; ``save_check_state`` persists a checked mark for an identity.
    """

    def __init__(
        self,
        records: Sequence[FileDiffRecord],
        content_source: Callable[[str], str] | None = None,
        invoker: ExternalToolInvoker | None = None,
        save_check_state: Callable[[DiffIdentity, bool], None] | None = None,
        checked_files: set[str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.records = list(records)
        self.content_source = content_source
        self.invoker = invoker
        self.save_check_state = save_check_state
        self.clock = clock
        self.state = NavigationState(checked_files=set(checked_files or ()))
        self.rows: list[DisplayRow] = build_display_rows(self.records, self.state.collapsed_directories)
        self.filtered_rows: list[DisplayRow] = list(self.rows)
        self.refresh_content()

    # Views

    @property
    def mode(self) -> str:
        return self.state.mode

    @property
    def active_rows(self) -> list[DisplayRow]:
        return self.filtered_rows if self.state.search_active else self.rows

    @property
    def selected_row(self) -> DisplayRow | None:
        rows = self.active_rows
        if 0 <= self.state.selected_index < len(rows):
            return rows[self.state.selected_index]
        return None

    def is_checked(self, row: DisplayRow) -> bool:
        return not row.is_directory and row.full_path in self.state.checked_files

    # Status messages

    def set_status_message(self, message: str) -> None:
        self.state.status_message = message
        self.state.status_message_until = self.clock() + STATUS_MESSAGE_SECONDS

    def clear_expired_status(self) -> bool:
        state = self.state
        if state.status_message and self.clock() >= state.status_message_until:
            state.status_message = ""
            state.status_message_until = 0.0
            return True
        return False

    def _warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.set_status_message(message)

    # Diff content

    def _base_content(self, row: DisplayRow) -> str:
        record = row.record
        stored = record.raw_content if record is not None else ""
        if self.content_source is None:
            return stored
        try:
            fresh = self.content_source(row.full_path)
        except LazyDiffError as exc:
            logger.info("using stored diff for %s: %s", row.full_path, exc)
            return stored
        except KeyboardInterrupt:
            logger.info("diff fetch for %s cancelled", row.full_path)
            return stored
        return fresh or stored

    def _transform(self, text: str, file_path: str, fallback: str) -> str:
        """Run the external tool over ``text``; on failure keep ``fallback``."""
        invoker = self.invoker
        state = self.state
        if invoker is None or not invoker.enabled or state.last_render_width <= 0:
            return fallback
        try:
            return invoker.transform(text, state.last_render_width, state.last_terminal_width, file_path)
        except LazyDiffError as exc:
            self._warn(f"Diff tool failed: {exc}")
        except KeyboardInterrupt:
            self._warn("Diff tool cancelled")
        return fallback

    def refresh_content(self) -> None:
        """Recompute the diff pane text for the selected row and reset scroll."""
        state = self.state
        row = self.selected_row
        if row is None:
            state.content = ""
        elif row.is_directory:
            state.content = directory_placeholder(row.full_path)
        else:
            base = self._base_content(row)
            state.content = self._transform(base, row.full_path, base)
        state.vertical_scroll = 0
        state.horizontal_scroll = 0

    def refresh_for_width(self, area_width: int, terminal_width: int) -> bool:
        """Re-run the external tool when the diff area width changed enough.

        The first call always runs. Afterwards only a change larger than
        ``WIDTH_REFRESH_THRESHOLD`` columns triggers re-execution.
        """
        state = self.state
        if state.last_render_width and abs(area_width - state.last_render_width) <= WIDTH_REFRESH_THRESHOLD:
            return False
        state.last_render_width = area_width
        state.last_terminal_width = terminal_width
        if self.invoker is None or not self.invoker.enabled:
            return False
        row = self.selected_row
        if row is None or row.is_directory:
            return False
        state.content = self._transform(self._base_content(row), row.full_path, state.content)
        return True

    def clamp_scroll(self, viewport_height: int, viewport_width: int) -> None:
        """Clamp scroll offsets so the viewport never runs past the content."""
        state = self.state
        lines = state.content.splitlines()
        widest = max((display_width(line) for line in lines), default=0)
        max_vertical = max(0, len(lines) - max(0, viewport_height - BORDER_CELLS))
        max_horizontal = max(0, widest - max(0, viewport_width - BORDER_CELLS))
        state.vertical_scroll = min(state.vertical_scroll, max_vertical)
        state.horizontal_scroll = min(state.horizontal_scroll, max_horizontal)

    # Search

    def _apply_filter(self) -> None:
        self.filtered_rows = filter_rows(self.rows, self.state.search_query)
        self.state.selected_index = 0
        self.refresh_content()

    def enter_search(self) -> bool:
        state = self.state
        if state.mode == SEARCH_TYPING:
            return False
        state.search_active = True
        state.search_typing = True
        state.search_query = ""
        self._apply_filter()
        return True

    def type_char(self, ch: str) -> bool:
        if self.state.mode != SEARCH_TYPING or not ch:
            return False
        self.state.search_query += ch
        self._apply_filter()
        return True

    def backspace(self) -> bool:
        state = self.state
        if state.mode != SEARCH_TYPING or not state.search_query:
            return False
        state.search_query = state.search_query[:-1]
        self._apply_filter()
        return True

    def confirm_search(self) -> bool:
        if self.state.mode != SEARCH_TYPING:
            return False
        self.state.search_typing = False
        return True

    def exit_search(self) -> bool:
        state = self.state
        if not state.search_active:
            return False
        state.search_active = False
        state.search_typing = False
        state.search_query = ""
        self.filtered_rows = list(self.rows)
        state.selected_index = 0
        self.refresh_content()
        return True

    # Tree shape

    def _rebuild_rows(self) -> None:
        self.rows = build_display_rows(self.records, self.state.collapsed_directories)
        if self.state.search_active:
            self.filtered_rows = filter_rows(self.rows, self.state.search_query)
        else:
            self.filtered_rows = list(self.rows)

    def _clamp_selection(self) -> None:
        count = len(self.active_rows)
        if self.state.selected_index >= count:
            self.state.selected_index = max(0, count - 1)

    def toggle_directory(self) -> bool:
        state = self.state
        row = self.selected_row
        if state.mode != BROWSING or row is None or not row.is_directory:
            return False
        if row.full_path in state.collapsed_directories:
            state.collapsed_directories.discard(row.full_path)
        else:
            state.collapsed_directories.add(row.full_path)
        self._rebuild_rows()
        self._clamp_selection()
        selected = self.selected_row
        if selected is None or selected.full_path != row.full_path:
            self.refresh_content()
        return True

    def reload(self, records: Sequence[FileDiffRecord]) -> None:
        """Replace the record set, keeping collapse and checked marks."""
        previous = self.selected_row
        self.records = list(records)
        self._rebuild_rows()
        if previous is not None:
            for index, row in enumerate(self.active_rows):
                if row.full_path == previous.full_path:
                    self.state.selected_index = index
                    break
        self._clamp_selection()
        self.refresh_content()

    def activate_selection(self) -> bool:
        """Enter key: toggle a directory while browsing, otherwise refresh."""
        row = self.selected_row
        if row is None:
            return False
        if row.is_directory and self.state.mode == BROWSING:
            return self.toggle_directory()
        self.refresh_content()
        return True

    # Selection

    def _select(self, index: int) -> bool:
        if index == self.state.selected_index:
            return False
        self.state.selected_index = index
        self.refresh_content()
        return True

    def select_next(self) -> bool:
        count = len(self.active_rows)
        if count == 0:
            return False
        return self._select(min(self.state.selected_index + 1, count - 1))

    def select_previous(self) -> bool:
        if not self.active_rows:
            return False
        return self._select(max(self.state.selected_index - 1, 0))

    def jump_top(self) -> bool:
        if not self.active_rows:
            return False
        return self._select(0)

    def jump_bottom(self) -> bool:
        count = len(self.active_rows)
        if count == 0:
            return False
        return self._select(count - 1)

    # Scrolling; the upper bound is applied by ``clamp_scroll`` at render time.

    def scroll_up(self, amount: int) -> bool:
        before = self.state.vertical_scroll
        self.state.vertical_scroll = max(0, before - amount)
        return self.state.vertical_scroll != before

    def scroll_down(self, amount: int) -> bool:
        self.state.vertical_scroll += max(0, amount)
        return amount > 0

    def scroll_left(self, amount: int) -> bool:
        before = self.state.horizontal_scroll
        self.state.horizontal_scroll = max(0, before - amount)
        return self.state.horizontal_scroll != before

    def scroll_right(self, amount: int) -> bool:
        self.state.horizontal_scroll += max(0, amount)
        return amount > 0

    # Check marks

    def toggle_checked(self) -> bool:
        state = self.state
        row = self.selected_row
        if state.mode == SEARCH_TYPING or row is None or row.is_directory:
            return False
        now_checked = row.full_path not in state.checked_files
        if now_checked:
            state.checked_files.add(row.full_path)
        else:
            state.checked_files.discard(row.full_path)

        identity = row.record.identity if row.record is not None else None
        if identity is not None and self.save_check_state is not None:
            try:
                self.save_check_state(identity, now_checked)
            except LazyDiffError as exc:
                logger.warning("could not save check state for %s: %s", row.full_path, exc)
        return True
