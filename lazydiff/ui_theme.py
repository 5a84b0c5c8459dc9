"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the tree pane, status line, and chrome. Diff body
colors come from the external tool or from Pygments, not from the theme.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    divider: str
    reverse: str
    reset: str
    dim: str
    tree_line: str
    tree_marker: str
    tree_dir: str
    tree_file_python: str
    tree_file_default: str
    tree_checkbox: str
    status_added: str
    status_removed: str
    status_path: str
    search_query: str
    search_hint: str
    warning: str


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reverse="\033[7m",
    reset="\033[0m",
    dim="\033[2m",
    tree_line="\033[38;5;240m",
    tree_marker="\033[38;5;44m",
    tree_dir="\033[1;34m",
    tree_file_python="\033[38;5;110m",
    tree_file_default="\033[38;5;252m",
    tree_checkbox="\033[38;5;250m",
    status_added="\033[32m",
    status_removed="\033[31m",
    status_path="\033[1;38;5;81m",
    search_query="\033[1;38;5;81m",
    search_hint="\033[2;38;5;250m",
    warning="\033[38;5;214m",
)

LIGHT_THEME = UITheme(
    name="light",
    divider="\033[2;38;5;245m",
    reverse="\033[7m",
    reset="\033[0m",
    dim="\033[2m",
    tree_line="\033[38;5;250m",
    tree_marker="\033[38;5;25m",
    tree_dir="\033[1;38;5;25m",
    tree_file_python="\033[38;5;24m",
    tree_file_default="\033[38;5;236m",
    tree_checkbox="\033[38;5;240m",
    status_added="\033[38;5;28m",
    status_removed="\033[38;5;124m",
    status_path="\033[1;38;5;25m",
    search_query="\033[1;38;5;25m",
    search_hint="\033[2;38;5;244m",
    warning="\033[38;5;166m",
)

# Used for --no-color; only the renderer's reverse-video selection remains.
PLAIN_THEME = UITheme(
    name="plain",
    divider="",
    reverse="\033[7m",
    reset="",
    dim="",
    tree_line="",
    tree_marker="",
    tree_dir="",
    tree_file_python="",
    tree_file_default="",
    tree_checkbox="",
    status_added="",
    status_removed="",
    status_path="",
    search_query="",
    search_hint="",
    warning="",
)

_THEMES = {theme.name: theme for theme in (DEFAULT_THEME, LIGHT_THEME, PLAIN_THEME)}


def available_theme_names() -> list[str]:
    return sorted(_THEMES)


def resolve_theme(name: str | None) -> UITheme:
    """Return the theme named ``name`` or the default theme when unknown."""
    if not name:
        return DEFAULT_THEME
    return _THEMES.get(name.strip().lower(), DEFAULT_THEME)
