"""Diff-pane colorizing.

Raw diff text gets Pygments ``DiffLexer`` colors in the configured style.
Text that already carries ANSI styling (pager or external-diff output) is
shown as-is. Pygments is imported on first use so ``--nopager`` and the
empty-diff exit never pay for it.
"""

from __future__ import annotations

from functools import lru_cache

DEFAULT_STYLE = "monokai"

_KEPT_CONTROLS = "\n\r\t"
_CONTROL_ESCAPES = {
    code: f"\\x{code:02x}"
    for code in [*range(0x20), 0x7F, *range(0x80, 0xA0)]
    if chr(code) not in _KEPT_CONTROLS
}


def has_ansi(text: str) -> bool:
    return "\x1b[" in text


def sanitize_terminal_text(text: str) -> str:
    """Show control bytes as ``\\xNN`` so file content cannot move the cursor or ring the bell."""
    return text.translate(_CONTROL_ESCAPES)


@lru_cache(maxsize=1)
def _diff_lexer():
    from pygments.lexers import DiffLexer

    return DiffLexer(stripnl=False)


@lru_cache(maxsize=None)
def _formatter(style: str):
    from pygments.formatters import Terminal256Formatter
    from pygments.styles import get_style_by_name
    from pygments.util import ClassNotFound

    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = DEFAULT_STYLE
    return Terminal256Formatter(style=style)


def colorize_diff(text: str, style: str = DEFAULT_STYLE) -> str:
    if not text or has_ansi(text):
        return text
    from pygments import highlight

    return highlight(sanitize_terminal_text(text), _diff_lexer(), _formatter(style))
