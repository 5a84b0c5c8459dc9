"""Exception types shared across lazydiff modules.

Every recoverable failure derives from ``LazyDiffError`` so the runtime can
surface it as a status warning without crashing the viewer.
"""

from __future__ import annotations


class LazyDiffError(Exception):
    """Base class for all lazydiff failures."""


class ExternalToolError(LazyDiffError):
    """A configured pager or external diff command could not produce output."""


class ComparisonUnavailable(LazyDiffError):
    """The selected comparison cannot be delegated to the external diff strategy."""


class DiffSourceError(LazyDiffError):
    """``git diff`` or ``diff -u`` failed to produce diff text."""


class PersistenceError(LazyDiffError):
    """Reading or writing check-state files failed."""


class ConfigError(LazyDiffError):
    """An explicitly requested config file is missing or malformed."""
