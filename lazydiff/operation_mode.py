"""Comparison modes describing what the viewer diffs.

Modes form a closed set of frozen dataclasses. Consumers dispatch with an
``isinstance`` chain that ends in ``unknown_mode`` so a new mode can never be
handled by accident.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import NoReturn, Union


@dataclass(frozen=True)
class WorkingTree:
    """Unstaged working-tree changes (``git diff``)."""


@dataclass(frozen=True)
class Staged:
    """Staged changes (``git diff --cached``)."""


@dataclass(frozen=True)
class AgainstTarget:
    """Working tree compared against one ref (``git diff <target>``)."""

    target: str


@dataclass(frozen=True)
class StatusView:
    """Status overview; shows working-tree changes."""


@dataclass(frozen=True)
class CompareTargets:
    """Two refs, files, or directories compared with each other."""

    first: str
    second: str


OperationMode = Union[WorkingTree, Staged, AgainstTarget, StatusView, CompareTargets]


def unknown_mode(mode: object) -> NoReturn:
    raise TypeError(f"unknown operation mode: {mode!r}")


def requires_git_repo(mode: OperationMode) -> bool:
    """Return whether ``mode`` can only run inside a git repository."""
    if isinstance(mode, (WorkingTree, Staged, AgainstTarget, StatusView)):
        return True
    if isinstance(mode, CompareTargets):
        return False
    unknown_mode(mode)


def describe_mode(mode: OperationMode) -> str:
    """Human-readable label shown in the status line."""
    if isinstance(mode, WorkingTree):
        return "Working directory changes"
    if isinstance(mode, Staged):
        return "Staged changes"
    if isinstance(mode, AgainstTarget):
        return f"Changes from {mode.target}"
    if isinstance(mode, StatusView):
        return "Git status with diffs"
    if isinstance(mode, CompareTargets):
        return f"Comparing {mode.first} with {mode.second}"
    unknown_mode(mode)


def mode_from_args(targets: Sequence[str], cached: bool = False, status: bool = False) -> OperationMode:
    """Resolve CLI flags and positional targets into an operation mode.

    Raises ``ValueError`` when more than two targets are given.
    """
    if len(targets) > 2:
        raise ValueError("Too many arguments provided")
    if cached:
        return Staged()
    if status:
        return StatusView()
    if not targets:
        return WorkingTree()
    if len(targets) == 1:
        return AgainstTarget(targets[0])
    return CompareTargets(targets[0], targets[1])
