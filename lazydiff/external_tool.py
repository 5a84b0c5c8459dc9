"""External formatting tools for the diff pane.

Owns template placeholder substitution and the two strategies that turn a
file's raw diff into styled text: piping it through a pager command, or
asking git to run an external diff program for the selected file.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from .errors import ComparisonUnavailable, ExternalToolError
from .operation_mode import (
    AgainstTarget,
    CompareTargets,
    OperationMode,
    Staged,
    StatusView,
    WorkingTree,
    unknown_mode,
)

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_TYPE = "xterm-256color"
DEFAULT_TERMINAL_LINES = "50"
DEFAULT_COLOR_ARG = "always"
COLUMN_GUTTER = 6
BORDER_COLUMNS = 2

_PLACEHOLDER_RE = re.compile(r"\{\{\.?(width|columnWidth|diffAreaWidth|diffColumnWidth)\}\}")


@dataclass(frozen=True)
class TemplateValues:
    width: int
    column_width: int
    diff_area_width: int
    diff_column_width: int

    def as_mapping(self) -> dict[str, int]:
        return {
            "width": self.width,
            "columnWidth": self.column_width,
            "diffAreaWidth": self.diff_area_width,
            "diffColumnWidth": self.diff_column_width,
        }


def compute_template_values(area_width: int, terminal_width: int) -> TemplateValues:
    """Derive placeholder values from the diff-area and terminal widths.

    Subtractions saturate at zero so tiny terminals never produce negative
    widths.
    """
    diff_area_width = max(0, area_width - BORDER_COLUMNS)
    return TemplateValues(
        width=terminal_width,
        column_width=max(0, terminal_width // 2 - COLUMN_GUTTER),
        diff_area_width=diff_area_width,
        diff_column_width=max(0, diff_area_width // 2 - COLUMN_GUTTER),
    )


def apply_template_substitutions(command: str, values: TemplateValues) -> str:
    """Replace ``{{name}}`` and ``{{.name}}`` placeholders in ``command``.

    Unknown placeholders are left untouched.
    """
    mapping = values.as_mapping()
    return _PLACEHOLDER_RE.sub(lambda match: str(mapping[match.group(1)]), command)


@dataclass(frozen=True)
class DefaultDiff:
    """No external tool; the raw diff is shown as-is."""


@dataclass(frozen=True)
class PagerCommand:
    command: str


@dataclass(frozen=True)
class ExternalDiffCommand:
    command: str
    color_arg: str = DEFAULT_COLOR_ARG


DiffCommand = Union[DefaultDiff, PagerCommand, ExternalDiffCommand]


def tool_environment(terminal_width: int) -> dict[str, str]:
    env = dict(os.environ)
    env["TERM"] = DEFAULT_TERMINAL_TYPE
    env["COLUMNS"] = str(terminal_width)
    env["LINES"] = DEFAULT_TERMINAL_LINES
    return env


def _split_command(command: str) -> list[str]:
    try:
        argv = shlex.split(command)
    except ValueError as exc:
        raise ExternalToolError(f"Invalid command {command!r}: {exc}") from exc
    if not argv:
        raise ExternalToolError("Empty external command")
    return argv


def _decode(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExternalToolError(f"{what} produced invalid UTF-8 output") from exc


def run_pager(command: str, diff_text: str, values: TemplateValues) -> str:
    """Pipe ``diff_text`` through a pager command and return its stdout.

    ``communicate`` feeds stdin while draining stdout, so large diffs cannot
    deadlock on a full pipe.
    """
    argv = _split_command(apply_template_substitutions(command, values))
    logger.debug("running pager %s", argv)
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=tool_environment(values.width),
        )
    except OSError as exc:
        raise ExternalToolError(f"Failed to spawn pager {argv[0]!r}: {exc}") from exc

    try:
        stdout, stderr = proc.communicate(diff_text.encode("utf-8"))
    except KeyboardInterrupt:
        proc.kill()
        proc.wait()
        raise
    if proc.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise ExternalToolError(f"Pager {argv[0]!r} exited with status {proc.returncode}: {message}")
    return _decode(stdout, "Pager")


def external_diff_mode_args(
    mode: OperationMode,
    is_git_ref: Callable[[str], bool] | None = None,
) -> list[str]:
    """Return the ``git diff`` arguments selecting ``mode``'s comparison.

    Raises ``ComparisonUnavailable`` for modes git cannot hand to an external
    diff program.
    """
    if isinstance(mode, WorkingTree):
        return []
    if isinstance(mode, Staged):
        return ["--cached"]
    if isinstance(mode, AgainstTarget):
        return [mode.target]
    if isinstance(mode, StatusView):
        raise ComparisonUnavailable("External diff is not supported in status mode")
    if isinstance(mode, CompareTargets):
        if is_git_ref is not None and not (is_git_ref(mode.first) and is_git_ref(mode.second)):
            raise ComparisonUnavailable("External diff is not supported for file comparisons")
        return [mode.first, mode.second]
    unknown_mode(mode)


def run_external_diff(
    command: ExternalDiffCommand,
    mode: OperationMode,
    file_path: str | None,
    values: TemplateValues,
    is_git_ref: Callable[[str], bool] | None = None,
    cwd: str | None = None,
) -> str:
    """Ask git to render ``file_path`` through an external diff program."""
    if not file_path:
        raise ComparisonUnavailable("No file selected for external diff")
    external = apply_template_substitutions(command.command, values)
    argv = [
        "git",
        "-c",
        f"diff.external={external}",
        "-c",
        "diff.noprefix=false",
        "diff",
        "--ext-diff",
        f"--color={command.color_arg}",
        *external_diff_mode_args(mode, is_git_ref),
        "--",
        file_path,
    ]
    logger.debug("running external diff %s", argv)
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=tool_environment(values.width),
            check=False,
        )
    except OSError as exc:
        raise ExternalToolError(f"Failed to execute git: {exc}") from exc
    if proc.returncode != 0:
        message = proc.stderr.decode("utf-8", errors="replace").strip()
        raise ExternalToolError(f"External diff failed: {message}")
    return _decode(proc.stdout, "External diff")


class ExternalToolInvoker:
    """Apply the configured diff command to one file's diff text.

    ``transform`` is the identity for ``DefaultDiff``. Failures surface as
    ``ExternalToolError`` or ``ComparisonUnavailable``; the caller decides how
    to degrade.
    """

    def __init__(
        self,
        command: DiffCommand,
        mode: OperationMode,
        is_git_ref: Callable[[str], bool] | None = None,
        cwd: str | None = None,
    ) -> None:
        self.command = command
        self.mode = mode
        self.is_git_ref = is_git_ref
        self.cwd = cwd

    @property
    def enabled(self) -> bool:
        return not isinstance(self.command, DefaultDiff)

    def transform(
        self,
        diff_text: str,
        area_width: int,
        terminal_width: int,
        file_path: str | None = None,
    ) -> str:
        command = self.command
        if isinstance(command, DefaultDiff):
            return diff_text
        values = compute_template_values(area_width, terminal_width)
        if isinstance(command, PagerCommand):
            return run_pager(command.command, diff_text, values)
        if isinstance(command, ExternalDiffCommand):
            return run_external_diff(command, self.mode, file_path, values, self.is_git_ref, self.cwd)
        raise TypeError(f"unknown diff command: {command!r}")
