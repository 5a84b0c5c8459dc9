"""Comparison source backed by ``git diff`` and plain ``diff -u``.

Produces the raw unified-diff text the viewer parses, both for the whole
comparison and for one file when the selection changes. Plain ``diff -u`` output
is rewritten with ``diff --git`` boundary markers so it parses like git output.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path

from .diff_model import parse_diff
from .errors import DiffSourceError
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

PLAIN_DIFF_TROUBLE_EXIT_CODE = 2
_HUNK_RE = re.compile(r"^@@ -\d+(?:,(\d+))? \+\d+(?:,(\d+))? @@")


def _decode_output(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DiffSourceError(f"{what} output is not valid UTF-8") from exc


def _label_path(label: str) -> str:
    """Strip the timestamp ``diff -u`` appends to ``---``/``+++`` labels."""
    return label.split("\t", 1)[0]


def _relative_label(path: str, root: str) -> str:
    root_path = Path(root)
    if root_path.is_dir():
        try:
            return Path(path).relative_to(root_path).as_posix()
        except ValueError:
            return Path(path).as_posix()
    return root_path.name


def add_git_boundaries(plain_diff: str, first: str, second: str) -> str:
    """Insert ``diff --git`` markers in front of each ``diff -u`` file section.

    Hunk line counts are tracked so removed/added lines that happen to start
    with ``--``/``++`` are never mistaken for file labels.
    """
    out: list[str] = []
    lines = plain_diff.split("\n")
    old_left = new_left = 0
    index = 0
    while index < len(lines):
        line = lines[index]
        in_hunk = old_left > 0 or new_left > 0
        if in_hunk:
            if line.startswith("-"):
                old_left -= 1
            elif line.startswith("+"):
                new_left -= 1
            elif line.startswith(" ") or line == "":
                old_left -= 1
                new_left -= 1
            out.append(line)
            index += 1
            continue

        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        if line.startswith("--- ") and next_line.startswith("+++ "):
            old_path = _label_path(line[4:])
            new_path = _label_path(next_line[4:])
            if new_path == "/dev/null":
                path = _relative_label(old_path, first)
            else:
                path = _relative_label(new_path, second)
            out.append(f"diff --git a/{path} b/{path}")
            out.append(f"--- a/{path}" if old_path != "/dev/null" else "--- /dev/null")
            out.append(f"+++ b/{path}" if new_path != "/dev/null" else "+++ /dev/null")
            index += 2
            continue

        match = _HUNK_RE.match(line)
        if match:
            old_left = int(match.group(1) or "1")
            new_left = int(match.group(2) or "1")
            out.append(line)
            index += 1
            continue

        # "diff -u -r -N a b" section headers carry no information git output lacks.
        if not line.startswith("diff "):
            out.append(line)
        index += 1
    return "\n".join(out)


class GitDiffSource:
    """Run the external comparison for an operation mode.

    Git failures of any kind raise ``DiffSourceError``. The plain ``diff -u``
    fallback for non-ref targets treats only exit code 2 as failure, since
    exit code 1 just means the inputs differ.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    @staticmethod
    def is_git_repo(cwd: Path | None = None) -> bool:
        try:
            proc = subprocess.run(
                ["git", "rev-parse", "--git-dir"],
                cwd=cwd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError:
            return False
        return proc.returncode == 0

    def _run_git(self, args: list[str]) -> str:
        command = ["git", *args]
        logger.debug("running %s", command)
        try:
            proc = subprocess.run(
                command,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            raise DiffSourceError(f"Failed to execute git: {exc}") from exc
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise DiffSourceError(f"Git diff failed: {stderr}")
        return _decode_output(proc.stdout, "Git diff")

    def _run_plain_diff(self, first: str, second: str) -> str:
        command = ["diff", "-u", "-r", "-N", first, second]
        logger.debug("running %s", command)
        try:
            proc = subprocess.run(
                command,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            raise DiffSourceError(f"Failed to execute diff: {exc}") from exc
        if proc.returncode == PLAIN_DIFF_TROUBLE_EXIT_CODE:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise DiffSourceError(f"Diff command failed: {stderr}")
        return add_git_boundaries(_decode_output(proc.stdout, "Diff"), first, second)

    def _exists(self, name: str) -> bool:
        base = self.cwd if self.cwd is not None else Path.cwd()
        return os.path.exists(base / name)

    def is_git_ref(self, name: str) -> bool:
        """Return whether ``name`` resolves as a git revision and not a path."""
        if self._exists(name):
            return False
        try:
            proc = subprocess.run(
                ["git", "rev-parse", "--verify", "--quiet", name],
                cwd=self.cwd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            raise DiffSourceError(f"Failed to check git ref: {exc}") from exc
        return proc.returncode == 0

    def refs_compare(self, mode: CompareTargets) -> bool:
        return self.is_git_ref(mode.first) and self.is_git_ref(mode.second)

    def get_diff(self, mode: OperationMode) -> str:
        """Return the full diff text for ``mode``."""
        if isinstance(mode, (WorkingTree, StatusView)):
            return self._run_git(["diff"])
        if isinstance(mode, Staged):
            return self._run_git(["diff", "--cached"])
        if isinstance(mode, AgainstTarget):
            return self._run_git(["diff", mode.target])
        if isinstance(mode, CompareTargets):
            if self.refs_compare(mode):
                return self._run_git(["diff", f"{mode.first}..{mode.second}"])
            return self._run_plain_diff(mode.first, mode.second)
        unknown_mode(mode)

    def get_file_diff(self, mode: OperationMode, file_path: str) -> str:
        """Return fresh diff text for one file of the comparison."""
        if isinstance(mode, (WorkingTree, StatusView)):
            return self._run_git(["diff", "--", file_path])
        if isinstance(mode, Staged):
            return self._run_git(["diff", "--cached", "--", file_path])
        if isinstance(mode, AgainstTarget):
            return self._run_git(["diff", mode.target, "--", file_path])
        if isinstance(mode, CompareTargets):
            if self.refs_compare(mode):
                return self._run_git(["diff", f"{mode.first}..{mode.second}", "--", file_path])
            for record in parse_diff(self._run_plain_diff(mode.first, mode.second)):
                if record.path == file_path:
                    return record.raw_content
            raise DiffSourceError(f"No differences found for {file_path}")
        unknown_mode(mode)
