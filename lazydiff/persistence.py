"""Per-file "checked" marks that survive restarts.

Each diff identity maps to one small JSON file, so a mark only reapplies when
the same blob pair is diffed again. Writes run on a background worker so the
control loop never blocks on disk I/O.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path

from platformdirs import user_data_dir

from .diff_model import DiffIdentity
from .errors import PersistenceError

logger = logging.getLogger(__name__)

APP_NAME = "lazydiff"
DEFAULT_CHECKS_DIR = Path(user_data_dir(APP_NAME, appauthor=False)) / "checks"
SECONDS_PER_DAY = 24 * 60 * 60


def check_file_name(key: DiffIdentity) -> str:
    """Return the store file name for ``key``; path separators become ``_``."""
    safe_path = key.file_path.replace("/", "_").replace("\\", "_")
    return f"{key.from_hash}_{key.to_hash}_{safe_path}.json"


class CheckStateStore:
    def __init__(self, base_dir: Path = DEFAULT_CHECKS_DIR) -> None:
        self.base_dir = base_dir

    def path_for(self, key: DiffIdentity) -> Path:
        return self.base_dir / check_file_name(key)

    def load(self, keys: Iterable[DiffIdentity]) -> set[str]:
        """Return the file paths among ``keys`` that were saved as checked.

        Missing files mean unchecked. Unreadable or malformed files raise
        ``PersistenceError``.
        """
        checked: set[str] = set()
        for key in keys:
            path = self.path_for(key)
            if not path.exists():
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Failed to read check state {path}: {exc}") from exc
            files = data.get("checked_files") if isinstance(data, dict) else None
            if not isinstance(files, list):
                raise PersistenceError(f"Failed to parse check state {path}")
            if key.file_path in files:
                checked.add(key.file_path)
        return checked

    def save(self, key: DiffIdentity, checked: bool) -> None:
        payload = {"checked_files": [key.file_path] if checked else []}
        path = self.path_for(key)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to write check state {path}: {exc}") from exc

    def cleanup_old_files(self, max_age_days: int, now: float | None = None) -> int:
        """Delete stored marks older than ``max_age_days``; return how many."""
        if not self.base_dir.is_dir():
            return 0
        cutoff = (time.time() if now is None else now) - max_age_days * SECONDS_PER_DAY
        removed = 0
        try:
            for entry in self.base_dir.iterdir():
                if entry.is_file() and entry.stat().st_mtime < cutoff:
                    entry.unlink()
                    removed += 1
        except OSError as exc:
            raise PersistenceError(f"Failed to clean up {self.base_dir}: {exc}") from exc
        return removed


class CheckStateWriter:
    """Single-threaded latest-value-wins writer for check marks.

    Rapid toggles of one file collapse into one write of the final value.
    Failures are logged and never reach the caller.
    """

    def __init__(self, store: CheckStateStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._pending: dict[DiffIdentity, bool] = {}
        self._worker: threading.Thread | None = None

    def _run(self) -> None:
        while True:
            with self._lock:
                if not self._pending:
                    self._worker = None
                    return
                key = next(iter(self._pending))
                checked = self._pending.pop(key)

            try:
                self.store.save(key, checked)
            except PersistenceError as exc:
                logger.warning("could not save check state for %s: %s", key.file_path, exc)

    def submit(self, key: DiffIdentity, checked: bool) -> None:
        with self._lock:
            self._pending[key] = checked
            if self._worker is not None:
                return
            self._worker = threading.Thread(
                target=self._run,
                name="lazydiff-check-state-writer",
                daemon=True,
            )
            worker = self._worker
        worker.start()

    def flush(self, timeout: float | None = None) -> None:
        """Wait for queued writes to finish."""
        with self._lock:
            worker = self._worker
        if worker is not None:
            worker.join(timeout)
