"""Tests for per-identity check-state files and the background writer."""

from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path

from lazydiff.diff_model import DiffIdentity
from lazydiff.errors import PersistenceError
from lazydiff.persistence import SECONDS_PER_DAY, CheckStateStore, CheckStateWriter, check_file_name

KEY = DiffIdentity("abc123", "def456", "src/pkg/mod.py")


class CheckStateStoreTests(unittest.TestCase):
    def test_file_name_flattens_path_separators(self) -> None:
        self.assertEqual(check_file_name(KEY), "abc123_def456_src_pkg_mod.py.json")
        self.assertEqual(
            check_file_name(DiffIdentity("a", "b", "win\\dir/file.txt")),
            "a_b_win_dir_file.txt.json",
        )

    def test_saved_mark_round_trips(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp) / "checks")

            store.save(KEY, True)

            self.assertEqual(store.load([KEY]), {"src/pkg/mod.py"})
            payload = json.loads(store.path_for(KEY).read_text(encoding="utf-8"))
            self.assertEqual(payload, {"checked_files": ["src/pkg/mod.py"]})

    def test_unchecked_save_writes_empty_list(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            store.save(KEY, True)

            store.save(KEY, False)

            self.assertEqual(store.load([KEY]), set())

    def test_missing_files_mean_unchecked(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp) / "never-created")

            self.assertEqual(store.load([KEY]), set())

    def test_marks_do_not_transfer_to_new_blob_hashes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            store.save(KEY, True)

            newer = DiffIdentity("abc123", "999999", KEY.file_path)

            self.assertEqual(store.load([newer]), set())

    def test_malformed_json_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            store.path_for(KEY).write_text("{not json", encoding="utf-8")

            with self.assertRaises(PersistenceError):
                store.load([KEY])

    def test_wrong_shape_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            store.path_for(KEY).write_text('{"checked_files": "src/pkg/mod.py"}', encoding="utf-8")

            with self.assertRaises(PersistenceError):
                store.load([KEY])

    def test_save_into_unwritable_location_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            store = CheckStateStore(blocker / "checks")

            with self.assertRaises(PersistenceError):
                store.save(KEY, True)

    def test_cleanup_removes_only_stale_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            fresh = DiffIdentity("1", "2", "fresh.txt")
            stale = DiffIdentity("3", "4", "stale.txt")
            store.save(fresh, True)
            store.save(stale, True)
            now = 1_000 * SECONDS_PER_DAY
            os.utime(store.path_for(fresh), (now - SECONDS_PER_DAY, now - SECONDS_PER_DAY))
            os.utime(store.path_for(stale), (now - 40 * SECONDS_PER_DAY, now - 40 * SECONDS_PER_DAY))

            removed = store.cleanup_old_files(30, now=now)

            self.assertEqual(removed, 1)
            self.assertTrue(store.path_for(fresh).exists())
            self.assertFalse(store.path_for(stale).exists())

    def test_cleanup_of_missing_directory_is_a_no_op(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(CheckStateStore(Path(tmp) / "absent").cleanup_old_files(30), 0)


class CheckStateWriterTests(unittest.TestCase):
    def test_flush_waits_for_latest_value_per_key(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = CheckStateStore(Path(tmp))
            writer = CheckStateWriter(store)
            other = DiffIdentity("111", "222", "other.txt")

            writer.submit(KEY, True)
            writer.submit(other, True)
            writer.submit(KEY, False)
            writer.flush(5.0)

            self.assertEqual(store.load([KEY, other]), {"other.txt"})

    def test_write_failures_are_logged_not_raised(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            writer = CheckStateWriter(CheckStateStore(blocker / "checks"))

            with self.assertLogs("lazydiff.persistence", level="WARNING"):
                writer.submit(KEY, True)
                writer.flush(5.0)


if __name__ == "__main__":
    unittest.main()
