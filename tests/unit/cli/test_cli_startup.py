"""CLI startup behavior tests.

Verifies how ``lazydiff.cli.main`` picks the diff source, which conditions end
the process before the UI starts, and what reaches the interactive loop.
"""

from __future__ import annotations

import io
import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazydiff import cli
from lazydiff.diff_model import parse_diff
from lazydiff.external_tool import DefaultDiff, PagerCommand
from lazydiff.navigation import NavigationController
from lazydiff.persistence import CheckStateStore
from lazydiff.ui_theme import PLAIN_THEME

DIFF = (
    "diff --git a/src/a.rs b/src/a.rs\n"
    "index 1111111..2222222 100644\n"
    "--- a/src/a.rs\n"
    "+++ b/src/a.rs\n"
    "@@ -1 +1 @@\n"
    "-old\n"
    "+new\n"
    "diff --git a/README.md b/README.md\n"
    "@@ -1 +1,2 @@\n"
    "-x\n"
    "+y\n"
    "+z\n"
)


class _TtyInput(io.StringIO):
    def isatty(self) -> bool:
        return True


class _FakeTerminal:
    stdin_fd = 0


class CliStartupTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        patcher = mock.patch("lazydiff.config.CONFIG_PATH", self.tmp / "config.json")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)
        self.addCleanup(logging.getLogger("lazydiff").handlers.clear)

    def _store(self) -> CheckStateStore:
        return CheckStateStore(self.tmp / "checks")

    def test_empty_piped_diff_prints_no_differences(self) -> None:
        stdout = io.StringIO()
        with mock.patch("lazydiff.cli.sys.stdin", io.StringIO("")), mock.patch("lazydiff.cli.sys.stdout", stdout):
            cli.main([])

        self.assertEqual(stdout.getvalue(), "No differences found.\n")

    def test_nopager_prints_plain_tree_for_piped_diff(self) -> None:
        stdout = io.StringIO()
        with mock.patch("lazydiff.cli.sys.stdin", io.StringIO(DIFF)), mock.patch("lazydiff.cli.sys.stdout", stdout):
            cli.main(["--nopager"])

        lines = stdout.getvalue().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith("▾ src/"))
        self.assertTrue(lines[1].startswith("│ ╰ ☐ a.rs"))
        self.assertTrue(lines[2].startswith("☐ README.md"))
        self.assertTrue(lines[2].endswith("+2 -1"))
        self.assertNotIn("\033", stdout.getvalue())

    def test_too_many_targets_exit_with_message(self) -> None:
        with mock.patch("lazydiff.cli.sys.stdin", _TtyInput("")):
            with self.assertRaises(SystemExit) as raised:
                cli.main(["a", "b", "c"])

        self.assertEqual(str(raised.exception), "Error: Too many arguments provided")

    def test_outside_repository_exits_before_ui(self) -> None:
        with mock.patch("lazydiff.cli.sys.stdin", _TtyInput("")), mock.patch(
            "lazydiff.cli.GitDiffSource.is_git_repo", return_value=False
        ), mock.patch("lazydiff.cli.run_main_loop") as loop:
            with self.assertRaises(SystemExit) as raised:
                cli.main([])

        self.assertEqual(str(raised.exception), "Error: Not in a git repository")
        loop.assert_not_called()

    def test_unreadable_explicit_config_exits(self) -> None:
        with self.assertRaises(SystemExit) as raised:
            cli.main(["--config", str(self.tmp / "missing.json")])

        self.assertIn("Cannot read config file", str(raised.exception))

    def test_piped_diff_starts_interactive_loop(self) -> None:
        config_path = self.tmp / "custom.json"
        config_path.write_text('{"git": {"paging": {"pager": "delta"}}}', encoding="utf-8")

        with mock.patch("lazydiff.cli.sys.stdin", io.StringIO(DIFF)), mock.patch(
            "lazydiff.cli.CheckStateStore", side_effect=self._store
        ), mock.patch(
            "lazydiff.cli.TerminalController.open_interactive", return_value=(_FakeTerminal(), None)
        ), mock.patch("lazydiff.cli.run_main_loop") as loop:
            cli.main(["--config", str(config_path), "--no-color"])

        loop.assert_called_once()
        controller, _terminal, stdin_fd, options, load_records = loop.call_args.args
        self.assertIsInstance(controller, NavigationController)
        self.assertEqual(
            sorted(row.full_path for row in controller.rows),
            ["README.md", "src", "src/a.rs"],
        )
        self.assertEqual(controller.invoker.command, PagerCommand("delta"))
        self.assertEqual(stdin_fd, 0)
        self.assertEqual(options.mode_label, "stdin")
        self.assertEqual(options.tool_label, "delta (pager)")
        self.assertIs(options.theme, PLAIN_THEME)
        self.assertIsNone(load_records)

    def test_external_diff_command_is_dropped_for_piped_input(self) -> None:
        config_path = self.tmp / "custom.json"
        config_path.write_text('{"git": {"paging": {"externalDiffCommand": "difft"}}}', encoding="utf-8")

        with mock.patch("lazydiff.cli.sys.stdin", io.StringIO(DIFF)), mock.patch(
            "lazydiff.cli.CheckStateStore", side_effect=self._store
        ), mock.patch(
            "lazydiff.cli.TerminalController.open_interactive", return_value=(_FakeTerminal(), None)
        ), mock.patch("lazydiff.cli.run_main_loop") as loop:
            cli.main(["--config", str(config_path)])

        controller = loop.call_args.args[0]
        self.assertEqual(controller.invoker.command, DefaultDiff())

    def test_saved_check_marks_are_restored(self) -> None:
        store = self._store()
        [record, _] = parse_diff(DIFF)
        store.save(record.identity, True)

        with mock.patch("lazydiff.cli.sys.stdin", io.StringIO(DIFF)), mock.patch(
            "lazydiff.cli.CheckStateStore", side_effect=self._store
        ), mock.patch(
            "lazydiff.cli.TerminalController.open_interactive", return_value=(_FakeTerminal(), None)
        ), mock.patch("lazydiff.cli.run_main_loop") as loop:
            cli.main([])

        controller = loop.call_args.args[0]
        self.assertEqual(controller.state.checked_files, {"src/a.rs"})


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        package_logger = logging.getLogger("lazydiff")
        for handler in list(package_logger.handlers):
            handler.close()
        package_logger.handlers.clear()

    def test_log_file_receives_package_records(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "lazydiff.log"

            target = cli.configure_logging(verbose=True, log_file=log_path)
            logging.getLogger("lazydiff.navigation").debug("selected %s", "src/a.rs")
            for handler in logging.getLogger("lazydiff").handlers:
                handler.flush()
                handler.close()

            self.assertEqual(target, log_path)
            self.assertIn("DEBUG lazydiff.navigation: selected src/a.rs", log_path.read_text(encoding="utf-8"))

    def test_without_target_records_are_discarded(self) -> None:
        self.assertIsNone(cli.configure_logging(verbose=False))

        package_logger = logging.getLogger("lazydiff")
        self.assertEqual(len(package_logger.handlers), 1)
        self.assertIsInstance(package_logger.handlers[0], logging.NullHandler)
        self.assertFalse(package_logger.propagate)


if __name__ == "__main__":
    unittest.main()
