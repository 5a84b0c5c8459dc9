"""Raw-mode tests against a pseudo-terminal."""

from __future__ import annotations

import os
import pty
import sys
import termios
import unittest

from lazydiff.terminal import TerminalController


@unittest.skipUnless(sys.platform.startswith(("linux", "darwin")), "needs a POSIX pseudo-terminal")
class TerminalModeTests(unittest.TestCase):
    def setUp(self) -> None:
        master_fd, self.tty_fd = pty.openpty()
        self.out_fd = os.open(os.devnull, os.O_WRONLY)
        for fd in (master_fd, self.tty_fd, self.out_fd):
            self.addCleanup(os.close, fd)

    def test_tui_mode_keeps_ctrl_c_as_a_signal(self) -> None:
        terminal = TerminalController(self.tty_fd, self.out_fd)

        terminal.enable_tui_mode()
        try:
            lflag = termios.tcgetattr(self.tty_fd)[3]
        finally:
            terminal.disable_tui_mode()

        self.assertTrue(lflag & termios.ISIG)
        self.assertFalse(lflag & termios.ICANON)
        self.assertFalse(lflag & termios.ECHO)

    def test_raw_mode_restores_saved_settings(self) -> None:
        before = termios.tcgetattr(self.tty_fd)
        terminal = TerminalController(self.tty_fd, self.out_fd)

        with terminal.raw_mode():
            self.assertNotEqual(termios.tcgetattr(self.tty_fd), before)

        self.assertEqual(termios.tcgetattr(self.tty_fd), before)


if __name__ == "__main__":
    unittest.main()
