"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle and alternate-screen switching. When the diff arrives
on a pipe, keys are read from ``/dev/tty`` instead of stdin.
"""

from __future__ import annotations

import contextlib
import os
import sys
import termios
import tty

TTY_PATH = "/dev/tty"


class TerminalController:
    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    @classmethod
    def open_interactive(cls) -> tuple[TerminalController, int | None]:
        """Build a controller bound to the keyboard.

        Returns the controller and a file descriptor the caller must close,
        or ``None`` when stdin itself is the terminal.
        """
        stdout_fd = sys.stdout.fileno()
        if sys.stdin.isatty():
            return cls(sys.stdin.fileno(), stdout_fd), None
        tty_fd = os.open(TTY_PATH, os.O_RDONLY)
        try:
            return cls(tty_fd, stdout_fd), tty_fd
        except termios.error:
            os.close(tty_fd)
            raise

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        # Ctrl+C stays a signal so a blocking tool call can be interrupted.
        attrs = termios.tcgetattr(self.stdin_fd)
        attrs[3] |= termios.ISIG
        termios.tcsetattr(self.stdin_fd, termios.TCSANOW, attrs)
        # Enter alternate screen and hide cursor.
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")

    def disable_tui_mode(self) -> None:
        # Show cursor and restore the main screen buffer.
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
