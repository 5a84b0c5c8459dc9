"""Key decoding tests driven through a pipe file descriptor."""

from __future__ import annotations

import os
import unittest

from lazydiff import input as key_input
from lazydiff.input import read_key


class ReadKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        key_input._PENDING_BYTES.clear()
        self.read_fd, self.write_fd = os.pipe()

    def tearDown(self) -> None:
        os.close(self.read_fd)
        os.close(self.write_fd)
        key_input._PENDING_BYTES.clear()

    def _feed(self, data: bytes) -> None:
        os.write(self.write_fd, data)

    def test_timeout_returns_empty_token(self) -> None:
        self.assertEqual(read_key(self.read_fd, timeout_ms=10), "")

    def test_plain_and_control_keys(self) -> None:
        self._feed(b"j\t\x7f\x08\x03\x04\x15\r\n")

        tokens = [read_key(self.read_fd, timeout_ms=50) for _ in range(9)]

        self.assertEqual(
            tokens,
            ["j", "TAB", "BACKSPACE", "BACKSPACE", "CTRL_C", "CTRL_D", "CTRL_U", "ENTER_CR", "ENTER_LF"],
        )

    def test_arrow_and_home_end_sequences(self) -> None:
        self._feed(b"\x1b[A\x1b[B\x1b[C\x1b[D\x1b[H\x1b[F\x1bOA")

        tokens = [read_key(self.read_fd, timeout_ms=50) for _ in range(7)]

        self.assertEqual(tokens, ["UP", "DOWN", "RIGHT", "LEFT", "HOME", "END", "UP"])

    def test_tilde_sequences(self) -> None:
        self._feed(b"\x1b[5~\x1b[6~\x1b[1~\x1b[4~")

        tokens = [read_key(self.read_fd, timeout_ms=50) for _ in range(4)]

        self.assertEqual(tokens, ["PAGE_UP", "PAGE_DOWN", "HOME", "END"])

    def test_lone_escape(self) -> None:
        self._feed(b"\x1b")

        self.assertEqual(read_key(self.read_fd, timeout_ms=50), "ESC")

    def test_escape_followed_by_letter_keeps_the_letter(self) -> None:
        self._feed(b"\x1bq")

        self.assertEqual(read_key(self.read_fd, timeout_ms=50), "ESC")
        self.assertEqual(read_key(self.read_fd, timeout_ms=50), "q")

    def test_multibyte_utf8_character(self) -> None:
        self._feed("é漢".encode("utf-8"))

        self.assertEqual(read_key(self.read_fd, timeout_ms=50), "é")
        self.assertEqual(read_key(self.read_fd, timeout_ms=50), "漢")


if __name__ == "__main__":
    unittest.main()
