"""Display-width and sanitization helper tests."""

from __future__ import annotations

import unittest

from treels.ansi import display_width, pad_left, pad_right, sanitize_terminal_text, strip_ansi


class AnsiWidthTests(unittest.TestCase):
    def test_escape_sequences_take_no_columns(self) -> None:
        text = "\033[1;34msrc/\033[0m"

        self.assertEqual(strip_ansi(text), "src/")
        self.assertEqual(display_width(text), 4)

    def test_wide_and_combining_characters(self) -> None:
        self.assertEqual(display_width("日本"), 4)
        self.assertEqual(display_width("é"), 1)

    def test_padding_respects_display_width(self) -> None:
        self.assertEqual(pad_right("日", 4), "日  ")
        self.assertEqual(pad_left("ab", 4), "  ab")
        self.assertEqual(pad_left("abcdef", 4), "abcdef")

    def test_sanitize_escapes_control_bytes(self) -> None:
        self.assertEqual(sanitize_terminal_text("plain"), "plain")
        self.assertEqual(sanitize_terminal_text("a\nb\x1b"), "a\\x0ab\\x1b")


if __name__ == "__main__":
    unittest.main()
