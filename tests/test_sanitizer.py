"""Проверяет очистку свободного текста перед сохранением."""

import re
import unittest

from app.services.sanitizer import sanitize_text

UNSAFE_RE = re.compile(r"[<>\"']|javascript:|on\w+=", re.IGNORECASE)


class SanitizeTextTests(unittest.TestCase):
    def test_strips_whitespace_and_markup_characters(self) -> None:
        self.assertEqual(sanitize_text("  <b>halo</b>  "), "bhalo/b")
        self.assertEqual(sanitize_text("say \"hi\" it's me"), "say hi its me")

    def test_removes_javascript_scheme_and_event_handlers(self) -> None:
        self.assertEqual(sanitize_text("JavaScript:alert(1)"), "alert(1)")
        self.assertEqual(sanitize_text("img onerror=boom"), "img boom")
        self.assertEqual(sanitize_text("x ONCLICK = y"), "x  y")

    def test_removal_does_not_assemble_new_fragments(self) -> None:
        self.assertEqual(sanitize_text("javajavascript:script:x"), "x")
        self.assertEqual(sanitize_text("o<n>load=1"), "1")

    def test_truncates_to_max_length(self) -> None:
        self.assertEqual(len(sanitize_text("a" * 600)), 500)
        self.assertEqual(sanitize_text("abcdef", max_length=3), "abc")

    def test_non_string_input_returns_empty_string(self) -> None:
        for value in (None, 42, ["hello"], {"message": "x"}):
            self.assertEqual(sanitize_text(value), "")

    def test_output_never_contains_unsafe_fragments(self) -> None:
        samples = [
            "<script>alert('x')</script>",
            "<a href=\"javascript:void(0)\" onmouseover=\"steal()\">hi</a>",
            "jav<ascript:ascript:x",
            "'" * 700,
            "onon=load=x",
            "normal chat message",
        ]
        for sample in samples:
            result = sanitize_text(sample)
            self.assertLessEqual(len(result), 500)
            self.assertIsNone(UNSAFE_RE.search(result), msg=f"{sample!r} -> {result!r}")
