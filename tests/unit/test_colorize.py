"""Unit tests for terminal syntax highlighting."""

from __future__ import annotations

import re

import pytest
from pygments.lexers.special import TextLexer

from termanswer.colorize import colorize_code, guess_lexer, is_truecolor_terminal

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

CODE = "def add(a, b):\n    return a + b\n"


class TestTruecolorDetection:
    @pytest.mark.parametrize("value", ["truecolor", "24bit"])
    def test_truecolor_values(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("COLORTERM", value)
        assert is_truecolor_terminal() is True

    def test_other_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLORTERM", "yes")
        assert is_truecolor_terminal() is False

    def test_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COLORTERM", raising=False)
        assert is_truecolor_terminal() is False


class TestGuessLexer:
    def test_first_known_tag_wins(self) -> None:
        assert guess_lexer(["not-a-language", "python", "ruby"]).name == "Python"

    def test_tag_case_ignored(self) -> None:
        assert guess_lexer(["Rust"]).name == "Rust"

    def test_unknown_tags_fall_back_to_text(self) -> None:
        assert isinstance(guess_lexer(["django-orm", ""]), TextLexer)

    def test_no_tags(self) -> None:
        assert isinstance(guess_lexer([]), TextLexer)


class TestColorizeCode:
    def test_truecolor_escapes(self) -> None:
        colored = colorize_code(CODE, ["python"], true_color=True)
        assert "\x1b[" in colored
        assert "38;2;" in colored

    def test_256_color_escapes(self) -> None:
        colored = colorize_code(CODE, ["python"], true_color=False)
        assert "38;5;" in colored
        assert "38;2;" not in colored

    def test_detects_terminal_when_unspecified(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLORTERM", "24bit")
        assert "38;2;" in colorize_code(CODE, ["python"])

    def test_stripping_escapes_restores_code(self) -> None:
        colored = colorize_code(CODE, ["python"], true_color=True)
        assert _ANSI.sub("", colored) == CODE

    def test_leading_blank_lines_kept(self) -> None:
        code = "\n\nx = 1"
        assert _ANSI.sub("", colorize_code(code, ["python"], true_color=True)) == code

    def test_escapes_reset_before_newline(self) -> None:
        colored = colorize_code(CODE, ["python"], true_color=True)
        for line in colored.split("\n"):
            if "\x1b[" in line:
                assert line.endswith("\x1b[0m")

    def test_plain_text_still_colored(self) -> None:
        colored = colorize_code("just words", [], true_color=True)
        assert colored != "just words"
        assert _ANSI.sub("", colored) == "just words"

    def test_unknown_theme_falls_back(self) -> None:
        fallback = colorize_code(CODE, ["python"], theme="no-such-theme", true_color=True)
        default = colorize_code(CODE, ["python"], true_color=True)
        assert fallback == default

    @pytest.mark.parametrize("code", ["", "\n", "\n\n\n"])
    def test_blank_code_unchanged(self, code: str) -> None:
        assert colorize_code(code, ["python"], true_color=True) == code
