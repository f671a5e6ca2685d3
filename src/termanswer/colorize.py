"""Terminal syntax highlighting for code blocks.

The lexer is guessed from the question's tags (first tag Pygments knows
wins, plain text otherwise). Tokens are painted with the colors of a
Pygments style and turned into escape sequences by Rich, which also maps
24-bit colors down to the 256-color palette on terminals that lack true
color support.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.styles import get_style_by_name
from pygments.token import Token
from pygments.util import ClassNotFound
from rich.color import ColorSystem
from rich.style import Style

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pygments.lexer import Lexer
    from pygments.style import StyleMeta
    from pygments.token import _TokenType

log = structlog.get_logger()

DEFAULT_THEME = "monokai"
# Used for tokens the theme leaves uncolored.
DEFAULT_FOREGROUND = "#d3d0c8"

_TRUE_COLOR_VALUES = frozenset({"truecolor", "24bit"})

# Keep leading and trailing blank lines exactly as they appear in the answer.
_LEXER_OPTIONS = {"stripnl": False, "ensurenl": False}


def is_truecolor_terminal() -> bool:
    """True when COLORTERM advertises 24-bit color support."""
    return os.environ.get("COLORTERM", "") in _TRUE_COLOR_VALUES


def guess_lexer(tags: Sequence[str]) -> Lexer:
    for tag in tags:
        try:
            return get_lexer_by_name(tag.lower(), **_LEXER_OPTIONS)
        except ClassNotFound:
            continue
    return TextLexer(**_LEXER_OPTIONS)


def _load_style(theme: str) -> StyleMeta:
    try:
        return get_style_by_name(theme)
    except ClassNotFound:
        log.warning("colorize_unknown_theme", theme=theme, fallback=DEFAULT_THEME)
        return get_style_by_name(DEFAULT_THEME)


def _token_style(style: StyleMeta, token_type: _TokenType) -> Style:
    definition = style.style_for_token(token_type)
    color = definition["color"] or style.style_for_token(Token)["color"]
    return Style(
        color=f"#{color}" if color else DEFAULT_FOREGROUND,
        bold=definition["bold"] or None,
        italic=definition["italic"] or None,
        underline=definition["underline"] or None,
    )


def colorize_code(
    code: str,
    tags: Sequence[str],
    *,
    theme: str = DEFAULT_THEME,
    true_color: bool | None = None,
) -> str:
    """Return ``code`` with terminal color escapes added.

    Every line is painted separately so that each escape sequence is reset
    before the newline; pagers and terminals then never carry a color over
    to the next line. Code with no visible text, such as an empty string or
    bare newlines, comes back unchanged.
    """
    if true_color is None:
        true_color = is_truecolor_terminal()
    color_system = ColorSystem.TRUECOLOR if true_color else ColorSystem.EIGHT_BIT

    lexer = guess_lexer(tags)
    style = _load_style(theme)
    styles: dict[_TokenType, Style] = {}
    pieces: list[str] = []

    for token_type, value in lexer.get_tokens(code):
        if token_type not in styles:
            styles[token_type] = _token_style(style, token_type)
        token_style = styles[token_type]
        for line in value.splitlines(keepends=True):
            text = line.rstrip("\r\n")
            if text:
                pieces.append(token_style.render(text, color_system=color_system))
            pieces.append(line[len(text) :])

    return "".join(pieces)
