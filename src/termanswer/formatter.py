"""Turn a selected answer into terminal text.

Two modes: code-only returns the first code block of the answer, detailed
returns the whole answer body. With colorization on, detailed mode paints
each code block on its own and keeps the surrounding prose as plain text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import Tag

from termanswer.colorize import DEFAULT_THEME, colorize_code
from termanswer.errors import ErrorCode, TermAnswerError
from termanswer.models.answer import AnswerConfig, OutputOption
from termanswer.selector import BODY_SELECTORS, Selector, first_match, select_best_answer

if TYPE_CHECKING:
    from termanswer.selector import AnswerCandidate

CODE_SELECTORS = (Selector.name("pre"), Selector.name("code"))


def extract_code(
    candidate: AnswerCandidate, *, colorize: bool = False, theme: str = DEFAULT_THEME
) -> str | None:
    """Text of the first ``<pre>`` block, else the first ``<code>`` element."""
    code_node = first_match(candidate.node, CODE_SELECTORS)
    if code_node is None:
        return None
    code = code_node.get_text()
    if colorize:
        return colorize_code(code, candidate.tags, theme=theme)
    return code


def extract_detailed(
    candidate: AnswerCandidate, *, colorize: bool = False, theme: str = DEFAULT_THEME
) -> str | None:
    """Full text of the answer body, code blocks colorized in place if asked."""
    body = first_match(candidate.node, BODY_SELECTORS)
    if body is None:
        return None
    if not colorize:
        return body.get_text()

    parts: list[str] = []
    for child in body.children:
        if not isinstance(child, Tag):
            continue
        if child.name == "pre":
            parts.append(colorize_code(child.get_text(), candidate.tags, theme=theme) + "\n")
        elif child.name == "code":
            parts.append(colorize_code(child.get_text(), candidate.tags, theme=theme))
        else:
            parts.append(child.get_text() + "\n\n")
    return "".join(parts)


def format_answer(page: str, config: AnswerConfig, *, theme: str = DEFAULT_THEME) -> str | None:
    """Select the best answer on ``page`` and render it per ``config``."""
    if config.option == OutputOption.LINKS:
        raise TermAnswerError(
            code=ErrorCode.INVALID_INPUT,
            message="Link-only output does not read page content",
            suggestion="Use answers_links_only for OutputOption.LINKS.",
            recoverable=False,
        )

    candidate = select_best_answer(page)
    if candidate is None:
        return None
    if config.option == OutputOption.ONLY_CODE:
        return extract_code(candidate, colorize=config.colorize, theme=theme)
    return extract_detailed(candidate, colorize=config.colorize, theme=theme)
