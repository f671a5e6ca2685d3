"""Answer selection for Stack Overflow question pages.

Pages are parsed with BeautifulSoup. Every structural lookup goes through an
ordered list of ``Selector`` attempts so that markup from different site
redesigns (``js-post-body`` vs ``post-text``, ``js-vote-count`` vs
``vote-count-post``) is handled by adding a selector, not a code path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import structlog
from bs4 import BeautifulSoup, Tag

from termanswer.errors import ErrorCode

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = structlog.get_logger()


@dataclass(frozen=True)
class Selector:
    """A single lookup attempt: by CSS class or by element name."""

    kind: Literal["class", "name"]
    value: str

    @classmethod
    def css_class(cls, value: str) -> Selector:
        return cls("class", value)

    @classmethod
    def name(cls, value: str) -> Selector:
        return cls("name", value)

    def find(self, node: Tag) -> Tag | None:
        found = node.find(class_=self.value) if self.kind == "class" else node.find(self.value)
        return found if isinstance(found, Tag) else None

    def find_all(self, node: Tag) -> list[Tag]:
        found = (
            node.find_all(class_=self.value) if self.kind == "class" else node.find_all(self.value)
        )
        return [item for item in found if isinstance(item, Tag)]


def first_match(node: Tag, selectors: Sequence[Selector]) -> Tag | None:
    """Return the result of the first selector that finds anything."""
    for selector in selectors:
        found = selector.find(node)
        if found is not None:
            return found
    return None


def all_matches(node: Tag, selectors: Sequence[Selector]) -> list[Tag]:
    """Return every match of the first selector that finds anything."""
    for selector in selectors:
        found = selector.find_all(node)
        if found:
            return found
    return []


ANSWER_SELECTORS = (Selector.css_class("answer"),)
VOTE_SELECTORS = (Selector.css_class("js-vote-count"), Selector.css_class("vote-count-post"))
BODY_SELECTORS = (
    Selector.css_class("js-post-body"),
    Selector.css_class("post-text"),
    Selector.css_class("s-prose"),
)
TAG_SELECTORS = (Selector.css_class("post-tag"),)

# Languages that are both common on the site and known to the highlighter.
# Tags in this set are tried first when guessing a lexer.
POPULAR_LANGUAGES: frozenset[str] = frozenset({
    "java",
    "javascript",
    "lisp",
    "latex",
    "lua",
    "matlab",
    "ocaml",
    "objective-c++",
    "objective-c",
    "php",
    "pascal",
    "perl",
    "python",
    "r",
    "ruby",
    "rust",
    "scala",
    "c#",
    "c++",
    "c",
    "d",
    "erlang",
    "go",
    "haskell",
})


@dataclass
class AnswerCandidate:
    """An answer block together with its votes and the question's tags."""

    node: Tag
    votes: int
    tags: list[str] = field(default_factory=list)


def parse_page(page: str) -> BeautifulSoup:
    return BeautifulSoup(page, "html.parser")


def extract_tags(doc: Tag) -> list[str]:
    """Question tags in page order."""
    return [tag.get_text(strip=True) for tag in all_matches(doc, TAG_SELECTORS)]


def sort_tags(tags: Iterable[str]) -> list[str]:
    """Move popular-language tags to the front, keeping relative order."""
    return sorted(tags, key=lambda tag: 0 if tag in POPULAR_LANGUAGES else 1)


def parse_votes(node: Tag) -> int | None:
    text = node.get_text(strip=True)
    for raw in (text, node.get("data-value")):
        if not isinstance(raw, str):
            continue
        try:
            return int(raw.strip())
        except ValueError:
            continue
    return None


def select_answer(doc: Tag, tags: Sequence[str] = ()) -> AnswerCandidate | None:
    """Pick the answer block with the strictly highest positive vote count.

    Ties keep the first block seen. Blocks whose vote count is missing or not
    a number are skipped, as is every block on a page where no answer has
    more than zero votes.
    """
    selected: AnswerCandidate | None = None
    best_votes = 0

    for position, answer in enumerate(all_matches(doc, ANSWER_SELECTORS)):
        vote_node = first_match(answer, VOTE_SELECTORS)
        votes = parse_votes(vote_node) if vote_node is not None else None
        if votes is None:
            log.warning(
                "answer_skipped",
                code=ErrorCode.PAGE_SHAPE_VIOLATION,
                position=position,
                reason="missing_vote_count" if vote_node is None else "unparseable_vote_count",
            )
            continue
        if votes > best_votes:
            best_votes = votes
            selected = AnswerCandidate(node=answer, votes=votes, tags=list(tags))

    return selected


def select_best_answer(page: str) -> AnswerCandidate | None:
    """Parse ``page`` and return its best answer, or ``None`` if it has none."""
    doc = parse_page(page)
    tags = sort_tags(extract_tags(doc))
    return select_answer(doc, tags)
