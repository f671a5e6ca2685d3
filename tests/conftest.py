"""Shared test fixtures for the termanswer test suite."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from termanswer.errors import ErrorCode, TermAnswerError

PageFactory = Callable[..., str]


def render_page(
    votes: Sequence[int | str | None] = (130,),
    *,
    tags: Sequence[str] = ("python",),
    bodies: Sequence[str] | None = None,
) -> str:
    """Build a minimal question page.

    One answer block per entry in ``votes``; ``None`` leaves out the vote
    node. ``bodies`` holds the inner HTML of each answer body.
    """
    if bodies is None:
        bodies = [f"<p>answer <code>number{i}</code> here </p>" for i in range(len(votes))]
    tag_html = "".join(f'<a class="post-tag">{tag}</a>' for tag in tags)
    answers = []
    for vote, body in zip(votes, bodies, strict=True):
        vote_html = "" if vote is None else f'<div class="js-vote-count">{vote}</div>'
        answers.append(
            f'<div class="answer">{vote_html}<div class="js-post-body">{body}</div></div>'
        )
    return f"<html><body>{tag_html}{''.join(answers)}</body></html>"


@pytest.fixture()
def make_page() -> PageFactory:
    return render_page


class FakeCache:
    """In-memory CacheProtocol implementation."""

    def __init__(self, pages: dict[str, str] | None = None) -> None:
        self.pages: dict[str, str] = dict(pages or {})
        self.gets: list[str] = []
        self.save_count = 0
        self.save_error: TermAnswerError | None = None

    def get(self, url: str) -> str | None:
        self.gets.append(url)
        return self.pages.get(url)

    def put(self, url: str, content: str) -> None:
        self.pages[url] = content

    def save(self) -> None:
        self.save_count += 1
        if self.save_error is not None:
            raise self.save_error


class FakeFetcher:
    """FetcherProtocol implementation serving canned pages."""

    def __init__(
        self, pages: dict[str, str] | None = None, failing: Sequence[str] = ()
    ) -> None:
        self.pages: dict[str, str] = dict(pages or {})
        self.failing = set(failing)
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url in self.failing or url not in self.pages:
            raise TermAnswerError(
                code=ErrorCode.NETWORK_FAILURE,
                message=f"HTTP 503 fetching {url}",
                suggestion="",
                recoverable=True,
            )
        return self.pages[url]


@pytest.fixture()
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
