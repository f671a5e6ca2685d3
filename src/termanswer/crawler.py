"""Concurrent question-page crawler.

For each candidate link the crawler first asks the cache; hits are emitted
straight away, misses become independent fetch tasks that emit their page
as soon as it arrives. Every event goes through one bounded ``Channel``,
and a single ``CrawlDone`` closes the stream once all dispatched links are
resolved. Pages fetched from the network are written back to the cache
after every task has joined, so the cache map never has concurrent writers.

Emission order follows completion, not link order. Each ``PageData`` carries
its link so consumers can restore link order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog

from termanswer.errors import ErrorCode, TermAnswerError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from termanswer.protocols import CacheProtocol, FetcherProtocol

log = structlog.get_logger()

QUESTION_MARKER = "question"
DEFAULT_CHANNEL_CAPACITY = 10


@dataclass(frozen=True)
class PageData:
    """One resolved link, from the cache or the network."""

    title: str
    link: str
    page: str


@dataclass(frozen=True)
class CrawlDone:
    """Terminal event: every dispatched link has been resolved."""


CrawlerEvent = PageData | CrawlDone


class Channel:
    """Bounded single-consumer event channel.

    The receiving side calls ``close()`` when it stops listening; any later
    ``send`` raises ``TermAnswerError(CHANNEL_CLOSED)``.
    """

    def __init__(self, capacity: int = DEFAULT_CHANNEL_CAPACITY) -> None:
        self._queue: asyncio.Queue[CrawlerEvent] = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def send(self, event: CrawlerEvent) -> None:
        """Queue ``event``, waiting for room.

        Every sender, including those already waiting on a full queue, gets
        CHANNEL_CLOSED once the receiver closes the channel.
        """
        if not self.closed:
            put = asyncio.create_task(self._queue.put(event))
            closing = asyncio.create_task(self._closed.wait())
            try:
                await asyncio.wait({put, closing}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                put.cancel()
                closing.cancel()
            if put.done() and not put.cancelled():
                return
        raise TermAnswerError(
            code=ErrorCode.CHANNEL_CLOSED,
            message="Crawler event receiver is gone",
            suggestion="Keep consuming the channel until CrawlDone arrives.",
            recoverable=False,
        )

    async def receive(self) -> CrawlerEvent:
        return await self._queue.get()

    def close(self) -> None:
        self._closed.set()

    def __aiter__(self) -> Channel:
        return self

    async def __anext__(self) -> PageData:
        event = await self.receive()
        if isinstance(event, CrawlDone):
            raise StopAsyncIteration
        return event


def is_question_link(link: str) -> bool:
    return QUESTION_MARKER in urlparse(link).path


def question_links(links: Sequence[str], limit: int) -> Iterator[str]:
    """Yield the question links among the first ``limit`` candidates."""
    for link in links[:limit]:
        if not is_question_link(link):
            log.debug("link_skipped", link=link, reason="not_a_question")
            continue
        yield link


def answer_title(link: str) -> str:
    return f"- Answer from {link}"


class PageCrawler:
    """Resolves question links cache-first and streams the pages out."""

    def __init__(
        self,
        links: Sequence[str],
        limit: int,
        cache: CacheProtocol,
        fetcher: FetcherProtocol,
        channel: Channel,
    ) -> None:
        self._links = list(links)
        self._limit = limit
        self._cache = cache
        self._fetcher = fetcher
        self._channel = channel
        self._channel_error: TermAnswerError | None = None

    async def crawl(self) -> None:
        """Run the crawl to completion.

        Raises TermAnswerError(CHANNEL_CLOSED) if the receiver went away;
        fetched pages are still cached in that case.
        """
        fetched: list[asyncio.Task[PageData | None]] = []

        async with asyncio.TaskGroup() as group:
            for link in question_links(self._links, self._limit):
                if self._channel_error is not None:
                    break
                page = self._cache.get(link)
                if page is not None:
                    log.debug("cache_hit", link=link)
                    await self._send(PageData(title=answer_title(link), link=link, page=page))
                    continue
                log.debug("cache_miss_fetching", link=link)
                fetched.append(group.create_task(self._fetch_one(link)))

        pages = [data for task in fetched if (data := task.result()) is not None]
        for data in pages:
            self._cache.put(data.link, data.page)
        self._persist_cache()

        await self._send(CrawlDone())
        if self._channel_error is not None:
            raise self._channel_error

    async def _fetch_one(self, link: str) -> PageData | None:
        try:
            page = await self._fetcher.fetch(link)
        except TermAnswerError as exc:
            log.warning("fetch_failed", link=link, code=exc.code, message=exc.message)
            return None
        data = PageData(title=answer_title(link), link=link, page=page)
        await self._send(data)
        return data

    async def _send(self, event: CrawlerEvent) -> None:
        if self._channel_error is not None:
            return
        try:
            await self._channel.send(event)
        except TermAnswerError as exc:
            if exc.code != ErrorCode.CHANNEL_CLOSED:
                raise
            log.error("crawler_channel_closed", event_type=type(event).__name__)
            self._channel_error = exc

    def _persist_cache(self) -> None:
        # A failed save must never fail the query.
        try:
            self._cache.save()
        except TermAnswerError as exc:
            log.warning("cache_save_error", code=exc.code, message=exc.message, exc_info=True)
