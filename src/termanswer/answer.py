"""Answer pipeline: links in, one printable string out.

Link-only mode never touches the network. The other modes start the
crawler and a consumer side by side; the consumer formats each page as it
arrives and the final output is put back into link order.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog

from termanswer.colorize import DEFAULT_THEME
from termanswer.crawler import (
    DEFAULT_CHANNEL_CAPACITY,
    Channel,
    PageCrawler,
    is_question_link,
    question_links,
)
from termanswer.errors import TermAnswerError
from termanswer.formatter import format_answer
from termanswer.models.answer import OutputOption

if TYPE_CHECKING:
    from collections.abc import Sequence

    from termanswer.models.answer import AnswerConfig
    from termanswer.protocols import CacheProtocol, FetcherProtocol
    from termanswer.state import AppState

SPLITTER = "\n^_^ ==================================================== ^_^\n\n"


async def get_answers(links: Sequence[str], config: AnswerConfig, state: AppState) -> str:
    """Build the output for ``links`` according to ``config``."""
    log = structlog.get_logger().bind(option=str(config.option), numbers=config.numbers)
    log.info("get_answers_called", link_count=len(links))

    if config.option == OutputOption.LINKS:
        return answers_links_only(links, config.numbers)

    if state.cache is None or state.fetcher is None:
        raise RuntimeError("AppState components (cache, fetcher) not initialized")

    return await get_detailed_answers(
        links,
        config,
        cache=state.cache,
        fetcher=state.fetcher,
        theme=state.settings.colorize.theme,
        channel_capacity=state.settings.crawler.channel_capacity,
    )


async def get_detailed_answers(
    links: Sequence[str],
    config: AnswerConfig,
    *,
    cache: CacheProtocol,
    fetcher: FetcherProtocol,
    theme: str = DEFAULT_THEME,
    channel_capacity: int = DEFAULT_CHANNEL_CAPACITY,
) -> str:
    """Crawl ``links`` and render the best answer of every question page.

    Links whose page could not be fetched, or whose page has no usable
    answer, get a ``Can't get answer from <link>`` line instead.
    """
    log = structlog.get_logger()
    dispatched = list(question_links(links, config.numbers))
    channel = Channel(channel_capacity)
    crawler = PageCrawler(links, config.numbers, cache, fetcher, channel)
    rendered: dict[str, str] = {}

    async def consume() -> None:
        try:
            async for data in channel:
                answer = format_answer(data.page, config, theme=theme)
                if answer is None:
                    log.info("no_answer_found", link=data.link)
                    continue
                rendered[data.link] = f"{data.title}\n{answer}"
        finally:
            channel.close()

    try:
        async with asyncio.TaskGroup() as group:
            group.create_task(crawler.crawl())
            group.create_task(consume())
    except ExceptionGroup as group_error:
        # Surface our own errors as-is so the CLI can report them.
        errors, others = group_error.split(TermAnswerError)
        if errors is None or others is not None:
            raise
        raise _first_error(errors) from group_error

    results = [rendered.get(link, f"Can't get answer from {link}") for link in dispatched]
    return SPLITTER.join(results)


def answers_links_only(links: Sequence[str], limit: int) -> str:
    """Titles and links of the question pages among the first ``limit`` links."""
    results: list[str] = []
    for link in links[:limit]:
        if not is_question_link(link):
            continue
        results.append(f"Title - {extract_question(urlparse(link).path)}\n{link}")
    return SPLITTER.join(results)


def extract_question(path: str) -> str:
    """``/questions/123/how-to-x`` -> ``how to x``."""
    return path.rstrip("/").split("/")[-1].replace("-", " ")


def _first_error(group: BaseExceptionGroup[TermAnswerError]) -> TermAnswerError:
    first = group.exceptions[0]
    return _first_error(first) if isinstance(first, BaseExceptionGroup) else first
