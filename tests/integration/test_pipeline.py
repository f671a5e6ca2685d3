"""End-to-end tests: search, crawl, cache and render with HTTP mocked by respx."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from termanswer.answer import SPLITTER
from termanswer.cache import PageCache
from termanswer.cli import run
from termanswer.config import CacheSettings, Settings
from termanswer.models.answer import AnswerConfig, OutputOption

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from conftest import PageFactory

Q1 = "https://stackoverflow.com/questions/1/how-to-reverse-a-list"
Q2 = "https://stackoverflow.com/questions/2/how-to-sort-a-list"
TAGS = "https://stackoverflow.com/tags/python"


def _ddg_results(*links: str) -> str:
    anchors = "".join(
        f'<div class="result__body"><a class="result__a" href="{link}">r</a></div>'
        for link in links
    )
    return f"<html><body>{anchors}</body></html>"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(cache=CacheSettings(path=str(tmp_path / "cache" / "answers")))


@pytest.fixture()
def router() -> Iterator[respx.MockRouter]:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def search_route(router: respx.MockRouter) -> respx.Route:
    return router.get(host="duckduckgo.com", path="/html/")


class TestRun:
    async def test_code_answers_in_link_order(
        self,
        settings: Settings,
        router: respx.MockRouter,
        search_route: respx.Route,
        make_page: PageFactory,
    ) -> None:
        search_route.mock(return_value=httpx.Response(200, text=_ddg_results(TAGS, Q1, Q2)))
        router.get(Q1).mock(
            return_value=httpx.Response(200, text=make_page(bodies=["<pre>xs[::-1]</pre>"]))
        )
        router.get(Q2).mock(
            return_value=httpx.Response(200, text=make_page(bodies=["<pre>sorted(xs)</pre>"]))
        )

        output = await run("reverse a list", AnswerConfig(numbers=3), settings)

        assert output == (
            f"- Answer from {Q1}\nxs[::-1]{SPLITTER}- Answer from {Q2}\nsorted(xs)"
        )

    async def test_second_run_served_from_cache(
        self,
        settings: Settings,
        router: respx.MockRouter,
        search_route: respx.Route,
        make_page: PageFactory,
    ) -> None:
        search_route.mock(return_value=httpx.Response(200, text=_ddg_results(Q1)))
        page_route = router.get(Q1).mock(return_value=httpx.Response(200, text=make_page()))

        first = await run("reverse", AnswerConfig(), settings)
        second = await run("reverse", AnswerConfig(), settings)

        assert first == second == f"- Answer from {Q1}\nnumber0"
        assert page_route.call_count == 1

        cache = PageCache(settings.cache.path)
        cache.load()
        assert Q1 in cache

    async def test_failed_page_gets_placeholder(
        self,
        settings: Settings,
        router: respx.MockRouter,
        search_route: respx.Route,
        make_page: PageFactory,
    ) -> None:
        search_route.mock(return_value=httpx.Response(200, text=_ddg_results(Q1, Q2)))
        router.get(Q1).mock(return_value=httpx.Response(200, text=make_page()))
        router.get(Q2).mock(return_value=httpx.Response(503))

        output = await run("lists", AnswerConfig(numbers=2), settings)

        assert output.split(SPLITTER) == [
            f"- Answer from {Q1}\nnumber0",
            f"Can't get answer from {Q2}",
        ]

    async def test_links_only_fetches_no_pages(
        self, settings: Settings, router: respx.MockRouter, search_route: respx.Route
    ) -> None:
        search_route.mock(return_value=httpx.Response(200, text=_ddg_results(Q1, Q2)))
        page_route = router.get(Q1)

        output = await run("lists", AnswerConfig(option=OutputOption.LINKS, numbers=1), settings)

        assert output == f"Title - how to reverse a list\n{Q1}"
        assert not page_route.called

    async def test_corrupt_cache_file_is_ignored(
        self,
        settings: Settings,
        router: respx.MockRouter,
        search_route: respx.Route,
        make_page: PageFactory,
    ) -> None:
        cache_path = PageCache(settings.cache.path).path
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("garbage", encoding="utf-8")
        search_route.mock(return_value=httpx.Response(200, text=_ddg_results(Q1)))
        router.get(Q1).mock(return_value=httpx.Response(200, text=make_page()))

        output = await run("reverse", AnswerConfig(), settings)

        assert output == f"- Answer from {Q1}\nnumber0"
        reloaded = PageCache(cache_path)
        reloaded.load()
        assert Q1 in reloaded
