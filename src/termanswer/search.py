"""Search-engine providers that turn a query into Stack Overflow links.

Each provider only knows how to build its query URL and how to pull result
links out of its result page; fetching is shared. ``search_links`` tries
HTTPS first and falls back to plain HTTP.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import parse_qs, quote, urlparse

import structlog
from bs4 import BeautifulSoup

from termanswer.errors import ErrorCode, TermAnswerError

if TYPE_CHECKING:
    from termanswer.config import EngineDomains
    from termanswer.protocols import FetcherProtocol, SearchProviderProtocol

log = structlog.get_logger()

SITE_FILTER = "site:stackoverflow.com"


def _site_query(query: str) -> str:
    return quote(f"{SITE_FILTER} {query}", safe=":")


def _hrefs(page: str, *css_selectors: str) -> list[str]:
    """Hrefs matched by the first CSS selector that matches anything."""
    soup = BeautifulSoup(page, "html.parser")
    for css in css_selectors:
        links = [str(a["href"]) for a in soup.select(css) if a.has_attr("href")]
        if links:
            return links
    return []


def _unwrap_redirect(href: str, param: str) -> str:
    """Return the target of an engine redirect link, or ``href`` unchanged."""
    values = parse_qs(urlparse(href).query).get(param)
    return values[0] if values else href


class Bing:
    name = "bing"

    def __init__(self, domain: str = "www.bing.com") -> None:
        self.domain = domain

    def get_query_url(self, query: str, use_https: bool = True) -> str:
        scheme = "https" if use_https else "http"
        return f"{scheme}://{self.domain}/search?q={_site_query(query)}"

    def extract_links(self, page: str) -> list[str] | None:
        links = _hrefs(page, ".b_algo h2 a")
        log.debug("links_extracted", engine=self.name, links=links)
        return links or None


class Google:
    name = "google"

    def __init__(self, domain: str = "www.google.com") -> None:
        self.domain = domain

    def get_query_url(self, query: str, use_https: bool = True) -> str:
        scheme = "https" if use_https else "http"
        return f"{scheme}://{self.domain}/search?q={_site_query(query)}"

    def extract_links(self, page: str) -> list[str] | None:
        links = [
            _unwrap_redirect(href, "q") if href.startswith("/url?") else href
            for href in _hrefs(page, ".r a", ".yuRUbf a")
        ]
        log.debug("links_extracted", engine=self.name, links=links)
        return links or None


class DuckDuckGo:
    name = "duckduckgo"

    def __init__(self, domain: str = "duckduckgo.com") -> None:
        self.domain = domain

    def get_query_url(self, query: str, use_https: bool = True) -> str:
        # The /html/ endpoint serves results without JavaScript.
        scheme = "https" if use_https else "http"
        return f"{scheme}://{self.domain}/html/?q={_site_query(query)}"

    def extract_links(self, page: str) -> list[str] | None:
        links = [_unwrap_redirect(href, "uddg") for href in _hrefs(page, ".result__a")]
        log.debug("links_extracted", engine=self.name, links=links)
        return links or None


def get_provider(engine: str, domains: EngineDomains) -> SearchProviderProtocol:
    """Return the provider configured for ``engine``."""
    if engine == "bing":
        return Bing(domains.bing)
    if engine == "google":
        return Google(domains.google)
    if engine == "duckduckgo":
        return DuckDuckGo(domains.duckduckgo)
    raise TermAnswerError(
        code=ErrorCode.INVALID_INPUT,
        message=f"Unsupported search engine: {engine}",
        suggestion="Use one of: bing, google, duckduckgo.",
        recoverable=False,
    )


async def search_links(
    query: str, provider: SearchProviderProtocol, fetcher: FetcherProtocol
) -> list[str]:
    """Return result links for ``query``, trying HTTPS then HTTP."""
    last_error: TermAnswerError | None = None
    for use_https in (True, False):
        url = provider.get_query_url(query, use_https)
        try:
            page = await fetcher.fetch(url)
        except TermAnswerError as exc:
            log.warning("search_fetch_failed", engine=provider.name, url=url, message=exc.message)
            last_error = exc
            continue
        links = provider.extract_links(page)
        if links:
            log.info("search_complete", engine=provider.name, link_count=len(links))
            return links

    raise TermAnswerError(
        code=ErrorCode.NO_SEARCH_RESULTS,
        message=f"Can't find search result for {query!r}",
        suggestion="Try another search engine with --engine, or rephrase the query.",
        recoverable=False,
    ) from last_error
