"""HTTP page fetcher.

All network I/O goes through a single Fetcher instance that receives an
httpx.AsyncClient via constructor injection; the CLI owns the client
lifecycle. Each request carries a User-Agent picked at random from a small
pool of desktop browsers; some search engines answer bare clients with an
empty or captcha page.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

import httpx
import structlog

from termanswer.errors import ErrorCode, TermAnswerError

if TYPE_CHECKING:
    from termanswer.config import FetcherSettings

log = structlog.get_logger()

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.14; rv:66.0) Gecko/20100101 Firefox/66.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (X11; Linux x86_64; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
)


def random_agent() -> str:
    return random.choice(USER_AGENTS)


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup.

    httpx keeps a cookie jar per client, so cookies set by one response are
    replayed on later requests of the same run.
    """
    timeout = settings.timeout_seconds if settings is not None else 30.0
    trust_env = settings.trust_env if settings is not None else True
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
        trust_env=trust_env,
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


class Fetcher:
    """Single-shot page fetcher; failures are reported, never retried."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch(self, url: str) -> str:
        """Fetch ``url`` and return its text.

        Raises TermAnswerError(NETWORK_FAILURE) when the request cannot be
        made or the response is not 2xx. A URL httpx rejects counts as such.
        """
        try:
            response = await self._client.get(url, headers={"User-Agent": random_agent()})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TermAnswerError(
                code=ErrorCode.NETWORK_FAILURE,
                message=f"Network error fetching {url}: {exc}",
                suggestion="Check your connection or proxy settings and try again.",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise TermAnswerError(
                code=ErrorCode.NETWORK_FAILURE,
                message=f"HTTP {response.status_code} fetching {url}",
                suggestion="The site may be rate limiting requests; try again later.",
                recoverable=True,
            )

        log.debug(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.text),
        )
        return response.text
