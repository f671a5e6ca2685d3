"""Protocol interfaces for swappable components.

The crawler and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory implementations
- Other cache backends and search engines to be swapped in without touching callers
"""

from __future__ import annotations

from typing import Protocol


class CacheProtocol(Protocol):
    """Interface for the page cache backend."""

    def get(self, url: str) -> str | None: ...

    def put(self, url: str, content: str) -> None: ...

    def save(self) -> None: ...


class FetcherProtocol(Protocol):
    """Interface for the HTTP page fetcher."""

    async def fetch(self, url: str) -> str: ...


class SearchProviderProtocol(Protocol):
    """Interface for a search engine that finds question links."""

    name: str

    def get_query_url(self, query: str, use_https: bool = True) -> str: ...

    def extract_links(self, page: str) -> list[str] | None: ...
