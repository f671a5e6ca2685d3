"""Application state container.

AppState is created once at startup by the CLI and handed to the answer
pipeline. The cache handle lives here rather than in a module-level global
so tests can pass an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from termanswer.config import Settings
    from termanswer.protocols import CacheProtocol, FetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient | None = None
    cache: CacheProtocol | None = None
    fetcher: FetcherProtocol | None = None
