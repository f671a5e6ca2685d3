from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """Cached content for a single question page."""

    url: str
    content: str  # Raw page HTML
    created_at: datetime
    hit_count: int = 0  # Successful reads since the last put


class PageCacheStore(BaseModel):
    """Everything the cache file holds, keyed by page URL."""

    entries: dict[str, CacheEntry] = {}
