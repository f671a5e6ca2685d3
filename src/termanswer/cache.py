"""Disk-backed page cache with freshness window and hit-count eviction.

The whole store lives in memory for the duration of one run: it is read once
at startup and written back once when the crawl finishes. Entries older than
the freshness window read as misses but stay in the store until a later
``put`` replaces them or eviction drops them.

``load`` and ``save`` raise ``TermAnswerError`` on failure; callers treat
both as recoverable. ``PageCache.open`` is the usual way in: it falls back
to an empty store and logs the reason with ``exc_info=True``.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from termanswer.errors import ErrorCode, TermAnswerError
from termanswer.models.cache import CacheEntry, PageCacheStore

if TYPE_CHECKING:
    from termanswer.config import CacheSettings

log = structlog.get_logger()

DEFAULT_MAX_ENTRIES = 300
DEFAULT_FRESHNESS = timedelta(days=15)


class PageCache:
    """File-backed page cache implementing CacheProtocol."""

    def __init__(
        self,
        path: Path | str,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        freshness: timedelta = DEFAULT_FRESHNESS,
    ) -> None:
        self._path = Path(path).expanduser()
        self._max_entries = max_entries
        self._freshness = freshness
        self._store = PageCacheStore()

    @classmethod
    def open(cls, settings: CacheSettings) -> PageCache:
        """Build a cache from settings and load it, degrading to empty on failure."""
        cache = cls(
            settings.path,
            max_entries=settings.max_entries,
            freshness=timedelta(days=settings.freshness_days),
        )
        try:
            cache.load()
        except TermAnswerError as exc:
            log.warning("cache_load_error", code=exc.code, path=str(cache.path), exc_info=True)
        return cache

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._store.entries)

    def __contains__(self, url: object) -> bool:
        return url in self._store.entries

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory store with the contents of the cache file.

        The file (and its directory) is created empty when missing; an empty
        file loads as an empty store.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
            raw = self._path.read_bytes()
        except OSError as exc:
            raise TermAnswerError(
                code=ErrorCode.CACHE_IO_FAILURE,
                message=f"Cannot open cache file {self._path}: {exc}",
                suggestion="Check permissions on the cache directory.",
                recoverable=True,
            ) from exc

        if not raw.strip():
            self._store = PageCacheStore()
            return

        try:
            self._store = PageCacheStore.model_validate_json(raw)
        except ValidationError as exc:
            raise TermAnswerError(
                code=ErrorCode.CACHE_DECODE_FAILURE,
                message=f"Cache file {self._path} is corrupt",
                suggestion="Run with --clear-cache to start from an empty cache.",
                recoverable=True,
            ) from exc

        log.debug("cache_loaded", path=str(self._path), entries=len(self))

    def save(self) -> None:
        """Evict if oversized, then overwrite the cache file in one rename."""
        self._evict()
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(self._store.model_dump_json(), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise TermAnswerError(
                code=ErrorCode.CACHE_IO_FAILURE,
                message=f"Cannot write cache file {self._path}: {exc}",
                suggestion="Check free space and permissions on the cache directory.",
                recoverable=True,
            ) from exc
        log.debug("cache_saved", path=str(self._path), entries=len(self))

    def clear(self) -> None:
        """Delete the cache file and forget every entry."""
        self._store = PageCacheStore()
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise TermAnswerError(
                code=ErrorCode.CACHE_IO_FAILURE,
                message=f"Cannot remove cache file {self._path}: {exc}",
                suggestion="Remove the file by hand.",
                recoverable=True,
            ) from exc
        log.info("cache_cleared", path=str(self._path))

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get(self, url: str) -> str | None:
        """Return fresh content for ``url`` and count the hit, else ``None``."""
        entry = self._store.entries.get(url)
        if entry is None:
            return None
        if datetime.now(UTC) - entry.created_at > self._freshness:
            log.debug("cache_stale", url=url, created_at=entry.created_at.isoformat())
            return None
        entry.hit_count += 1
        return entry.content

    def peek(self, url: str) -> CacheEntry | None:
        """Return the raw entry, stale or not, without counting a hit."""
        return self._store.entries.get(url)

    def put(self, url: str, content: str) -> None:
        """Insert or replace the entry for ``url``."""
        now = datetime.now(UTC)
        previous = self._store.entries.get(url)
        if previous is not None and previous.created_at > now:
            # Clock went backwards; never move created_at back.
            now = previous.created_at
        self._store.entries[url] = CacheEntry(url=url, content=content, created_at=now)

    def _evict(self) -> None:
        total = len(self._store.entries)
        if total <= self._max_entries:
            return
        ranked = sorted(self._store.entries.values(), key=lambda e: (-e.hit_count, e.url))
        keep = min(self._max_entries, total - total // 2)
        self._store.entries = {entry.url: entry for entry in ranked[:keep]}
        log.info("cache_evicted", evicted=total - keep, kept=keep)
