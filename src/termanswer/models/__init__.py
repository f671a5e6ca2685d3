from __future__ import annotations

from termanswer.models.answer import AnswerConfig, OutputOption
from termanswer.models.cache import CacheEntry, PageCacheStore

__all__ = [
    # answer
    "AnswerConfig",
    "OutputOption",
    # cache
    "CacheEntry",
    "PageCacheStore",
]
