from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NETWORK_FAILURE = "NETWORK_FAILURE"
    CACHE_IO_FAILURE = "CACHE_IO_FAILURE"
    CACHE_DECODE_FAILURE = "CACHE_DECODE_FAILURE"
    PAGE_SHAPE_VIOLATION = "PAGE_SHAPE_VIOLATION"
    CHANNEL_CLOSED = "CHANNEL_CLOSED"
    NO_SEARCH_RESULTS = "NO_SEARCH_RESULTS"
    INVALID_INPUT = "INVALID_INPUT"


class TermAnswerError(Exception):
    """Raised for every expected failure condition in the answer pipeline.

    Recoverable errors (network, cache, page shape) are handled close to
    where they occur and never abort a whole query. Non-recoverable ones
    propagate to the CLI, which prints the message and suggestion.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

