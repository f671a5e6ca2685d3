"""Command-line entrypoint.

Responsibilities (and nothing more):
- Parse arguments into an AnswerConfig and Settings overrides
- Configure structlog
- Create AppState (client, cache, fetcher) and tear it down
- Search, fetch answers, print them
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from termanswer import __version__
from termanswer.answer import get_answers
from termanswer.cache import PageCache
from termanswer.config import Settings
from termanswer.errors import TermAnswerError
from termanswer.fetcher import Fetcher, build_http_client
from termanswer.models.answer import AnswerConfig, OutputOption
from termanswer.search import get_provider, search_links
from termanswer.state import AppState

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()

ENGINES = ("bing", "google", "duckduckgo")


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout carries only the answers
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termanswer",
        description="Instant coding answers from Stack Overflow, in the terminal.",
    )
    parser.add_argument("query", nargs="*", help="the question to ask")
    parser.add_argument(
        "-a", "--all", action="store_true", help="display the full text of the answer."
    )
    parser.add_argument(
        "-l", "--link", action="store_true", help="display only the answer link."
    )
    parser.add_argument("-c", "--color", action="store_true", help="enable colorized output.")
    parser.add_argument(
        "-n",
        "--number-answers",
        type=int,
        default=1,
        help="number of answers to return.",
    )
    parser.add_argument(
        "-e",
        "--engine",
        choices=ENGINES,
        default=None,
        help="search engine used to find questions (default from config: duckduckgo).",
    )
    parser.add_argument("--disable-proxy", action="store_true", help="disable system proxy.")
    parser.add_argument(
        "--clear-cache", action="store_true", help="remove the local answer cache and exit."
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def init_config(args: argparse.Namespace) -> AnswerConfig:
    """Build the per-query config from parsed arguments."""
    if args.link:
        option = OutputOption.LINKS
    elif args.all:
        option = OutputOption.ALL
    else:
        option = OutputOption.ONLY_CODE
    return AnswerConfig(option=option, numbers=args.number_answers, colorize=args.color)


def init_settings(args: argparse.Namespace) -> Settings:
    settings = Settings()
    if args.engine is not None:
        settings.search.engine = args.engine
    if args.disable_proxy:
        settings.fetcher.trust_env = False
    return settings


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


async def run(query: str, config: AnswerConfig, settings: Settings) -> str:
    """Search for ``query`` and return the printable answers."""
    http_client = build_http_client(settings.fetcher)
    fetcher = Fetcher(http_client)
    state = AppState(
        settings=settings,
        http_client=http_client,
        cache=PageCache.open(settings.cache),
        fetcher=fetcher,
    )
    log.info("query_started", query=query, engine=settings.search.engine)
    try:
        provider = get_provider(settings.search.engine, settings.search.domains)
        links = await search_links(query, provider, fetcher)
        return await get_answers(links, config, state)
    finally:
        await http_client.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = init_config(args)
    except ValidationError:
        parser.error("--number-answers must be at least 1")

    settings = init_settings(args)
    setup_logging(settings)

    if args.clear_cache:
        try:
            PageCache(settings.cache.path).clear()
        except TermAnswerError as exc:
            print(exc.message, file=sys.stderr)
            return 1
        print(f"Cache cleared: {settings.cache.path}")
        return 0

    if not args.query:
        parser.error("the following arguments are required: query")

    try:
        output = asyncio.run(run(" ".join(args.query), config, settings))
    except TermAnswerError as exc:
        log.error("query_failed", code=exc.code, message=exc.message)
        print(f"{exc.message}\n{exc.suggestion}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
