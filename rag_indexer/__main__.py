#!/usr/bin/env python3
"""
Command line entry point: python -m rag_indexer --mode {serve,index,search}.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from .core.config import Settings, get_settings
from .core.errors import IndexerError
from .core.indexer import Indexer
from .core.metrics import Metrics
from .main import build_store, configure_logging, create_app

logger = logging.getLogger(__name__)

UVICORN_LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


async def run_index_mode(settings: Settings) -> int:
    """Run a one-shot index of all repositories."""
    metrics = Metrics()
    async with build_store(settings, metrics) as store:
        await store.ping()
        await store.ensure_index()

        indexer = Indexer(settings, store, metrics=metrics)
        logger.info("Running one-shot index...")
        count = await indexer.index_all()

    print(f"Index complete: {count} functions indexed")
    return 0


async def run_search_mode(settings: Settings, query: str) -> int:
    """Run a search and print the results."""
    async with build_store(settings, Metrics()) as store:
        await store.ping()
        results = await store.search(query, 10)

    if not results:
        print("No results found")
        return 0

    for i, result in enumerate(results, start=1):
        print(f"\n=== Result {i}: {result.repo}/{result.file_path} - {result.function_name} ===")
        print(f"Named Returns: {result.has_namedreturns}")
        print(f"\n{result.code}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and dispatch to the requested mode."""
    parser = argparse.ArgumentParser(description="Index Go repositories into Elasticsearch")
    parser.add_argument(
        "--mode",
        choices=["serve", "index", "search"],
        default="serve",
        help="Run mode: serve, index, or search"
    )
    parser.add_argument("query", nargs="*", help="Search query (search mode)")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.mode == "serve":
        host, port = settings.http_host_port
        log_level = settings.log_level.lower()
        if log_level not in UVICORN_LOG_LEVELS:
            log_level = "info"
        uvicorn.run(create_app(settings=settings), host=host, port=port, log_level=log_level)
        return 0

    try:
        if args.mode == "index":
            return asyncio.run(run_index_mode(settings))

        query = " ".join(args.query)
        if not query:
            parser.error("Search query required")
        return asyncio.run(run_search_mode(settings, query))
    except IndexerError as e:
        logger.error(f"{args.mode} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
