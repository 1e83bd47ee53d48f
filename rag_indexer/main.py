"""
Main FastAPI application entry point for the RAG Indexer.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api.health import router as health_router
from .api.search import router as search_router
from .core.config import Settings, get_settings
from .core.database import ElasticsearchClient
from .core.indexer import Indexer
from .core.metrics import Metrics

logger = logging.getLogger(__name__)


def configure_logging(level: str = "info"):
    """Configure process-wide logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_store(settings: Settings, metrics: Metrics) -> ElasticsearchClient:
    """Build the Elasticsearch client from settings."""
    return ElasticsearchClient(
        host=settings.es_host,
        index=settings.es_index,
        username=settings.es_username,
        password=settings.es_password,
        metrics=metrics
    )


async def initial_index_then_refresh(indexer: Indexer):
    """Sync and index once, then keep refreshing on the configured interval."""
    if indexer.settings.cloning_enabled:
        logger.info("Cloning/updating repositories...")
        try:
            await indexer.synchronize_all()
        except Exception as e:
            logger.warning(f"Failed to clone repos: {e}")

    logger.info("Running initial index...")
    try:
        count = await indexer.index_all()
    except Exception as e:
        logger.warning(f"Initial index failed: {e}")
    else:
        logger.info(f"Initial index complete: {count} functions")

    await indexer.run_periodic_refresh()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ElasticsearchClient] = None,
    indexer: Optional[Indexer] = None,
    metrics: Optional[Metrics] = None,
    run_background: bool = True
) -> FastAPI:
    """
    Create the FastAPI application.

    Services not supplied are built from settings during startup; a store
    that cannot be reached aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting RAG Indexer...")

        app_settings = settings or get_settings()
        app_metrics = metrics or Metrics()
        app_store = store
        owns_store = app_store is None

        if app_store is None:
            app_store = build_store(app_settings, app_metrics)
            try:
                await app_store.ping()
                await app_store.ensure_index()
            except Exception as e:
                logger.error(f"Failed to initialize Elasticsearch: {e}")
                await app_store.close()
                raise
            logger.info(f"Elasticsearch index ready: {app_settings.es_index}")

        app.state.settings = app_settings
        app.state.metrics = app_metrics
        app.state.store = app_store
        app.state.indexer = indexer or Indexer(app_settings, app_store, metrics=app_metrics)

        refresh_task: Optional[asyncio.Task] = None
        if run_background:
            refresh_task = asyncio.create_task(initial_index_then_refresh(app.state.indexer))

        yield

        logger.info("Shutting down RAG Indexer...")
        if refresh_task is not None:
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
        if owns_store:
            await app_store.close()

    app = FastAPI(
        title="RAG Indexer",
        description="Function-level code search over indexed Go repositories",
        version="0.1.0",
        lifespan=lifespan
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(search_router, tags=["search"])

    return app


app = create_app()
