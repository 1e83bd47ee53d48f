"""
Health, readiness, status and metrics endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from .dependencies import get_indexer, get_metrics, get_store
from ..core.database import ElasticsearchClient
from ..core.errors import StoreUnavailableError
from ..core.indexer import Indexer
from ..core.metrics import CONTENT_TYPE_LATEST, Metrics
from ..models.repository import RepositoryIndexResult

logger = logging.getLogger(__name__)
router = APIRouter()


class StatusResponse(BaseModel):
    """Indexer status response model."""
    indexing: bool
    timestamp: str
    repositories: Dict[str, RepositoryIndexResult]


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Liveness probe."""
    return "OK"


@router.get("/ready", response_class=PlainTextResponse)
async def readiness_check(
    store: ElasticsearchClient = Depends(get_store)
) -> PlainTextResponse:
    """Readiness probe: the search store must answer."""
    try:
        await store.ping()
    except StoreUnavailableError as e:
        logger.warning(f"Readiness check failed: {e}")
        return PlainTextResponse(
            "Elasticsearch unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return PlainTextResponse("READY")


@router.get("/status", response_model=StatusResponse)
async def indexer_status(indexer: Indexer = Depends(get_indexer)) -> StatusResponse:
    """Whether an index run is active and the latest per-repository results."""
    return StatusResponse(
        indexing=indexer.is_indexing,
        timestamp=datetime.now(timezone.utc).isoformat(),
        repositories=indexer.results
    )


@router.get("/metrics")
async def metrics(collector: Metrics = Depends(get_metrics)) -> Response:
    """Prometheus metrics."""
    return Response(content=collector.render(), media_type=CONTENT_TYPE_LATEST)
