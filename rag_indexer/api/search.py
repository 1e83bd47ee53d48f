"""
Search and reindex API endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse

from .dependencies import get_indexer, get_store
from ..core.database import ElasticsearchClient
from ..core.errors import IndexerError
from ..core.indexer import Indexer
from ..models.function_record import FunctionRecord, SearchRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


@router.post("/search", response_model=List[FunctionRecord])
async def search(
    request: SearchRequest,
    store: ElasticsearchClient = Depends(get_store)
) -> List[FunctionRecord]:
    """Search indexed functions by free text."""
    if not request.query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query is required"
        )

    try:
        return await store.search(request.query, request.limit)
    except IndexerError as e:
        logger.error(f"Search error for query {request.query!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search failed"
        )


async def _run_reindex(indexer: Indexer):
    """Run a full index run, logging its outcome."""
    try:
        count = await indexer.index_all()
    except Exception as e:
        logger.error(f"Reindex error: {e}")
    else:
        logger.info(f"Reindex complete: {count} functions")


@router.post("/reindex", status_code=status.HTTP_202_ACCEPTED, response_class=PlainTextResponse)
async def reindex(
    background_tasks: BackgroundTasks,
    indexer: Indexer = Depends(get_indexer)
) -> str:
    """Trigger a background index run; queued behind any active run."""
    background_tasks.add_task(_run_reindex, indexer)
    return "Reindex triggered"
