"""
Request dependencies resolving the services built at startup.
"""

from fastapi import Request

from ..core.database import ElasticsearchClient
from ..core.indexer import Indexer
from ..core.metrics import Metrics


def get_store(request: Request) -> ElasticsearchClient:
    """Get the Elasticsearch client."""
    return request.app.state.store


def get_indexer(request: Request) -> Indexer:
    """Get the indexing orchestrator."""
    return request.app.state.indexer


def get_metrics(request: Request) -> Metrics:
    """Get the metrics collector."""
    return request.app.state.metrics
