"""
Prometheus metrics for indexing and search store operations.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST

__all__ = ["Metrics", "CONTENT_TYPE_LATEST"]


class Metrics:
    """Counters, histograms and gauges observed by the indexing core."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.functions_indexed = Counter(
            'code_indexer_functions_indexed_total',
            'Total number of functions indexed',
            ['repo'],
            registry=self.registry
        )
        self.repos_indexed = Counter(
            'code_indexer_repos_indexed_total',
            'Total number of repositories indexed',
            registry=self.registry
        )
        self.indexing_duration = Histogram(
            'code_indexer_indexing_duration_seconds',
            'Time taken to index a repository',
            ['repo'],
            registry=self.registry
        )
        self.parse_errors = Counter(
            'code_indexer_parse_errors_total',
            'Total number of parse errors',
            ['repo', 'file'],
            registry=self.registry
        )
        self.es_requests = Counter(
            'code_indexer_elasticsearch_requests_total',
            'Total number of Elasticsearch requests',
            ['operation', 'status'],
            registry=self.registry
        )
        self.last_successful_index = Gauge(
            'code_indexer_last_successful_index_timestamp',
            'Timestamp of last successful index',
            ['repo'],
            registry=self.registry
        )

    def render(self) -> bytes:
        """Exposition text for a scrape."""
        return generate_latest(self.registry)
