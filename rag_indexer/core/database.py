"""
Elasticsearch client for storing and searching function records.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .errors import (
    StoreDecodeError,
    StoreRequestFailedError,
    StoreUnavailableError,
)
from .metrics import Metrics
from ..models.function_record import FunctionRecord, SearchResponse

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = 0.5
RETRY_MULTIPLIER = 2
REQUEST_TIMEOUT = 30.0
DEFAULT_SEARCH_LIMIT = 10

INDEX_MAPPING: Dict[str, Any] = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
        "refresh_interval": "30s"
    },
    "mappings": {
        "properties": {
            "repo": {"type": "keyword"},
            "file_path": {"type": "keyword"},
            "function_name": {"type": "keyword"},
            "code": {"type": "text", "analyzer": "standard"},
            "has_namedreturns": {"type": "boolean"},
            "has_error_handling": {"type": "boolean"},
            "package": {"type": "keyword"},
            "imports": {"type": "keyword"},
            "lint_compliant": {"type": "boolean"},
            "indexed_at": {"type": "date"}
        }
    }
}


def build_search_query(query: str, limit: int) -> Dict[str, Any]:
    """
    Build the relevance query for a free-text search.

    Function names weigh most, code next, package least; documents with
    named returns and then error handling sort ahead before relevance.
    """
    if limit <= 0:
        limit = DEFAULT_SEARCH_LIMIT

    return {
        "query": {
            "multi_match": {
                "query": query,
                "fields": ["function_name^3", "code^2", "package"]
            }
        },
        "size": limit,
        "sort": [
            {"has_namedreturns": "desc"},
            {"has_error_handling": "desc"},
            "_score"
        ]
    }


class ElasticsearchClient:
    """Elasticsearch client for function record operations."""

    def __init__(
        self,
        host: str,
        index: str,
        username: str = "",
        password: str = "",
        metrics: Optional[Metrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = MAX_RETRIES,
        retry_backoff: float = RETRY_BACKOFF
    ):
        """
        Initialize the client.

        Args:
            host: Base URL of the Elasticsearch cluster
            index: Name of the index holding function records
            username: Basic auth user; auth is disabled when empty
            password: Basic auth password
            metrics: Metrics collector for request outcomes
            transport: Optional httpx transport, used to simulate the store in tests
            max_retries: Retries after the first attempt for retryable failures
            retry_backoff: Delay before the first retry, doubled each attempt
        """
        self.host = host.rstrip('/')
        self.index = index
        self.metrics = metrics or Metrics()
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.client = httpx.AsyncClient(
            base_url=self.host,
            auth=(username, password) if username else None,
            timeout=REQUEST_TIMEOUT,
            transport=transport
        )

    async def close(self):
        """Close the underlying HTTP session."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send a request, retrying transport errors and 5xx responses.

        Successful and 4xx responses are returned without retry. The backoff
        sleep is cancellable with the calling task.

        Raises:
            StoreRequestFailedError: When every attempt failed
        """
        backoff = self.retry_backoff
        last_status: Optional[int] = None
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(backoff)
                backoff *= RETRY_MULTIPLIER

            try:
                response = await self.client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Elasticsearch {method} {path} attempt {attempt + 1} failed: {e}")
                continue

            if response.status_code < 500:
                return response

            last_status = response.status_code
            last_error = None
            logger.warning(
                f"Elasticsearch {method} {path} attempt {attempt + 1} returned {response.status_code}"
            )

        if last_error is not None:
            raise StoreRequestFailedError(
                f"elasticsearch request failed after {self.max_retries} retries: {last_error}"
            )
        raise StoreRequestFailedError(
            f"elasticsearch request failed after {self.max_retries} retries: status {last_status}",
            status_code=last_status
        )

    async def ping(self):
        """
        Verify that Elasticsearch is reachable.

        Raises:
            StoreUnavailableError: If the cluster does not answer successfully
        """
        try:
            response = await self.client.get("/")
        except httpx.TransportError as e:
            raise StoreUnavailableError(f"failed to connect to Elasticsearch: {e}") from e

        if response.status_code >= 300:
            raise StoreUnavailableError(f"elasticsearch returned status {response.status_code}")

    async def index_exists(self) -> bool:
        """
        Check whether the index exists.

        Raises:
            StoreRequestFailedError: If the answer is neither 200 nor 404
        """
        try:
            response = await self.client.head(f"/{self.index}")
        except httpx.TransportError as e:
            raise StoreRequestFailedError(f"failed to check if index exists: {e}") from e

        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise StoreRequestFailedError(
            f"unexpected status code checking index: {response.status_code}",
            status_code=response.status_code
        )

    async def ensure_index(self):
        """Create the index with the fixed mapping unless it already exists."""
        if await self.index_exists():
            logger.info(f"Index {self.index} already exists")
            return

        response = await self._request_with_retry("PUT", f"/{self.index}", json=INDEX_MAPPING)
        if response.status_code >= 300:
            raise StoreRequestFailedError(
                f"elasticsearch error creating index: {response.status_code} - {response.text}",
                status_code=response.status_code
            )
        logger.info(f"Created index {self.index}")

    async def index_document(self, record: FunctionRecord):
        """Submit one function record as a new document."""
        try:
            response = await self._request_with_retry(
                "POST", f"/{self.index}/_doc", json=record.to_document()
            )
        except StoreRequestFailedError:
            self.metrics.es_requests.labels(operation="index", status="error").inc()
            raise

        if response.status_code >= 300:
            self.metrics.es_requests.labels(operation="index", status="error").inc()
            raise StoreRequestFailedError(
                f"elasticsearch error: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

        self.metrics.es_requests.labels(operation="index", status="success").inc()

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[FunctionRecord]:
        """
        Search function records by free text.

        Args:
            query: Free-text query
            limit: Maximum results; non-positive values mean the default of 10

        Returns:
            Matching records in ranking order
        """
        body = build_search_query(query, limit)

        try:
            response = await self._request_with_retry("POST", f"/{self.index}/_search", json=body)
        except StoreRequestFailedError:
            self.metrics.es_requests.labels(operation="search", status="error").inc()
            raise

        if response.status_code >= 300:
            self.metrics.es_requests.labels(operation="search", status="error").inc()
            raise StoreRequestFailedError(
                f"elasticsearch error: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

        try:
            search_response = SearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.metrics.es_requests.labels(operation="search", status="error").inc()
            raise StoreDecodeError(f"failed to decode search response: {e}") from e

        self.metrics.es_requests.labels(operation="search", status="success").inc()
        return search_response.records

