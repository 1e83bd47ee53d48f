"""
Data models for the RAG Indexer.
"""

from .function_record import FunctionRecord, SearchRequest, SearchResponse
from .repository import RepositorySnapshot, RepositoryIndexResult

__all__ = [
    "FunctionRecord",
    "SearchRequest",
    "SearchResponse",
    "RepositorySnapshot",
    "RepositoryIndexResult",
]
