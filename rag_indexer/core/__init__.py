"""
Core business logic for the RAG Indexer.
"""

from .locks import IndexRunSlot
from .parser import GoParser, ParseResult
from .walker import TreeWalker
from .git_sync import RepositorySynchronizer
from .database import ElasticsearchClient
from .indexer import Indexer

__all__ = [
    "IndexRunSlot",
    "GoParser",
    "ParseResult",
    "TreeWalker",
    "RepositorySynchronizer",
    "ElasticsearchClient",
    "Indexer",
]
