"""
RAG Indexer: function-level code search catalog backed by Elasticsearch.
"""

__version__ = "0.1.0"
