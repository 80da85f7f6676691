"""
Retrieval — vector stores, similarity ranking and the RAG retriever.

The retriever talks to storage only through :class:`VectorStoreBase`, so
the in-memory and file-backed stores are interchangeable.

Public surface
--------------
- :class:`RagRetriever` — main entry point for ingestion and search.
- :class:`VectorStoreBase` — abstract backend.
- :class:`InMemoryVectorStore` — volatile backend.
- :class:`FileVectorStore` — JSON-file backend.
- :class:`Document`, :class:`VectorRecord`, :class:`SearchResult` — data models.
- :func:`normalize`, :func:`cosine_similarity` — vector helpers.
"""

from ragstore.retrieval.base import VectorStoreBase
from ragstore.retrieval.file_store import FileVectorStore
from ragstore.retrieval.memory_store import InMemoryVectorStore
from ragstore.retrieval.models import Document, SearchResult, VectorRecord
from ragstore.retrieval.retriever import RagRetriever
from ragstore.retrieval.vectors import cosine_similarity, normalize

__all__ = [
    "Document",
    "FileVectorStore",
    "InMemoryVectorStore",
    "RagRetriever",
    "SearchResult",
    "VectorRecord",
    "VectorStoreBase",
    "cosine_similarity",
    "normalize",
]
