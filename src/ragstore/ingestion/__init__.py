"""
Ingestion — loading, chunking, hashing and embedding of source text.

Public surface
--------------
- :class:`RecursiveTextSplitter` / :class:`TextSplitter` — chunking.
- :class:`TiktokenTokenizer` / :class:`Tokenizer` — token counting.
- :func:`compute_id` / :func:`canonicalize` — content-addressed chunk ids.
- :class:`EmbeddingClient` and its LangChain-backed implementations.
- :class:`FileLoader`, :class:`DirectoryLoader`, :func:`clean_text` — loaders.
"""

from ragstore.ingestion.embedder import (
    EmbeddingClient,
    HuggingFaceEmbeddingClient,
    OpenAIEmbeddingClient,
    get_embedding_client,
)
from ragstore.ingestion.hashing import canonicalize, compute_id
from ragstore.ingestion.splitter import RecursiveTextSplitter, TextSplitter
from ragstore.ingestion.tokenizer import TiktokenTokenizer, Tokenizer

__all__ = [
    "DirectoryLoader",
    "EmbeddingClient",
    "FileLoader",
    "HuggingFaceEmbeddingClient",
    "OpenAIEmbeddingClient",
    "RecursiveTextSplitter",
    "TextSplitter",
    "TiktokenTokenizer",
    "Tokenizer",
    "canonicalize",
    "clean_text",
    "compute_id",
    "get_embedding_client",
]

_LOADER_NAMES = {"DirectoryLoader", "FileLoader", "clean_text"}


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the loaders to avoid pulling in langchain-community at import time."""
    if name in _LOADER_NAMES:
        from ragstore.ingestion import loader

        return getattr(loader, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
