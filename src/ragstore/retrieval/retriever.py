"""RAG retriever — chunk, deduplicate, embed and store documents; search them.

This module is the **primary public interface** of the package.  Every
collaborator is injected, so tests and notebooks can swap in fakes.

Usage::

    from ragstore.ingestion.embedder import get_embedding_client
    from ragstore.retrieval import FileVectorStore, RagRetriever

    retriever = RagRetriever(get_embedding_client(), FileVectorStore("vectors.json"))
    retriever.add_documents(docs)
    for hit in retriever.search("How do black holes evaporate?", top_k=5):
        print(f"{hit.score:.2f}", hit.source, hit.content[:80])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

from ragstore.config import settings
from ragstore.ingestion.embedder import EmbeddingClient
from ragstore.ingestion.hashing import compute_id
from ragstore.ingestion.splitter import RecursiveTextSplitter, TextSplitter
from ragstore.retrieval.base import VectorStoreBase
from ragstore.retrieval.models import Document, SearchResult, VectorRecord
from ragstore.retrieval.vectors import normalize

logger = logging.getLogger(__name__)


class RagRetriever:
    """Ingestion and semantic search over a :class:`VectorStoreBase`.

    Parameters
    ----------
    embeddings:
        Text → vector capability used for chunks and queries.
    store:
        Where embedded chunks live.
    splitter:
        Chunking strategy.  Defaults to a :class:`RecursiveTextSplitter`
        over a tiktoken tokenizer configured from the settings.
    """

    def __init__(
        self,
        embeddings: EmbeddingClient,
        store: VectorStoreBase,
        splitter: TextSplitter | None = None,
    ) -> None:
        if embeddings is None:
            raise ValueError("embeddings client is required")
        if store is None:
            raise ValueError("store is required")
        if splitter is None:
            from ragstore.ingestion.tokenizer import TiktokenTokenizer

            splitter = RecursiveTextSplitter(TiktokenTokenizer())

        self._embeddings = embeddings
        self._store = store
        self._splitter = splitter

    @property
    def store(self) -> VectorStoreBase:
        return self._store

    # -- ingestion ------------------------------------------------------------

    def add_document(self, document: Document) -> int:
        """Ingest a single document.  See :meth:`add_documents`."""
        return self.add_documents([document])

    def add_documents(
        self,
        documents: Iterable[Document],
        *,
        batch_size: int = settings.batch_size,
        max_parallel: int = settings.max_parallel,
    ) -> int:
        """Split, embed and store *documents*.

        Chunks are keyed by content hash, so text that is already stored,
        or that repeats within this call, is embedded only once.  New
        chunks are embedded in batches of *batch_size* with at most
        *max_parallel* embedding calls in flight, then written to the
        store in a single ``add_batch``.

        If any embedding call fails the error propagates and nothing from
        this call is stored.

        Returns
        -------
        int
            Number of records added to the store (0 when there was nothing
            new to add).
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_parallel < 1:
            raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")

        candidates = self._chunk(documents)
        if not candidates:
            logger.info("No chunks produced from input documents.")
            return 0
        logger.info("%d unique chunks produced.", len(candidates))

        pending = [c for c in candidates if not self._store.contains(c.id)]
        if not pending:
            logger.info("All chunks already exist in the store. Nothing new to add.")
            return 0
        logger.info("%d new chunks to embed.", len(pending))

        batches = [pending[i : i + batch_size] for i in range(0, len(pending), batch_size)]
        logger.info(
            "Embedding %d batches (batch_size=%d, max_parallel=%d).",
            len(batches),
            batch_size,
            max_parallel,
        )

        embedded = self._embed_batches(batches, max_parallel)
        added = self._store.add_batch(embedded)
        logger.info("Ingestion complete: %d chunks added to the store.", added)
        return added

    # -- search ---------------------------------------------------------------

    def search(self, query: str, top_k: int = settings.default_top_k) -> list[SearchResult]:
        """Return the *top_k* stored chunks most similar to *query*."""
        query_vector = normalize(self._embeddings.embed_one(query))
        return self._store.search(query_vector, top_k)

    # -- internals ------------------------------------------------------------

    def _chunk(self, documents: Iterable[Document]) -> list[VectorRecord]:
        """Split every document into id-keyed records, first occurrence wins."""
        unique: dict[str, VectorRecord] = {}
        for doc in documents:
            for chunk in self._splitter.split(doc.content):
                chunk_id = compute_id(chunk)
                if chunk_id in unique:
                    continue
                unique[chunk_id] = VectorRecord(
                    id=chunk_id,
                    content=chunk,
                    source=doc.source,
                    metadata=dict(doc.metadata),
                )
        return list(unique.values())

    def _embed_batches(
        self, batches: list[list[VectorRecord]], max_parallel: int
    ) -> list[VectorRecord]:
        results: list[list[VectorRecord]] = [[] for _ in batches]
        workers = min(max_parallel, len(batches))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ragstore-embed") as executor:
            futures = {
                executor.submit(self._embed_batch, batch, index, len(batches)): index
                for index, batch in enumerate(batches)
            }
            try:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

        # Batch order, not completion order, so insertion order follows the documents.
        return [record for batch in results for record in batch]

    def _embed_batch(self, batch: list[VectorRecord], index: int, total: int) -> list[VectorRecord]:
        logger.debug("Embedding batch %d/%d with %d chunks...", index + 1, total, len(batch))
        vectors = self._embeddings.embed_many([record.content for record in batch])
        if len(vectors) != len(batch):
            raise ValueError(
                f"Embedding client returned {len(vectors)} vectors for {len(batch)} texts"
            )
        logger.debug("Completed batch %d/%d.", index + 1, total)
        return [record.with_embedding(normalize(v)) for record, v in zip(batch, vectors)]
