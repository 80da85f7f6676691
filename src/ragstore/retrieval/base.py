"""Abstract base class for vector-store backends.

A backend keeps :class:`~ragstore.retrieval.models.VectorRecord` objects
keyed by id and ranks them against a query vector.  Inserts never
overwrite: adding an id that is already stored does nothing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from ragstore.ingestion.hashing import compute_id
from ragstore.retrieval.models import SearchResult, VectorRecord
from ragstore.retrieval.vectors import cosine_similarity


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add_batch(self, records: Iterable[VectorRecord]) -> int:
        """Insert every record whose id is not stored yet.

        The whole batch becomes visible at once.  Returns the number of
        records actually inserted.
        """
        ...

    @abstractmethod
    def contains(self, record_id: str) -> bool:
        """Return ``True`` when a record with *record_id* is stored."""
        ...

    @abstractmethod
    def records(self) -> list[VectorRecord]:
        """Return a snapshot of all records in insertion order."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""
        ...

    # -- shared behaviour -----------------------------------------------------

    def add(self, record: VectorRecord) -> bool:
        """Insert a single record; returns ``False`` if its id was already stored."""
        return self.add_batch([record]) == 1

    def search(self, query_vector: list[float], top_k: int = 3) -> list[SearchResult]:
        """Return the *top_k* records most similar to *query_vector*.

        Every stored record is scored with cosine similarity (the query is
        not assumed to be normalised).  Results are ordered by descending
        score; equal scores keep insertion order.
        """
        if top_k <= 0:
            return []

        scored = [(cosine_similarity(query_vector, r.embedding), r) for r in self.records()]
        # sort() is stable, so ties stay in insertion order.
        scored.sort(key=lambda pair: pair[0], reverse=True)

        return [
            SearchResult(
                id=record.id,
                score=score,
                content=record.content,
                source=record.source,
                metadata=dict(record.metadata),
            )
            for score, record in scored[:top_k]
        ]

    def __len__(self) -> int:
        return len(self.records())

    # -- helpers for subclasses -----------------------------------------------

    @staticmethod
    def _merge(
        existing: dict[str, VectorRecord], incoming: Iterable[VectorRecord]
    ) -> dict[str, VectorRecord]:
        """Return the records from *incoming* whose ids are new, in order.

        Records without an id are keyed by the hash of their content.
        Within *incoming* the first occurrence of an id wins.
        """
        added: dict[str, VectorRecord] = {}
        for record in incoming:
            record_id = record.id
            if not record_id or not record_id.strip():
                record_id = compute_id(record.content)
                record = record.model_copy(update={"id": record_id})
            if record_id in existing or record_id in added:
                continue
            added[record_id] = record
        return added
