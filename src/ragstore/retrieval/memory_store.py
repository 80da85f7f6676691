"""Volatile in-process vector store."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from ragstore.retrieval.base import VectorStoreBase
from ragstore.retrieval.models import VectorRecord


class InMemoryVectorStore(VectorStoreBase):
    """Dictionary-backed store searched by linear scan.

    Suitable for tests, notebooks and small collections; everything is
    lost when the process exits.  Writers are serialised by a lock and
    publish a fresh mapping, so readers never see half of a batch.
    """

    def __init__(self) -> None:
        self._records: dict[str, VectorRecord] = {}
        self._write_lock = threading.Lock()

    def add_batch(self, records: Iterable[VectorRecord]) -> int:
        with self._write_lock:
            added = self._merge(self._records, records)
            if added:
                self._records = {**self._records, **added}
        return len(added)

    def contains(self, record_id: str) -> bool:
        return bool(record_id) and record_id in self._records

    def records(self) -> list[VectorRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        with self._write_lock:
            self._records = {}
