"""JSON-file-backed vector store.

The whole collection lives in one JSON array on disk::

    [
      {
        "id":        "<sha256 of canonical chunk text>",
        "content":   "<chunk text>",
        "embedding": [0.012, -0.034, ...],
        "source":    "<file path or URL>",
        "metadata":  {"file_name": "notes.txt", ...}
      },
      ...
    ]

The file is loaded once at construction and rewritten in full after every
mutating call, so each write costs O(n).  That keeps the format trivially
inspectable and is fine for collections of a few tens of thousands of
chunks.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Iterable
from pathlib import Path

from pydantic import TypeAdapter

from ragstore.config import settings
from ragstore.retrieval.base import VectorStoreBase
from ragstore.retrieval.models import VectorRecord

logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = TypeAdapter(list[VectorRecord])


class FileVectorStore(VectorStoreBase):
    """Persistent store that mirrors a JSON file in memory.

    Parameters
    ----------
    path:
        Location of the JSON file.  Parent directories are created on the
        first write.  An existing file is loaded immediately.

    Mutations are serialised by a lock and follow write-then-publish: the
    new record set is saved to disk first and only then replaces the
    in-memory snapshot, so a failed save leaves both unchanged.  Searches
    read the current snapshot without locking.
    """

    def __init__(self, path: str | Path = settings.store_path) -> None:
        self.path = Path(path)
        self._write_lock = threading.Lock()
        self._records: dict[str, VectorRecord] = self._load()

    # -- VectorStoreBase overrides --------------------------------------------

    def add_batch(self, records: Iterable[VectorRecord]) -> int:
        with self._write_lock:
            added = self._merge(self._records, records)
            if not added:
                return 0
            updated = {**self._records, **added}
            self._save(updated)
            self._records = updated
        logger.info("Persisted %d new records to %s (total=%d)", len(added), self.path, len(updated))
        return len(added)

    def contains(self, record_id: str) -> bool:
        return bool(record_id) and record_id in self._records

    def records(self) -> list[VectorRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        with self._write_lock:
            self._save({})
            self._records = {}
        logger.info("Cleared vector store %s", self.path)

    # -- persistence ----------------------------------------------------------

    def _load(self) -> dict[str, VectorRecord]:
        if not self.path.exists():
            logger.info("No vector store at %s yet; starting empty", self.path)
            return {}

        raw = self.path.read_bytes()
        if not raw.strip():
            return {}

        loaded: dict[str, VectorRecord] = {}
        for record in _RECORDS_ADAPTER.validate_json(raw):
            loaded.setdefault(record.id, record)
        logger.info("Loaded %d records from %s", len(loaded), self.path)
        return loaded

    def _save(self, records: dict[str, VectorRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = _RECORDS_ADAPTER.dump_json(list(records.values()), indent=2)

        # Atomic replace; the file on disk is never half-written.
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
