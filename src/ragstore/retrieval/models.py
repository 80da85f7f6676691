"""Domain models for documents, stored vectors and search hits."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A raw input document before chunking / embedding.

    Attributes
    ----------
    content:
        Full text of the document.
    source:
        Opaque locator — file path, URL, etc.
    metadata:
        Free-form string pairs.  The bundled loaders fill ``file_name``,
        ``size_bytes``, ``extension`` and ``last_modified``; nothing else
        relies on particular keys.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    source: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)


class VectorRecord(BaseModel):
    """A single retrievable unit: chunk text, its embedding, and provenance.

    ``id`` is the content hash of the chunk (see
    :func:`ragstore.ingestion.hashing.compute_id`).  Records are frozen;
    use :meth:`with_embedding` to derive an embedded copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    embedding: list[float] = Field(default_factory=list)
    source: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)

    def with_embedding(self, embedding: list[float]) -> VectorRecord:
        """Return a copy of this record carrying *embedding*."""
        return self.model_copy(update={"embedding": list(embedding)})


class SearchResult(BaseModel):
    """A stored chunk matched by a query, with its cosine score."""

    id: str
    score: float
    content: str
    source: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.score:.2f}] {self.source or 'unknown'}: {self.content[:120]}…"
