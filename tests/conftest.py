"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Sequence

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring model downloads or services")


# ── Fakes ──────────────────────────────────────────────────────────────


class WordTokenizer:
    """Whitespace tokenizer: one token per word, decoded with single spaces."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._words: list[str] = []

    def encode(self, text: str) -> list[int]:
        tokens: list[int] = []
        for word in text.split():
            if word not in self._ids:
                self._ids[word] = len(self._words)
                self._words.append(word)
            tokens.append(self._ids[word])
        return tokens

    def decode(self, tokens: Sequence[int]) -> str:
        return " ".join(self._words[t] for t in tokens)


class ByteTokenizer:
    """One token per UTF-8 byte; decoding replaces broken sequences like tiktoken."""

    def encode(self, text: str) -> list[int]:
        return list(text.encode("utf-8"))

    def decode(self, tokens: Sequence[int]) -> str:
        return bytes(tokens).decode("utf-8", errors="replace")


class FakeEmbeddingClient:
    """Deterministic embeddings with call tracking.

    Texts listed in *vectors* get that exact vector; anything else gets a
    hash-derived vector with no zero components.  A batch containing
    *fail_on* raises :class:`ConnectionError`.
    """

    def __init__(
        self,
        dim: int = 8,
        *,
        vectors: dict[str, list[float]] | None = None,
        fail_on: str | None = None,
        delay: float = 0.0,
    ) -> None:
        self.dim = dim
        self.vectors = dict(vectors or {})
        self.fail_on = fail_on
        self.delay = delay
        self.batches: list[list[str]] = []
        self.queries: list[str] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def vector_for(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 - 0.5 for b in digest[: self.dim]]

    def embed_one(self, text: str, model: str | None = None) -> list[float]:
        self.queries.append(text)
        return self.vector_for(text)

    def embed_many(self, texts: Sequence[str], model: str | None = None) -> list[list[float]]:
        with self._lock:
            self.batches.append(list(texts))
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_on is not None and any(self.fail_on in t for t in texts):
                raise ConnectionError("embedding service unavailable")
            return [self.vector_for(t) for t in texts]
        finally:
            with self._lock:
                self._in_flight -= 1


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture()
def tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture()
def embeddings() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()
