"""Embedding clients — the text → vector capability used by ingestion and search.

Anything with ``embed_one`` / ``embed_many`` satisfies
:class:`EmbeddingClient`; two LangChain-backed implementations are
provided and :func:`get_embedding_client` picks one from the settings.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from ragstore.config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingClient(Protocol):
    """Contract for embedding generation.

    ``embed_many`` must return one vector per input text, in input order.
    Failures (network, auth, rate limiting) are raised to the caller;
    retrying is up to the implementation.
    """

    def embed_one(self, text: str, model: str | None = None) -> list[float]:
        ...

    def embed_many(self, texts: Sequence[str], model: str | None = None) -> list[list[float]]:
        ...


class _CachedModelClient(ABC):
    """Shares one LangChain embeddings object per model name across threads."""

    def __init__(self, default_model: str) -> None:
        if not default_model:
            raise ValueError("default_model must be provided")
        self.default_model = default_model
        self._backends: dict[str, Any] = {}
        self._lock = threading.Lock()

    @abstractmethod
    def _create_backend(self, model: str) -> Any:
        """Build the LangChain embeddings object for *model*."""
        ...

    def _backend(self, model: str | None) -> Any:
        name = model or self.default_model
        with self._lock:
            backend = self._backends.get(name)
            if backend is None:
                logger.info("Loading embedding model %s", name)
                backend = self._backends[name] = self._create_backend(name)
        return backend

    def embed_one(self, text: str, model: str | None = None) -> list[float]:
        return list(self._backend(model).embed_query(text))

    def embed_many(self, texts: Sequence[str], model: str | None = None) -> list[list[float]]:
        if not texts:
            return []
        return [list(v) for v in self._backend(model).embed_documents(list(texts))]


class HuggingFaceEmbeddingClient(_CachedModelClient):
    """Local sentence-transformer embeddings via ``langchain-huggingface``."""

    def __init__(self, default_model: str = settings.embedding_model) -> None:
        super().__init__(default_model)

    def _create_backend(self, model: str) -> Any:
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=model)


class OpenAIEmbeddingClient(_CachedModelClient):
    """Embeddings from OpenAI or any OpenAI-compatible server.

    Parameters
    ----------
    default_model:
        Model used when a call does not name one.
    api_key:
        API key.  Local servers (LM Studio, vLLM …) accept any non-empty
        value.
    base_url:
        Endpoint root, e.g. ``http://127.0.0.1:1234/v1``.  Empty means
        OpenAI cloud.
    """

    def __init__(
        self,
        default_model: str = settings.embedding_model,
        *,
        api_key: str = settings.openai_api_key,
        base_url: str = settings.openai_base_url,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must be provided")
        super().__init__(default_model)
        self._api_key = api_key
        self._base_url = base_url

    def _create_backend(self, model: str) -> Any:
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict[str, Any] = {"model": model, "api_key": self._api_key}
        if self._base_url:
            logger.info("Using OpenAI-compatible embeddings endpoint: %s", self._base_url)
            kwargs["base_url"] = self._base_url
            # Compatible servers expect raw strings, not pre-tokenised input.
            kwargs["check_embedding_ctx_length"] = False
        return OpenAIEmbeddings(**kwargs)


def get_embedding_client(provider: str | None = None) -> EmbeddingClient:
    """Build the embedding client named by *provider* (default from settings)."""
    provider = (provider or settings.embedding_provider).lower()
    if provider == "huggingface":
        return HuggingFaceEmbeddingClient()
    if provider == "openai":
        return OpenAIEmbeddingClient()
    raise ValueError(f"Unsupported embedding provider: {provider!r}")
