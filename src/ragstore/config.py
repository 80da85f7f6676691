"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library-wide defaults, populated from ``RAGSTORE_*`` env vars or a .env file."""

    # Chunking
    chunk_size: int = Field(default=400, description="Maximum tokens per chunk")
    chunk_overlap: int = Field(default=100, description="Tokens shared by consecutive token windows")
    min_chunk_chars: int = Field(default=20, description="Fragments shorter than this are dropped")
    tokenizer_encoding: str = "cl100k_base"

    # Ingestion
    batch_size: int = 32
    max_parallel: int = 2
    default_top_k: int = 3

    # Persistence
    store_path: str = "vector_store.json"

    # Embedding
    embedding_provider: str = Field(
        default="huggingface",
        description="Which embedding backend to build: 'huggingface' or 'openai'",
    )
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_api_key: str = Field(default="", description="API key (any non-empty value for local servers)")
    openai_base_url: str = Field(
        default="",
        description=(
            "Base URL of an OpenAI-compatible embeddings API. Leave empty to use "
            "OpenAI cloud, e.g. 'http://127.0.0.1:1234/v1' for a local server."
        ),
    )

    # Loading
    loader_max_file_bytes: int = 10_000_000

    model_config = {"env_prefix": "RAGSTORE_", "env_file": ".env", "env_file_encoding": "utf-8"}


# Module-level singleton; constructors read their defaults from it.
settings = Settings()
