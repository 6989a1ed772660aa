"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    openai_api_key: str = Field(default="", description="OpenAI API key used for embeddings")
    openai_base_url: str = Field(
        default="",
        description="Base URL of an OpenAI-compatible embedding endpoint. Empty means OpenAI cloud.",
    )
    embedding_provider: Literal["openai", "huggingface"] = "openai"
    embedding_model: str = Field(
        default="text-embedding-3-large",
        description="Embedding model identifier. Must be the same for ingestion and querying.",
    )
    embedding_dimension: int | None = Field(
        default=None,
        description="Expected vector length; vectors of any other length are rejected.",
    )

    # Vector store
    vector_store_backend: Literal["chroma", "weaviate", "rest"] = "chroma"
    content_key: str = "content"

    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "rag_datasource"

    weaviate_url: str = "http://localhost:8080"
    weaviate_api_key: str = ""
    weaviate_class_name: str = "Document"
    weaviate_certainty: float = 0.8
    weaviate_batch_size: int | None = None
    weaviate_max_batches: int = 20

    rest_api_url: str = ""
    rest_index_name: str = "rag_datasource"
    rest_api_key: str = ""

    # Retrieval
    retrieval_top_k: int = 5
    degrade_on_store_failure: bool = True

    # Ingestion
    max_chunk_size: int = 2000
    min_overlap_size: int = 300
    ingest_max_workers: int = 1
    ingest_retry_attempts: int = 1

    # Transport
    request_timeout: float = Field(default=30.0, description="Seconds before a network call is abandoned")

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Default instance used by the factories and the CLI.
settings = Settings()
