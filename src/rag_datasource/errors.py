"""Error kinds raised by the ingestion and retrieval layers."""

from __future__ import annotations


class DataSourceError(Exception):
    """Base class for every error raised by ``rag_datasource``."""


class InvalidInput(DataSourceError, ValueError):
    """A caller passed a malformed argument or required configuration is missing.

    Never retried.
    """


class EmbeddingFailure(DataSourceError):
    """The embedding model call was rejected, timed out, or returned an unusable vector."""


class StoreFailure(DataSourceError):
    """A vector-store upsert or query was rejected, timed out, or returned malformed data."""

    def __init__(self, message: str, *, backend: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend
        self.operation = operation
