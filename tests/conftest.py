"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
from typing import Any

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings

from rag_datasource.errors import StoreFailure
from rag_datasource.ingestion.embedder import Embedder
from rag_datasource.retrieval.base import VectorStoreBase
from rag_datasource.retrieval.models import QueryMatch, VectorRecord


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store ranking by cosine similarity, or returning canned matches."""

    backend_name = "memory"

    def __init__(self, canned: list[QueryMatch] | None = None, *, fail_queries: bool = False) -> None:
        super().__init__("test-collection")
        self.records: dict[str, VectorRecord] = {}
        self.canned = canned
        self.fail_queries = fail_queries
        self.queries: list[dict[str, Any]] = []

    def upsert(
        self,
        record_id: str,
        vector: list[float],
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.records[record_id] = VectorRecord(
            id=record_id, vector=vector, metadata=self.build_metadata(content, metadata)
        )

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        self.queries.append({"vector": vector, "top_k": top_k, "include_metadata": include_metadata})
        if self.fail_queries:
            raise StoreFailure("memory query failed", backend="memory", operation="query")
        if self.canned is not None:
            return self.canned[:top_k]

        scored = [
            QueryMatch(id=r.id, score=_cosine(vector, r.vector), metadata=dict(r.metadata) if include_metadata else {})
            for r in self.records.values()
        ]
        scored.sort(key=lambda m: m.score or 0.0, reverse=True)
        return scored[:top_k]

    def health_check(self) -> bool:
        return True


class BrokenEmbeddings(Embeddings):
    """Embeddings whose provider is unreachable."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise ConnectionError("embedding endpoint unreachable")

    def embed_query(self, text: str) -> list[float]:
        raise ConnectionError("embedding endpoint unreachable")


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def embedder() -> Embedder:
    return Embedder(DeterministicFakeEmbedding(size=16), "fake-embedding")


@pytest.fixture()
def broken_embedder() -> Embedder:
    return Embedder(BrokenEmbeddings(), "broken-embedding")
