"""Chroma implementation of the vector-store abstraction.

Single-call strategy: one ``collection.query`` returns up to ``top_k``
matches ordered by descending similarity.
"""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from rag_datasource.retrieval.base import VectorStoreBase
from rag_datasource.retrieval.models import QueryMatch

logger = logging.getLogger(__name__)


def _first(results: dict[str, Any], key: str) -> list[Any]:
    value = results.get(key)
    if not value:
        return []
    return value[0] or []


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    client:
        An existing Chroma client.  When *None* an ``HttpClient`` is created
        for *host* / *port*.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        HNSW space used when the collection is created (``cosine`` | ``l2`` | ``ip``).
    """

    backend_name = "chroma"

    def __init__(
        self,
        collection_name: str,
        *,
        client: Any | None = None,
        host: str = "localhost",
        port: int = 8000,
        distance_metric: str = "cosine",
        content_key: str = "content",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(collection_name, content_key=content_key, timeout=timeout)
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collection = self._call(
            "get_collection",
            self._client.get_or_create_collection,
            collection_name,
            metadata={"hnsw:space": distance_metric},
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(
        self,
        record_id: str,
        vector: list[float],
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._call(
            "upsert",
            self._collection.upsert,
            ids=[record_id],
            embeddings=[vector],
            documents=[content],
            metadatas=[self.build_metadata(content, metadata)],
        )

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        include = ["distances", "metadatas"] if include_metadata else ["distances"]
        results = self._call(
            "query",
            self._collection.query,
            query_embeddings=[vector],
            n_results=top_k,
            include=include,
        )
        if not isinstance(results, dict):
            raise self._fail("query", f"unexpected response type {type(results).__name__}")

        ids = _first(results, "ids")
        distances = _first(results, "distances")
        metas = _first(results, "metadatas") if include_metadata else []
        if len(distances) != len(ids) or (metas and len(metas) != len(ids)):
            raise self._fail("query", "ids, distances and metadatas differ in length")

        matches: list[QueryMatch] = []
        for i, record_id in enumerate(ids):
            # Chroma returns distances; convert to a 0-1 similarity score.
            score = 1.0 / (1.0 + distances[i])
            meta = (metas[i] if metas else None) or {}
            matches.append(QueryMatch(id=record_id, score=score, metadata=dict(meta)))
        return matches

    def health_check(self) -> bool:
        try:
            self._call("heartbeat", self._client.heartbeat)
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        self._call("delete", self._collection.delete, ids=ids)
