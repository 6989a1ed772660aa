"""Generic REST implementation of the vector-store abstraction.

Talks to any index service exposing::

    POST {base_url}/indexes/{index}/query   {"vector", "top_k", "include_metadata"}
        -> {"matches": [{"id", "score", "metadata"}, ...]}
    POST {base_url}/indexes/{index}/upsert  {"vectors": [{"id", "values", "metadata"}]}
    GET  {base_url}/health
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from rag_datasource.retrieval.http_base import HttpVectorStore
from rag_datasource.retrieval.models import QueryMatch

logger = logging.getLogger(__name__)


class RestVectorStore(HttpVectorStore):
    """Vector store reached through one HTTP call per operation."""

    backend_name = "rest"

    def __init__(
        self,
        index_name: str,
        *,
        base_url: str,
        api_key: str = "",
        session: requests.Session | None = None,
        content_key: str = "content",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(
            index_name,
            base_url=base_url,
            api_key=api_key,
            session=session,
            content_key=content_key,
            timeout=timeout,
        )

    @property
    def _index_path(self) -> str:
        return f"/indexes/{self.collection_name}"

    def upsert(
        self,
        record_id: str,
        vector: list[float],
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        payload = {
            "vectors": [
                {"id": record_id, "values": vector, "metadata": self.build_metadata(content, metadata)},
            ]
        }
        self._request("upsert", "POST", f"{self._index_path}/upsert", json=payload)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        payload = {"vector": vector, "top_k": top_k, "include_metadata": include_metadata}
        body = self._request("query", "POST", f"{self._index_path}/query", json=payload)
        if not isinstance(body, dict) or not isinstance(body.get("matches"), list):
            raise self._fail("query", "response has no 'matches' list")

        try:
            matches = [QueryMatch(**{**m, "metadata": m.get("metadata") or {}}) for m in body["matches"]]
        except (TypeError, AttributeError, ValidationError) as exc:
            raise self._fail("query", f"malformed match: {exc}") from exc
        return matches[:top_k]

    def health_check(self) -> bool:
        try:
            self._request("health_check", "GET", "/health")
            return True
        except Exception:
            logger.warning("REST vector store health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        self._request("delete", "POST", f"{self._index_path}/delete", json={"ids": ids})
