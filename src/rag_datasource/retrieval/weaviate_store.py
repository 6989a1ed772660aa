"""Weaviate implementation of the vector-store abstraction.

Cursor-paginated strategy: results are pulled in fixed-size batches through
the GraphQL ``Get`` API with a ``nearVector`` certainty threshold; each
batch after the first passes the last object id of the previous batch as
``after``.  The loop ends on an empty batch, when the cursor stops
advancing, or after ``max_batches`` requests.

Limitations
-----------
A failing batch fails the whole query; batches already fetched are
discarded rather than returned as a partial result.  Weaviate servers only
honour the ``after`` cursor on unfiltered listings and reject it alongside
``nearVector``, so against a live server every request beyond the first
batch fails.  Keep ``top_k`` (or ``batch_size``) large enough that one
batch holds the wanted matches.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import requests

from rag_datasource.errors import InvalidInput
from rag_datasource.retrieval.http_base import HttpVectorStore
from rag_datasource.retrieval.models import QueryMatch

logger = logging.getLogger(__name__)


def object_uuid(record_id: str) -> str:
    """Weaviate requires UUID object ids; derive one deterministically from *record_id*."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, record_id))


class WeaviateVectorStore(HttpVectorStore):
    """Weaviate-backed vector store using cursor pagination.

    Parameters
    ----------
    class_name:
        Weaviate class holding the records.
    url:
        Weaviate base URL, e.g. ``http://localhost:8080``.
    certainty:
        Minimum ``nearVector`` certainty for a record to be returned.
    batch_size:
        Records per page.  When *None* the ``top_k`` passed to :meth:`query`
        is used as the page size.
    max_batches:
        Safety bound on pages fetched by a single :meth:`query`.
    extra_properties:
        Additional object properties fetched into each match's metadata.
    """

    backend_name = "weaviate"

    def __init__(
        self,
        class_name: str,
        *,
        url: str = "http://localhost:8080",
        api_key: str = "",
        session: requests.Session | None = None,
        certainty: float = 0.8,
        batch_size: int | None = None,
        max_batches: int = 20,
        extra_properties: tuple[str, ...] = (),
        content_key: str = "content",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(
            class_name,
            base_url=url,
            api_key=api_key,
            session=session,
            content_key=content_key,
            timeout=timeout,
        )
        if max_batches < 1:
            raise InvalidInput(f"max_batches must be >= 1, got {max_batches}")
        self.certainty = certainty
        self.batch_size = batch_size
        self.max_batches = max_batches
        self.extra_properties = extra_properties

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(
        self,
        record_id: str,
        vector: list[float],
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        properties = {**self.build_metadata(content, metadata), "recordId": record_id}
        payload = {
            "objects": [
                {
                    "class": self.collection_name,
                    "id": object_uuid(record_id),
                    "properties": properties,
                    "vector": vector,
                }
            ]
        }
        body = self._request("upsert", "POST", "/v1/batch/objects", json=payload)
        for obj in body or []:
            errors = ((obj.get("result") or {}).get("errors") or {}).get("error") or []
            if errors:
                messages = "; ".join(str(e.get("message", e)) for e in errors)
                raise self._fail("upsert", messages)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        batch_size = self.batch_size or top_k
        matches: list[QueryMatch] = []
        cursor: str | None = None

        for batch_no in range(1, self.max_batches + 1):
            batch = self._fetch_batch(vector, cursor, batch_size, include_metadata)
            if not batch:
                break
            matches.extend(batch)
            next_cursor = batch[-1].id
            if next_cursor == cursor:
                logger.warning("Weaviate cursor did not advance past %s; stopping", cursor)
                break
            cursor = next_cursor
            logger.debug("Fetched batch %d (%d records) from %s", batch_no, len(batch), self.collection_name)
        else:
            logger.warning(
                "Stopped paging %s after max_batches=%d (%d records)",
                self.collection_name,
                self.max_batches,
                len(matches),
            )
        return matches

    def health_check(self) -> bool:
        try:
            self._request("health_check", "GET", "/v1/.well-known/ready")
            return True
        except Exception:
            logger.warning("Weaviate health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        for record_id in ids:
            self._request(
                "delete",
                "DELETE",
                f"/v1/objects/{self.collection_name}/{object_uuid(record_id)}",
                allow_status=(404,),
            )

    # -- internals ------------------------------------------------------------

    def _build_graphql(self, vector: list[float], cursor: str | None, limit: int, include_metadata: bool) -> str:
        args = [
            f"nearVector: {{vector: {json.dumps(vector)}, certainty: {self.certainty}}}",
            f"limit: {limit}",
        ]
        if cursor:
            args.append(f"after: {json.dumps(cursor)}")
        fields = [self.content_key, *self.extra_properties] if include_metadata else []
        fields.append("_additional { id certainty }")
        return "{ Get { %s(%s) { %s } } }" % (self.collection_name, ", ".join(args), " ".join(fields))

    def _fetch_batch(
        self,
        vector: list[float],
        cursor: str | None,
        limit: int,
        include_metadata: bool,
    ) -> list[QueryMatch]:
        query = self._build_graphql(vector, cursor, limit, include_metadata)
        body = self._request("query", "POST", "/v1/graphql", json={"query": query})
        if not isinstance(body, dict):
            raise self._fail("query", "empty GraphQL response")
        if body.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in body["errors"])
            raise self._fail("query", messages)

        try:
            objects = body["data"]["Get"][self.collection_name] or []
        except (KeyError, TypeError) as exc:
            raise self._fail("query", f"malformed GraphQL response: missing {exc}") from exc

        batch: list[QueryMatch] = []
        for obj in objects:
            additional = obj.get("_additional") or {}
            object_id = additional.get("id")
            if not object_id:
                raise self._fail("query", "object without _additional.id")
            metadata = {k: v for k, v in obj.items() if k != "_additional"} if include_metadata else {}
            batch.append(QueryMatch(id=object_id, score=additional.get("certainty"), metadata=metadata))
        return batch
