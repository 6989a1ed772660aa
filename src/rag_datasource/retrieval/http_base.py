"""Shared plumbing for vector stores reached over plain HTTP."""

from __future__ import annotations

import logging
from typing import Any

import requests

from rag_datasource.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class HttpVectorStore(VectorStoreBase):
    """A :class:`VectorStoreBase` talking JSON over a ``requests.Session``.

    Parameters
    ----------
    base_url:
        Root URL of the service, without trailing slash.
    api_key:
        Sent as a bearer token when non-empty.
    session:
        Optional pre-configured session (connection pooling, proxies, tests).
    """

    def __init__(
        self,
        collection_name: str,
        *,
        base_url: str,
        api_key: str = "",
        session: requests.Session | None = None,
        content_key: str = "content",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(collection_name, content_key=content_key, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        allow_status: tuple[int, ...] = (),
    ) -> Any:
        """Send one request and return the decoded JSON body (``None`` if empty).

        Transport errors, timeouts, non-2xx statuses not listed in
        *allow_status* and undecodable bodies raise ``StoreFailure``.
        """
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, json=json, headers=self._headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise self._fail(operation, f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise self._fail(operation, f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code in allow_status:
            return None
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise self._fail(operation, f"HTTP {resp.status_code}: {resp.text[:200]}") from exc

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise self._fail(operation, "response body is not valid JSON") from exc
