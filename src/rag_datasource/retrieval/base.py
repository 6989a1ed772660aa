"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing :meth:`upsert`, :meth:`query` and :meth:`health_check`.
The ingestion pipeline and the context assembler are backend-agnostic.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar

from rag_datasource.errors import StoreFailure
from rag_datasource.retrieval.models import QueryMatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / class.
    content_key:
        Metadata key under which chunk text is stored.
    timeout:
        Seconds a single backend call may take before it fails with
        :class:`~rag_datasource.errors.StoreFailure`.
    """

    backend_name = "abstract"

    def __init__(self, collection_name: str, *, content_key: str = "content", timeout: float = 30.0) -> None:
        self.collection_name = collection_name
        self.content_key = content_key
        self.timeout = timeout

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(
        self,
        record_id: str,
        vector: list[float],
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Insert or overwrite the record keyed by *record_id*.

        *content* is stored under :attr:`content_key`; *metadata* holds extra
        flat fields (``source``, ``chunk_index`` …).
        """
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        """Return nearest records to *vector*, most similar first."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, ids: list[str]) -> None:
        """Delete records by their IDs.  Optional; raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

    # -- helpers for subclasses -----------------------------------------------

    def build_metadata(self, content: str, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        return {**(metadata or {}), self.content_key: content}

    def _fail(self, operation: str, message: str) -> StoreFailure:
        return StoreFailure(
            f"{self.backend_name} {operation} on {self.collection_name!r} failed: {message}",
            backend=self.backend_name,
            operation=operation,
        )

    def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run *fn* under :attr:`timeout`, mapping every failure to ``StoreFailure``.

        The call runs on a worker thread so that clients without their own
        timeout support cannot block the caller indefinitely.  The timeout
        bounds the caller's wait only: a timed-out call is abandoned, not
        interrupted, and its worker thread keeps running until the client
        returns.  Worker threads are not daemons, so interpreter exit waits
        for a hung call; configure the client's own timeout as well where it
        has one.
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.backend_name}-{operation}")
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise self._fail(operation, f"timed out after {self.timeout}s") from exc
        except StoreFailure:
            raise
        except Exception as exc:
            raise self._fail(operation, f"{type(exc).__name__}: {exc}") from exc
        finally:
            executor.shutdown(wait=False)
