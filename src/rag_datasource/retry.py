"""Retry-with-backoff applied at call sites.

None of the core contracts retry on their own; wrap a call with
:func:`with_retry` where resilience is wanted::

    embed = with_retry(embedder.embed, attempts=3)
    vector = embed("some text")
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from rag_datasource.errors import EmbeddingFailure, StoreFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (EmbeddingFailure, StoreFailure)


def with_retry(
    fn: Callable[..., T],
    *,
    attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 30.0,
    jitter: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
) -> Callable[..., T]:
    """Return *fn* wrapped with exponential-backoff retry.

    The last exception is re-raised once *attempts* is exhausted.
    ``attempts <= 1`` returns *fn* unchanged.
    """
    if attempts <= 1:
        return fn

    name = getattr(fn, "__qualname__", repr(fn))

    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "Retry %d/%d for %s after %s",
            retry_state.attempt_number,
            attempts,
            name,
            retry_state.outcome.exception() if retry_state.outcome else "unknown error",
        )

    return retry(
        retry=retry_if_exception_type(retry_on),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=initial_wait, max=max_wait, jitter=jitter),
        before_sleep=_log_retry,
        reraise=True,
    )(fn)
