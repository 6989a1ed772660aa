"""Context assembly — the retrieval-time contract used by the prompt renderer.

Usage::

    from rag_datasource.retrieval.assembler import ContextAssembler

    assembler = ContextAssembler(embedder, store, top_k=5)
    context = assembler.assemble("leave policy", "HR", 1000)
    if not context.too_long:
        prompt += context.text
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from rag_datasource.errors import InvalidInput, StoreFailure
from rag_datasource.ingestion.embedder import Embedder
from rag_datasource.retrieval.base import VectorStoreBase
from rag_datasource.retrieval.models import AssembledContext, QueryMatch

logger = logging.getLogger(__name__)


def clean_content(text: str) -> str:
    """Strip CRLF, LF and ``+`` artefacts left by storage/transport encoding."""
    return text.replace("\r\n", "").replace("\n", "").replace("+", "")


def build_query(query: str, topic_hint: str | None = None) -> str:
    """Prefix *query* with the conversation topic to bias retrieval toward it."""
    if topic_hint:
        return f"{topic_hint} - {query}"
    return query


class ContextAssembler:
    """Turn a user query into a context block drawn from a vector store.

    Parameters
    ----------
    embedder:
        Embeds the (topic-prefixed) query.  Must use the same model as the
        ingestion that populated *store*.
    store:
        Any :class:`VectorStoreBase` backend.
    top_k:
        Number of matches requested per query.
    content_key:
        Metadata key holding the chunk text.  Defaults to the store's key.
    length_function:
        Measures the assembled text against the token budget.  ``len``
        approximates tokens by characters; pass a tokenizer-backed counter
        for exact counts.
    degrade_on_store_failure:
        When ``True`` a :class:`StoreFailure` during the query is logged and
        an empty context is returned; when ``False`` it propagates.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStoreBase,
        *,
        name: str = "rag-context",
        top_k: int = 5,
        content_key: str | None = None,
        length_function: Callable[[str], int] = len,
        degrade_on_store_failure: bool = True,
    ) -> None:
        if top_k < 1:
            raise InvalidInput(f"top_k must be >= 1, got {top_k}")
        self.name = name
        self._embedder = embedder
        self._store = store
        self.top_k = top_k
        self.content_key = content_key or store.content_key
        self._length = length_function
        self.degrade_on_store_failure = degrade_on_store_failure

    # -- public API -----------------------------------------------------------

    def assemble(self, query: Any, topic_hint: str | None, token_budget: int) -> AssembledContext:
        """Retrieve, clean and concatenate context for *query*.

        Parameters
        ----------
        query:
            The user's message.  Anything other than a ``str`` is rejected.
        topic_hint:
            Current conversation topic, or ``None``.
        token_budget:
            Size limit the result is checked (not truncated) against.

        Returns
        -------
        AssembledContext
            ``too_long`` is ``True`` iff ``length > token_budget``.

        Raises
        ------
        InvalidInput
            For a non-string query or an invalid budget.
        EmbeddingFailure
            When the query cannot be embedded.
        StoreFailure
            Only when ``degrade_on_store_failure`` is ``False``.
        """
        if not isinstance(query, str):
            raise InvalidInput(f"Expected query to be a string, got {type(query).__name__}")
        if isinstance(token_budget, bool) or not isinstance(token_budget, int) or token_budget < 0:
            raise InvalidInput(f"token_budget must be a non-negative int, got {token_budget!r}")

        final_query = build_query(query, topic_hint)
        logger.debug("Final query: %s", final_query)
        vector = self._embedder.embed(final_query)

        try:
            matches = self._store.query(vector, top_k=self.top_k, include_metadata=True)
        except StoreFailure:
            if not self.degrade_on_store_failure:
                raise
            logger.warning("Vector store query failed; continuing without retrieved context", exc_info=True)
            matches = []

        return self._assemble_matches(matches, token_budget)

    def render_data(
        self,
        memory: Mapping[str, Any],
        max_tokens: int,
        *,
        input_key: str = "temp.input",
        topic_key: str = "conversation.topic",
    ) -> AssembledContext:
        """DataSource-style entry point reading query and topic from turn *memory*."""
        return self.assemble(memory.get(input_key), memory.get(topic_key), max_tokens)

    # -- internals ------------------------------------------------------------

    def _assemble_matches(self, matches: list[QueryMatch], token_budget: int) -> AssembledContext:
        pieces: list[str] = []
        for match in matches:
            content = match.metadata.get(self.content_key)
            if not content:
                logger.debug("Skipping match %s without %r", match.id, self.content_key)
                continue
            pieces.append(clean_content(str(content)))

        text = "".join(pieces)
        length = self._length(text)
        return AssembledContext(
            text=text,
            length=length,
            too_long=length > token_budget,
            match_count=len(pieces),
        )
