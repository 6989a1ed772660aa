"""Text → vector conversion through a remote embedding model."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from rag_datasource.config import Settings, settings as default_settings
from rag_datasource.errors import EmbeddingFailure, InvalidInput

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


class Embedder:
    """Embed single texts with one fixed model.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    model_name:
        Identifier of the model behind *embeddings*; recorded for logging and
        so that callers can check ingestion and query use the same model.
    dimension:
        Expected vector length.  When ``None`` the length of the first vector
        returned is pinned and every later vector must match it.
    """

    def __init__(self, embeddings: Embeddings, model_name: str, *, dimension: int | None = None) -> None:
        self._embeddings = embeddings
        self.model_name = model_name
        self._dimension = dimension
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*.

        Raises
        ------
        EmbeddingFailure
            When the provider call fails or times out, or the returned vector
            is empty or of unexpected length.
        """
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingFailure(f"Embedding with model {self.model_name!r} failed: {exc}") from exc

        if not vector:
            raise EmbeddingFailure(f"Model {self.model_name!r} returned an empty vector")
        self._check_dimension(len(vector))
        return [float(v) for v in vector]

    def _check_dimension(self, size: int) -> None:
        with self._lock:
            if self._dimension is None:
                self._dimension = size
                logger.debug("Pinned embedding dimension for %s to %d", self.model_name, size)
                return
        if size != self._dimension:
            raise EmbeddingFailure(
                f"Model {self.model_name!r} returned a {size}-dimensional vector, expected {self._dimension}"
            )


def get_embeddings(config: Settings | None = None) -> Embeddings:
    """Return the configured LangChain embedding function.

    ``openai`` talks to the OpenAI (or an OpenAI-compatible) endpoint with
    the configured request timeout and no client-side retries.
    ``huggingface`` runs a sentence-transformer locally.
    """
    config = config or default_settings

    if config.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=config.embedding_model)

    if not config.openai_api_key:
        raise InvalidInput("OPENAI_API_KEY is required for the 'openai' embedding provider")

    from langchain_openai import OpenAIEmbeddings

    kwargs: dict = {
        "model": config.embedding_model,
        "api_key": config.openai_api_key,
        "request_timeout": config.request_timeout,
        "max_retries": 0,
    }
    if config.embedding_dimension:
        kwargs["dimensions"] = config.embedding_dimension
    if config.openai_base_url:
        logger.info("Using OpenAI-compatible embedding endpoint: %s", config.openai_base_url)
        kwargs["base_url"] = config.openai_base_url
    return OpenAIEmbeddings(**kwargs)


def get_embedder(config: Settings | None = None) -> Embedder:
    """Build an :class:`Embedder` from settings."""
    config = config or default_settings
    return Embedder(get_embeddings(config), config.embedding_model, dimension=config.embedding_dimension)
