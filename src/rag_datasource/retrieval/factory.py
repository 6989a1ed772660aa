"""Backend selection — single place to swap vector stores."""

from __future__ import annotations

import logging

from rag_datasource.config import Settings, settings as default_settings
from rag_datasource.errors import InvalidInput
from rag_datasource.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def get_vector_store(config: Settings | None = None) -> VectorStoreBase:
    """Return the vector store named by ``config.vector_store_backend``.

    Backend modules are imported lazily so that, e.g., chromadb is only
    required when the Chroma backend is selected.
    """
    config = config or default_settings
    backend = config.vector_store_backend
    logger.info("Using %s vector store", backend)

    if backend == "chroma":
        from rag_datasource.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            config.chroma_collection,
            host=config.chroma_host,
            port=config.chroma_port,
            content_key=config.content_key,
            timeout=config.request_timeout,
        )

    if backend == "weaviate":
        from rag_datasource.retrieval.weaviate_store import WeaviateVectorStore

        return WeaviateVectorStore(
            config.weaviate_class_name,
            url=config.weaviate_url,
            api_key=config.weaviate_api_key,
            certainty=config.weaviate_certainty,
            batch_size=config.weaviate_batch_size,
            max_batches=config.weaviate_max_batches,
            content_key=config.content_key,
            timeout=config.request_timeout,
        )

    if backend == "rest":
        if not config.rest_api_url:
            raise InvalidInput("REST_API_URL is required for the 'rest' vector store backend")
        from rag_datasource.retrieval.rest_store import RestVectorStore

        return RestVectorStore(
            config.rest_index_name,
            base_url=config.rest_api_url,
            api_key=config.rest_api_key,
            content_key=config.content_key,
            timeout=config.request_timeout,
        )

    raise InvalidInput(f"Unsupported vector_store_backend={backend!r}")
