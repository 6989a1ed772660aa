"""
Retrieval — vector-store backends and context assembly.

This module wraps the vector store behind a clean interface so that
the prompt layer never needs to know which DB is backing retrieval.

Public surface
--------------
- :class:`ContextAssembler` — main entry point, turns a query into context.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — single-call Chroma backend.
- :class:`WeaviateVectorStore` — cursor-paginated Weaviate backend.
- :class:`RestVectorStore` — generic REST backend.
- :class:`AssembledContext`, :class:`QueryMatch`, :class:`VectorRecord` — data models.
- :func:`get_vector_store` — backend selection from settings.
"""

from rag_datasource.retrieval.assembler import ContextAssembler
from rag_datasource.retrieval.base import VectorStoreBase
from rag_datasource.retrieval.factory import get_vector_store
from rag_datasource.retrieval.models import AssembledContext, QueryMatch, VectorRecord

__all__ = [
    "AssembledContext",
    "ChromaVectorStore",
    "ContextAssembler",
    "QueryMatch",
    "RestVectorStore",
    "VectorRecord",
    "VectorStoreBase",
    "WeaviateVectorStore",
    "get_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import backends to avoid pulling in their clients at import time."""
    if name == "ChromaVectorStore":
        from rag_datasource.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    if name == "WeaviateVectorStore":
        from rag_datasource.retrieval.weaviate_store import WeaviateVectorStore

        return WeaviateVectorStore
    if name == "RestVectorStore":
        from rag_datasource.retrieval.rest_store import RestVectorStore

        return RestVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
