"""Unit tests for settings, backend selection, retry and the data models."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from rag_datasource.config import Settings
from rag_datasource.errors import EmbeddingFailure, InvalidInput, StoreFailure
from rag_datasource.ingestion.models import Chunk, IngestionReport, make_record_id
from rag_datasource.retrieval.factory import get_vector_store
from rag_datasource.retrieval.models import AssembledContext
from rag_datasource.retry import with_retry


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.embedding_model == "text-embedding-3-large"
        assert s.retrieval_top_k == 5
        assert s.max_chunk_size == 2000
        assert s.min_overlap_size == 300
        assert s.vector_store_backend == "chroma"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VECTOR_STORE_BACKEND", "weaviate")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "9")
        s = Settings(_env_file=None)
        assert s.vector_store_backend == "weaviate"
        assert s.retrieval_top_k == 9


class TestGetVectorStore:
    def test_weaviate_backend(self) -> None:
        from rag_datasource.retrieval.weaviate_store import WeaviateVectorStore

        store = get_vector_store(
            Settings(_env_file=None, vector_store_backend="weaviate", weaviate_class_name="Policy", weaviate_max_batches=4)
        )
        assert isinstance(store, WeaviateVectorStore)
        assert store.collection_name == "Policy"
        assert store.max_batches == 4

    def test_rest_backend(self) -> None:
        from rag_datasource.retrieval.rest_store import RestVectorStore

        store = get_vector_store(
            Settings(_env_file=None, vector_store_backend="rest", rest_api_url="http://x/", request_timeout=2)
        )
        assert isinstance(store, RestVectorStore)
        assert store.base_url == "http://x"
        assert store.timeout == 2

    def test_rest_backend_requires_url(self) -> None:
        with pytest.raises(InvalidInput, match="REST_API_URL"):
            get_vector_store(Settings(_env_file=None, vector_store_backend="rest", rest_api_url=""))

    def test_chroma_backend(self) -> None:
        pytest.importorskip("chromadb")
        with patch("chromadb.HttpClient") as client_cls:
            store = get_vector_store(Settings(_env_file=None, chroma_host="chroma", chroma_port=9000))
        client_cls.assert_called_once_with(host="chroma", port=9000)
        assert store.collection_name == "rag_datasource"


class TestWithRetry:
    def test_retries_transient_errors(self) -> None:
        fn = MagicMock(side_effect=[StoreFailure("x"), EmbeddingFailure("y"), "ok"])
        assert with_retry(fn, attempts=3, initial_wait=0, jitter=0)() == "ok"
        assert fn.call_count == 3

    def test_reraises_after_attempts(self) -> None:
        fn = MagicMock(side_effect=StoreFailure("down"))
        with pytest.raises(StoreFailure, match="down"):
            with_retry(fn, attempts=2, initial_wait=0, jitter=0)()
        assert fn.call_count == 2

    def test_invalid_input_not_retried(self) -> None:
        fn = MagicMock(side_effect=InvalidInput("bad"))
        with pytest.raises(InvalidInput):
            with_retry(fn, attempts=5, initial_wait=0, jitter=0)()
        assert fn.call_count == 1

    def test_single_attempt_returns_function_unchanged(self) -> None:
        fn = MagicMock()
        assert with_retry(fn, attempts=1) is fn


class TestModels:
    def test_record_id_format(self) -> None:
        assert make_record_id("handbook.txt", 3) == "handbook.txt_chunk_3"
        assert Chunk(document_id="handbook.txt", index=3, text="t").record_id == "handbook.txt_chunk_3"

    def test_novel_text_excludes_overlap(self) -> None:
        assert Chunk(document_id="d", index=1, text="B. C.", overlap=2).novel_text == " C."

    def test_assembled_context_str(self) -> None:
        assert str(AssembledContext(text="abc", length=3)) == "abc"

    def test_report_ok(self) -> None:
        assert IngestionReport().ok
        assert not IngestionReport(failures={"a": "boom"}).ok
