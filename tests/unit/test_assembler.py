"""Unit tests for the context assembler."""

from __future__ import annotations

import pytest

from rag_datasource.errors import EmbeddingFailure, InvalidInput, StoreFailure
from rag_datasource.ingestion.embedder import Embedder
from rag_datasource.retrieval.assembler import ContextAssembler, build_query, clean_content
from rag_datasource.retrieval.models import AssembledContext, QueryMatch

from conftest import InMemoryVectorStore


def _match(id_: str, content: str | None, score: float = 0.9) -> QueryMatch:
    metadata = {} if content is None else {"content": content}
    return QueryMatch(id=id_, score=score, metadata=metadata)


@pytest.fixture()
def canned_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(
        canned=[
            _match("a", "Leave:+ 12 days\r\n", 0.95),
            _match("b", None, 0.9),
            _match("c", "Carry over\nonce.", 0.8),
        ]
    )


class TestCleanContent:
    def test_strips_crlf_lf_and_plus(self) -> None:
        assert clean_content("a\r\nb\nc+d") == "abcd"

    def test_is_idempotent(self) -> None:
        raw = "x\r\n+y\n\n++z\r\n"
        once = clean_content(raw)
        assert clean_content(once) == once


class TestBuildQuery:
    def test_topic_prefix(self) -> None:
        assert build_query("leave policy", "HR") == "HR - leave policy"

    def test_no_topic(self) -> None:
        assert build_query("leave policy", None) == "leave policy"
        assert build_query("leave policy", "") == "leave policy"


class TestContextAssembler:
    def test_leave_policy_scenario(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(canned=[_match("policy.txt_chunk_0", "Leave: 12 days\r\n")])
        result = ContextAssembler(embedder, store).assemble("leave policy", None, 1000)
        assert result.text == "Leave: 12 days"
        assert result.length == len("Leave: 12 days")
        assert result.too_long is False
        assert result.match_count == 1

    def test_concatenates_in_match_order_skipping_missing_content(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        result = ContextAssembler(embedder, canned_store).assemble("q", None, 1000)
        assert result.text == "Leave: 12 daysCarry overonce."
        assert result.match_count == 2

    def test_empty_match_set(self, embedder: Embedder) -> None:
        result = ContextAssembler(embedder, InMemoryVectorStore(canned=[])).assemble("q", None, 10)
        assert result == AssembledContext(text="", length=0, too_long=False, match_count=0)

    def test_too_long_boundary(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(canned=[_match("a", "12345")])
        assembler = ContextAssembler(embedder, store)
        assert assembler.assemble("q", None, 5).too_long is False
        assert assembler.assemble("q", None, 4).too_long is True

    def test_no_truncation(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(canned=[_match("a", "x" * 50)])
        result = ContextAssembler(embedder, store).assemble("q", None, 10)
        assert result.length == 50
        assert result.too_long is True

    def test_topic_hint_changes_embedded_query(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        assembler = ContextAssembler(embedder, canned_store)
        assembler.assemble("leave policy", "HR", 100)
        assembler.assemble("leave policy", None, 100)
        with_topic, without_topic = (q["vector"] for q in canned_store.queries)
        assert with_topic == embedder.embed("HR - leave policy")
        assert without_topic == embedder.embed("leave policy")

    def test_top_k_and_metadata_flag_forwarded(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        ContextAssembler(embedder, canned_store, top_k=2).assemble("q", None, 100)
        assert canned_store.queries[0]["top_k"] == 2
        assert canned_store.queries[0]["include_metadata"] is True

    def test_custom_length_function(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(canned=[_match("a", "one two three")])
        assembler = ContextAssembler(embedder, store, length_function=lambda s: len(s.split()))
        result = assembler.assemble("q", None, 3)
        assert result.length == 3
        assert result.too_long is False

    @pytest.mark.parametrize("query", [None, 42, ["leave"]])
    def test_non_string_query_rejected(self, embedder: Embedder, canned_store: InMemoryVectorStore, query: object) -> None:
        with pytest.raises(InvalidInput):
            ContextAssembler(embedder, canned_store).assemble(query, None, 100)
        assert canned_store.queries == []

    def test_negative_budget_rejected(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        with pytest.raises(InvalidInput):
            ContextAssembler(embedder, canned_store).assemble("q", None, -1)

    def test_embedding_failure_propagates(self, broken_embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        with pytest.raises(EmbeddingFailure):
            ContextAssembler(broken_embedder, canned_store).assemble("q", None, 100)

    def test_store_failure_degrades_to_empty_context(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(fail_queries=True)
        result = ContextAssembler(embedder, store).assemble("q", None, 100)
        assert result.text == ""
        assert result.length == 0
        assert result.too_long is False

    def test_store_failure_propagates_when_not_degrading(self, embedder: Embedder) -> None:
        store = InMemoryVectorStore(fail_queries=True)
        assembler = ContextAssembler(embedder, store, degrade_on_store_failure=False)
        with pytest.raises(StoreFailure):
            assembler.assemble("q", None, 100)

    def test_render_data_reads_turn_memory(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        memory = {"temp.input": "leave policy", "conversation.topic": "HR"}
        result = ContextAssembler(embedder, canned_store).render_data(memory, 1000)
        assert result.text.startswith("Leave: 12 days")
        assert canned_store.queries[0]["vector"] == embedder.embed("HR - leave policy")

    def test_render_data_missing_input_rejected(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        with pytest.raises(InvalidInput):
            ContextAssembler(embedder, canned_store).render_data({}, 1000)

    def test_works_against_similarity_ranked_store(self, embedder: Embedder, memory_store: InMemoryVectorStore) -> None:
        memory_store.upsert("a_chunk_0", embedder.embed("annual leave"), "Annual leave is 12 days.")
        memory_store.upsert("b_chunk_0", embedder.embed("parking"), "Parking is free.")
        result = ContextAssembler(embedder, memory_store, top_k=1).assemble("annual leave", None, 1000)
        assert result.text == "Annual leave is 12 days."

    def test_invalid_top_k(self, embedder: Embedder, canned_store: InMemoryVectorStore) -> None:
        with pytest.raises(InvalidInput):
            ContextAssembler(embedder, canned_store, top_k=0)
