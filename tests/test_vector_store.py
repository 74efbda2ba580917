"""
Tests for cosine similarity and the in-memory vector store.
"""

import math

import pytest

from kb_retrieval.embeddings import cosine_similarity
from kb_retrieval.exceptions import DimensionMismatchError
from kb_retrieval.vector_store import IndexEntry, InMemoryVectorStore


def make_store(*vectors):
    return InMemoryVectorStore.from_entries(
        IndexEntry(content=f"doc{i}", embedding=list(v), metadata={"i": i})
        for i, v in enumerate(vectors)
    )


class TestCosineSimilarity:

    @pytest.mark.parametrize("vector", [[1, 0], [0.3, -2.5, 7.0], [1e-3] * 384])
    def test_vector_with_itself_is_one(self, vector):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_perpendicular_is_zero(self):
        assert cosine_similarity([1, 0, 0], [0, 1, 0]) == pytest.approx(0.0)

    def test_opposite_is_minus_one(self):
        assert cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_zero_vector_is_nan(self):
        assert math.isnan(cosine_similarity([0, 0], [1, 0]))


class TestSearch:

    def test_known_ranking(self):
        store = make_store([1, 0], [0, 1], [0.7, 0.7])
        results = store.search([1, 0], top_k=3)

        assert [r.entry.content for r in results] == ["doc0", "doc2", "doc1"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(0.7071, abs=1e-4)
        assert results[2].score == pytest.approx(0.0)

    def test_never_more_than_k(self):
        store = make_store([1, 0], [0, 1], [0.7, 0.7])
        assert len(store.search([1, 0], top_k=2)) == 2

    def test_fewer_entries_than_k_returns_all(self):
        store = make_store([1, 0], [0, 1])
        assert len(store.search([1, 0], top_k=10)) == 2

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_k_returns_empty(self, k):
        store = make_store([1, 0])
        assert store.search([1, 0], top_k=k) == []

    def test_empty_store(self):
        assert InMemoryVectorStore().search([1, 0], top_k=3) == []

    def test_ties_keep_insertion_order(self):
        store = make_store([2, 0], [1, 0], [3, 0])
        results = store.search([1, 0], top_k=3)
        assert [r.entry.content for r in results] == ["doc0", "doc1", "doc2"]

    def test_zero_norm_entry_ranks_last(self):
        store = make_store([0, 0], [0, 1], [-1, 0])
        results = store.search([1, 0], top_k=3)
        assert [r.entry.content for r in results] == ["doc1", "doc2", "doc0"]
        assert math.isnan(results[-1].score)

    def test_results_sorted_descending(self):
        store = make_store([1, 0], [0.9, 0.1], [0.1, 0.9], [-1, 0], [0.5, 0.5])
        scores = [r.score for r in store.search([1, 0.2], top_k=5)]
        assert scores == sorted(scores, reverse=True)

    def test_query_dimension_mismatch(self):
        store = make_store([1, 0])
        with pytest.raises(DimensionMismatchError):
            store.search([1, 0, 0], top_k=1)

    def test_metadata_passed_through(self):
        store = InMemoryVectorStore()
        store.add("text", [1.0, 0.0], {"source": "a.pdf", "file_name": "a.pdf", "page": 2})
        result = store.search([1, 0], top_k=1)[0]
        assert result.entry.metadata == {"source": "a.pdf", "file_name": "a.pdf", "page": 2}


class TestDimensions:

    def test_mixed_dimensions_rejected(self):
        with pytest.raises(DimensionMismatchError):
            make_store([1, 0], [1, 0, 0])

    def test_rejected_batch_leaves_store_unchanged(self):
        store = make_store([1, 0])
        with pytest.raises(DimensionMismatchError):
            store.add_entries([
                IndexEntry("ok", [0.0, 1.0]),
                IndexEntry("bad", [0.0, 1.0, 2.0]),
            ])
        assert len(store) == 1
        assert store.dimension == 2

    def test_dimension_tracked(self):
        store = InMemoryVectorStore()
        assert store.dimension is None
        store.add("a", [1, 2, 3])
        assert store.dimension == 3
        assert len(store) == 1
