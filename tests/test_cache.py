"""
Tests for the vector store cache file.
"""

import json
import time
from datetime import date

from kb_retrieval.cache import VectorStoreCache
from kb_retrieval.vector_store import IndexEntry, InMemoryVectorStore


def sample_store():
    return InMemoryVectorStore.from_entries([
        IndexEntry("the SVP level is 7", [0.1, 0.2, 0.3], {"source": "a.pdf", "file_name": "a.pdf", "page": 1}),
        IndexEntry("physical demands include lifting", [-0.5, 0.0, 1.25], {"source": "b.docx", "file_name": "b.docx"}),
    ])


class TestSaveLoad:

    def test_round_trip(self, tmp_path):
        cache = VectorStoreCache(tmp_path / "cache.json")
        original = sample_store()

        assert cache.save(original) is True
        restored = cache.load()

        assert restored is not None
        assert len(restored) == len(original)
        for before, after in zip(original.entries, restored.entries):
            assert after.content == before.content
            assert after.embedding == before.embedding
            assert after.metadata == before.metadata

    def test_file_layout(self, tmp_path):
        path = tmp_path / "cache.json"
        before = int(time.time() * 1000)
        VectorStoreCache(path).save(sample_store())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"entries", "timestamp"}
        assert data["timestamp"] >= before
        assert data["entries"][0] == {
            "content": "the SVP level is 7",
            "embedding": [0.1, 0.2, 0.3],
            "metadata": {"source": "a.pdf", "file_name": "a.pdf", "page": 1},
        }

    def test_save_overwrites(self, tmp_path):
        cache = VectorStoreCache(tmp_path / "cache.json")
        cache.save(sample_store())
        cache.save(InMemoryVectorStore.from_entries([IndexEntry("only", [1.0], {})]))
        assert [e.content for e in cache.load().entries] == ["only"]

    def test_save_creates_parent_directory(self, tmp_path):
        cache = VectorStoreCache(tmp_path / "nested" / "dir" / "cache.json")
        assert cache.save(sample_store()) is True
        assert cache.exists()

    def test_save_to_unwritable_location_returns_false(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = VectorStoreCache(blocker / "cache.json")
        assert cache.save(sample_store()) is False

    def test_failed_save_keeps_previous_cache(self, tmp_path):
        path = tmp_path / "cache.json"
        cache = VectorStoreCache(path)
        assert cache.save(sample_store()) is True

        unserializable = InMemoryVectorStore.from_entries([
            IndexEntry("fine", [1.0, 0.0], {"source": "a.pdf"}),
            IndexEntry("dated", [0.0, 1.0], {"when": date(2024, 1, 1)}),
        ])
        assert cache.save(unserializable) is False

        restored = cache.load()
        assert restored is not None
        assert [e.content for e in restored.entries] == [e.content for e in sample_store().entries]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["cache.json"]


class TestLoadFailures:

    def test_missing_file(self, tmp_path):
        assert VectorStoreCache(tmp_path / "missing.json").load() is None

    def test_corrupt_json(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        assert VectorStoreCache(path).load() is None

    def test_missing_entries_key(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"timestamp": 1}), encoding="utf-8")
        assert VectorStoreCache(path).load() is None

    def test_mixed_dimensions(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({
            "entries": [
                {"content": "a", "embedding": [1, 0], "metadata": {}},
                {"content": "b", "embedding": [1, 0, 0], "metadata": {}},
            ],
            "timestamp": 1,
        }), encoding="utf-8")
        assert VectorStoreCache(path).load() is None

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({
            "entries": [{"content": "a", "embedding": ["x", "y"], "metadata": {}}],
            "timestamp": 1,
        }), encoding="utf-8")
        assert VectorStoreCache(path).load() is None

    def test_top_level_not_an_object(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert VectorStoreCache(path).load() is None

    def test_missing_timestamp_still_loads(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({
            "entries": [{"content": "a", "embedding": [1, 0], "metadata": {"source": "a"}}],
        }), encoding="utf-8")
        store = VectorStoreCache(path).load()
        assert store is not None
        assert store.entries[0].metadata == {"source": "a"}
