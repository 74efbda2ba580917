"""
Shared test fixtures and configuration for pytest.
"""

import sys
from pathlib import Path
from typing import List

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Settings
from kb_retrieval.cache import VectorStoreCache
from kb_retrieval.embeddings import EmbeddingProvider


VOCABULARY = ["svp", "level", "lifting", "physical", "demands", "job", "analysis", "salary"]


class FakeEmbeddingBackend:
    """Deterministic bag-of-words embeddings over a tiny vocabulary."""

    def __init__(self):
        self.calls: List[List[str]] = []

    def embed_batch(self, texts):
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            lowered = text.lower()
            # trailing constant keeps every vector non-zero
            vectors.append([float(lowered.count(word)) for word in VOCABULARY] + [0.1])
        return vectors


class FailingOnNthBackend(FakeEmbeddingBackend):
    """Raises when asked to embed the n-th text it has seen (1-based)."""

    def __init__(self, fail_at: int):
        super().__init__()
        self.fail_at = fail_at
        self.seen = 0

    def embed_batch(self, texts):
        vectors = []
        for text in texts:
            self.seen += 1
            if self.seen == self.fail_at:
                raise RuntimeError(f"embedding service failed on text {self.seen}")
            vectors.extend(super().embed_batch([text]))
        return vectors


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings()
    s.cache.path = str(tmp_path / "cache.json")
    return s


@pytest.fixture
def cache(settings) -> VectorStoreCache:
    return VectorStoreCache(settings.cache.path)


@pytest.fixture
def fake_backend() -> FakeEmbeddingBackend:
    return FakeEmbeddingBackend()


@pytest.fixture
def fake_provider(fake_backend) -> EmbeddingProvider:
    return EmbeddingProvider(lambda: fake_backend, name="fake")


@pytest.fixture
def degraded_provider() -> EmbeddingProvider:
    def factory():
        raise RuntimeError("unsupported runtime")
    return EmbeddingProvider(factory, name="broken")


@pytest.fixture
def kb_documents():
    return [
        ("The SVP level is 7 for this job analysis.", {"source": "a.pdf", "file_name": "a.pdf", "page": 1}),
        ("Physical demands include lifting up to 50 pounds.", {"source": "b.docx", "file_name": "b.docx"}),
        ("Salary ranges vary by region.", {"source": "c.docx", "file_name": "c.docx"}),
    ]
