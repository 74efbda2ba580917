"""
Vector Store Module

WHAT IS A VECTOR STORE:
Storage for (text, embedding, metadata) entries plus similarity search
over them. Instead of searching by keywords, we search by meaning.

SEARCH ALGORITHM:
Brute force (exact): compare the query to every stored vector.
- O(n * d) per query, n = entries, d = dimensions
- Accurate, and fast enough for a knowledge base of a few thousand
  chunks (tens of thousands at most)
- Approximate indexes (HNSW, IVF) are not used here

INVARIANT:
Every entry in one store has the same embedding dimension. Adding a
vector of a different length raises DimensionMismatchError and leaves
the store unchanged.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from kb_retrieval.embeddings import cosine_similarity
from kb_retrieval.exceptions import DimensionMismatchError


@dataclass
class IndexEntry:
    """
    A chunk stored in the vector store.

    - content: original chunk text (returned to the caller)
    - embedding: the vector representation
    - metadata: source document info, passed through untouched
    """
    content: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "embedding": list(self.embedding),
            "metadata": dict(self.metadata),
        }


@dataclass
class SearchResult:
    """
    A single search result.

    score is cosine similarity for vector search and the keyword score for
    the fallback; only compare scores from the same search.
    """
    entry: IndexEntry
    score: float

    def __repr__(self):
        preview = self.entry.content[:50] + "..." if len(self.entry.content) > 50 else self.entry.content
        return f"SearchResult(score={self.score:.4f}, text='{preview}')"


def _rank_key(score: float) -> float:
    # NaN (zero-norm vector) sorts below every real score
    return -math.inf if math.isnan(score) else score


class InMemoryVectorStore:
    """
    Simple in-memory vector store.

    LIFECYCLE:
    - created empty
    - filled by add_entries() during a build, or by from_entries() when
      restored from the cache
    - read-only while serving queries, so concurrent searches need no lock
    """

    def __init__(self):
        """Initialize empty vector store."""
        self._entries: List[IndexEntry] = []
        self._dimension: Optional[int] = None

    @classmethod
    def from_entries(cls, entries: Iterable[IndexEntry]) -> "InMemoryVectorStore":
        """Create a store holding the given entries."""
        store = cls()
        store.add_entries(entries)
        return store

    @property
    def entries(self) -> List[IndexEntry]:
        return list(self._entries)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding dimension shared by all entries (None while empty)."""
        return self._dimension

    def add(
        self,
        content: str,
        embedding: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None
    ) -> IndexEntry:
        """Add one entry to the store."""
        return self.add_entries([IndexEntry(
            content=content,
            embedding=list(embedding),
            metadata=dict(metadata or {}),
        )])[0]

    def add_entries(self, entries: Iterable[IndexEntry]) -> List[IndexEntry]:
        """
        Append entries in one step.

        All dimensions are checked before anything is appended, so a
        mismatch leaves the store exactly as it was.
        """
        entries = list(entries)
        expected = self._dimension
        for entry in entries:
            if expected is None:
                expected = entry.dimension
            elif entry.dimension != expected:
                raise DimensionMismatchError(expected, entry.dimension, "index entry")
        if expected == 0:
            raise DimensionMismatchError(1, 0, "index entry")

        self._entries.extend(entries)
        if entries:
            self._dimension = expected
        return entries

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 5
    ) -> List[SearchResult]:
        """
        Search for the entries most similar to a query vector.

        Args:
            query_embedding: The query vector
            top_k: Number of results to return

        Returns:
            At most top_k SearchResult objects, best first. Ties keep
            insertion order; zero-norm vectors rank last.

        HOW IT WORKS:
        1. Calculate cosine similarity with every entry
        2. Sort by similarity (descending, stable)
        3. Return top K

        TIME COMPLEXITY: O(n * d) where n=entries, d=dimensions
        """
        if top_k <= 0 or not self._entries:
            return []

        if len(query_embedding) != self._dimension:
            raise DimensionMismatchError(
                self._dimension, len(query_embedding), "query embedding"
            )

        results = [
            SearchResult(entry=entry, score=cosine_similarity(query_embedding, entry.embedding))
            for entry in self._entries
        ]

        # Sort by score (highest first); sorted() is stable
        results.sort(key=lambda r: _rank_key(r.score), reverse=True)

        return results[:top_k]

    def __len__(self):
        """Number of entries in store."""
        return len(self._entries)
