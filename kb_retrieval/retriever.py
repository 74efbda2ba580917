"""
Knowledge Base Retriever - the single entry point for the Q&A layer.

INDEXING (run once, offline, e.g. via `seed-kb build`):
┌───────────┐    ┌──────────┐    ┌───────────┐    ┌──────────┐    ┌───────┐
│ Documents │───▶│ Chunking │───▶│ Embedding │───▶│  Vector  │───▶│ Cache │
│ (text+md) │    │ (split)  │    │           │    │  Store   │    │ file  │
└───────────┘    └──────────┘    └───────────┘    └──────────┘    └───────┘

QUERY (every question):
┌──────────┐    ┌───────────┐  vectors   ┌──────────────┐
│ Question │───▶│ Embedding │──────────▶ │ Vector search│──┐
└──────────┘    └─────┬─────┘            └──────────────┘  │   ┌────────┐
                      │ unavailable      ┌──────────────┐  ├──▶│ Top K  │
                      └────────────────▶ │Keyword search│──┘   │ chunks │
                                         └──────────────┘      └────────┘

STATES:
- UNINITIALIZED: nothing loaded yet; the first query tries the cache
- READY: a store is installed and queries are served
- UNAVAILABLE: no cache on first query; every query raises
  IndexUnavailableError until build_index() succeeds

Build and query are not meant to run at the same time in one process.
Queries only read the installed store.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from config.settings import Settings, get_settings
from kb_retrieval.cache import VectorStoreCache
from kb_retrieval.chunking import Document, RecursiveChunker
from kb_retrieval.embeddings import EmbeddingProvider, create_embedding_provider
from kb_retrieval.exceptions import BuildError, DimensionMismatchError, IndexUnavailableError
from kb_retrieval.keyword_search import KeywordSearcher
from kb_retrieval.logging_config import get_logger
from kb_retrieval.vector_store import IndexEntry, InMemoryVectorStore, SearchResult

logger = get_logger(__name__)


class RetrieverState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    UNAVAILABLE = "unavailable"


@dataclass
class RetrievedChunk:
    """
    A chunk handed to the question-answering layer.

    Vector and keyword search both return this shape; score is only
    comparable within one result list.
    """
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    score: float = 0.0

    @classmethod
    def from_result(cls, result: SearchResult) -> "RetrievedChunk":
        return cls(
            content=result.entry.content,
            metadata=dict(result.entry.metadata),
            score=result.score,
        )


@dataclass
class IndexingResult:
    """Stats about one build_index() run."""
    documents: int
    chunks: int
    dimension: Optional[int]
    cache_saved: bool
    time_seconds: float


class KnowledgeBaseRetriever:
    """
    Builds and serves the knowledge base index.

    USAGE:
        retriever = get_retriever()

        # Index documents (do this once)
        retriever.build_index(load_knowledge_base("KB/Avatar Knowledge"))

        # Query (do this for each question)
        for chunk in retriever.query("What is the SVP level?", k=5):
            print(chunk.metadata["file_name"], chunk.content[:80])
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[EmbeddingProvider] = None,
        cache: Optional[VectorStoreCache] = None,
        chunker: Optional[RecursiveChunker] = None,
        keyword_searcher: Optional[KeywordSearcher] = None
    ):
        self.settings = settings or get_settings()

        self.provider = provider or create_embedding_provider(self.settings)
        self.cache = cache or VectorStoreCache(self.settings.cache.path)
        self.chunker = chunker or RecursiveChunker(
            chunk_size=self.settings.chunking.chunk_size,
            chunk_overlap=self.settings.chunking.chunk_overlap
        )
        self.keyword_searcher = keyword_searcher or KeywordSearcher(
            min_term_length=self.settings.keyword.min_term_length,
            phrase_bonus=self.settings.keyword.phrase_bonus
        )
        self.top_k = self.settings.retrieval.top_k

        self._store: Optional[InMemoryVectorStore] = None
        self._state = RetrieverState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def state(self) -> RetrieverState:
        return self._state

    @property
    def store(self) -> Optional[InMemoryVectorStore]:
        return self._store

    def build_index(self, documents: Iterable[Document]) -> IndexingResult:
        """
        Index documents and install the result as the active store.

        WHAT HAPPENS:
        1. Split documents into chunks
        2. Embed every chunk
        3. Build a new vector store
        4. Save it to the cache (failure is logged, not raised)
        5. Swap it in

        Raises:
            BuildError: embeddings unavailable, failed, or inconsistent.
                The previously installed store (if any) keeps serving.
        """
        start_time = time.time()
        documents = list(documents)

        chunks = self.chunker.split_documents(documents)

        logger.info("Generating embeddings for %d chunks...", len(chunks))
        embeddings = self.provider.embed([chunk.content for chunk in chunks])
        if embeddings is None:
            raise BuildError(
                f"Embedding generation failed: {self.provider.last_error or 'embeddings unavailable'}"
            ) from self.provider.last_error

        try:
            store = InMemoryVectorStore.from_entries(
                IndexEntry(
                    content=chunk.content,
                    embedding=embedding,
                    metadata=dict(chunk.metadata),
                )
                for chunk, embedding in zip(chunks, embeddings)
            )
        except DimensionMismatchError as e:
            raise BuildError(f"Inconsistent embeddings: {e}") from e

        cache_saved = self.cache.save(store)

        with self._lock:
            self._store = store
            self._state = RetrieverState.READY

        elapsed = time.time() - start_time
        logger.info("Indexed %d chunks in %.2f seconds", len(store), elapsed)

        return IndexingResult(
            documents=len(documents),
            chunks=len(store),
            dimension=store.dimension,
            cache_saved=cache_saved,
            time_seconds=elapsed,
        )

    def load(self) -> bool:
        """
        Install the cached store if one is available.

        Only the first call does any work; afterwards the state is either
        READY or UNAVAILABLE until the next build_index().
        """
        if self._state is RetrieverState.UNINITIALIZED:
            with self._lock:
                if self._state is RetrieverState.UNINITIALIZED:
                    store = self.cache.load()
                    if store is None:
                        self._state = RetrieverState.UNAVAILABLE
                    else:
                        self._store = store
                        self._state = RetrieverState.READY
        return self._state is RetrieverState.READY

    def query(self, text: str, k: Optional[int] = None) -> List[RetrievedChunk]:
        """
        Return up to k chunks relevant to the question, best first.

        Uses vector search when the embedding backend answers, keyword
        search otherwise. An empty list means nothing relevant was found.

        Raises:
            IndexUnavailableError: nothing has been indexed or cached yet
        """
        if not self.load():
            raise IndexUnavailableError()

        k = self.top_k if k is None else k
        if k <= 0 or not text or not text.strip():
            return []

        store = self._store
        query_embedding = self.provider.embed([text])

        if query_embedding:
            logger.debug("Vector search for %r (k=%d)", text, k)
            results = store.search(query_embedding[0], top_k=k)
        else:
            logger.debug("Keyword search for %r (k=%d)", text, k)
            results = self.keyword_searcher.search(text, store.entries, top_k=k)

        return [RetrievedChunk.from_result(result) for result in results]

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the retriever."""
        return {
            "state": self._state.value,
            "total_chunks": len(self._store) if self._store is not None else 0,
            "dimension": self._store.dimension if self._store is not None else None,
            "embedding_backend": self.provider.name,
            "embedding_state": self.provider.state.value,
            "cache_path": str(self.cache.path),
        }


# Process-wide instance, created on first use
_retriever: Optional[KnowledgeBaseRetriever] = None
_retriever_lock = threading.Lock()


def get_retriever() -> KnowledgeBaseRetriever:
    """Get the shared retriever, creating it on first call."""
    global _retriever
    if _retriever is None:
        with _retriever_lock:
            if _retriever is None:
                _retriever = KnowledgeBaseRetriever()
    return _retriever


def reset_retriever() -> None:
    """Drop the shared retriever so the next get_retriever() starts fresh."""
    global _retriever
    with _retriever_lock:
        _retriever = None
