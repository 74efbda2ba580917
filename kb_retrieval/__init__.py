# Knowledge base retrieval engine
from .chunking import Chunk, Document, RecursiveChunker, chunk_documents
from .embeddings import EmbeddingClient, EmbeddingProvider, cosine_similarity
from .vector_store import IndexEntry, InMemoryVectorStore, SearchResult
from .keyword_search import KeywordSearcher
from .cache import VectorStoreCache
from .exceptions import BuildError, DimensionMismatchError, IndexUnavailableError, RetrievalError
from .retriever import KnowledgeBaseRetriever, RetrievedChunk, get_retriever
