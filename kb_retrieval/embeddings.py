"""
Embeddings Module

WHAT ARE EMBEDDINGS:
Embeddings convert text into vectors (lists of numbers) that capture meaning.
Similar texts have similar vectors, allowing us to find related content
using mathematical distance calculations instead of keyword matching.

BACKENDS:
- EmbeddingClient: Azure OpenAI deployment (hosted, needs credentials)
- LocalEmbeddingClient: sentence-transformers model (all-MiniLM-L6-v2,
  384 dimensions, runs in-process)

AVAILABILITY:
Either backend can be impossible to start (no credentials, no model
download, unsupported platform). EmbeddingProvider wraps a backend factory
and starts it lazily, once. If that first start fails the provider stays
DEGRADED for the life of the process and every embed() returns None, which
the retriever reads as "use keyword search".

DISTANCE METRIC:
- Cosine Similarity: Measures angle between vectors
  - 1.0 = identical direction
  - 0.0 = perpendicular (unrelated)
  - -1.0 = opposite (rare in practice)
"""

import math
import threading
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np
from openai import AzureOpenAI

from config.settings import Settings, get_settings
from kb_retrieval.logging_config import get_logger

logger = get_logger(__name__)


class EmbeddingClient:
    """
    Client for generating embeddings using Azure OpenAI.

    WHY A CLASS:
    - Manages the Azure client connection
    - Handles batching (more efficient than one-at-a-time)
    - Easy to swap for LocalEmbeddingClient or a fake in tests
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        deployment: Optional[str] = None,
        api_version: Optional[str] = None,
        batch_size: Optional[int] = None
    ):
        """
        Initialize the embedding client.

        Args:
            endpoint: Azure OpenAI endpoint (defaults to settings)
            api_key: API key (defaults to settings)
            deployment: Deployment name (defaults to settings)
            api_version: API version (defaults to settings)
            batch_size: Texts per request (defaults to settings)

        Raises:
            ValueError: if no endpoint or API key is available
        """
        settings = get_settings()

        self.endpoint = endpoint or settings.azure.endpoint
        self.api_key = api_key or settings.azure.api_key
        self.deployment = deployment or settings.azure.embedding_deployment
        self.api_version = api_version or settings.azure.api_version
        self.batch_size = batch_size or settings.embedding.batch_size

        if not self.endpoint:
            raise ValueError(
                "AZURE_OPENAI_ENDPOINT not set. "
                "Add it to your .env file or set it as an environment variable."
            )
        if not self.api_key:
            raise ValueError(
                "AZURE_OPENAI_API_KEY not set. "
                "Add it to your .env file or set it as an environment variable."
            )

        self.client = AzureOpenAI(
            azure_endpoint=self.endpoint,
            api_key=self.api_key,
            api_version=self.api_version
        )

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts, in input order.

        WHY BATCHING:
        - API supports multiple texts per call
        - Reduces network overhead
        - API has limits, so we chunk into batches
        """
        embeddings = []

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]

            response = self.client.embeddings.create(
                input=batch,
                model=self.deployment  # In Azure, this is the deployment name
            )

            # The API may return items out of order; index is authoritative
            for item in sorted(response.data, key=lambda d: d.index):
                embeddings.append(list(item.embedding))

        return embeddings


class LocalEmbeddingClient:
    """
    In-process embeddings with sentence-transformers.

    Vectors are mean-pooled and L2-normalized, so cosine similarity is
    just a dot product for this backend.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", batch_size: int = 16):
        # Imported here: loading torch is the expensive part of acquisition
        from sentence_transformers import SentenceTransformer

        logger.info("Loading embedding model %s (first time may take a moment)...", model_name)
        self.model_name = model_name
        self.batch_size = batch_size
        self.model = SentenceTransformer(model_name)

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        vectors = self.model.encode(
            list(texts),
            batch_size=self.batch_size,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [[float(x) for x in vector] for vector in vectors]


class ProviderState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DEGRADED = "degraded"


class EmbeddingProvider:
    """
    Lazily acquired, permanently degrading embedding capability.

    The factory is called at most once, on the first embed() call, under a
    lock so concurrent first callers all see the same outcome.

    Outcomes of embed():
    - a list with one vector per input text, same order
    - None when embeddings are unavailable (DEGRADED, or this particular
      backend call failed; the cause is kept in last_error)
    """

    def __init__(self, factory: Callable[[], object], name: str = "embeddings"):
        self._factory = factory
        self.name = name
        self._backend = None
        self._state = ProviderState.UNINITIALIZED
        self._lock = threading.Lock()
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def is_available(self) -> bool:
        """True unless acquisition has already failed."""
        return self._state is not ProviderState.DEGRADED

    def _acquire(self):
        if self._state is ProviderState.UNINITIALIZED:
            with self._lock:
                if self._state is ProviderState.UNINITIALIZED:
                    try:
                        self._backend = self._factory()
                        self._state = ProviderState.READY
                        logger.info("Embedding backend '%s' is ready", self.name)
                    except Exception as e:
                        self.last_error = e
                        self._state = ProviderState.DEGRADED
                        logger.warning(
                            "Embedding backend '%s' unavailable, keyword search "
                            "will be used for the rest of this process: %s",
                            self.name, e
                        )
        return self._backend

    def embed(self, texts: Sequence[str]) -> Optional[List[List[float]]]:
        texts = list(texts)
        if not texts:
            return []

        backend = self._acquire()
        if backend is None:
            return None

        try:
            vectors = backend.embed_batch(texts)
        except Exception as e:
            self.last_error = e
            logger.warning("Embedding request failed for %d texts: %s", len(texts), e)
            return None

        if vectors is None or len(vectors) != len(texts):
            self.last_error = ValueError(
                f"backend returned {0 if vectors is None else len(vectors)} "
                f"vectors for {len(texts)} texts"
            )
            logger.warning("Embedding request failed: %s", self.last_error)
            return None

        return [list(vector) for vector in vectors]


def create_embedding_provider(settings: Optional[Settings] = None) -> EmbeddingProvider:
    """Build the provider for the configured backend without starting it."""
    settings = settings or get_settings()
    backend = settings.embedding.backend

    if backend == "local":
        def factory():
            return LocalEmbeddingClient(
                model_name=settings.embedding.local_model,
                batch_size=settings.embedding.batch_size,
            )
    elif backend == "azure":
        def factory():
            return EmbeddingClient(
                endpoint=settings.azure.endpoint,
                api_key=settings.azure.api_key,
                deployment=settings.azure.embedding_deployment,
                api_version=settings.azure.api_version,
                batch_size=settings.embedding.batch_size,
            )
    else:
        raise ValueError(
            f"Unknown EMBEDDING_BACKEND {backend!r}; expected 'azure' or 'local'"
        )

    return EmbeddingProvider(factory, name=backend)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    FORMULA:
    cosine_similarity = (A · B) / (||A|| * ||B||)

    A zero-length vector has no direction, so the result is NaN; callers
    that rank by similarity must order NaN below every real score.

    EXAMPLE:
    A = [1, 0, 0], B = [1, 0, 0]  ->  1.0 (identical)
    A = [1, 0, 0], B = [0, 1, 0]  ->  0.0 (perpendicular/unrelated)
    """
    a = np.asarray(vec1, dtype=float)
    b = np.asarray(vec2, dtype=float)

    magnitude_a = np.linalg.norm(a)
    magnitude_b = np.linalg.norm(b)

    if magnitude_a == 0 or magnitude_b == 0:
        return math.nan

    return float(np.dot(a, b) / (magnitude_a * magnitude_b))
