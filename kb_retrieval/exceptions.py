"""
Errors raised by the retrieval engine.

Only failures that would leave the engine silently wrong are raised.
Cache read/write problems and an unavailable embedding model are logged
and absorbed instead (see cache.py and embeddings.py).
"""

from typing import Optional


class RetrievalError(Exception):
    """Base class for retrieval engine errors."""


class IndexUnavailableError(RetrievalError):
    """A query arrived before any index was built or loaded from cache."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Knowledge base is not indexed. Run the indexing step first "
            "('seed-kb build') to create the vector store cache."
        )


class BuildError(RetrievalError):
    """An explicit index build was aborted; no partial index was installed."""


class DimensionMismatchError(RetrievalError, ValueError):
    """Embeddings of different lengths were mixed in one vector store."""

    def __init__(self, expected: int, actual: int, context: str = "embedding"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{context} has dimension {actual}, expected {expected}"
        )
