"""
Vector store cache.

Saves the whole store to one JSON file so embeddings are not recomputed
on every restart:

    {"entries": [{"content": ..., "embedding": [...], "metadata": {...}}],
     "timestamp": <milliseconds since epoch>}

There is no schema version and no check against the source documents.
After the knowledge base changes, delete the file or run seed-kb again.

Both directions are best-effort: a failed save leaves the in-memory store
authoritative, and any problem on load means "no cache".
"""

import json
import os
import time
from pathlib import Path
from typing import Optional, Union

from kb_retrieval.exceptions import DimensionMismatchError
from kb_retrieval.logging_config import get_logger
from kb_retrieval.vector_store import IndexEntry, InMemoryVectorStore

logger = get_logger(__name__)


def _parse_entry(raw) -> IndexEntry:
    if not isinstance(raw, dict):
        raise TypeError(f"cache entry must be an object, got {type(raw).__name__}")

    content = raw["content"]
    embedding = raw["embedding"]
    metadata = raw.get("metadata") or {}

    if not isinstance(content, str):
        raise TypeError("cache entry content must be a string")
    if not isinstance(embedding, list) or not all(
        isinstance(x, (int, float)) and not isinstance(x, bool) for x in embedding
    ):
        raise TypeError("cache entry embedding must be a list of numbers")
    if not isinstance(metadata, dict):
        raise TypeError("cache entry metadata must be an object")

    return IndexEntry(
        content=content,
        embedding=[float(x) for x in embedding],
        metadata=metadata,
    )


class VectorStoreCache:
    """Reads and writes the vector store snapshot file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, store: InMemoryVectorStore) -> bool:
        """
        Write the store to the cache file, replacing any previous one.

        Returns False (and logs) instead of raising when the file cannot
        be written. The snapshot goes to a sibling temp file first, so a
        failed save leaves the previous cache file intact.
        """
        data = {
            "entries": [entry.to_dict() for entry in store.entries],
            "timestamp": int(time.time() * 1000),
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            payload = json.dumps(data)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save vector store cache to %s: %s", self.path, e)
            if tmp_path.is_file():
                tmp_path.unlink()
            return False

        logger.info("Vector store cache saved (%d entries) to %s", len(store), self.path)
        return True

    def load(self) -> Optional[InMemoryVectorStore]:
        """Restore a store from the cache file, or None if there is no usable cache."""
        if not self.path.exists():
            logger.debug("No vector store cache at %s", self.path)
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            entries = [_parse_entry(raw) for raw in data["entries"]]
            store = InMemoryVectorStore.from_entries(entries)
        except (OSError, ValueError, KeyError, TypeError, DimensionMismatchError) as e:
            logger.warning("Could not load vector store cache from %s: %s", self.path, e)
            return None

        timestamp = data.get("timestamp")
        if isinstance(timestamp, (int, float)):
            age_hours = (time.time() * 1000 - timestamp) / 3_600_000
            logger.info("Loaded %d cached entries (cache age %.1f hours)", len(store), age_hours)
        else:
            logger.info("Loaded %d cached entries", len(store))
        return store

    def exists(self) -> bool:
        return self.path.exists()
