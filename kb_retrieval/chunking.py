"""
Document Chunking Module

WHY CHUNKING IS NECESSARY:
1. Embeddings work better on focused, coherent text
2. Retrieval is more precise with smaller, specific chunks
3. Whole documents would overwhelm the answer prompt

RECURSIVE CHUNKING (WHAT WE USE):
   - Try to split on paragraphs first
   - If a piece is too big, try lines, then sentences, then words
   - Only cut at a fixed character position as a last resort
   - Pieces are then packed back together up to chunk_size

WHY OVERLAP:
When we split "The policy is 30 days. Contact support for help."
into two chunks, the second chunk loses context about "the policy."
Overlap repeats the tail of one chunk at the head of the next, so a
question about a boundary still finds its context.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple

from kb_retrieval.logging_config import get_logger

logger = get_logger(__name__)


class Document(NamedTuple):
    """
    A loaded source document: plain text plus opaque metadata.

    Plain (text, metadata) tuples are accepted wherever a Document is.
    """
    text: str
    metadata: Dict[str, Any]


@dataclass(frozen=True)
class Chunk:
    """
    A piece of a document.

    The metadata is copied verbatim from the source document; the chunker
    never adds keys of its own.
    """
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"Chunk({self.metadata.get('source', 'unknown')}, text='{preview}')"


class RecursiveChunker:
    """
    Split documents into overlapping chunks using a recursive strategy.

    HOW IT WORKS:
    1. Split on the first separator that occurs in the text
    2. Any piece still longer than chunk_size is split again with the
       next separator (paragraphs > lines > sentences > words > chars)
    3. Consecutive small pieces are packed into chunks of at most
       chunk_size characters; the "" separator splits into single
       characters, which is the hard cut
    4. Each new chunk starts with up to chunk_overlap characters of
       trailing pieces from the previous one

    Separators stay attached to the end of the piece they follow, so
    packing with "" reproduces the original text.
    """

    # Separators in order of preference (try first one first)
    SEPARATORS = [
        "\n\n",     # Paragraphs
        "\n",       # Lines
        ". ",       # Sentences
        "? ",       # Questions
        "! ",       # Exclamations
        " ",        # Words
        ""          # Characters (last resort)
    ]

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum size of each chunk in characters
            chunk_overlap: Target number of characters shared by
                consecutive chunks of the same document
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than "
                f"chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split_documents(self, documents: Iterable[Document]) -> List[Chunk]:
        """
        Chunk every document, copying its metadata onto each chunk.

        Documents with empty text contribute no chunks.
        """
        chunks = []
        document_count = 0
        for text, metadata in documents:
            document_count += 1
            for piece in self.split_text(text or ""):
                chunks.append(Chunk(content=piece, metadata=dict(metadata or {})))

        logger.info(
            "Created %d chunks from %d documents", len(chunks), document_count
        )
        return chunks

    def split_text(self, text: str) -> List[str]:
        """Split a single text into chunk strings."""
        if not text.strip():
            return []
        return self._split_recursive(text, self.SEPARATORS)

    def _split_recursive(self, text: str, separators: List[str]) -> List[str]:
        """
        Recursively split text using separators.

        Pieces that fit are buffered and packed together; a piece that is
        too big flushes the buffer and is split with the remaining
        separators.
        """
        separator = ""
        remaining: List[str] = []
        for i, candidate in enumerate(separators):
            if candidate == "" or candidate in text:
                separator = candidate
                remaining = separators[i + 1:]
                break

        chunks = []
        fitting: List[str] = []
        for piece in self._split_on(text, separator):
            if len(piece) <= self.chunk_size:
                fitting.append(piece)
                continue

            # Only reachable with a real separator, so "" is still left
            if fitting:
                chunks.extend(self._merge_pieces(fitting))
                fitting = []
            chunks.extend(self._split_recursive(piece, remaining))

        if fitting:
            chunks.extend(self._merge_pieces(fitting))
        return chunks

    @staticmethod
    def _split_on(text: str, separator: str) -> List[str]:
        """Split text, keeping each separator at the end of its piece."""
        if separator == "":
            return list(text)
        parts = re.split(f"({re.escape(separator)})", text)
        pieces = [parts[0]]
        for i in range(1, len(parts), 2):
            pieces[-1] += parts[i]
            pieces.append(parts[i + 1])
        return [piece for piece in pieces if piece]

    def _merge_pieces(self, pieces: List[str]) -> List[str]:
        """
        Pack pieces into chunks no longer than chunk_size, with overlap.

        When a chunk is emitted, pieces are dropped from the front of the
        window until what is left fits within chunk_overlap (and leaves
        room for the next piece); the remainder seeds the next chunk.
        """
        merged = []
        window: List[str] = []
        total = 0

        for piece in pieces:
            if window and total + len(piece) > self.chunk_size:
                chunk = "".join(window).strip()
                if chunk:
                    merged.append(chunk)
                while window and (
                    total > self.chunk_overlap
                    or total + len(piece) > self.chunk_size
                ):
                    total -= len(window.pop(0))
            window.append(piece)
            total += len(piece)

        chunk = "".join(window).strip()
        if chunk:
            merged.append(chunk)
        return merged


def chunk_documents(
    documents: Iterable[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200
) -> List[Chunk]:
    """
    Convenience function to chunk loaded documents.

    Example:
        chunks = chunk_documents(load_knowledge_base("KB"), chunk_size=1000)
        for chunk in chunks:
            print(f"{chunk.metadata['file_name']}: {chunk.content[:100]}...")
    """
    chunker = RecursiveChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    return chunker.split_documents(documents)
