# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Sliding-window chunking of memory notes.

Splits document text into fixed-size, overlapping character windows:

    window 0: [0, W)
    window 1: [W - O, 2W - O)
    window n: [n * (W - O), min(n * (W - O) + W, len))

Each window is trimmed; windows whose trimmed text is not longer than the
minimum length are skipped, but the walk still advances by one stride.
The walk stops at the first window that reaches the end of the text.
"""

import logging
from typing import Iterable, Optional

from hybrid_recall.config import (
    DEFAULT_MIN_CHUNK_CHARS,
    DEFAULT_OVERLAP_CHARS,
    DEFAULT_WINDOW_CHARS,
    SearchConfig,
)
from hybrid_recall.errors import ConfigurationError
from hybrid_recall.schemas import Chunk, Document

logger = logging.getLogger(__name__)


class SlidingWindowChunker:
    """Deterministic character-window chunker.

    Example:
        >>> chunker = SlidingWindowChunker(window_chars=1600, overlap_chars=320)
        >>> chunks = chunker.chunk_document(document)

    Attributes:
        window_chars: Window size in characters.
        overlap_chars: Characters shared by consecutive windows.
        min_chunk_chars: Trimmed windows of this length or less are dropped.
    """

    def __init__(
        self,
        window_chars: int = DEFAULT_WINDOW_CHARS,
        overlap_chars: int = DEFAULT_OVERLAP_CHARS,
        min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS,
    ):
        """Initialize the chunker.

        Raises:
            ConfigurationError: If the stride (window - overlap) is not
                positive or any size is negative.
        """
        if overlap_chars < 0:
            raise ConfigurationError(f"overlap_chars must be >= 0, got {overlap_chars}")
        if window_chars - overlap_chars <= 0:
            raise ConfigurationError(
                f"window_chars ({window_chars}) must be greater than "
                f"overlap_chars ({overlap_chars})"
            )
        if min_chunk_chars < 0:
            raise ConfigurationError(
                f"min_chunk_chars must be >= 0, got {min_chunk_chars}"
            )
        self.window_chars = window_chars
        self.overlap_chars = overlap_chars
        self.min_chunk_chars = min_chunk_chars

    @classmethod
    def from_config(cls, config: SearchConfig) -> "SlidingWindowChunker":
        """Create a chunker from a SearchConfig."""
        return cls(
            window_chars=config.window_chars,
            overlap_chars=config.overlap_chars,
            min_chunk_chars=config.min_chunk_chars,
        )

    @property
    def stride(self) -> int:
        """Distance between consecutive window starts."""
        return self.window_chars - self.overlap_chars

    def windows(self, text: str) -> list[tuple[int, int]]:
        """Return the untrimmed (start, end) bounds of every window."""
        bounds: list[tuple[int, int]] = []
        start = 0
        length = len(text)
        while start < length:
            end = min(start + self.window_chars, length)
            bounds.append((start, end))
            if end >= length:
                break
            start += self.stride
        return bounds

    def chunk_text(self, text: str, document_id: str, day_number: int = 0) -> list[Chunk]:
        """Split text into chunks belonging to one document.

        Args:
            text: Text to split.
            document_id: Parent document ID.
            day_number: Age marker inherited by every chunk.

        Returns:
            Chunks in text order.
        """
        chunks: list[Chunk] = []
        for start, end in self.windows(text):
            content = text[start:end].strip()
            if len(content) <= self.min_chunk_chars:
                continue
            chunks.append(
                Chunk(
                    id=f"{document_id}:{len(chunks)}",
                    source_document_id=document_id,
                    day_number=day_number,
                    content=content,
                    start_offset=start,
                    end_offset=end,
                )
            )
        return chunks

    def chunk_document(self, document: Document) -> list[Chunk]:
        """Split a Document into chunks."""
        return self.chunk_text(document.text, document.id, document.day_number)

    def chunk_documents(self, documents: Iterable[Document]) -> list[Chunk]:
        """Split many documents, preserving document order."""
        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self.chunk_document(document))
        return chunks


def chunk_text(
    text: str,
    document_id: str,
    day_number: int = 0,
    window_chars: int = DEFAULT_WINDOW_CHARS,
    overlap_chars: int = DEFAULT_OVERLAP_CHARS,
    min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS,
) -> list[Chunk]:
    """Convenience wrapper around SlidingWindowChunker.chunk_text."""
    chunker = SlidingWindowChunker(window_chars, overlap_chars, min_chunk_chars)
    return chunker.chunk_text(text, document_id, day_number)


def chunk_document(
    document: Document,
    config: Optional[SearchConfig] = None,
) -> list[Chunk]:
    """Split one document using the chunking settings of a SearchConfig."""
    return SlidingWindowChunker.from_config(config or SearchConfig()).chunk_document(document)


def chunk_documents(
    documents: Iterable[Document],
    config: Optional[SearchConfig] = None,
) -> list[Chunk]:
    """Split many documents using the chunking settings of a SearchConfig."""
    chunker = SlidingWindowChunker.from_config(config or SearchConfig())
    chunks = chunker.chunk_documents(documents)
    logger.debug(f"Chunked documents into {len(chunks)} chunks")
    return chunks
