# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Immutable search index over embedded chunks.

Build sequence:
  1. Chunk every document (sliding window)
  2. Embed every chunk, in batches, before anything is indexed
  3. Build BM25 statistics over the complete chunk list
  4. Record the newest day number as the reference for temporal decay

A MemoryIndex is read-only once built and may be shared between threads.
When the corpus changes the index is rebuilt wholesale.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from hybrid_recall.config import SearchConfig
from hybrid_recall.errors import ConfigurationError, EmbeddingUnavailable, IndexBuildError
from hybrid_recall.ingestion.chunker import SlidingWindowChunker
from hybrid_recall.providers.embedding import EmbeddingProvider, embed_in_batches
from hybrid_recall.retrieval.bm25 import BM25Index
from hybrid_recall.schemas import Chunk, Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryIndex:
    """Read-only snapshot of an embedded, chunked corpus.

    Attributes:
        chunks: Chunks in index order.
        bm25: BM25 statistics built over chunk contents in the same order.
        max_day_number: Newest document day number at build time.
    """

    chunks: tuple[Chunk, ...]
    bm25: BM25Index
    max_day_number: int = 0

    @classmethod
    def from_chunks(
        cls,
        chunks: Sequence[Chunk],
        max_day_number: Optional[int] = None,
        config: Optional[SearchConfig] = None,
    ) -> "MemoryIndex":
        """Build an index from already-embedded chunks.

        Args:
            chunks: Chunks in index order.
            max_day_number: Reference day for decay. Defaults to the newest
                chunk day number (0 for an empty corpus).
            config: Supplies the BM25 parameters.

        Returns:
            A new MemoryIndex.

        Raises:
            ConfigurationError: If max_day_number is older than some chunk,
                which would give that chunk a negative age.
        """
        config = config or SearchConfig()
        newest_chunk_day = max((c.day_number for c in chunks), default=0)
        if max_day_number is None:
            max_day_number = newest_chunk_day
        elif max_day_number < newest_chunk_day:
            raise ConfigurationError(
                f"max_day_number ({max_day_number}) is older than the newest "
                f"chunk day ({newest_chunk_day})"
            )
        return cls(
            chunks=tuple(chunks),
            bm25=BM25Index([c.content for c in chunks], k1=config.bm25_k1, b=config.bm25_b),
            max_day_number=max_day_number,
        )

    def __len__(self) -> int:
        return len(self.chunks)

    @property
    def is_empty(self) -> bool:
        """Whether the index holds no chunks."""
        return not self.chunks

    def embedded_count(self) -> int:
        """Number of chunks carrying an embedding."""
        return sum(1 for c in self.chunks if c.has_embedding)

    def stats(self) -> dict[str, float | int]:
        """Get index statistics.

        Returns:
            Dictionary with chunk, document and BM25 statistics.
        """
        bm25_stats = self.bm25.stats()
        return {
            "chunks": len(self.chunks),
            "documents": len({c.source_document_id for c in self.chunks}),
            "embedded_chunks": self.embedded_count(),
            "max_day_number": self.max_day_number,
            "avg_doc_length": bm25_stats["avg_doc_length"],
            "vocabulary_size": bm25_stats["vocabulary_size"],
        }


async def build_index(
    documents: Iterable[Document],
    provider: EmbeddingProvider,
    config: Optional[SearchConfig] = None,
) -> MemoryIndex:
    """Chunk, embed and index a corpus.

    Args:
        documents: Source documents.
        provider: Embedding provider for chunk contents.
        config: Chunking, BM25 and batching settings.

    Returns:
        The built MemoryIndex. An empty corpus yields a valid empty index.

    Raises:
        ConfigurationError: If the configuration is invalid.
        IndexBuildError: If any embedding batch fails. No partial index
            is returned.
    """
    config = (config or SearchConfig()).validate()
    documents = list(documents)

    chunks = SlidingWindowChunker.from_config(config).chunk_documents(documents)
    max_day_number = max((d.day_number for d in documents), default=0)

    try:
        vectors = await embed_in_batches(
            provider, [c.content for c in chunks], batch_size=config.embed_batch_size
        )
    except EmbeddingUnavailable as e:
        raise IndexBuildError(f"Index build aborted, corpus embedding failed: {e}") from e

    embedded = [chunk.with_embedding(vector) for chunk, vector in zip(chunks, vectors)]
    index = MemoryIndex.from_chunks(embedded, max_day_number=max_day_number, config=config)

    logger.info(
        f"Index ready: {len(index)} chunks from {len(documents)} documents, "
        f"max day: {max_day_number}"
    )
    return index
