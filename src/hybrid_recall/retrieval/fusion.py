# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Vector/lexical score fusion.

Combines dense and lexical relevance into one score per chunk:

    vector_score = cosine(query_embedding, chunk.embedding)   (0 if either is missing)
    bm25_norm    = 1 / (1 + rank_position)                    (0-based BM25 rank)
    fused        = 0.7 * vector_score + 0.3 * bm25_norm

BM25 enters by rank position, not raw score, so raw BM25 magnitudes
(unbounded, query-length dependent) never need calibrating against
cosine similarities. The weights are fixed constants.
"""

from typing import Optional, Sequence

from hybrid_recall.retrieval.bm25 import BM25Index
from hybrid_recall.retrieval.similarity import optional_cosine
from hybrid_recall.schemas import Chunk, ScoredCandidate

VECTOR_WEIGHT = 0.7
BM25_WEIGHT = 0.3


def normalize_rank(rank_position: int) -> float:
    """Map a 0-based rank position to (0, 1]: 1.0 for the top rank."""
    return 1.0 / (1 + rank_position)


def fuse_scores(vector_score: float, bm25_norm: float) -> float:
    """Weighted sum of a cosine score and a rank-normalized BM25 score."""
    return VECTOR_WEIGHT * vector_score + BM25_WEIGHT * bm25_norm


class HybridScorer:
    """Scores every chunk of a corpus against a query.

    Example:
        >>> scorer = HybridScorer(bm25_index)
        >>> candidates = scorer.score_chunks(chunks, "database choice", query_vec)
        >>> for candidate in candidates:
        ...     print(f"{candidate.chunk.id}: {candidate.fused_score:.4f}")

    Attributes:
        bm25: Lexical index built over the same chunk order.
    """

    def __init__(self, bm25: BM25Index):
        self.bm25 = bm25

    def score_chunk(
        self,
        chunk: Chunk,
        query_embedding: Optional[Sequence[float]],
        rank_position: int,
    ) -> ScoredCandidate:
        """Fuse one chunk's cosine similarity and BM25 rank position."""
        vector_score = optional_cosine(query_embedding, chunk.embedding)
        fused = fuse_scores(vector_score, normalize_rank(rank_position))
        return ScoredCandidate(
            chunk=chunk,
            score=fused,
            vector_score=vector_score,
            bm25_rank=rank_position,
            fused_score=fused,
        )

    def score_chunks(
        self,
        chunks: Sequence[Chunk],
        query_text: str,
        query_embedding: Optional[Sequence[float]],
    ) -> list[ScoredCandidate]:
        """Score every chunk, in corpus order.

        Args:
            chunks: Chunks in the order the BM25 index was built from.
            query_text: Raw query text for BM25.
            query_embedding: Query vector, or None for lexical-only scoring.

        Returns:
            One ScoredCandidate per chunk, in the same order as chunks.
        """
        positions = self.bm25.rank_positions(query_text)
        # A chunk missing from the ranking gets the worst position
        missing_position = len(chunks)
        return [
            self.score_chunk(chunk, query_embedding, positions.get(idx, missing_position))
            for idx, chunk in enumerate(chunks)
        ]
