# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Tests for vector/lexical score fusion."""

import pytest

from hybrid_recall.retrieval.bm25 import BM25Index
from hybrid_recall.retrieval.fusion import (
    BM25_WEIGHT,
    VECTOR_WEIGHT,
    HybridScorer,
    fuse_scores,
    normalize_rank,
)
from hybrid_recall.schemas import Chunk


def make_chunk(idx: int, content: str, embedding=None) -> Chunk:
    return Chunk(
        id=f"doc:{idx}",
        source_document_id="doc",
        day_number=0,
        content=content,
        embedding=embedding,
    )


@pytest.fixture
def chunks() -> list[Chunk]:
    """Three chunks; the middle one has no embedding."""
    return [
        make_chunk(0, "redis caches session tokens", [1.0, 0.0]),
        make_chunk(1, "postgres stores the users table"),
        make_chunk(2, "postgres replicas serve read traffic", [0.0, 1.0]),
    ]


@pytest.fixture
def scorer(chunks: list[Chunk]) -> HybridScorer:
    """Scorer over the chunk contents."""
    return HybridScorer(BM25Index([c.content for c in chunks]))


class TestFusionFormula:
    """Tests for the fusion arithmetic."""

    def test_weights(self) -> None:
        """Vector similarity carries 70% of the fused score."""
        assert VECTOR_WEIGHT == 0.7
        assert BM25_WEIGHT == 0.3

    def test_perfect_scores_fuse_to_one(self) -> None:
        """0.7 * 1.0 + 0.3 * 1.0 is exactly 1.0."""
        assert fuse_scores(1.0, normalize_rank(0)) == 1.0

    def test_normalize_rank(self) -> None:
        """Rank position p maps to 1 / (1 + p)."""
        assert normalize_rank(0) == 1.0
        assert normalize_rank(1) == 0.5
        assert normalize_rank(3) == 0.25

    def test_lexical_only(self) -> None:
        """Without vector similarity only the BM25 share remains."""
        assert fuse_scores(0.0, 0.5) == pytest.approx(0.15)


class TestHybridScorer:
    """Tests for per-chunk scoring."""

    def test_scores_in_corpus_order(self, scorer: HybridScorer, chunks: list[Chunk]) -> None:
        """One candidate per chunk, in corpus order."""
        candidates = scorer.score_chunks(chunks, "postgres", [1.0, 0.0])
        assert [c.chunk.id for c in candidates] == ["doc:0", "doc:1", "doc:2"]

    def test_bm25_rank_positions(self, scorer: HybridScorer, chunks: list[Chunk]) -> None:
        """Candidates record their position in the full BM25 ranking."""
        candidates = scorer.score_chunks(chunks, "redis", None)
        assert [c.bm25_rank for c in candidates] == [0, 1, 2]

    def test_vector_and_rank_fused(self, scorer: HybridScorer, chunks: list[Chunk]) -> None:
        """Fused score combines cosine similarity and rank position."""
        candidates = scorer.score_chunks(chunks, "redis", [1.0, 0.0])
        top = candidates[0]
        assert top.vector_score == pytest.approx(1.0)
        assert top.fused_score == pytest.approx(1.0)
        assert top.score == top.fused_score

    def test_chunk_without_embedding(self, scorer: HybridScorer, chunks: list[Chunk]) -> None:
        """A chunk without an embedding has zero vector score."""
        candidates = scorer.score_chunks(chunks, "redis", [1.0, 0.0])
        middle = candidates[1]
        assert middle.vector_score == 0.0
        assert middle.fused_score == pytest.approx(0.3 * normalize_rank(middle.bm25_rank))

    @pytest.mark.parametrize("query_embedding", [None, []])
    def test_missing_query_embedding(
        self, scorer: HybridScorer, chunks: list[Chunk], query_embedding
    ) -> None:
        """Without a query vector, scores fall back to BM25 rank alone."""
        candidates = scorer.score_chunks(chunks, "redis", query_embedding)
        assert all(c.vector_score == 0.0 for c in candidates)
        assert [c.fused_score for c in candidates] == pytest.approx([0.3, 0.15, 0.1])

    def test_zero_query_vector(self, scorer: HybridScorer, chunks: list[Chunk]) -> None:
        """A zero-norm query vector does not raise."""
        candidates = scorer.score_chunks(chunks, "redis", [0.0, 0.0])
        assert all(c.vector_score == 0.0 for c in candidates)
