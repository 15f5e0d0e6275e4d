# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Hybrid retrieval and re-ranking.

This module provides ranked retrieval over chunked memory notes with:
- BM25 full-corpus lexical ranking
- Vector/lexical fusion (0.7 cosine + 0.3 BM25 rank-normalized)
- Exponential temporal decay
- Maximal Marginal Relevance diversification
"""

from hybrid_recall.retrieval.bm25 import BM25Index
from hybrid_recall.retrieval.formatter import format_result, format_results
from hybrid_recall.retrieval.fusion import (
    BM25_WEIGHT,
    VECTOR_WEIGHT,
    HybridScorer,
    fuse_scores,
    normalize_rank,
)
from hybrid_recall.retrieval.hybrid import (
    HybridSearcher,
    SearchMetrics,
    candidate_pool_size,
    create_hybrid_searcher,
    score_candidates,
    search,
    search_with_metrics,
)
from hybrid_recall.retrieval.index import MemoryIndex, build_index
from hybrid_recall.retrieval.mmr import MMRSelector
from hybrid_recall.retrieval.similarity import cosine_similarity

__all__ = [
    # Lexical
    "BM25Index",
    # Scoring
    "cosine_similarity",
    "HybridScorer",
    "fuse_scores",
    "normalize_rank",
    "VECTOR_WEIGHT",
    "BM25_WEIGHT",
    # Selection
    "MMRSelector",
    # Index
    "MemoryIndex",
    "build_index",
    # Pipeline
    "search",
    "search_with_metrics",
    "score_candidates",
    "candidate_pool_size",
    "SearchMetrics",
    "HybridSearcher",
    "create_hybrid_searcher",
    # Output
    "format_result",
    "format_results",
]
