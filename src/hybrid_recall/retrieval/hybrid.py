# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Hybrid search pipeline.

Sequences the retrieval stages for one query:

Stage 1 - Scoring (every chunk):
  - BM25 full-corpus ranking
  - Fusion: 0.7 * cosine + 0.3 * BM25 rank-normalized
  - Temporal decay by age relative to the newest document

Stage 2 - Selection:
  - Pre-filter to the top_k * multiplier highest decayed scores
  - MMR diversification down to top_k

Results come back in MMR selection order, not plain score order. The
pre-filter means MMR only reorders an already relevant subset; it never
resurrects low scorers for the sake of diversity.

search() and search_with_metrics() are pure and synchronous. The
HybridSearcher wraps them with an embedding provider for index builds
and query embedding.
"""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from hybrid_recall.config import SearchConfig
from hybrid_recall.errors import ConfigurationError, EmbeddingUnavailable, QueryEmbeddingError
from hybrid_recall.lifecycle.decay import apply_temporal_decay
from hybrid_recall.providers.embedding import (
    EmbeddingProvider,
    OpenAIEmbeddingProvider,
    embed_in_batches,
)
from hybrid_recall.retrieval.fusion import HybridScorer
from hybrid_recall.retrieval.index import MemoryIndex, build_index
from hybrid_recall.retrieval.mmr import MMRSelector
from hybrid_recall.schemas import Document, ScoredCandidate, SearchResult

logger = logging.getLogger(__name__)


@dataclass
class SearchMetrics:
    """Metrics for a search operation.

    Attributes:
        total_time_ms: Total search time in milliseconds.
        scoring_time_ms: BM25 ranking, fusion and decay time.
        selection_time_ms: Pre-filter and MMR time.
        embedding_time_ms: Query embedding time (HybridSearcher only).
        corpus_size: Number of chunks in the index.
        candidate_pool_size: Candidates handed to MMR.
        final_results: Number of results returned.
        lexical_fallback: Whether vector scores were unavailable.
        decay_applied: Whether temporal decay was applied.
        mmr_applied: Whether MMR selection was used.
    """

    total_time_ms: float = 0.0
    scoring_time_ms: float = 0.0
    selection_time_ms: float = 0.0
    embedding_time_ms: float = 0.0
    corpus_size: int = 0
    candidate_pool_size: int = 0
    final_results: int = 0
    lexical_fallback: bool = False
    decay_applied: bool = False
    mmr_applied: bool = False


def candidate_pool_size(top_k: int, corpus_size: int, multiplier: int) -> int:
    """Number of candidates considered by MMR: min(top_k * multiplier, corpus)."""
    return min(top_k * multiplier, corpus_size)


def score_candidates(
    query_text: str,
    query_embedding: Optional[Sequence[float]],
    index: MemoryIndex,
    config: SearchConfig,
) -> list[ScoredCandidate]:
    """Fuse and decay the score of every chunk in the index, in index order."""
    candidates = HybridScorer(index.bm25).score_chunks(index.chunks, query_text, query_embedding)
    if config.apply_decay:
        for candidate in candidates:
            candidate.score = apply_temporal_decay(
                candidate.fused_score,
                candidate.chunk.day_number,
                index.max_day_number,
                config.half_life_days,
            )
    return candidates


def search_with_metrics(
    query_text: str,
    query_embedding: Optional[Sequence[float]],
    index: MemoryIndex,
    top_k: Optional[int] = None,
    config: Optional[SearchConfig] = None,
) -> tuple[list[SearchResult], SearchMetrics]:
    """Run the full pipeline and report per-stage metrics.

    Args:
        query_text: Raw query text for BM25.
        query_embedding: Query vector. None or empty falls back to
            near-pure lexical scoring.
        index: Index to search.
        top_k: Number of results. Defaults to config.top_k.
        config: Pipeline settings.

    Returns:
        Tuple of (results in selection order, metrics).

    Raises:
        ConfigurationError: If top_k <= 0 or the config is invalid.
    """
    config = (config or SearchConfig()).validate()
    top_k = config.top_k if top_k is None else top_k
    if top_k <= 0:
        raise ConfigurationError(f"top_k must be > 0, got {top_k}")

    start_time = time.perf_counter()
    metrics = SearchMetrics(
        corpus_size=len(index),
        lexical_fallback=query_embedding is None or len(query_embedding) == 0,
        decay_applied=config.apply_decay,
        mmr_applied=config.use_mmr,
    )

    if index.is_empty:
        metrics.total_time_ms = (time.perf_counter() - start_time) * 1000
        return [], metrics

    # Stage 1: fusion + decay over the whole corpus
    scoring_start = time.perf_counter()
    candidates = score_candidates(query_text, query_embedding, index, config)
    metrics.scoring_time_ms = (time.perf_counter() - scoring_start) * 1000

    # Stage 2: pre-filter + MMR
    selection_start = time.perf_counter()
    pool_size = candidate_pool_size(top_k, len(candidates), config.mmr_candidate_multiplier)
    pool = sorted(candidates, key=lambda c: c.score, reverse=True)[:pool_size]
    metrics.candidate_pool_size = len(pool)

    if config.use_mmr:
        selected = MMRSelector(config.mmr_lambda).select(pool, top_k)
    else:
        selected = pool[:top_k]
    metrics.selection_time_ms = (time.perf_counter() - selection_start) * 1000

    results = [SearchResult.from_candidate(c) for c in selected]
    metrics.final_results = len(results)
    metrics.total_time_ms = (time.perf_counter() - start_time) * 1000

    logger.debug(
        f"Search '{query_text[:60]}': {len(results)} results from pool of "
        f"{metrics.candidate_pool_size}/{metrics.corpus_size} chunks"
    )
    return results, metrics


def search(
    query_text: str,
    query_embedding: Optional[Sequence[float]],
    index: MemoryIndex,
    top_k: Optional[int] = None,
    config: Optional[SearchConfig] = None,
) -> list[SearchResult]:
    """Search an index: fusion, temporal decay, pre-filter, MMR.

    Example:
        >>> results = search("which database?", query_vec, index, top_k=6)
        >>> for r in results:
        ...     print(f"{r.chunk_id}: {r.score:.4f}")

    Returns:
        Up to top_k SearchResults in selection order.
    """
    results, _ = search_with_metrics(query_text, query_embedding, index, top_k, config)
    return results


class HybridSearcher:
    """Hybrid search orchestrator bound to an embedding provider.

    Builds indexes (corpus embedding failures are fatal) and answers
    queries (query embedding failures degrade to lexical-only scoring).

    Example:
        >>> searcher = HybridSearcher(provider)
        >>> index = await searcher.build_index(documents)
        >>> results, metrics = await searcher.search("auth tokens", index, top_k=6)
        >>> for result in results:
        ...     print(f"{result.chunk_id}: {result.score:.4f}")

    Attributes:
        provider: Embedding provider for chunks and queries.
        config: Pipeline settings.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        config: Optional[SearchConfig] = None,
    ):
        self.provider = provider
        self.config = (config or SearchConfig()).validate()

    async def build_index(self, documents: Iterable[Document]) -> MemoryIndex:
        """Chunk, embed and index documents.

        Raises:
            IndexBuildError: If corpus embedding fails.
        """
        return await build_index(documents, self.provider, self.config)

    async def embed_query(self, query_text: str) -> Optional[list[float]]:
        """Embed a query, returning None when the provider is unavailable."""
        try:
            vectors = await self.provider.embed([query_text])
            if len(vectors) != 1:
                raise QueryEmbeddingError(
                    f"Provider returned {len(vectors)} vectors for 1 query"
                )
        except EmbeddingUnavailable as e:
            logger.warning(f"Query embedding failed, using lexical-only scoring: {e}")
            return None
        return list(vectors[0])

    async def embed_queries(self, query_texts: Sequence[str]) -> list[Optional[list[float]]]:
        """Embed many queries in batches; all fall back to None on failure."""
        try:
            vectors = await embed_in_batches(
                self.provider, query_texts, batch_size=self.config.embed_batch_size
            )
        except EmbeddingUnavailable as e:
            logger.warning(
                f"Embedding {len(query_texts)} queries failed, "
                f"using lexical-only scoring: {e}"
            )
            return [None] * len(query_texts)
        return [list(v) for v in vectors]

    async def search(
        self,
        query_text: str,
        index: MemoryIndex,
        top_k: Optional[int] = None,
    ) -> tuple[list[SearchResult], SearchMetrics]:
        """Embed a query and search the index.

        Returns:
            Tuple of (results, metrics). metrics.lexical_fallback is True
            when the query could not be embedded.
        """
        embed_start = time.perf_counter()
        query_embedding = await self.embed_query(query_text)
        embedding_time_ms = (time.perf_counter() - embed_start) * 1000

        results, metrics = search_with_metrics(
            query_text, query_embedding, index, top_k, self.config
        )
        metrics.embedding_time_ms = embedding_time_ms
        metrics.total_time_ms += embedding_time_ms
        return results, metrics

    async def search_many(
        self,
        query_texts: Sequence[str],
        index: MemoryIndex,
        top_k: Optional[int] = None,
    ) -> list[list[SearchResult]]:
        """Search several queries with one batched embedding pass.

        Returns:
            One result list per query, in input order.
        """
        embeddings = await self.embed_queries(query_texts)
        return [
            search(text, embedding, index, top_k, self.config)
            for text, embedding in zip(query_texts, embeddings)
        ]


def create_hybrid_searcher(
    config: Optional[SearchConfig] = None,
    provider: Optional[EmbeddingProvider] = None,
) -> HybridSearcher:
    """Factory function to create a HybridSearcher.

    Args:
        config: Pipeline settings.
        provider: Embedding provider. Defaults to an OpenAIEmbeddingProvider
            configured from the environment.

    Returns:
        Configured HybridSearcher instance.
    """
    return HybridSearcher(provider or OpenAIEmbeddingProvider(), config)
