# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Maximal Marginal Relevance (MMR) diversification.

Greedily selects results that are relevant but not redundant with what
has already been selected:

    mmr(d) = λ * relevance(d) - (1 - λ) * max_{s in selected} cosine(d, s)

With nothing selected the penalty is 0, so the first pick is always the
most relevant candidate. Candidates without embeddings are never
penalized; a pool with no embeddings reduces to plain top-k by relevance.

Equal MMR scores resolve to the first candidate in pool order.

Reference: Carbonell, J. & Goldstein, J. (1998). "The Use of MMR,
Diversity-Based Reranking for Reordering Documents and Producing
Summaries."
"""

from typing import Sequence

from hybrid_recall.config import DEFAULT_MMR_LAMBDA
from hybrid_recall.errors import ConfigurationError
from hybrid_recall.retrieval.similarity import optional_cosine
from hybrid_recall.schemas import ScoredCandidate


class MMRSelector:
    """Greedy MMR re-ranker over a small candidate pool.

    Cost is O(k x pool x selected), so callers keep the pool small
    (a few multiples of k).

    Example:
        >>> selector = MMRSelector(lambda_mmr=0.7)
        >>> diverse = selector.select(candidates, k=6)

    Attributes:
        lambda_mmr: Relevance weight in [0, 1]. 1.0 ignores redundancy,
            0.0 ignores relevance after the first pick.
    """

    def __init__(self, lambda_mmr: float = DEFAULT_MMR_LAMBDA):
        """Initialize the selector.

        Raises:
            ConfigurationError: If lambda_mmr is outside [0, 1].
        """
        if not 0.0 <= lambda_mmr <= 1.0:
            raise ConfigurationError(f"lambda_mmr must be in [0, 1], got {lambda_mmr}")
        self.lambda_mmr = lambda_mmr

    def max_similarity(
        self,
        candidate: ScoredCandidate,
        selected: Sequence[ScoredCandidate],
    ) -> float:
        """Highest cosine similarity between a candidate and any selected one."""
        if not selected:
            return 0.0
        return max(
            optional_cosine(candidate.chunk.embedding, s.chunk.embedding) for s in selected
        )

    def mmr_score(
        self,
        candidate: ScoredCandidate,
        selected: Sequence[ScoredCandidate],
    ) -> float:
        """MMR score of a candidate given the current selection."""
        return self.lambda_mmr * candidate.score - (1 - self.lambda_mmr) * self.max_similarity(
            candidate, selected
        )

    def select(self, candidates: Sequence[ScoredCandidate], k: int) -> list[ScoredCandidate]:
        """Select up to k diverse candidates.

        Args:
            candidates: Candidate pool; candidate.score is the relevance.
            k: Number of candidates to select.

        Returns:
            min(k, len(candidates)) candidates in selection order.

        Raises:
            ConfigurationError: If k is not positive.
        """
        if k <= 0:
            raise ConfigurationError(f"k must be > 0, got {k}")

        selected: list[ScoredCandidate] = []
        remaining = list(candidates)

        while len(selected) < k and remaining:
            best_idx = 0
            best_score = float("-inf")

            for i, candidate in enumerate(remaining):
                score = self.mmr_score(candidate, selected)
                # Strict comparison keeps the first of equal scores
                if score > best_score:
                    best_score = score
                    best_idx = i

            selected.append(remaining.pop(best_idx))

        return selected
