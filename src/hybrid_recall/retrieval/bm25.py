# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""BM25 lexical index over chunk contents.

Implements the BM25 (Best Matching 25) ranking function as the lexical
half of hybrid retrieval.

Formula: BM25(D, Q) = Σ IDF(qi) * (f(qi, D) * (k1 + 1)) / (f(qi, D) + k1 * (1 - b + b * |D| / avgdl))
IDF:     IDF(t) = ln((N - df(t) + 0.5) / (df(t) + 0.5) + 1)

The index is built once from the complete chunk list and never updated.
rank_all() ranks the whole corpus rather than a top-k slice, because
hybrid fusion normalizes BM25 by rank position, which needs a position
for every chunk. That costs O(corpus size x query terms) per query.
"""

import math
import re
from collections import Counter
from typing import Sequence

from hybrid_recall.config import DEFAULT_BM25_B, DEFAULT_BM25_K1
from hybrid_recall.errors import ConfigurationError


class BM25Index:
    """Immutable BM25 index for an ordered list of chunk texts.

    Example:
        >>> index = BM25Index(["postgres stores sessions", "redis caches tokens"])
        >>> for chunk_idx, score in index.rank_all("postgres sessions"):
        ...     print(f"{chunk_idx}: {score:.4f}")

    Attributes:
        k1: Term frequency saturation parameter (default 1.5).
        b: Document length normalization parameter (default 0.75).
        doc_lengths: Token count for each document.
        avg_doc_length: Average token count across the corpus.
    """

    # Runs of anything outside [a-z0-9] separate tokens (applied after lowercasing)
    SPLIT_PATTERN = re.compile(r"[^a-z0-9]+")

    # Tokens of this length or shorter are dropped
    MAX_DROPPED_TOKEN_LENGTH = 1

    def __init__(
        self,
        documents: Sequence[str],
        k1: float = DEFAULT_BM25_K1,
        b: float = DEFAULT_BM25_B,
    ):
        """Build the index.

        Args:
            documents: Chunk contents in index order.
            k1: Term frequency saturation. Higher values increase TF impact.
            b: Document length normalization (0-1).
                0 = no normalization, 1 = full normalization.

        Raises:
            ConfigurationError: If k1 is negative or b is outside [0, 1].
        """
        if k1 < 0:
            raise ConfigurationError(f"BM25 k1 must be >= 0, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise ConfigurationError(f"BM25 b must be in [0, 1], got {b}")

        self.k1 = k1
        self.b = b

        tokenized = [self.tokenize(doc) for doc in documents]
        self.doc_lengths: tuple[int, ...] = tuple(len(tokens) for tokens in tokenized)
        self._doc_term_freqs: tuple[dict[str, int], ...] = tuple(
            dict(Counter(tokens)) for tokens in tokenized
        )

        self.total_docs = len(tokenized)
        self.avg_doc_length = (
            sum(self.doc_lengths) / self.total_docs if self.total_docs > 0 else 0.0
        )

        doc_freq: dict[str, int] = {}
        for term_freqs in self._doc_term_freqs:
            for term in term_freqs:
                doc_freq[term] = doc_freq.get(term, 0) + 1
        self._doc_freq = doc_freq

        self._idf: dict[str, float] = {
            term: self._calculate_idf(freq) for term, freq in doc_freq.items()
        }

    @classmethod
    def tokenize(cls, text: str) -> list[str]:
        """Tokenize text into lowercase alphanumeric terms.

        Args:
            text: Text to tokenize.

        Returns:
            Terms longer than one character, in text order.
        """
        return [
            t
            for t in cls.SPLIT_PATTERN.split(text.lower())
            if len(t) > cls.MAX_DROPPED_TOKEN_LENGTH
        ]

    def _calculate_idf(self, doc_freq: int) -> float:
        """Standard BM25 IDF with +1 to keep values positive."""
        n = self.total_docs
        return math.log((n - doc_freq + 0.5) / (doc_freq + 0.5) + 1)

    def idf(self, term: str) -> float:
        """Return the IDF of a term, 0.0 for terms not in the corpus."""
        return self._idf.get(term, 0.0)

    def doc_freq(self, term: str) -> int:
        """Return the number of documents containing a term."""
        return self._doc_freq.get(term, 0)

    def score(self, query_terms: Sequence[str], doc_idx: int) -> float:
        """Calculate the BM25 score of one document.

        Args:
            query_terms: Tokenized query terms (repeats count repeatedly).
            doc_idx: Position of the document in the index.

        Returns:
            BM25 score (0.0 when no query term occurs in the document).
        """
        score = 0.0
        doc_len = self.doc_lengths[doc_idx]
        doc_term_freqs = self._doc_term_freqs[doc_idx]
        avgdl = self.avg_doc_length

        for term in query_terms:
            tf = doc_term_freqs.get(term, 0)
            if tf == 0:
                continue

            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * (1 - self.b + self.b * doc_len / avgdl)
            score += self._idf[term] * (numerator / denominator)

        return score

    def rank_all(self, query: str) -> list[tuple[int, float]]:
        """Rank every document in the corpus against a query.

        Args:
            query: Raw query text.

        Returns:
            One (doc_idx, bm25_score) pair per document, sorted by score
            descending. Equal scores keep index order.
        """
        query_terms = self.tokenize(query)
        scores = [(idx, self.score(query_terms, idx)) for idx in range(self.total_docs)]
        # sorted() is stable, including with reverse=True
        return sorted(scores, key=lambda x: x[1], reverse=True)

    def rank_positions(self, query: str) -> dict[int, int]:
        """Map each document index to its 0-based position in rank_all()."""
        return {doc_idx: pos for pos, (doc_idx, _) in enumerate(self.rank_all(query))}

    def __len__(self) -> int:
        return self.total_docs

    def stats(self) -> dict[str, float | int]:
        """Get statistics about the index.

        Returns:
            Dictionary with total_docs, avg_doc_length and vocabulary_size.
        """
        return {
            "total_docs": self.total_docs,
            "avg_doc_length": self.avg_doc_length,
            "vocabulary_size": len(self._doc_freq),
        }
