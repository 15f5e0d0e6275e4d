# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Hybrid Recall - hybrid retrieval and re-ranking for memory notes.

Chunks memory notes, indexes them with BM25 and dense embeddings, and
answers queries through vector/lexical fusion, temporal decay and MMR
diversification.

Usage:
    >>> from hybrid_recall import create_hybrid_searcher
    >>> searcher = create_hybrid_searcher()
    >>> index = await searcher.build_index(documents)
    >>> results, metrics = await searcher.search("which database?", index)
"""

try:
    from hybrid_recall._version import __version__, __version_tuple__
except ImportError:
    # Package not installed (development mode without build)
    __version__ = "0.0.0.dev0"
    __version_tuple__ = (0, 0, 0, "dev0")

from hybrid_recall.config import EmbeddingConfig, SearchConfig, load_config
from hybrid_recall.errors import (
    ConfigurationError,
    EmbeddingUnavailable,
    HybridRecallError,
    IndexBuildError,
    QueryEmbeddingError,
)
from hybrid_recall.retrieval import (
    HybridSearcher,
    MemoryIndex,
    SearchMetrics,
    build_index,
    create_hybrid_searcher,
    search,
    search_with_metrics,
)
from hybrid_recall.schemas import Chunk, Document, Query, ScoredCandidate, SearchResult

__all__ = [
    "__version__",
    "__version_tuple__",
    # Configuration
    "SearchConfig",
    "EmbeddingConfig",
    "load_config",
    # Errors
    "HybridRecallError",
    "ConfigurationError",
    "EmbeddingUnavailable",
    "IndexBuildError",
    "QueryEmbeddingError",
    # Data model
    "Document",
    "Chunk",
    "Query",
    "ScoredCandidate",
    "SearchResult",
    # Retrieval
    "MemoryIndex",
    "build_index",
    "search",
    "search_with_metrics",
    "SearchMetrics",
    "HybridSearcher",
    "create_hybrid_searcher",
]
