# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the retrieval core.

Configuration problems surface immediately at construction or call time.
Embedding failures carry the pipeline stage they happened in so callers
can tell a fatal index-build failure from a recoverable query failure.
"""

from typing import Optional

STAGE_BUILD = "build"
STAGE_QUERY = "query"


class HybridRecallError(Exception):
    """Base exception for hybrid recall errors."""

    pass


class ConfigurationError(HybridRecallError, ValueError):
    """Invalid parameters (stride, top_k, BM25 constants, decay, MMR)."""

    pass


class EmbeddingUnavailable(HybridRecallError):
    """The embedding provider could not produce vectors.

    Attributes:
        stage: Pipeline stage that requested the embeddings
            ("build" or "query"), or None when raised by a provider
            that does not know its caller.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class IndexBuildError(EmbeddingUnavailable):
    """Corpus embedding failed while building an index. Fatal."""

    def __init__(self, message: str):
        super().__init__(message, stage=STAGE_BUILD)


class QueryEmbeddingError(EmbeddingUnavailable):
    """Query embedding failed. Search degrades to lexical-only scoring."""

    def __init__(self, message: str):
        super().__init__(message, stage=STAGE_QUERY)
