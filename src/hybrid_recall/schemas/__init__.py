# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Data model for documents, chunks, queries and search results."""

from hybrid_recall.schemas.types import (
    Chunk,
    Document,
    Query,
    ScoredCandidate,
    SearchResult,
)

__all__ = [
    "Document",
    "Chunk",
    "Query",
    "ScoredCandidate",
    "SearchResult",
]
