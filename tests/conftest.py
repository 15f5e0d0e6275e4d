# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Root pytest configuration with shared fixtures and markers.

This file is automatically loaded by pytest and provides:
- Custom markers for test categories
- Deterministic in-process embedding providers
- Shared sample documents
"""

import zlib
from typing import Sequence

import pytest

from hybrid_recall.errors import EmbeddingUnavailable
from hybrid_recall.retrieval.bm25 import BM25Index
from hybrid_recall.schemas import Document

EMBEDDING_DIM = 64


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Mark test as integration test (cross-component)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Mark test as slow-running (may be skipped in quick runs)",
    )


# ============================================================================
# Fake Embedding Providers
# ============================================================================


def bag_of_words_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Hash each token into a fixed-size count vector.

    Texts sharing words get similar vectors; the mapping is stable
    across runs (crc32, not hash()).
    """
    vector = [0.0] * dim
    for token in BM25Index.tokenize(text):
        vector[zlib.crc32(token.encode("utf-8")) % dim] += 1.0
    return vector


class BagOfWordsProvider:
    """Deterministic provider that records every call."""

    def __init__(self, fail_after_calls: int | None = None):
        self.calls: list[list[str]] = []
        self.fail_after_calls = fail_after_calls

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if self.fail_after_calls is not None and len(self.calls) >= self.fail_after_calls:
            raise EmbeddingUnavailable("provider offline")
        self.calls.append(list(texts))
        return [bag_of_words_vector(t) for t in texts]


class FailingProvider:
    """Provider that is always unavailable."""

    def __init__(self):
        self.calls = 0

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls += 1
        raise EmbeddingUnavailable("Embeddings API 503: unavailable")


@pytest.fixture
def embed_text():
    """The fake providers' text-to-vector function, for building queries."""
    return bag_of_words_vector


@pytest.fixture
def provider() -> BagOfWordsProvider:
    """A working deterministic provider."""
    return BagOfWordsProvider()


@pytest.fixture
def failing_provider() -> FailingProvider:
    """A provider that always fails."""
    return FailingProvider()


@pytest.fixture
def query_offline_provider() -> BagOfWordsProvider:
    """A provider that serves exactly one call (the corpus build), then fails."""
    return BagOfWordsProvider(fail_after_calls=1)


# ============================================================================
# Shared Fixtures
# ============================================================================


@pytest.fixture
def sample_documents() -> list[Document]:
    """Session notes spread over several project days."""
    return [
        Document(
            id="session-01",
            day_number=1,
            text="Chose PostgreSQL 16 as the primary database for the ingest service.",
        ),
        Document(
            id="session-02",
            day_number=5,
            text="Redis is used for caching rate limit counters and session tokens.",
        ),
        Document(
            id="session-03",
            day_number=12,
            text="Authentication moved to JWT tokens signed with RS256 keys.",
        ),
        Document(
            id="session-04",
            day_number=20,
            text="Database migrations run with alembic before every deployment.",
        ),
        Document(
            id="session-05",
            day_number=31,
            text="The frontend editor defaults to dark mode with a 2-space indent.",
        ),
    ]
