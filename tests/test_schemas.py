# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Tests for the retrieval data model."""

import numpy as np
import pytest
from pydantic import ValidationError

from hybrid_recall.schemas import Chunk, Document, Query, ScoredCandidate, SearchResult


@pytest.fixture
def chunk() -> Chunk:
    """An unembedded chunk."""
    return Chunk(
        id="session-1:0",
        source_document_id="session-1",
        day_number=4,
        content="PostgreSQL is the primary database",
        start_offset=0,
        end_offset=35,
    )


class TestDocument:
    """Tests for Document validation."""

    def test_valid_document(self) -> None:
        """A document keeps its fields."""
        doc = Document(id="d1", day_number=3, text="notes")
        assert (doc.id, doc.day_number, doc.text) == ("d1", 3, "notes")

    def test_negative_day_rejected(self) -> None:
        """Day numbers are non-negative age markers."""
        with pytest.raises(ValidationError):
            Document(id="d1", day_number=-1, text="notes")

    def test_empty_id_rejected(self) -> None:
        """Documents need an id."""
        with pytest.raises(ValidationError):
            Document(id="", day_number=0, text="notes")

    def test_frozen(self) -> None:
        """Documents are immutable."""
        doc = Document(id="d1", day_number=0, text="notes")
        with pytest.raises(ValidationError):
            doc.text = "changed"


class TestChunk:
    """Tests for Chunk embeddings."""

    def test_embedding_coerced_to_tuple(self) -> None:
        """List and numpy embeddings are stored as float tuples."""
        from_list = Chunk(id="c", source_document_id="d", content="x", embedding=[1, 2])
        from_array = Chunk(
            id="c", source_document_id="d", content="x", embedding=np.array([1.0, 2.0])
        )
        assert from_list.embedding == (1.0, 2.0)
        assert from_array.embedding == (1.0, 2.0)

    def test_with_embedding_returns_copy(self, chunk: Chunk) -> None:
        """Embedding a chunk leaves the original untouched."""
        embedded = chunk.with_embedding([0.1, 0.2, 0.3])

        assert embedded.embedding == (0.1, 0.2, 0.3)
        assert embedded.has_embedding
        assert chunk.embedding is None
        assert embedded.id == chunk.id

    def test_embedding_set_once(self, chunk: Chunk) -> None:
        """An embedded chunk cannot be re-embedded."""
        embedded = chunk.with_embedding([0.1, 0.2])
        with pytest.raises(ValueError):
            embedded.with_embedding([0.3, 0.4])

    def test_embedding_immutable(self, chunk: Chunk) -> None:
        """The embedding field cannot be reassigned."""
        embedded = chunk.with_embedding([0.1, 0.2])
        with pytest.raises(ValidationError):
            embedded.embedding = (1.0, 1.0)

    def test_empty_embedding_is_not_embedded(self) -> None:
        """An empty vector does not count as an embedding."""
        c = Chunk(id="c", source_document_id="d", content="x", embedding=[])
        assert not c.has_embedding


class TestResults:
    """Tests for query and result types."""

    def test_query_embedding_optional(self) -> None:
        """Queries may have no embedding."""
        assert Query(text="db?").embedding is None
        assert Query(text="db?", embedding=[1, 0]).embedding == (1.0, 0.0)

    def test_search_result_from_candidate(self, chunk: Chunk) -> None:
        """Results copy chunk identity and the candidate score."""
        result = SearchResult.from_candidate(ScoredCandidate(chunk=chunk, score=0.42))
        assert result == SearchResult(
            chunk_id="session-1:0",
            source_document_id="session-1",
            content="PostgreSQL is the primary database",
            score=0.42,
        )
