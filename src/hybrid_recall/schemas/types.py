# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Schemas for the retrieval core.

Documents, chunks and queries are frozen Pydantic models: once a chunk
carries an embedding it never changes. Pipeline-internal candidates and
the final results are plain dataclasses.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_vector(value: Optional[Sequence[float]]) -> Optional[tuple[float, ...]]:
    if value is None:
        return None
    return tuple(float(v) for v in value)


class Document(BaseModel):
    """A source text unit, typically the memory notes of one session.

    - id: Unique document identifier
    - day_number: Caller-assigned age marker (larger = more recent)
    - text: Full document text
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Document identifier")
    day_number: int = Field(default=0, ge=0, description="Age marker in days")
    text: str = Field(..., description="Document text")


class Chunk(BaseModel):
    """An overlapping slice of one Document.

    - id: "<document id>:<n>", n counting emitted chunks of the document
    - source_document_id: Parent document
    - day_number: Inherited from the parent document
    - content: Trimmed window text
    - start_offset / end_offset: Untrimmed window bounds in the parent text
    - embedding: Dense vector, set once in batch before indexing
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    source_document_id: str = Field(..., min_length=1)
    day_number: int = Field(default=0, ge=0)
    content: str
    start_offset: int = Field(default=0, ge=0)
    end_offset: int = Field(default=0, ge=0)
    embedding: Optional[tuple[float, ...]] = None

    @field_validator("embedding", mode="before")
    @classmethod
    def coerce_embedding(cls, v: Optional[Sequence[float]]) -> Optional[tuple[float, ...]]:
        """Accept any float sequence (lists, numpy arrays) as an embedding."""
        return _as_vector(v)

    @property
    def has_embedding(self) -> bool:
        """Whether a non-empty embedding is attached."""
        return bool(self.embedding)

    def with_embedding(self, embedding: Sequence[float]) -> "Chunk":
        """Return a copy of this chunk carrying the given embedding.

        Raises:
            ValueError: If the chunk already has an embedding.
        """
        if self.embedding is not None:
            raise ValueError(f"Chunk {self.id} is already embedded")
        return self.model_copy(update={"embedding": _as_vector(embedding)})


class Query(BaseModel):
    """A search query with its optional embedding."""

    model_config = ConfigDict(frozen=True)

    text: str
    embedding: Optional[tuple[float, ...]] = None

    @field_validator("embedding", mode="before")
    @classmethod
    def coerce_embedding(cls, v: Optional[Sequence[float]]) -> Optional[tuple[float, ...]]:
        """Accept any float sequence as an embedding."""
        return _as_vector(v)


@dataclass
class ScoredCandidate:
    """A chunk scored at one pipeline stage.

    Attributes:
        chunk: The scored chunk.
        score: Current score (fused, then decayed).
        vector_score: Cosine similarity to the query (0 without embeddings).
        bm25_rank: 0-based position in the full BM25 ranking.
        fused_score: Score before temporal decay.
    """

    chunk: Chunk
    score: float
    vector_score: float = 0.0
    bm25_rank: int = 0
    fused_score: float = 0.0


@dataclass
class SearchResult:
    """Final search output, in selection order.

    Attributes:
        chunk_id: ID of the selected chunk.
        source_document_id: Document the chunk came from.
        content: Chunk text.
        score: Post-decay relevance score.
    """

    chunk_id: str
    source_document_id: str
    content: str
    score: float

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "SearchResult":
        """Build a result from a scored candidate."""
        return cls(
            chunk_id=candidate.chunk.id,
            source_document_id=candidate.chunk.source_document_id,
            content=candidate.chunk.content,
            score=candidate.score,
        )
