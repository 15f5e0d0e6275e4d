# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Chunking and document preparation."""

from hybrid_recall.ingestion.chunker import (
    SlidingWindowChunker,
    chunk_document,
    chunk_documents,
    chunk_text,
)
from hybrid_recall.ingestion.documents import document_from_session, parse_day_number

__all__ = [
    "SlidingWindowChunker",
    "chunk_text",
    "chunk_document",
    "chunk_documents",
    "parse_day_number",
    "document_from_session",
]
