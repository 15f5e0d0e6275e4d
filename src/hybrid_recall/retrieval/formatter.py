# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Render search results as a context block for prompt injection."""

from typing import Sequence

from hybrid_recall.schemas import SearchResult

RESULT_SEPARATOR = "\n\n---\n\n"


def format_result(result: SearchResult) -> str:
    """Render one result with its source session header."""
    return f"[session: {result.source_document_id}]\n{result.content}"


def format_results(results: Sequence[SearchResult]) -> str:
    """Render results in order, separated by horizontal rules.

    Returns:
        The formatted block, or an empty string when there are no results.
    """
    return RESULT_SEPARATOR.join(format_result(r) for r in results)
