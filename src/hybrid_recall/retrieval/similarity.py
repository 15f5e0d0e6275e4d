# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Cosine similarity between dense vectors."""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray


def _as_array(vector: Sequence[float]) -> NDArray[np.float64]:
    return np.asarray(vector, dtype=np.float64)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Calculate cosine similarity dot(a, b) / (|a| * |b|).

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1, 1]; exactly 0.0 if either vector has zero norm.

    Raises:
        ValueError: If the vectors have different dimensions.
    """
    va = _as_array(a)
    vb = _as_array(b)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape} vs {vb.shape}")

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def optional_cosine(
    a: Optional[Sequence[float]],
    b: Optional[Sequence[float]],
) -> float:
    """Cosine similarity treating a missing or empty vector as 0 similarity."""
    if a is None or b is None or len(a) == 0 or len(b) == 0:
        return 0.0
    return cosine_similarity(a, b)
