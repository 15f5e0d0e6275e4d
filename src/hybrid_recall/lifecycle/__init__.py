# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Memory lifecycle scoring.

This module provides exponential temporal decay for ranking recent
memory notes above older ones.
"""

from hybrid_recall.lifecycle.decay import (
    apply_temporal_decay,
    decay_factor,
    decay_rate,
)

__all__ = [
    "decay_rate",
    "decay_factor",
    "apply_temporal_decay",
]
