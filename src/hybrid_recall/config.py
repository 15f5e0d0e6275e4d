# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Search and embedding configuration.

This module provides:
- SearchConfig dataclass for chunking, BM25, decay and MMR settings
- EmbeddingConfig dataclass for the embeddings endpoint
- load_config() to parse a YAML config file

Values are validated, never clamped: an out-of-range setting raises
ConfigurationError instead of being silently replaced.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from hybrid_recall.errors import ConfigurationError

# Chunking defaults (~400 tokens per window, ~80 tokens overlap at 4 chars/token)
DEFAULT_WINDOW_CHARS = 400 * 4
DEFAULT_OVERLAP_CHARS = 80 * 4
DEFAULT_MIN_CHUNK_CHARS = 20

# BM25 defaults
DEFAULT_BM25_K1 = 1.5
DEFAULT_BM25_B = 0.75

# Re-ranking defaults
DEFAULT_HALF_LIFE_DAYS = 30.0
DEFAULT_MMR_LAMBDA = 0.7
DEFAULT_MMR_CANDIDATE_MULTIPLIER = 4
DEFAULT_TOP_K = 6

# Embedding defaults
DEFAULT_EMBED_BATCH_SIZE = 100
DEFAULT_EMBED_MODEL = "text-embedding-3-small"
DEFAULT_EMBED_BASE_URL = "https://api.openai.com/v1"
DEFAULT_EMBED_TIMEOUT_SECONDS = 30.0


@dataclass
class SearchConfig:
    """Configuration for chunking, indexing and the search pipeline.

    Attributes:
        window_chars: Target chunk window size in characters.
        overlap_chars: Characters shared by consecutive windows.
        min_chunk_chars: Trimmed chunks not longer than this are dropped.
        bm25_k1: BM25 term frequency saturation.
        bm25_b: BM25 document length normalization (0-1).
        half_life_days: Age at which temporal decay halves a score.
        apply_decay: Whether to apply temporal decay.
        use_mmr: Whether to diversify results with MMR.
        mmr_lambda: Relevance weight in MMR (1.0 = pure relevance).
        mmr_candidate_multiplier: Pool size is top_k times this value.
        top_k: Default number of results.
        embed_batch_size: Maximum texts per embedding call.
    """

    window_chars: int = DEFAULT_WINDOW_CHARS
    overlap_chars: int = DEFAULT_OVERLAP_CHARS
    min_chunk_chars: int = DEFAULT_MIN_CHUNK_CHARS
    bm25_k1: float = DEFAULT_BM25_K1
    bm25_b: float = DEFAULT_BM25_B
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS
    apply_decay: bool = True
    use_mmr: bool = True
    mmr_lambda: float = DEFAULT_MMR_LAMBDA
    mmr_candidate_multiplier: int = DEFAULT_MMR_CANDIDATE_MULTIPLIER
    top_k: int = DEFAULT_TOP_K
    embed_batch_size: int = DEFAULT_EMBED_BATCH_SIZE

    @property
    def stride(self) -> int:
        """Distance between consecutive window starts."""
        return self.window_chars - self.overlap_chars

    def validate(self) -> "SearchConfig":
        """Check every setting and return self.

        Raises:
            ConfigurationError: If any setting is out of range.
        """
        if self.overlap_chars < 0:
            raise ConfigurationError(
                f"overlap_chars must be >= 0, got {self.overlap_chars}"
            )
        if self.stride <= 0:
            raise ConfigurationError(
                f"window_chars ({self.window_chars}) must be greater than "
                f"overlap_chars ({self.overlap_chars})"
            )
        if self.min_chunk_chars < 0:
            raise ConfigurationError(
                f"min_chunk_chars must be >= 0, got {self.min_chunk_chars}"
            )
        if self.bm25_k1 < 0:
            raise ConfigurationError(f"bm25_k1 must be >= 0, got {self.bm25_k1}")
        if not 0.0 <= self.bm25_b <= 1.0:
            raise ConfigurationError(f"bm25_b must be in [0, 1], got {self.bm25_b}")
        if self.half_life_days <= 0:
            raise ConfigurationError(
                f"half_life_days must be > 0, got {self.half_life_days}"
            )
        if not 0.0 <= self.mmr_lambda <= 1.0:
            raise ConfigurationError(
                f"mmr_lambda must be in [0, 1], got {self.mmr_lambda}"
            )
        if self.mmr_candidate_multiplier < 1:
            raise ConfigurationError(
                "mmr_candidate_multiplier must be >= 1, "
                f"got {self.mmr_candidate_multiplier}"
            )
        if self.top_k <= 0:
            raise ConfigurationError(f"top_k must be > 0, got {self.top_k}")
        if self.embed_batch_size <= 0:
            raise ConfigurationError(
                f"embed_batch_size must be > 0, got {self.embed_batch_size}"
            )
        return self


@dataclass
class EmbeddingConfig:
    """Connection settings for an OpenAI-compatible embeddings endpoint.

    Attributes:
        base_url: API base URL (the provider posts to {base_url}/embeddings).
        api_key: Bearer token, empty for unauthenticated local servers.
        model: Embedding model name.
        timeout_seconds: Per-request timeout.
    """

    base_url: str = DEFAULT_EMBED_BASE_URL
    api_key: str = field(default="", repr=False)
    model: str = DEFAULT_EMBED_MODEL
    timeout_seconds: float = DEFAULT_EMBED_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "EmbeddingConfig":
        """Build settings from environment variables.

        HYBRID_RECALL_EMBED_* variables win; LLM_BASE_URL and LLM_API_KEY
        are used as fallbacks so one key can serve both chat and embeddings.
        """
        return cls(
            base_url=(
                os.getenv("HYBRID_RECALL_EMBED_BASE_URL")
                or os.getenv("LLM_BASE_URL")
                or DEFAULT_EMBED_BASE_URL
            ),
            api_key=(
                os.getenv("HYBRID_RECALL_EMBED_API_KEY")
                or os.getenv("LLM_API_KEY")
                or ""
            ),
            model=os.getenv("HYBRID_RECALL_EMBED_MODEL") or DEFAULT_EMBED_MODEL,
        )

    def validate(self) -> "EmbeddingConfig":
        """Check settings and return self."""
        if not self.base_url:
            raise ConfigurationError("embedding base_url must not be empty")
        if not self.model:
            raise ConfigurationError("embedding model must not be empty")
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be > 0, got {self.timeout_seconds}"
            )
        return self


def _build_section(cls: type, section: Any, name: str) -> Any:
    """Instantiate a config dataclass from a YAML mapping.

    Unknown keys and mismatched types raise ConfigurationError.
    """
    if section is None:
        return cls()
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' section must be a mapping")

    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(section) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{name}': {', '.join(unknown)}")

    defaults = cls()
    values: dict[str, Any] = {}
    for key, value in section.items():
        expected = type(getattr(defaults, key))
        # bool is an int subclass; reject it for numeric settings
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if not isinstance(value, expected) or (
            expected is not bool and isinstance(value, bool)
        ):
            raise ConfigurationError(
                f"'{name}.{key}' must be {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        values[key] = value

    return cls(**values)


def load_config(
    path: Optional[Union[str, Path]] = None,
) -> tuple[SearchConfig, EmbeddingConfig]:
    """Load search and embedding configuration from a YAML file.

    Expected layout:

        search:
          top_k: 6
          half_life_days: 30
        embedding:
          model: text-embedding-3-small

    Embedding settings absent from the file come from the environment
    (see EmbeddingConfig.from_env).

    Args:
        path: Path to the YAML file. None or a missing file yields defaults.

    Returns:
        Tuple of (SearchConfig, EmbeddingConfig), both validated.

    Raises:
        ConfigurationError: If the file is malformed or a value is invalid.
    """
    env_embedding = EmbeddingConfig.from_env()

    if path is None or not Path(path).exists():
        return SearchConfig().validate(), env_embedding.validate()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    search_config = _build_section(SearchConfig, data.get("search"), "search")

    embedding_section = data.get("embedding") or {}
    if not isinstance(embedding_section, dict):
        raise ConfigurationError("'embedding' section must be a mapping")
    embedding_config = _build_section(
        EmbeddingConfig,
        {
            "base_url": env_embedding.base_url,
            "api_key": env_embedding.api_key,
            "model": env_embedding.model,
            **embedding_section,
        },
        "embedding",
    )

    return search_config.validate(), embedding_config.validate()
