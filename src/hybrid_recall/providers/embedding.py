# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Embedding providers.

The retrieval core consumes embeddings through the EmbeddingProvider
protocol: an async embed() returning one vector per input text, in input
order. Two adapters are provided:

- OpenAIEmbeddingProvider: any OpenAI-compatible /embeddings endpoint (httpx)
- SentenceTransformerEmbeddingProvider: local sentence-transformers model

Provider failures are raised as EmbeddingUnavailable; callers decide
whether they are fatal (index build) or recoverable (query).
"""

import asyncio
import logging
from typing import Any, Optional, Protocol, Sequence, cast

import httpx
import numpy as np
from numpy.typing import NDArray

from hybrid_recall.config import DEFAULT_EMBED_BATCH_SIZE, EmbeddingConfig
from hybrid_recall.errors import ConfigurationError, EmbeddingUnavailable

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts, returning vectors in input order.

        Raises:
            EmbeddingUnavailable: If vectors cannot be produced.
        """
        ...


class EmbeddingModel(Protocol):
    """Protocol for local sentence-transformers style models."""

    def encode(
        self,
        sentences: list[str] | str,
        batch_size: int = 32,
        show_progress_bar: bool = False,
        normalize_embeddings: bool = True,
    ) -> NDArray[np.float32]: ...


class OpenAIEmbeddingProvider:
    """Embedding provider for OpenAI-compatible HTTP APIs.

    Posts {"model", "input"} to {base_url}/embeddings and re-sorts the
    returned items by their "index" field, since the API may reorder
    items within a batch.

    Example:
        >>> provider = OpenAIEmbeddingProvider(EmbeddingConfig.from_env())
        >>> vectors = await provider.embed(["postgres", "redis"])

    Attributes:
        config: Endpoint settings.
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the provider.

        Args:
            config: Endpoint settings. Defaults to EmbeddingConfig.from_env().
            client: Optional shared httpx client (used by tests to inject a
                mock transport). A short-lived client is created per call
                when omitted.
        """
        self.config = (config or EmbeddingConfig.from_env()).validate()
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.config.base_url.rstrip('/')}/embeddings"
        if self._client is not None:
            return await self._client.post(
                url, json=payload, headers=self._headers(), timeout=self.config.timeout_seconds
            )
        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await client.post(url, json=payload, headers=self._headers())

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts with one API call.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per text, in input order.

        Raises:
            EmbeddingUnavailable: On transport errors, non-2xx responses or
                malformed payloads.
        """
        if not texts:
            return []

        try:
            response = await self._post({"model": self.config.model, "input": list(texts)})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:200]
            raise EmbeddingUnavailable(
                f"Embeddings API {e.response.status_code}: {body}"
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingUnavailable(f"Embeddings API request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingUnavailable(f"Embeddings API returned invalid JSON: {e}") from e

        return self._parse_response(data, expected=len(texts))

    @staticmethod
    def _parse_response(data: Any, expected: int) -> list[list[float]]:
        """Extract vectors from an embeddings response, ordered by item index."""
        try:
            items = data["data"]
            ordered = sorted(
                enumerate(items),
                key=lambda pair: pair[1].get("index", pair[0]),
            )
            vectors = [[float(v) for v in item["embedding"]] for _, item in ordered]
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise EmbeddingUnavailable(f"Malformed embeddings response: {e}") from e

        if len(vectors) != expected:
            raise EmbeddingUnavailable(
                f"Embeddings API returned {len(vectors)} vectors for {expected} inputs"
            )
        return vectors


class SentenceTransformerEmbeddingProvider:
    """Embedding provider backed by a local sentence-transformers model.

    Requires the [local] extra. The model is loaded on first use unless
    lazy_load is False.

    Attributes:
        model_name: Name of the sentence-transformers model.
    """

    # Default model - fast and good quality
    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        lazy_load: bool = True,
        normalize: bool = True,
    ):
        """Initialize the provider.

        Args:
            model_name: Sentence-transformers model name.
            lazy_load: If True, load the model on first use.
            normalize: Whether to L2-normalize embeddings.
        """
        self.model_name = model_name
        self.normalize = normalize
        self._model: Optional[EmbeddingModel] = None

        if not lazy_load:
            self._load_model()

    def _load_model(self) -> EmbeddingModel:
        """Load the sentence-transformers model.

        Returns:
            Loaded embedding model.
        """
        if self._model is not None:
            return self._model

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for SentenceTransformerEmbeddingProvider. "
                'Install with: pip install "hybrid-recall[local]"'
            ) from e

        logger.info(f"Loading embedding model: {self.model_name}")
        self._model = cast(EmbeddingModel, SentenceTransformer(self.model_name))
        logger.info("Embedding model loaded successfully")
        return self._model

    @property
    def model(self) -> EmbeddingModel:
        """Get the embedding model, loading if necessary."""
        if self._model is None:
            return self._load_model()
        return self._model

    def is_loaded(self) -> bool:
        """Whether the model has been loaded."""
        return self._model is not None

    def _encode(self, texts: list[str]) -> list[list[float]]:
        embeddings = self.model.encode(
            texts,
            batch_size=32,
            show_progress_bar=False,
            normalize_embeddings=self.normalize,
        )
        return [[float(v) for v in row] for row in np.atleast_2d(embeddings)]

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts on a worker thread.

        Raises:
            EmbeddingUnavailable: If the model fails to encode.
        """
        if not texts:
            return []
        try:
            return await asyncio.to_thread(self._encode, list(texts))
        except (RuntimeError, ValueError, OSError) as e:
            raise EmbeddingUnavailable(f"Local embedding failed: {e}") from e


async def embed_in_batches(
    provider: EmbeddingProvider,
    texts: Sequence[str],
    batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
) -> list[list[float]]:
    """Embed texts with sequential provider calls of at most batch_size.

    Args:
        provider: Embedding provider.
        texts: Texts to embed.
        batch_size: Maximum texts per provider call.

    Returns:
        One vector per text, in input order.

    Raises:
        ConfigurationError: If batch_size is not positive.
        EmbeddingUnavailable: If any batch fails or returns the wrong count.
    """
    if batch_size <= 0:
        raise ConfigurationError(f"batch_size must be > 0, got {batch_size}")

    vectors: list[list[float]] = []
    for start in range(0, len(texts), batch_size):
        batch = list(texts[start : start + batch_size])
        embeddings = await provider.embed(batch)
        if len(embeddings) != len(batch):
            raise EmbeddingUnavailable(
                f"Provider returned {len(embeddings)} vectors for {len(batch)} texts"
            )
        vectors.extend(list(e) for e in embeddings)
        logger.debug(f"Embedded batch {start // batch_size + 1} ({len(batch)} texts)")

    return vectors
