"""
OpenAI Embedding Provider (LangChain-based)

Implements EmbeddingProvider using LangChain's OpenAIEmbeddings, against
OpenAI or any OpenAI-compatible endpoint (e.g., DashScope compatible mode
for the text-embedding-v* models).

Vectors are L2-normalized with numpy unless normalize=False.

Models:
    - text-embedding-3-large: 3072 dimensions
    - text-embedding-3-small: 1536 dimensions
    - text-embedding-ada-002: 1536 dimensions
    - text-embedding-v1 / v2: 1536 dimensions (DashScope)
    - text-embedding-v3: 2560 dimensions (DashScope)

Example:
    >>> provider = OpenAIEmbeddingProvider(model="text-embedding-3-small")
    >>> vectors = await provider.embed(["Hello world", "Goodbye world"])
    >>> print(len(vectors[0]))
    1536
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import numpy as np

from rag_indexing.exceptions import InvalidVectorError
from rag_indexing.providers.base import EmbeddingProvider

if TYPE_CHECKING:
    from langchain_openai import OpenAIEmbeddings

logger = logging.getLogger(__name__)


# Model dimensions mapping
MODEL_DIMENSIONS = {
    "text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
    "text-embedding-v1": 1536,
    "text-embedding-v2": 1536,
    "text-embedding-v3": 2560,
}

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIMENSIONS = 1536


def l2_normalize(vector: list[float]) -> list[float]:
    """
    Scale a vector to unit length.

    Raises:
        InvalidVectorError: If the vector is empty or has zero norm
    """
    if len(vector) == 0:
        raise InvalidVectorError("Cannot normalize an empty embedding vector")
    array = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(array))
    if norm == 0.0 or not np.isfinite(norm):
        raise InvalidVectorError(f"Cannot normalize an embedding vector with norm {norm}")
    return (array / norm).tolist()


def _get_openai_embeddings(
    api_key: str | None = None,
    model: str = DEFAULT_MODEL,
    base_url: str | None = None,
) -> OpenAIEmbeddings:
    """
    Get an OpenAIEmbeddings instance.

    Compatible endpoints do not accept pre-tokenized input, so the
    context-length check is turned off when base_url is set.
    """
    from langchain_openai import OpenAIEmbeddings

    kwargs: dict = {"model": model}
    if api_key:
        from pydantic import SecretStr
        kwargs["api_key"] = SecretStr(api_key)
    if base_url:
        kwargs["base_url"] = base_url
        kwargs["check_embedding_ctx_length"] = False
    return OpenAIEmbeddings(**kwargs)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI-compatible embedding provider using LangChain.

    Args:
        api_key: API key. If None, uses OPENAI_API_KEY environment variable.
        model: Model to use (default: "text-embedding-3-small")
        base_url: OpenAI-compatible endpoint, None for OpenAI itself
        normalize: L2-normalize returned vectors
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str | None = None,
        normalize: bool = True,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._normalize = normalize
        self._dimensions = MODEL_DIMENSIONS.get(model, DEFAULT_DIMENSIONS)
        # Lazy initialization
        self._client: OpenAIEmbeddings | None = None

    @classmethod
    def from_config(cls, config) -> OpenAIEmbeddingProvider:
        return cls(
            api_key=config.openai_api_key,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
            normalize=config.embedding_normalize,
        )

    def _get_client(self) -> OpenAIEmbeddings:
        """Get or create the OpenAIEmbeddings client."""
        if self._client is None:
            self._client = _get_openai_embeddings(
                api_key=self._api_key,
                model=self._model,
                base_url=self._base_url,
            )
        return self._client

    @property
    def dimensions(self) -> int:
        """Embedding dimensions for the current model."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Current model name."""
        return self._model

    def _finish(self, vector: list[float]) -> list[float]:
        if self._normalize:
            return l2_normalize(vector)
        if len(vector) == 0:
            raise InvalidVectorError("Embedding provider returned an empty vector")
        return list(vector)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Returns:
            List of embedding vectors (same order as input)

        Raises:
            InvalidVectorError: If a returned vector is empty or zero
        """
        if not texts:
            return []

        client = self._get_client()

        # LangChain's embed_documents is synchronous, run in thread pool
        embeddings = await asyncio.to_thread(client.embed_documents, texts)
        logger.debug(f"Embedded {len(texts)} texts with {self._model}")
        return [self._finish(vector) for vector in embeddings]

    async def embed_single(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        client = self._get_client()

        # LangChain's embed_query is synchronous, run in thread pool
        embedding = await asyncio.to_thread(client.embed_query, text)
        return self._finish(embedding)

    def with_model(self, model: str) -> OpenAIEmbeddingProvider:
        """Return a new provider instance with a different model."""
        return OpenAIEmbeddingProvider(
            api_key=self._api_key,
            model=model,
            base_url=self._base_url,
            normalize=self._normalize,
        )
