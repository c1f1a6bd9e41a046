"""Embedding provider implementations."""


def __getattr__(name: str):
    """Lazy import so langchain-openai loads only when a provider is used."""
    if name == "OpenAIEmbeddingProvider":
        from rag_indexing.providers.embedding.openai import OpenAIEmbeddingProvider
        return OpenAIEmbeddingProvider

    raise AttributeError(f"module 'rag_indexing.providers.embedding' has no attribute {name!r}")


__all__ = ["OpenAIEmbeddingProvider"]
