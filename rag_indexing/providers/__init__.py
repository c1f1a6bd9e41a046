"""
Providers

Collaborator interfaces for external services.

Modules:
    base: EmbeddingProvider interface
    embedding.openai: OpenAI-compatible embeddings via LangChain
"""

from rag_indexing.providers.base import EmbeddingProvider

__all__ = ["EmbeddingProvider"]
