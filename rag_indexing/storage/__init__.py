"""
Storage Backends

Modules:
    base: Abstract vector store interface

Concrete stores live outside this package; anything implementing
VectorStore can receive the records built by TreeIndexer.
"""

from rag_indexing.storage.base import VectorStore

__all__ = ["VectorStore"]
