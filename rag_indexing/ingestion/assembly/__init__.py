"""
Tree Assembly

Final phase that embeds tree leaves and writes them to a vector store.

Modules:
    indexer: TreeIndexer and leaf-to-record conversion
"""

from rag_indexing.ingestion.assembly.indexer import TreeIndexer, leaf_to_vector_record

__all__ = ["TreeIndexer", "leaf_to_vector_record"]
