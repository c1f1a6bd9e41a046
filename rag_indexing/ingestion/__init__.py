"""
Ingestion Pipeline

Turns text documents into chunks and embedded document trees.

Phases:
    Phase 1 - Chunking:
        - Markdown -> NodeTree (headings as intermediate nodes, content as leaves)
        - Plain text -> token-budget TextChunks
        - FAQ markdown -> per-entry FAQChunks

    Phase 2 - Assembly:
        - Batch embedding of tree leaves
        - Leaf -> VectorRecord conversion and vector store upsert

Modules:
    chunking/: Tree building and chunkers
    assembly/: Embedding and indexing
"""

from rag_indexing.ingestion.assembly import TreeIndexer
from rag_indexing.ingestion.chunking import FAQChunker, MarkdownTreeBuilder, RecursiveChunker

__all__ = ["FAQChunker", "MarkdownTreeBuilder", "RecursiveChunker", "TreeIndexer"]
