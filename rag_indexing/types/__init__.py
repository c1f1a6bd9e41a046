"""
Type Definitions

Pydantic models for all data structures.

Tree Models:
    - RootNode, IntermediateNode, LeafNode (the Node union)
    - NodeType, NodeRelationship, NodeMetadata

Chunk Models:
    - TextChunk - Recursive chunker output
    - FAQEntry, FAQChunk - FAQ parser and chunker output

Indexing Models:
    - VectorRecord, IndexResult
"""

from rag_indexing.types.chunks import (
    FAQChunk,
    FAQEntry,
    IndexResult,
    TextChunk,
    VectorRecord,
)
from rag_indexing.types.nodes import (
    ROOT_LABEL,
    BaseNode,
    IntermediateNode,
    LeafNode,
    Node,
    NodeMetadata,
    NodeRelationship,
    NodeType,
    RootNode,
)

__all__ = [
    # Tree
    "ROOT_LABEL",
    "BaseNode",
    "IntermediateNode",
    "LeafNode",
    "Node",
    "NodeMetadata",
    "NodeRelationship",
    "NodeType",
    "RootNode",
    # Chunks
    "TextChunk",
    "FAQEntry",
    "FAQChunk",
    # Indexing
    "VectorRecord",
    "IndexResult",
]
