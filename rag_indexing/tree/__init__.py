"""
Document Tree

UUID-keyed container for the nodes of one document.
"""

from rag_indexing.tree.node_tree import NodeTree

__all__ = ["NodeTree"]
