"""
Node Tree

Container that owns every node of one document, keyed by UUID.

Structure:
    - nodes: dict[UUID, Node], the only place nodes live
    - root: UUID of the single RootNode

Children are kept in insertion order on the parent's CHILD list, and
consecutive siblings are chained through PREVIOUS/NEXT. The tree is
not safe for concurrent mutation.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from uuid import UUID

from pydantic import BaseModel

from rag_indexing.exceptions import (
    DuplicateNodeError,
    LeafNotFoundError,
    MissingParentError,
    ParentNotFoundError,
)
from rag_indexing.types.nodes import (
    IntermediateNode,
    LeafNode,
    Node,
    NodeRelationship,
    NodeType,
    RootNode,
)

logger = logging.getLogger(__name__)


class NodeTree(BaseModel):
    """
    A document tree.

    Example:
        >>> tree = NodeTree.new(RootNode.create("d1"))
        >>> tree.add_node(IntermediateNode.create("Intro", tree.root, ["Root"], tree.root, "d1"))
        >>> [n.metadata.hierarchy for n in tree.get_ancestors(some_leaf_id)]
    """

    nodes: dict[UUID, Node]
    root: UUID

    @classmethod
    def new(cls, root: RootNode) -> NodeTree:
        """Create a tree containing only the root."""
        return cls(nodes={root.id: root}, root=root.id)

    @property
    def root_node(self) -> RootNode:
        return self.nodes[self.root]

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def get(self, node_id: UUID) -> Node | None:
        return self.nodes.get(node_id)

    def add_node(self, node: Node) -> None:
        """
        Attach a node under its parent.

        The node's id is appended to the parent's child list and the node is
        linked to the previous last child through PREVIOUS/NEXT.

        Raises:
            MissingParentError: Node has no PARENT relationship
            ParentNotFoundError: Parent id is not in this tree
            DuplicateNodeError: Node id is already in this tree
        """
        parent_id = node.parent_id
        if parent_id is None:
            raise MissingParentError(node.id)
        parent = self.nodes.get(parent_id)
        if parent is None:
            raise ParentNotFoundError(node.id, parent_id)
        if node.id in self.nodes:
            raise DuplicateNodeError(node.id)

        siblings = parent.relationships.setdefault(NodeRelationship.CHILD, [])
        if siblings:
            last = self.nodes[siblings[-1]]
            last.relationships[NodeRelationship.NEXT] = [node.id]
            node.relationships[NodeRelationship.PREVIOUS] = [last.id]
        siblings.append(node.id)
        self.nodes[node.id] = node

    def leaf_nodes(self) -> Iterator[LeafNode]:
        """Yield every leaf. Order is not guaranteed; use ordered_leaves() for document order."""
        return (node for node in self.nodes.values() if isinstance(node, LeafNode))

    def get_ancestors(self, node_id: UUID) -> list[Node]:
        """
        Return the path from the root to a node, node included.

        The walk stops quietly at the first id that cannot be resolved, so
        an unknown node_id yields an empty list.
        """
        path: list[Node] = []
        seen: set[UUID] = set()
        current: UUID | None = node_id
        while current is not None and current not in seen:
            node = self.nodes.get(current)
            if node is None:
                break
            path.append(node)
            seen.add(current)
            current = node.parent_id
        path.reverse()
        return path

    def set_leaf_embedding(self, node_id: UUID, embedding: list[float]) -> None:
        """
        Store (or overwrite) a leaf's embedding.

        Raises:
            LeafNotFoundError: node_id is not a leaf of this tree
        """
        node = self.nodes.get(node_id)
        if not isinstance(node, LeafNode):
            raise LeafNotFoundError(node_id)
        node.embedding = list(embedding)

    def children(self, node_id: UUID) -> list[Node]:
        """Children of a node in insertion order."""
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return [self.nodes[child] for child in node.child_ids if child in self.nodes]

    def walk(self) -> Iterator[tuple[int, Node]]:
        """Depth-first pre-order traversal yielding (depth, node), following child order."""
        stack: list[tuple[int, UUID]] = [(0, self.root)]
        while stack:
            depth, node_id = stack.pop()
            node = self.nodes.get(node_id)
            if node is None:
                continue
            yield depth, node
            for child in reversed(node.child_ids):
                stack.append((depth + 1, child))

    def ordered_leaves(self) -> list[LeafNode]:
        """Leaves in document order."""
        return [node for _, node in self.walk() if isinstance(node, LeafNode)]

    def intermediate_nodes(self) -> list[IntermediateNode]:
        return [node for _, node in self.walk() if isinstance(node, IntermediateNode)]

    def counts(self) -> dict[NodeType, int]:
        """Number of nodes per node type."""
        counter = Counter(node.metadata.node_type for node in self.nodes.values())
        return {node_type: counter.get(node_type, 0) for node_type in NodeType}
