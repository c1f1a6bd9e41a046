"""
Document Tree Node Types

Nodes of the hierarchical document tree built from markdown.

Node Kinds:
    - RootNode: One per document, hierarchy ["Root"]
    - IntermediateNode: A heading, created when the heading closes
    - LeafNode: A text, code, table or image chunk

Nodes reference each other only by UUID through their relationships map;
the NodeTree container owns the nodes. Once created, the only field that
changes on a node is a leaf's embedding (and the relationship lists the
tree maintains when children are added).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from rag_indexing.utils.text import chunk_label, utf8_len

ROOT_LABEL = "Root"


class NodeType(str, Enum):
    """Node kinds in a document tree."""

    ROOT = "root"
    INTERMEDIATE = "intermediate"
    LEAF = "leaf"


class NodeRelationship(str, Enum):
    """Relationship kinds stored on each node."""

    PARENT = "parent"
    CHILD = "child"
    PREVIOUS = "previous"
    NEXT = "next"
    ROOT = "root"


class NodeMetadata(BaseModel):
    """Metadata carried by every node."""

    document_id: str = Field(..., description="Document the node belongs to")
    hierarchy: list[str] = Field(
        ..., description="Labels from the root to this node (e.g., ['Root', 'Intro', 'chunk_0_9'])"
    )
    node_type: NodeType
    chunk_size: int | None = Field(
        default=None, description="UTF-8 byte length of a leaf's text at creation"
    )
    file_name: str | None = Field(default=None, description="Source file name, if known")


class BaseNode(BaseModel):
    """Fields and relationship accessors shared by all node kinds."""

    id: UUID = Field(default_factory=uuid4)
    relationships: dict[NodeRelationship, list[UUID]] = Field(default_factory=dict)
    metadata: NodeMetadata

    def related(self, kind: NodeRelationship) -> list[UUID]:
        return self.relationships.get(kind, [])

    def _first(self, kind: NodeRelationship) -> UUID | None:
        ids = self.related(kind)
        return ids[0] if ids else None

    @property
    def parent_id(self) -> UUID | None:
        return self._first(NodeRelationship.PARENT)

    @property
    def child_ids(self) -> list[UUID]:
        return self.related(NodeRelationship.CHILD)

    @property
    def previous_id(self) -> UUID | None:
        return self._first(NodeRelationship.PREVIOUS)

    @property
    def next_id(self) -> UUID | None:
        return self._first(NodeRelationship.NEXT)

    @property
    def root_id(self) -> UUID | None:
        return self._first(NodeRelationship.ROOT)

    @property
    def hierarchy(self) -> list[str]:
        return self.metadata.hierarchy


class RootNode(BaseNode):
    """The single root of a document tree."""

    node_type: Literal["root"] = "root"
    document_id: str

    @classmethod
    def create(cls, document_id: str, file_name: str | None = None) -> RootNode:
        """Create a root whose ROOT relationship points at itself."""
        node_id = uuid4()
        return cls(
            id=node_id,
            document_id=document_id,
            relationships={NodeRelationship.ROOT: [node_id]},
            metadata=NodeMetadata(
                document_id=document_id,
                hierarchy=[ROOT_LABEL],
                node_type=NodeType.ROOT,
                file_name=file_name,
            ),
        )


class IntermediateNode(BaseNode):
    """A heading node. Its title is final at creation."""

    node_type: Literal["intermediate"] = "intermediate"
    title: str

    @classmethod
    def create(
        cls,
        title: str,
        parent_id: UUID,
        parent_hierarchy: list[str],
        root_id: UUID,
        document_id: str,
        file_name: str | None = None,
    ) -> IntermediateNode:
        return cls(
            title=title,
            relationships={
                NodeRelationship.PARENT: [parent_id],
                NodeRelationship.ROOT: [root_id],
            },
            metadata=NodeMetadata(
                document_id=document_id,
                hierarchy=[*parent_hierarchy, title],
                node_type=NodeType.INTERMEDIATE,
                file_name=file_name,
            ),
        )


class LeafNode(BaseNode):
    """
    A content chunk.

    Attributes:
        text: Chunk text (for images, the "![alt](path)" form)
        embedding: Vector filled in by the embedding step, None until then
        image_alt: Alt text of an image leaf (None if empty or not an image)
        image_path: Image destination of an image leaf
        image_id: Last path segment of image_path
    """

    node_type: Literal["leaf"] = "leaf"
    text: str
    embedding: list[float] | None = None
    image_alt: str | None = None
    image_path: str | None = None
    image_id: str | None = None

    @property
    def is_image(self) -> bool:
        return self.image_path is not None

    @classmethod
    def create(
        cls,
        text: str,
        chunk_index: int,
        parent_id: UUID,
        parent_hierarchy: list[str],
        root_id: UUID,
        document_id: str,
        *,
        label: str | None = None,
        file_name: str | None = None,
        image_alt: str | None = None,
        image_path: str | None = None,
        image_id: str | None = None,
    ) -> LeafNode:
        """
        Create a leaf under a parent.

        The hierarchy label defaults to chunk_{chunk_index}_{utf8 size};
        tables and images pass their own label.
        """
        return cls(
            text=text,
            image_alt=image_alt,
            image_path=image_path,
            image_id=image_id,
            relationships={
                NodeRelationship.PARENT: [parent_id],
                NodeRelationship.ROOT: [root_id],
            },
            metadata=NodeMetadata(
                document_id=document_id,
                hierarchy=[*parent_hierarchy, label or chunk_label(chunk_index, text)],
                node_type=NodeType.LEAF,
                chunk_size=utf8_len(text),
                file_name=file_name,
            ),
        )


Node = Annotated[
    Union[RootNode, IntermediateNode, LeafNode],
    Field(discriminator="node_type"),
]
