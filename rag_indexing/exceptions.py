"""
Exceptions

Typed failures raised by the tree, the tokenizer service and the
embedding collaborators.

Hierarchy:
    IndexingError
    ├── TreeError
    │   ├── MissingParentError
    │   ├── ParentNotFoundError
    │   ├── LeafNotFoundError
    │   └── DuplicateNodeError
    ├── UnsupportedModelError
    └── EmbeddingError
        ├── EmbeddingCountMismatchError
        └── InvalidVectorError
"""

from __future__ import annotations

from uuid import UUID


class IndexingError(Exception):
    """Base exception for rag-indexing."""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


# -----------------------------------------------------------------------------
# Tree structure
# -----------------------------------------------------------------------------


class TreeError(IndexingError):
    """Raised when a tree operation receives a malformed or foreign node."""


class MissingParentError(TreeError):
    def __init__(self, node_id: UUID):
        self.node_id = node_id
        super().__init__(f"Node {node_id} must have a parent", "MISSING_PARENT")


class ParentNotFoundError(TreeError):
    def __init__(self, node_id: UUID, parent_id: UUID):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            f"Parent node {parent_id} of node {node_id} not found",
            "PARENT_NOT_FOUND",
        )


class LeafNotFoundError(TreeError):
    def __init__(self, node_id: UUID):
        self.node_id = node_id
        super().__init__(f"Leaf node with id {node_id} not found", "LEAF_NOT_FOUND")


class DuplicateNodeError(TreeError):
    def __init__(self, node_id: UUID):
        self.node_id = node_id
        super().__init__(f"Node {node_id} is already in the tree", "DUPLICATE_NODE")


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


class UnsupportedModelError(IndexingError, ValueError):
    """Raised when no tokenizer can be built for a model name."""

    def __init__(self, model: str, canonical: str):
        self.model = model
        self.canonical = canonical
        super().__init__(
            f"Cannot create a tokenizer for model '{model}' (normalized: '{canonical}')",
            "UNSUPPORTED_MODEL",
        )


# -----------------------------------------------------------------------------
# Embedding collaborators
# -----------------------------------------------------------------------------


class EmbeddingError(IndexingError):
    """Raised when the embedding provider returns unusable output."""

    def __init__(self, message: str, error_code: str = "EMBEDDING_ERROR"):
        super().__init__(message, error_code)


class EmbeddingCountMismatchError(EmbeddingError):
    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Embedding count mismatch: got {received} embeddings for {expected} texts",
            "EMBEDDING_COUNT_MISMATCH",
        )


class InvalidVectorError(EmbeddingError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_VECTOR")
