"""
Tree Indexer

Final phase that embeds a document tree's leaves and hands them to a
vector store.

Steps:
    1. Collect leaves without an embedding, in document order
    2. Embed them in batches and write each vector back to its leaf
    3. Build one VectorRecord per embedded leaf
    4. Upsert the records when a store is configured
"""

from __future__ import annotations

import logging

from rag_indexing.exceptions import EmbeddingCountMismatchError
from rag_indexing.providers.base import EmbeddingProvider
from rag_indexing.storage.base import VectorStore
from rag_indexing.tree import NodeTree
from rag_indexing.types import IndexResult, IntermediateNode, LeafNode, VectorRecord
from rag_indexing.utils.text import parse_chunk_label

logger = logging.getLogger(__name__)


def leaf_to_vector_record(tree: NodeTree, leaf: LeafNode) -> VectorRecord:
    """
    Convert an embedded leaf into a VectorRecord.

    Raises:
        ValueError: If the leaf has no embedding yet
    """
    if leaf.embedding is None:
        raise ValueError(f"Leaf {leaf.id} has no embedding")

    parsed = parse_chunk_label(leaf.hierarchy[-1]) if leaf.hierarchy else None
    parent_titles = [
        node.title for node in tree.get_ancestors(leaf.id) if isinstance(node, IntermediateNode)
    ]

    return VectorRecord(
        id=str(leaf.id),
        embedding=leaf.embedding,
        text=leaf.text,
        metadata={
            "document_id": leaf.metadata.document_id,
            "node_id": str(leaf.id),
            "chunk_index": parsed[0] if parsed else None,
            "chunk_size": leaf.metadata.chunk_size,
            "file_name": leaf.metadata.file_name,
            "hierarchy": list(leaf.hierarchy),
            "parent_titles": parent_titles,
            "is_image": leaf.is_image,
            "image_alt": leaf.image_alt,
            "image_path": leaf.image_path,
        },
    )


class TreeIndexer:
    """
    Embeds tree leaves and writes them to a vector store.

    Usage:
        indexer = TreeIndexer(embedding_provider, store)
        result = await indexer.index(tree)
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        store: VectorStore | None = None,
        batch_size: int = 100,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.embeddings = embedding_provider
        self.store = store
        self.batch_size = batch_size

    async def embed_leaves(self, tree: NodeTree) -> int:
        """
        Embed every leaf that has no embedding yet.

        Returns:
            Number of leaves embedded

        Raises:
            EmbeddingCountMismatchError: If a batch returns the wrong number of vectors
        """
        pending = [leaf for leaf in tree.ordered_leaves() if leaf.embedding is None]

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start : start + self.batch_size]
            vectors = await self.embeddings.embed([leaf.text for leaf in batch])
            self._validate_embedding_counts(batch, vectors)
            for leaf, vector in zip(batch, vectors):
                tree.set_leaf_embedding(leaf.id, vector)

        if pending:
            logger.info(
                f"Embedded {len(pending)} leaves of '{tree.root_node.document_id}' "
                f"with {self.embeddings.model_name}"
            )
        return len(pending)

    async def index(self, tree: NodeTree) -> IndexResult:
        """
        Embed missing leaves, build records and upsert them.

        Raises:
            EmbeddingCountMismatchError: If embedding output doesn't match the leaves
            Exception: If the store write fails
        """
        embedded = await self.embed_leaves(tree)
        leaves = tree.ordered_leaves()
        records = [leaf_to_vector_record(tree, leaf) for leaf in leaves if leaf.embedding is not None]

        result = IndexResult(
            document_id=tree.root_node.document_id,
            leaves_total=len(leaves),
            leaves_embedded=embedded,
            records=records,
        )

        if self.store is not None and records:
            try:
                await self.store.upsert_vectors(records)
            except Exception as e:
                logger.error(
                    f"Upsert failed for '{result.document_id}' after embedding "
                    f"{embedded} leaves. Error: {e}"
                )
                raise
            result.records_upserted = len(records)

        return result

    def _validate_embedding_counts(
        self,
        leaves: list[LeafNode],
        embeddings: list[list[float]],
    ) -> None:
        """Validate that embedding count matches leaf count."""
        if len(embeddings) != len(leaves):
            raise EmbeddingCountMismatchError(len(leaves), len(embeddings))
