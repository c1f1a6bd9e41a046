"""Tests for TreeIndexer embedding and record building."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from rag_indexing.exceptions import EmbeddingCountMismatchError
from rag_indexing.ingestion.assembly.indexer import TreeIndexer, leaf_to_vector_record
from rag_indexing.ingestion.chunking.markdown import build_markdown_tree
from rag_indexing.storage import VectorStore

DOC = """# Guide
intro text

## Setup
install it

![diagram](docs/img/setup.png)
"""


def _provider(dim: int = 3) -> MagicMock:
    provider = MagicMock()
    provider.model_name = "stub-embedding"
    provider.embed = AsyncMock(
        side_effect=lambda texts: [[float(i + 1)] * dim for i in range(len(texts))]
    )
    return provider


class TestLeafToVectorRecord:
    """Test record conversion."""

    def test_record_metadata(self):
        """Records carry the leaf text, hierarchy and ancestor titles."""
        tree = build_markdown_tree(DOC, "d1", "guide.md")
        leaf = tree.ordered_leaves()[1]
        tree.set_leaf_embedding(leaf.id, [0.1, 0.2])

        record = leaf_to_vector_record(tree, tree.get(leaf.id))

        assert record.id == str(leaf.id)
        assert record.text == "install it"
        assert record.embedding == [0.1, 0.2]
        assert record.metadata["document_id"] == "d1"
        assert record.metadata["file_name"] == "guide.md"
        assert record.metadata["chunk_index"] == 1
        assert record.metadata["chunk_size"] == 10
        assert record.metadata["hierarchy"] == ["Root", "Guide", "Setup", "chunk_1_10"]
        assert record.metadata["parent_titles"] == ["Guide", "Setup"]
        assert record.metadata["is_image"] is False

    def test_image_record(self):
        """Image leaves keep alt text and path; their label is not a chunk label."""
        tree = build_markdown_tree(DOC, "d1")
        image = tree.ordered_leaves()[2]
        tree.set_leaf_embedding(image.id, [1.0])

        record = leaf_to_vector_record(tree, tree.get(image.id))

        assert record.metadata["is_image"] is True
        assert record.metadata["image_alt"] == "diagram"
        assert record.metadata["image_path"] == "docs/img/setup.png"
        assert record.metadata["chunk_index"] is None

    def test_requires_embedding(self):
        """A leaf without an embedding cannot become a record."""
        tree = build_markdown_tree(DOC, "d1")
        with pytest.raises(ValueError):
            leaf_to_vector_record(tree, tree.ordered_leaves()[0])


class TestEmbedLeaves:
    """Test batched embedding of leaves."""

    @pytest.mark.asyncio
    async def test_batches_in_document_order(self):
        """Leaves are embedded in document order, batch_size at a time."""
        tree = build_markdown_tree(DOC, "d1")
        provider = _provider()
        indexer = TreeIndexer(provider, batch_size=2)

        embedded = await indexer.embed_leaves(tree)

        assert embedded == 3
        calls = [call.args[0] for call in provider.embed.await_args_list]
        assert calls == [["intro text", "install it"], ["![diagram](docs/img/setup.png)"]]
        assert [leaf.embedding for leaf in tree.ordered_leaves()] == [
            [1.0, 1.0, 1.0],
            [2.0, 2.0, 2.0],
            [1.0, 1.0, 1.0],
        ]

    @pytest.mark.asyncio
    async def test_skips_embedded_leaves(self):
        """Leaves that already have an embedding are not sent again."""
        tree = build_markdown_tree(DOC, "d1")
        first = tree.ordered_leaves()[0]
        tree.set_leaf_embedding(first.id, [9.0])
        provider = _provider()

        embedded = await TreeIndexer(provider).embed_leaves(tree)

        assert embedded == 2
        provider.embed.assert_awaited_once_with(["install it", "![diagram](docs/img/setup.png)"])
        assert tree.get(first.id).embedding == [9.0]

    @pytest.mark.asyncio
    async def test_count_mismatch(self):
        """A provider returning the wrong number of vectors fails the batch."""
        tree = build_markdown_tree(DOC, "d1")
        provider = _provider()
        provider.embed = AsyncMock(return_value=[[1.0]])

        with pytest.raises(EmbeddingCountMismatchError) as exc_info:
            await TreeIndexer(provider).embed_leaves(tree)

        assert exc_info.value.expected == 3
        assert exc_info.value.received == 1

    @pytest.mark.asyncio
    async def test_empty_tree(self):
        """A tree without leaves makes no provider calls."""
        tree = build_markdown_tree("", "d1")
        provider = _provider()

        assert await TreeIndexer(provider).embed_leaves(tree) == 0
        provider.embed.assert_not_awaited()

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            TreeIndexer(_provider(), batch_size=0)


class TestIndex:
    """Test the full index run."""

    @pytest.mark.asyncio
    async def test_without_store(self):
        """Without a store, records are built but nothing is upserted."""
        tree = build_markdown_tree(DOC, "d1")

        result = await TreeIndexer(_provider()).index(tree)

        assert result.document_id == "d1"
        assert result.leaves_total == 3
        assert result.leaves_embedded == 3
        assert result.records_upserted == 0
        assert [r.text for r in result.records] == [
            "intro text",
            "install it",
            "![diagram](docs/img/setup.png)",
        ]

    @pytest.mark.asyncio
    async def test_upserts_records(self):
        """Records are upserted in one call."""
        tree = build_markdown_tree(DOC, "d1")
        store = MagicMock()
        store.upsert_vectors = AsyncMock()

        result = await TreeIndexer(_provider(), store).index(tree)

        store.upsert_vectors.assert_awaited_once()
        (records,) = store.upsert_vectors.await_args.args
        assert records == result.records
        assert result.records_upserted == 3

    @pytest.mark.asyncio
    async def test_upsert_failure_propagates(self):
        """Store errors are raised after embeddings were written to the tree."""
        tree = build_markdown_tree(DOC, "d1")
        store = MagicMock()
        store.upsert_vectors = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError, match="db down"):
            await TreeIndexer(_provider(), store).index(tree)

        assert all(leaf.embedding is not None for leaf in tree.ordered_leaves())

    @pytest.mark.asyncio
    async def test_reindex_embeds_nothing(self):
        """A second run reuses existing embeddings."""
        tree = build_markdown_tree(DOC, "d1")
        provider = _provider()
        indexer = TreeIndexer(provider)
        await indexer.index(tree)

        result = await indexer.index(tree)

        assert result.leaves_embedded == 0
        assert len(result.records) == 3
        assert provider.embed.await_count == 1


class InMemoryStore(VectorStore):
    """Dict-backed store for tests."""

    def __init__(self):
        self.records = {}
        self.initialized = False
        self.closed = False

    async def initialize(self):
        self.initialized = True

    async def close(self):
        self.closed = True

    async def upsert_vectors(self, records):
        for record in records:
            self.records[record.id] = record

    async def delete_vectors(self, ids):
        for record_id in ids:
            self.records.pop(record_id, None)


class TestVectorStoreContract:
    """Test indexing into a VectorStore implementation."""

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self):
        async with InMemoryStore() as store:
            assert store.initialized is True
        assert store.closed is True

    @pytest.mark.asyncio
    async def test_reindex_replaces_records(self):
        """Upserts are keyed by leaf id, so a second run does not duplicate."""
        tree = build_markdown_tree(DOC, "d1")
        store = InMemoryStore()
        indexer = TreeIndexer(_provider(), store)

        await indexer.index(tree)
        await indexer.index(tree)

        assert len(store.records) == 3

        first = tree.ordered_leaves()[0]
        await store.delete_vectors([str(first.id), "unknown"])
        assert str(first.id) not in store.records
