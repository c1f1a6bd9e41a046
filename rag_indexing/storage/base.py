"""
Abstract Vector Store Interface

Defines the contract for vector storage backends that receive embedded leaves.

Lifecycle:
    store = SomeVectorStore(...)
    await store.initialize()
    await store.upsert_vectors(records)
    await store.close()

Or using context manager:
    async with SomeVectorStore(...) as store:
        await store.upsert_vectors(records)
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rag_indexing.types import VectorRecord


class VectorStore(ABC):
    """
    Abstract interface for vector stores.

    Upserts are keyed by VectorRecord.id (the leaf node UUID), so
    re-indexing a tree replaces its earlier records.
    """

    async def initialize(self) -> None:
        """Prepare the store (connections, tables). No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    async def __aenter__(self) -> "VectorStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @abstractmethod
    async def upsert_vectors(self, records: list["VectorRecord"]) -> None:
        """Insert or replace records by id."""
        ...

    @abstractmethod
    async def delete_vectors(self, ids: list[str]) -> None:
        """Delete records by id. Unknown ids are ignored."""
        ...
