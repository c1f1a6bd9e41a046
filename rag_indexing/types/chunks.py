"""
Chunk and Record Types

Flat outputs of the chunkers and the indexer.

Chunker Outputs:
    - TextChunk: Token-bounded chunk of page text with byte offsets
    - FAQEntry: One parsed question/answer pair
    - FAQChunk: Token-bounded chunk of one FAQ entry

Indexing Outputs:
    - VectorRecord: Embedded leaf ready for a vector store
    - IndexResult: Summary of one indexing run

All chunk records are frozen; they are produced once and never edited.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TextChunk(BaseModel):
    """
    A chunk produced by the recursive chunker.

    Attributes:
        content: The chunk text
        page_number: Page the chunk starts on
        chunk_index: Position among all chunks of the run (0-indexed)
        char_range: Half-open UTF-8 byte offsets into the concatenated pages
        token_count: Token count of content under the chunker's model
        metadata: Extra metadata (always includes "model")
    """

    model_config = ConfigDict(frozen=True)

    content: str
    page_number: int
    chunk_index: int
    char_range: tuple[int, int]
    token_count: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class FAQEntry(BaseModel):
    """A question/answer pair parsed from FAQ markdown."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(default="General", description="Section the entry belongs to")
    question: str
    answer: str
    tags: list[str] = Field(default_factory=list)


class FAQChunk(BaseModel):
    """
    A chunk of one FAQ entry.

    Entries within budget produce exactly one chunk whose content is
    "Q: <question>\\nA: <answer>". Longer entries are split into several
    chunks that share faq_id and may overlap by whole units.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(..., description="'<faq_id>-chunk-<n>', n starting at 1")
    faq_id: str = Field(..., description="'faq-<category-slug>-<index:03d>'")
    category: str
    title: str = Field(..., description="The trimmed question")
    content: str
    tags: list[str] = Field(default_factory=list)
    token_count: int


# -----------------------------------------------------------------------------
# Indexing outputs
# -----------------------------------------------------------------------------


class VectorRecord(BaseModel):
    """An embedded leaf in vector-store form."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Leaf node UUID as a string")
    embedding: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class IndexResult(BaseModel):
    """Summary of indexing one document tree."""

    document_id: str
    leaves_total: int = 0
    leaves_embedded: int = 0
    records_upserted: int = 0
    records: list[VectorRecord] = Field(default_factory=list)
