"""
rag-indexing - Document Trees and Chunking for Retrieval

Turns markdown, plain text and FAQ documents into retrieval-sized chunks:
a hierarchical tree of headings and content leaves for markdown, and flat
token-budget chunks for page text and FAQ entries.

Example:
    >>> from rag_indexing import build_markdown_tree, RecursiveChunker
    >>> tree = build_markdown_tree("# T\\n## S\\npara text", "d1")
    >>> [leaf.hierarchy for leaf in tree.ordered_leaves()]
    [['Root', 'T', 'S', 'chunk_0_9']]

    >>> chunker = RecursiveChunker(max_tokens=512, model="gpt-4o")
    >>> chunks = chunker.chunk([(1, page_text)])

Main Classes:
    MarkdownTreeBuilder: Markdown -> NodeTree
    RecursiveChunker: Token-budget chunking of page text
    FAQChunker: Per-entry FAQ chunking
    TreeIndexer: Embeds tree leaves and upserts them to a vector store
    IndexingConfig: Configuration management
"""

__version__ = "0.1.0"


# Public API - lazy imports
def __getattr__(name: str):
    """Lazy import public API components."""

    if name in ("MarkdownTreeBuilder", "build_markdown_tree"):
        from rag_indexing.ingestion.chunking import markdown
        return getattr(markdown, name)

    if name == "RecursiveChunker":
        from rag_indexing.ingestion.chunking.recursive import RecursiveChunker
        return RecursiveChunker

    if name in ("FAQChunker", "parse_faq_markdown"):
        from rag_indexing.ingestion.chunking import faq
        return getattr(faq, name)

    if name == "TreeIndexer":
        from rag_indexing.ingestion.assembly.indexer import TreeIndexer
        return TreeIndexer

    if name == "IndexingConfig":
        from rag_indexing.config.settings import IndexingConfig
        return IndexingConfig

    if name == "NodeTree":
        from rag_indexing.tree import NodeTree
        return NodeTree

    if name in ("TokenizerService", "count_tokens", "get_tokenizer_service"):
        from rag_indexing.utils import token_count
        return getattr(token_count, name)

    # Types
    if name in (
        "RootNode",
        "IntermediateNode",
        "LeafNode",
        "TextChunk",
        "FAQEntry",
        "FAQChunk",
        "VectorRecord",
        "IndexResult",
    ):
        from rag_indexing import types
        return getattr(types, name)

    raise AttributeError(f"module 'rag_indexing' has no attribute {name!r}")


__all__ = [
    # Main classes
    "MarkdownTreeBuilder",
    "RecursiveChunker",
    "FAQChunker",
    "TreeIndexer",
    "IndexingConfig",
    "NodeTree",
    "TokenizerService",

    # Convenience functions
    "build_markdown_tree",
    "parse_faq_markdown",
    "count_tokens",
    "get_tokenizer_service",

    # Types
    "RootNode",
    "IntermediateNode",
    "LeafNode",
    "TextChunk",
    "FAQEntry",
    "FAQChunk",
    "VectorRecord",
    "IndexResult",

    # Version
    "__version__",
]
