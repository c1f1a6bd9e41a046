"""
Document Chunking

Turns text documents into retrieval-sized pieces.

Modules:
    markdown_events: markdown-it-py token stream flattened into events
    markdown: Markdown -> hierarchical NodeTree (headings, leaves)
    recursive: Token-budget chunking of plain page text
    faq: FAQ markdown parsing and per-entry chunking

Key Features:
    - Heading hierarchy preserved as node hierarchy paths
    - Tables, code blocks and images kept as atomic leaves
    - Token budgets measured with the target model's own tokenizer
"""

from rag_indexing.ingestion.chunking.faq import FAQChunker, parse_faq_markdown, split_units
from rag_indexing.ingestion.chunking.markdown import MarkdownTreeBuilder, build_markdown_tree
from rag_indexing.ingestion.chunking.markdown_events import parse_events
from rag_indexing.ingestion.chunking.recursive import RecursiveChunker

__all__ = [
    "FAQChunker",
    "MarkdownTreeBuilder",
    "RecursiveChunker",
    "build_markdown_tree",
    "parse_events",
    "parse_faq_markdown",
    "split_units",
]
