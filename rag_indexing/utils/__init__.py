"""
Utility Functions

Helpers used throughout the package.

Modules:
    token_count: Model-keyed, cached tiktoken token counting
    text: Chunk labels and FAQ identifiers
"""

from rag_indexing.utils.text import (
    chunk_label,
    generate_faq_chunk_id,
    generate_faq_id,
    image_label,
    parse_chunk_label,
    table_label,
    utf8_len,
)
from rag_indexing.utils.token_count import (
    TokenizerService,
    count_tokens,
    get_tokenizer_service,
    normalize_model_name,
)

__all__ = [
    "TokenizerService",
    "count_tokens",
    "get_tokenizer_service",
    "normalize_model_name",
    "chunk_label",
    "table_label",
    "image_label",
    "parse_chunk_label",
    "generate_faq_id",
    "generate_faq_chunk_id",
    "utf8_len",
]
