"""
Configuration System

Configuration Priority (highest to lowest):
    1. Programmatic (passed to IndexingConfig())
    2. Environment variables (RAG_* prefix, OPENAI_API_KEY)
    3. Built-in defaults

Config files are loaded explicitly with IndexingConfig.from_file().
"""

from rag_indexing.config.settings import IndexingConfig

__all__ = ["IndexingConfig"]
