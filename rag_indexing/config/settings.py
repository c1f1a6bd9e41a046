"""
IndexingConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> config = IndexingConfig()

    >>> # Explicit configuration
    >>> config = IndexingConfig(tokenizer_model="qwen-max", max_tokens=256)
    >>> chunker = RecursiveChunker.from_config(config)

    >>> # From config file
    >>> config = IndexingConfig.from_file("./indexing.toml")

Environment Variables:
    RAG_TOKENIZER_MODEL - Model whose tokenizer measures chunk budgets
    RAG_MAX_TOKENS - Token budget of the recursive chunker
    RAG_FAQ_MAX_TOKENS - Token budget of the FAQ chunker
    RAG_FAQ_OVERLAP - Units repeated between split FAQ chunks
    RAG_EMBEDDING_MODEL - Embedding model name
    RAG_EMBEDDING_BASE_URL - OpenAI-compatible embedding endpoint
    RAG_EMBEDDING_BATCH_SIZE - Texts per embedding API call
    OPENAI_API_KEY - OpenAI (or compatible endpoint) API key
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any


class IndexingConfig:
    """Configuration for rag-indexing."""

    # === Tokenizer ===

    tokenizer_model: str = "gpt-4o"
    """Model (or alias) whose tokenizer measures chunk budgets"""

    # === Recursive Chunking ===

    max_tokens: int = 512
    """Token budget per recursive chunk"""

    hard_split_chars: int = 500
    """Largest character window when hard splitting an over-long sentence"""

    forced_split_chars: int = 300
    """Cut length when a hard split window has no break character"""

    # === FAQ Chunking ===

    faq_max_tokens: int = 200
    """Token budget per FAQ chunk"""

    faq_overlap: int = 1
    """Units repeated at the start of the next chunk of a split FAQ entry"""

    # === Embedding ===

    embedding_model: str = "text-embedding-3-small"
    """Embedding model name"""

    embedding_base_url: str | None = None
    """OpenAI-compatible endpoint (e.g., DashScope compatible mode); None for OpenAI"""

    embedding_batch_size: int = 100
    """Texts per embedding API call"""

    embedding_normalize: bool = True
    """L2-normalize embedding vectors"""

    # === API Keys ===

    openai_api_key: str | None = None

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option

        Raises:
            ValueError: If an option name is unknown
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        if model := os.getenv("RAG_TOKENIZER_MODEL"):
            self.tokenizer_model = model
        if max_tokens := os.getenv("RAG_MAX_TOKENS"):
            self.max_tokens = int(max_tokens)
        if faq_max_tokens := os.getenv("RAG_FAQ_MAX_TOKENS"):
            self.faq_max_tokens = int(faq_max_tokens)
        if overlap := os.getenv("RAG_FAQ_OVERLAP"):
            self.faq_overlap = int(overlap)
        if model := os.getenv("RAG_EMBEDDING_MODEL"):
            self.embedding_model = model
        if base_url := os.getenv("RAG_EMBEDDING_BASE_URL"):
            self.embedding_base_url = base_url
        if batch_size := os.getenv("RAG_EMBEDDING_BATCH_SIZE"):
            self.embedding_batch_size = int(batch_size)

    @classmethod
    def from_file(cls, path: str | Path) -> IndexingConfig:
        """
        Load configuration from TOML file.

        Sections are flattened into option names; flat top-level keys are
        accepted as-is.

        Example TOML:
            [tokenizer]
            model = "qwen-max"

            [chunking]
            max_tokens = 256

            [faq]
            max_tokens = 200
            overlap = 1

            [embedding]
            model = "text-embedding-v3"
            base_url = "https://dashscope.aliyuncs.com/compatible-mode/v1"

            [api_keys]
            openai = "sk-..."

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file names an unknown option
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f)

        flat_config: dict[str, Any] = {}

        section_mapping = {
            "tokenizer": "tokenizer_",
            "chunking": "",
            "faq": "faq_",
            "embedding": "embedding_",
            "api_keys": "",  # api_keys.openai -> openai_api_key
        }

        for section, prefix in section_mapping.items():
            if section in data:
                for key, value in data[section].items():
                    if section == "api_keys":
                        flat_config[f"{key}_api_key"] = value
                    else:
                        flat_config[f"{prefix}{key}"] = value

        for key, value in data.items():
            if key not in section_mapping and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> IndexingConfig:
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        API keys are never written.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | bool | None]] = {
            "tokenizer": {
                "model": self.tokenizer_model,
            },
            "chunking": {
                "max_tokens": self.max_tokens,
                "hard_split_chars": self.hard_split_chars,
                "forced_split_chars": self.forced_split_chars,
            },
            "faq": {
                "max_tokens": self.faq_max_tokens,
                "overlap": self.faq_overlap,
            },
            "embedding": {
                "model": self.embedding_model,
                "base_url": self.embedding_base_url,
                "batch_size": self.embedding_batch_size,
                "normalize": self.embedding_normalize,
            },
        }

        lines = ["# rag-indexing configuration", ""]

        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            for key, value in section_values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
            lines.append("")

        lines.extend([
            "# API keys should be set via environment variables:",
            "# OPENAI_API_KEY",
            "",
        ])

        path.write_text("\n".join(lines), encoding="utf-8")

    def to_dict(self) -> dict[str, Any]:
        """All options except API keys."""
        return {
            key: getattr(self, key)
            for key in dir(type(self))
            if not key.startswith("_")
            and not key.endswith("_api_key")
            and not callable(getattr(self, key))
        }

    def with_overrides(self, **kwargs: Any) -> IndexingConfig:
        """Return new config with specified overrides."""
        new_config = IndexingConfig.__new__(IndexingConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        return new_config
