"""
Token counting with model-keyed tiktoken encoders.

Model names are normalized through an alias table, and one encoder per
canonical key is built lazily and cached for the process lifetime. The
cache lock is held only while looking up or building an encoder, never
while encoding text.

Example:
    >>> count_tokens("hello", "gpt-4") == count_tokens("hello", "gpt-4-turbo")
    True

    >>> service = TokenizerService(encoder_factory=my_stub_factory)
    >>> service.count_tokens("some text", "qwen-max")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from rag_indexing.exceptions import UnsupportedModelError

logger = logging.getLogger(__name__)


class Encoder(Protocol):
    """Anything that turns text into a token sequence."""

    def encode(self, text: str) -> list[int]: ...


EncoderFactory = Callable[[str], Encoder]


# Canonical key per alias. Qwen models share the GPT-4o encoding.
_MODEL_ALIASES: dict[str, str] = {
    "gpt-4": "gpt-4o",
    "gpt-4-turbo": "gpt-4o",
    "gpt-4o": "gpt-4o",
    "gpt-4o-mini": "gpt-4o",
    "gpt-3.5": "gpt-3.5-turbo",
    "gpt-3.5-turbo": "gpt-3.5-turbo",
    "chatgpt": "gpt-3.5-turbo",
    "text-embedding-3-small": "text-embedding-3-small",
    "embedding-small": "text-embedding-3-small",
    "text-embedding-3-large": "text-embedding-3-large",
    "embedding-large": "text-embedding-3-large",
    "text-embedding-ada-002": "text-embedding-ada-002",
    "ada": "text-embedding-ada-002",
    "qwen": "gpt-4o",
    "qwen-max": "gpt-4o",
    "qwen-plus": "gpt-4o",
    "qwen-turbo": "gpt-4o",
    "qwen-7b": "gpt-4o",
    "qwen-14b": "gpt-4o",
    "qwen-72b": "gpt-4o",
}


def normalize_model_name(model: str) -> str:
    """
    Map a model name or alias to its canonical encoder key.

    Unknown names pass through unchanged (only surrounding whitespace is
    removed), so encoding names such as "cl100k_base" still resolve.
    """
    return _MODEL_ALIASES.get(model.strip().lower(), model.strip())


class _TiktokenEncoder:
    """Adapter that encodes special tokens as text instead of rejecting them."""

    def __init__(self, encoding) -> None:
        self._encoding = encoding

    @property
    def name(self) -> str:
        return self._encoding.name

    def encode(self, text: str) -> list[int]:
        return self._encoding.encode(text, allowed_special="all")


def tiktoken_encoder(model_key: str) -> Encoder:
    """
    Build a tiktoken encoder for a canonical model key.

    Raises:
        KeyError: If tiktoken knows neither a model nor an encoding by that name
    """
    import tiktoken

    try:
        encoding = tiktoken.encoding_for_model(model_key)
    except KeyError:
        try:
            encoding = tiktoken.get_encoding(model_key)
        except ValueError as e:
            raise KeyError(model_key) from e

    return _TiktokenEncoder(encoding)


class TokenizerService:
    """
    Thread-safe, memoized tokenizer lookup keyed by canonical model name.

    Args:
        encoder_factory: Builds an encoder for a canonical key. Must raise
            KeyError or ValueError for keys it does not support.
    """

    def __init__(self, encoder_factory: EncoderFactory = tiktoken_encoder) -> None:
        self._factory = encoder_factory
        self._encoders: dict[str, Encoder] = {}
        self._lock = threading.Lock()

    def encoder(self, model: str) -> Encoder:
        """
        Return the cached encoder for a model, building it on first use.

        Raises:
            UnsupportedModelError: If the normalized model name is unknown
        """
        key = normalize_model_name(model)
        with self._lock:
            encoder = self._encoders.get(key)
            if encoder is None:
                try:
                    encoder = self._factory(key)
                except (KeyError, ValueError) as e:
                    raise UnsupportedModelError(model, key) from e
                self._encoders[key] = encoder
                logger.debug(f"Created tokenizer for '{key}' (requested '{model}')")
        return encoder

    def validate(self, model: str) -> None:
        """Fail fast if no encoder can be built for the model."""
        self.encoder(model)

    def count_tokens(self, text: str, model: str) -> int:
        """Count tokens of text with the model's native encoder."""
        return len(self.encoder(model).encode(text))

    @property
    def cached_models(self) -> list[str]:
        """Canonical keys that already have an encoder."""
        with self._lock:
            return sorted(self._encoders)


_default_service: TokenizerService | None = None
_default_lock = threading.Lock()


def get_tokenizer_service() -> TokenizerService:
    """Return the process-wide tokenizer service, creating it on first use."""
    global _default_service
    with _default_lock:
        if _default_service is None:
            _default_service = TokenizerService()
        return _default_service


def count_tokens(text: str, model: str) -> int:
    """Count tokens using the process-wide tokenizer service."""
    return get_tokenizer_service().count_tokens(text, model)
