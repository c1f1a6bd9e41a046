"""Shared fixtures: tokenizer services backed by stub encoders."""

import re

import pytest

from rag_indexing.utils.token_count import TokenizerService

# Canonical keys the stub factories accept
KNOWN_KEYS = {
    "gpt-4o",
    "gpt-3.5-turbo",
    "text-embedding-3-small",
    "text-embedding-3-large",
    "text-embedding-ada-002",
    "cl100k_base",
}

_WORD_OR_PUNCT = re.compile(r"\w+|[^\w\s]")


class WordEncoder:
    """One token per word or punctuation mark."""

    def encode(self, text: str) -> list[int]:
        return list(range(len(_WORD_OR_PUNCT.findall(text))))


class CharEncoder:
    """One token per character."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]


def word_encoder_factory(key: str) -> WordEncoder:
    if key not in KNOWN_KEYS:
        raise KeyError(key)
    return WordEncoder()


def char_encoder_factory(key: str) -> CharEncoder:
    if key not in KNOWN_KEYS:
        raise KeyError(key)
    return CharEncoder()


def word_count(text: str) -> int:
    return len(_WORD_OR_PUNCT.findall(text))


@pytest.fixture
def tokenizer() -> TokenizerService:
    """Tokenizer service counting words and punctuation marks."""
    return TokenizerService(encoder_factory=word_encoder_factory)


@pytest.fixture
def char_tokenizer() -> TokenizerService:
    """Tokenizer service counting characters."""
    return TokenizerService(encoder_factory=char_encoder_factory)


@pytest.fixture
def real_tokenizer() -> TokenizerService:
    """tiktoken-backed service; skipped when the encoding cannot be loaded."""
    service = TokenizerService()
    try:
        service.validate("gpt-4o")
    except Exception as e:
        pytest.skip(f"tiktoken encoding unavailable: {e}")
    return service
