"""
Recursive Token Chunker

Splits page text into chunks that fit a token budget.

Algorithm:
    1. Split each page into paragraphs on blank lines
    2. A paragraph within budget becomes one chunk
    3. Larger paragraphs are split into sentences (CJK terminators first,
       Latin terminators when that finds at most one sentence) and packed
       greedily; the sentence that overflows starts the next chunk
    4. A sentence that alone exceeds the budget is hard split into
       character windows, cutting at whitespace or clause punctuation

Offsets:
    char_range holds half-open UTF-8 byte offsets into the concatenation of
    all page texts, taken from the real spans of the first and last piece
    of each chunk.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rag_indexing.types import TextChunk
from rag_indexing.utils.text import utf8_len
from rag_indexing.utils.token_count import TokenizerService, get_tokenizer_service

if TYPE_CHECKING:
    from rag_indexing.config import IndexingConfig

logger = logging.getLogger(__name__)


_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
# Terminators stay with their sentence; newlines are dropped
_CJK_SENTENCE_END = re.compile(r"[。！？]+|\n+")
_LATIN_SENTENCE_END = re.compile(r"[.!?]+(?=\s|$)|\n+")
_BREAK_CHARS = frozenset("，,；;：:")


@dataclass(frozen=True)
class TextSpan:
    """A trimmed [start, end) character span of one page's text."""

    start: int
    end: int


def _trimmed(text: str, start: int, end: int) -> TextSpan | None:
    segment = text[start:end]
    stripped = segment.strip()
    if not stripped:
        return None
    lead = len(segment) - len(segment.lstrip())
    return TextSpan(start + lead, start + lead + len(stripped))


def _split_on(pattern: re.Pattern[str], text: str, span: TextSpan) -> list[TextSpan]:
    pieces: list[TextSpan] = []
    start = span.start
    for match in pattern.finditer(text, span.start, span.end):
        end = match.start() if match.group().startswith("\n") else match.end()
        piece = _trimmed(text, start, end)
        if piece is not None:
            pieces.append(piece)
        start = match.end()
    piece = _trimmed(text, start, span.end)
    if piece is not None:
        pieces.append(piece)
    return pieces


def split_paragraphs(text: str) -> list[TextSpan]:
    """Trimmed, non-empty paragraph spans separated by blank lines."""
    return _split_on(_PARAGRAPH_BREAK, text, TextSpan(0, len(text)))


def split_sentences(text: str, span: TextSpan) -> list[TextSpan]:
    """Sentence spans within a paragraph span."""
    sentences = _split_on(_CJK_SENTENCE_END, text, span)
    if len(sentences) <= 1:
        sentences = _split_on(_LATIN_SENTENCE_END, text, span)
    return sentences


class RecursiveChunker:
    """
    Token-budget chunker for plain page text.

    Args:
        max_tokens: Budget per chunk, at least 1
        model: Model whose tokenizer measures the budget (aliases allowed)
        hard_split_chars: Largest character window for over-long sentences
        forced_split_chars: Cut length when a window has no break character
        tokenizer: Tokenizer service (defaults to the process-wide one)

    Raises:
        UnsupportedModelError: No tokenizer exists for model
        ValueError: max_tokens or a split size is below 1
    """

    def __init__(
        self,
        max_tokens: int,
        model: str,
        *,
        hard_split_chars: int = 500,
        forced_split_chars: int = 300,
        tokenizer: TokenizerService | None = None,
    ) -> None:
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be at least 1, got {max_tokens}")
        if hard_split_chars < 1 or forced_split_chars < 1:
            raise ValueError("hard_split_chars and forced_split_chars must be at least 1")

        self.max_tokens = max_tokens
        self.model = model
        self.hard_split_chars = hard_split_chars
        self.forced_split_chars = forced_split_chars
        self.tokenizer = tokenizer or get_tokenizer_service()
        self.tokenizer.validate(model)

    @classmethod
    def from_config(
        cls,
        config: IndexingConfig,
        tokenizer: TokenizerService | None = None,
    ) -> RecursiveChunker:
        return cls(
            config.max_tokens,
            config.tokenizer_model,
            hard_split_chars=config.hard_split_chars,
            forced_split_chars=config.forced_split_chars,
            tokenizer=tokenizer,
        )

    def token_count(self, text: str) -> int:
        return self.tokenizer.count_tokens(text, self.model)

    def chunk(self, pages: Iterable[tuple[int, str]]) -> list[TextChunk]:
        """
        Chunk pages given as (page_number, text) pairs, in order.

        Returns:
            Chunks with a global chunk_index and byte ranges into the
            concatenated page stream
        """
        chunks: list[TextChunk] = []
        page_base = 0

        for page_number, text in pages:
            for paragraph in split_paragraphs(text):
                if self.token_count(text[paragraph.start : paragraph.end]) <= self.max_tokens:
                    groups = [[paragraph]]
                else:
                    groups = self._pack_sentences(text, paragraph)

                for group in groups:
                    chunks.append(self._make_chunk(text, group, page_number, page_base, len(chunks)))

            page_base += utf8_len(text)

        logger.info(f"Recursive chunking produced {len(chunks)} chunks (max_tokens={self.max_tokens})")
        return chunks

    def chunk_text(self, text: str, page_number: int = 1) -> list[TextChunk]:
        """Chunk a single page of text."""
        return self.chunk([(page_number, text)])

    def _pack_sentences(self, text: str, paragraph: TextSpan) -> list[list[TextSpan]]:
        """Greedily group sentences; each group becomes one chunk."""
        groups: list[list[TextSpan]] = []
        buffer: list[TextSpan] = []

        for sentence in split_sentences(text, paragraph):
            if buffer and self.token_count(_join(text, [*buffer, sentence])) <= self.max_tokens:
                buffer.append(sentence)
                continue

            if buffer:
                groups.append(buffer)
                buffer = []

            if self.token_count(text[sentence.start : sentence.end]) <= self.max_tokens:
                buffer = [sentence]
            else:
                groups.extend([piece] for piece in self._hard_split(text, sentence))

        if buffer:
            groups.append(buffer)
        return groups

    def _hard_split(self, text: str, span: TextSpan) -> list[TextSpan]:
        """Cut an over-long sentence into windows that fit the budget."""
        pieces: list[TextSpan] = []
        pos = span.start

        while pos < span.end:
            window = min(self.hard_split_chars, span.end - pos)
            while window > 1 and self.token_count(text[pos : pos + window]) > self.max_tokens:
                window //= 2

            if pos + window >= span.end:
                cut = span.end
            else:
                cut = self._find_cut(text, pos, window)

            piece = _trimmed(text, pos, cut)
            if piece is not None:
                pieces.append(piece)
            pos = cut

        logger.debug(f"Hard split a {span.end - span.start}-character sentence into {len(pieces)} pieces")
        return pieces

    def _find_cut(self, text: str, pos: int, window: int) -> int:
        for i in range(pos + window - 1, pos, -1):
            char = text[i]
            if char.isspace() or char in _BREAK_CHARS:
                return i + 1
        return pos + min(self.forced_split_chars, window)

    def _make_chunk(
        self,
        text: str,
        group: list[TextSpan],
        page_number: int,
        page_base: int,
        chunk_index: int,
    ) -> TextChunk:
        content = _join(text, group)
        start = page_base + utf8_len(text[: group[0].start])
        end = page_base + utf8_len(text[: group[-1].end])
        return TextChunk(
            content=content,
            page_number=page_number,
            chunk_index=chunk_index,
            char_range=(start, end),
            token_count=self.token_count(content),
            metadata={"model": self.model},
        )


def _join(text: str, spans: list[TextSpan]) -> str:
    return " ".join(text[span.start : span.end] for span in spans)
