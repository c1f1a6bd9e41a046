"""
FAQ Chunker

Chunks question/answer entries, one entry per chunk when it fits the budget.

Algorithm:
    1. Each entry becomes "Q: <question>\\nA: <answer>"
    2. Within budget -> one chunk "<faq_id>-chunk-1"
    3. Over budget -> split into semantic units (jieba word segmentation,
       closing units at sentence terminators, or at clause separators once
       a unit is long) and pack them greedily; each new chunk starts with
       the last `overlap` units of the previous one, even when that seed
       alone is over budget

Parsing:
    parse_faq_markdown() reads "## Category" sections containing
    "- Q: ..." lines, each followed by an "A: ..." line and an optional
    "Tags: a, b" line.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

import jieba

from rag_indexing.types import FAQChunk, FAQEntry
from rag_indexing.utils.text import generate_faq_chunk_id, generate_faq_id
from rag_indexing.utils.token_count import TokenizerService, get_tokenizer_service

if TYPE_CHECKING:
    from rag_indexing.config import IndexingConfig

logger = logging.getLogger(__name__)

# jieba announces dictionary loading at DEBUG on its own handler
jieba.setLogLevel(logging.WARNING)

DEFAULT_CATEGORY = "General"

_SENTENCE_TERMINATORS = frozenset("。！？.!?；;\n")
_CLAUSE_SEPARATORS = frozenset("，,、：:")
# A unit longer than this may also close at a clause separator
_LONG_UNIT_CHARS = 50

_SENTENCE_PATTERN = re.compile(r"[^。！？.!?；;\n]*(?:[。！？.!?；;\n]+|$)")

_CATEGORY_LINE = re.compile(r"^##\s+(.+)$")
_QUESTION_LINE = re.compile(r"^-\s*Q\w*\s*[:：]\s*(.+)$")
_ANSWER_LINE = re.compile(r"^-?\s*A\w*\s*[:：]\s*(.*)$")
_TAGS_LINE = re.compile(r"^-?\s*tags?\s*[:：]\s*(.*)$", re.IGNORECASE)
_CATEGORY_NUMBERING = re.compile(r"^(\S+?)[、.](.*)$")
_TAG_SEPARATOR = re.compile(r"[,，]")


def _segment(text: str) -> list[str]:
    return [word for word in jieba.lcut(text) if word]


def _sentences(text: str) -> list[str]:
    return [match.group() for match in _SENTENCE_PATTERN.finditer(text) if match.group()]


def split_units(text: str) -> list[str]:
    """
    Split text into semantic units.

    Units keep their own punctuation and whitespace, so joining them
    reproduces the text. Whitespace-only runs attach to the preceding unit.
    """
    units: list[str] = []
    current: list[str] = []
    length = 0

    for word in _segment(text):
        current.append(word)
        length += len(word)
        last = word[-1]
        if last in _SENTENCE_TERMINATORS or (
            last in _CLAUSE_SEPARATORS and length > _LONG_UNIT_CHARS
        ):
            unit = "".join(current)
            if units and not unit.strip():
                units[-1] += unit
            else:
                units.append(unit)
            current = []
            length = 0
    if current:
        units.append("".join(current))

    if len(units) <= 1:
        units = _sentences(text)

    return [unit for unit in units if unit.strip()]


class FAQChunker:
    """
    Token-budget chunker for FAQ entries.

    Args:
        max_tokens: Budget per chunk, at least 1
        overlap: Units repeated at the start of the next chunk of a split entry
        model: Model whose tokenizer measures the budget (aliases allowed)
        tokenizer: Tokenizer service (defaults to the process-wide one)

    Raises:
        UnsupportedModelError: No tokenizer exists for model
        ValueError: max_tokens below 1 or negative overlap
    """

    def __init__(
        self,
        max_tokens: int,
        overlap: int,
        model: str,
        *,
        tokenizer: TokenizerService | None = None,
    ) -> None:
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be at least 1, got {max_tokens}")
        if overlap < 0:
            raise ValueError(f"overlap must not be negative, got {overlap}")

        self.max_tokens = max_tokens
        self.overlap = overlap
        self.model = model
        self.tokenizer = tokenizer or get_tokenizer_service()
        self.tokenizer.validate(model)

    @classmethod
    def from_config(
        cls,
        config: IndexingConfig,
        tokenizer: TokenizerService | None = None,
    ) -> FAQChunker:
        return cls(
            config.faq_max_tokens,
            config.faq_overlap,
            config.tokenizer_model,
            tokenizer=tokenizer,
        )

    def token_count(self, text: str) -> int:
        return self.tokenizer.count_tokens(text, self.model)

    def chunk_by_qa(self, entries: Iterable[FAQEntry]) -> list[FAQChunk]:
        """Chunk entries in order; faq ids are numbered from 1 across all entries."""
        chunks: list[FAQChunk] = []

        for idx, entry in enumerate(entries, start=1):
            faq_id = generate_faq_id(entry.category, idx)
            content = f"Q: {entry.question.strip()}\nA: {entry.answer.strip()}"
            token_count = self.token_count(content)

            if token_count <= self.max_tokens:
                chunks.append(self._make_chunk(entry, faq_id, 1, content, token_count))
                continue

            parts = self._split_long_entry(content)
            logger.debug(f"Split {faq_id} ({token_count} tokens) into {len(parts)} chunks")
            for n, part in enumerate(parts, start=1):
                chunks.append(self._make_chunk(entry, faq_id, n, part, self.token_count(part)))

        logger.info(f"FAQ chunking produced {len(chunks)} chunks")
        return chunks

    def chunk_markdown(self, markdown: str) -> list[FAQChunk]:
        """Parse FAQ markdown and chunk the entries."""
        return self.chunk_by_qa(parse_faq_markdown(markdown))

    def _split_long_entry(self, text: str) -> list[str]:
        units: list[str] = []
        for unit in split_units(text):
            if self.token_count(unit) > self.max_tokens:
                units.extend(self._split_unit(unit))
            else:
                units.append(unit)

        parts: list[str] = []
        current: list[str] = []
        for unit in units:
            if not current or self.token_count("".join([*current, unit])) <= self.max_tokens:
                current.append(unit)
                continue

            parts.append("".join(current).strip())
            # Overlap is kept whole even when the seed alone exceeds the budget
            current = [*current[-self.overlap :], unit] if self.overlap else [unit]

        if current:
            parts.append("".join(current).strip())
        return [part for part in parts if part]

    def _split_unit(self, unit: str) -> list[str]:
        """Split an over-budget unit at word boundaries."""
        pieces: list[str] = []
        current = ""
        for word in _segment(unit):
            if current and self.token_count(current + word) > self.max_tokens:
                pieces.append(current)
                current = ""
            current += word
        if current:
            pieces.append(current)
        return [piece for piece in pieces if piece.strip()]

    def _make_chunk(
        self,
        entry: FAQEntry,
        faq_id: str,
        sequence: int,
        content: str,
        token_count: int,
    ) -> FAQChunk:
        return FAQChunk(
            chunk_id=generate_faq_chunk_id(faq_id, sequence),
            faq_id=faq_id,
            category=entry.category,
            title=entry.question.strip(),
            content=content,
            tags=list(entry.tags),
            token_count=token_count,
        )


def _category_name(heading: str) -> str:
    """'一、退货' -> '退货', '1. Returns' -> 'Returns', 'Shipping' -> 'Shipping'"""
    match = _CATEGORY_NUMBERING.match(heading)
    if match is None:
        return heading
    name = match.group(2).strip()
    return name or heading


def parse_faq_markdown(markdown: str) -> list[FAQEntry]:
    """
    Parse FAQ markdown into entries.

    Example input:
        ## 1. Returns
        - Q: How do I return an item?
          A: Open the order page and choose "Return".
          Tags: returns, orders
    """
    entries: list[FAQEntry] = []
    category = DEFAULT_CATEGORY
    question: str | None = None
    after_answer = False

    for line in markdown.splitlines():
        stripped = line.strip()

        if question is not None:
            pending, question = question, None
            answer = _ANSWER_LINE.match(stripped)
            if answer is not None:
                entries.append(
                    FAQEntry(category=category, question=pending, answer=answer.group(1).strip())
                )
                after_answer = True
                continue

        if after_answer:
            after_answer = False
            tags = _TAGS_LINE.match(stripped)
            if tags is not None:
                values = [tag.strip() for tag in _TAG_SEPARATOR.split(tags.group(1))]
                entries[-1] = entries[-1].model_copy(update={"tags": [t for t in values if t]})
                continue

        heading = _CATEGORY_LINE.match(stripped)
        if heading is not None:
            category = _category_name(heading.group(1).strip())
            continue

        q = _QUESTION_LINE.match(stripped)
        if q is not None:
            question = q.group(1).strip()

    return entries
