"""
Markdown Event Stream

Flattens the markdown-it-py token stream into a linear sequence of
Start/End/Text/Code/SoftBreak/HardBreak events that the tree builder
consumes one at a time.

Parser:
    CommonMark with the table and strikethrough extensions enabled.

Dropped:
    Raw HTML, thematic breaks, link and emphasis markers (their text is kept).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from markdown_it import MarkdownIt
from markdown_it.token import Token


class Tag(str, Enum):
    """Container kinds that open and close in the event stream."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    IMAGE = "image"
    LIST = "list"
    ITEM = "item"
    BLOCK_QUOTE = "block_quote"


@dataclass(frozen=True)
class Start:
    tag: Tag
    level: int = 0  # heading level
    info: str = ""  # code fence info string
    dest: str = ""  # image destination
    title: str = ""  # image title
    ordered: bool = False  # list kind
    start: int = 1  # first number of an ordered list


@dataclass(frozen=True)
class End:
    tag: Tag


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Code:
    """Inline code span."""

    text: str


@dataclass(frozen=True)
class SoftBreak:
    pass


@dataclass(frozen=True)
class HardBreak:
    pass


Event = Start | End | Text | Code | SoftBreak | HardBreak


# Block token type prefix -> tag (tbody is transparent)
_BLOCK_TAGS: dict[str, Tag] = {
    "heading": Tag.HEADING,
    "paragraph": Tag.PARAGRAPH,
    "table": Tag.TABLE,
    "thead": Tag.TABLE_HEAD,
    "tr": Tag.TABLE_ROW,
    "th": Tag.TABLE_CELL,
    "td": Tag.TABLE_CELL,
    "bullet_list": Tag.LIST,
    "ordered_list": Tag.LIST,
    "list_item": Tag.ITEM,
    "blockquote": Tag.BLOCK_QUOTE,
}


def _create_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


def parse_events(markdown: str) -> list[Event]:
    """Parse markdown into a flat event list."""
    tokens = _create_parser().parse(markdown)
    return list(_block_events(tokens))


def _block_events(tokens: list[Token]) -> Iterator[Event]:
    for token in tokens:
        if token.type == "inline":
            yield from _inline_events(token.children or [])
            continue

        if token.type in ("fence", "code_block"):
            yield Start(Tag.CODE_BLOCK, info=token.info.strip())
            if token.content:
                yield Text(token.content)
            yield End(Tag.CODE_BLOCK)
            continue

        if token.nesting == 0:
            # hr, html_block
            continue

        kind = token.type.rsplit("_", 1)[0]
        tag = _BLOCK_TAGS.get(kind)
        if tag is None:
            continue

        if token.nesting == -1:
            yield End(tag)
        elif tag is Tag.HEADING:
            yield Start(tag, level=int(token.tag[1:]))
        elif tag is Tag.LIST:
            start = token.attrGet("start")
            yield Start(
                tag,
                ordered=kind == "ordered_list",
                start=int(start) if start is not None else 1,
            )
        else:
            yield Start(tag)


def _inline_events(children: list[Token]) -> Iterator[Event]:
    for child in children:
        if child.type in ("text", "text_special"):
            if child.content:
                yield Text(child.content)
        elif child.type == "code_inline":
            yield Code(child.content)
        elif child.type == "softbreak":
            yield SoftBreak()
        elif child.type == "hardbreak":
            yield HardBreak()
        elif child.type == "image":
            yield Start(
                Tag.IMAGE,
                dest=str(child.attrGet("src") or ""),
                title=str(child.attrGet("title") or ""),
            )
            yield from _inline_events(child.children or [])
            yield End(Tag.IMAGE)
        # link_open/close, em, strong, s and html_inline carry no text of their own
