"""
Markdown Tree Builder

Builds a NodeTree from markdown in a single pass over the event stream.

Algorithm:
    1. Headings form a stack of (node_id, hierarchy), starting with the root.
       A heading of level L truncates the stack to length L; its node is
       created when the heading closes, so the title is final at creation.
       A heading inside a list is kept as list text instead.
    2. Text events go to exactly one content sink at a time
       (heading title, code, table cell, image alt or paragraph).
    3. Each closed paragraph, code block, table, image or top-level list
       becomes one leaf under the most recent heading.
       Code blocks and tables inside a list join that list's leaf.

Leaf Labels:
    - chunk_<index>_<utf8 size> for paragraphs, lists and code
    - table_<index> for tables
    - img_<index> for images

The index is global across the document and advances once per leaf.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from rag_indexing.ingestion.chunking.markdown_events import (
    Code,
    End,
    Event,
    HardBreak,
    SoftBreak,
    Start,
    Tag,
    Text,
    parse_events,
)
from rag_indexing.tree import NodeTree
from rag_indexing.types import ROOT_LABEL, IntermediateNode, LeafNode, RootNode
from rag_indexing.utils.text import image_label, table_label

logger = logging.getLogger(__name__)


class Sink(str, Enum):
    """Buffer that receives text in the builder's current state."""

    HEADING = "heading"
    CODE = "code"
    TABLE = "table"
    IMAGE = "image"
    PARAGRAPH = "paragraph"


@dataclass
class _ListState:
    """An open (possibly nested) list."""

    ordered: bool
    next_number: int


class _TreeAssembly:
    """Mutable state for one build. Not reused across documents."""

    def __init__(self, document_id: str, file_name: str | None) -> None:
        self.document_id = document_id
        self.file_name = file_name

        root = RootNode.create(document_id, file_name)
        self.tree = NodeTree.new(root)
        self.root_id = root.id

        self.heading_stack: list[tuple[UUID, list[str]]] = [(root.id, [ROOT_LABEL])]
        self.current_parent: UUID = root.id
        self.current_hierarchy: list[str] = [ROOT_LABEL]
        self.chunk_index = 0

        self.sink = Sink.PARAGRAPH
        self.paragraph: list[str] = []

        self.heading_level = 0
        self.title: list[str] = []

        self.code: list[str] = []

        self.table_header: list[str] | None = None
        self.table_rows: list[list[str]] = []
        self.row: list[str] = []
        self.cell: list[str] = []
        self.in_table_head = False

        self.image_alt: list[str] = []
        self.image_dest = ""
        self.image_inline = False

        self.lists: list[_ListState] = []
        self.list_lines: list[str] = []
        self.item_indent = ""
        self.item_marker: str | None = None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def feed(self, event: Event) -> None:
        if isinstance(event, Text):
            self._text(event.text)
        elif isinstance(event, Code):
            self._inline_code(event.text)
        elif isinstance(event, SoftBreak):
            self._text(" ")
        elif isinstance(event, HardBreak):
            self._text("\n" if self.sink in (Sink.PARAGRAPH, Sink.CODE) else " ")
        elif isinstance(event, Start):
            self._start(event)
        elif isinstance(event, End):
            self._end(event.tag)

    def finish(self) -> NodeTree:
        """Flush whatever is still buffered at end of input."""
        if self.lists or self.list_lines:
            self._close_paragraph()
            self.lists.clear()
            self._flush_list()
        else:
            self._close_paragraph()
        return self.tree

    # ------------------------------------------------------------------
    # Text routing
    # ------------------------------------------------------------------

    def _buffer(self) -> list[str]:
        if self.sink is Sink.HEADING:
            return self.title
        if self.sink is Sink.CODE:
            return self.code
        if self.sink is Sink.TABLE:
            return self.cell
        if self.sink is Sink.IMAGE:
            return self.image_alt
        return self.paragraph

    def _text(self, text: str) -> None:
        self._buffer().append(text)

    def _inline_code(self, text: str) -> None:
        if self.sink in (Sink.PARAGRAPH, Sink.TABLE):
            self._buffer().append(f"`{text}`")
        else:
            self._buffer().append(text)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _start(self, event: Start) -> None:
        tag = event.tag

        if tag is Tag.HEADING:
            if not self.lists:
                del self.heading_stack[event.level :]
            self.heading_level = event.level
            self.title = []
            self.sink = Sink.HEADING
        elif tag is Tag.CODE_BLOCK:
            self.code = []
            self.sink = Sink.CODE
        elif tag is Tag.TABLE:
            self.table_header = None
            self.table_rows = []
            self.row = []
            self.sink = Sink.TABLE
        elif tag is Tag.TABLE_HEAD:
            self.in_table_head = True
        elif tag is Tag.TABLE_CELL:
            self.cell = []
        elif tag is Tag.IMAGE:
            # Only paragraph context turns an image into its own leaf
            if self.sink is Sink.PARAGRAPH:
                self.image_inline = bool(self.lists)
                if not self.image_inline:
                    self._close_paragraph()
                self.image_dest = event.dest
                self.image_alt = []
                self.sink = Sink.IMAGE
        elif tag is Tag.LIST:
            self._close_paragraph()
            self.lists.append(_ListState(ordered=event.ordered, next_number=event.start))
        elif tag is Tag.ITEM and self.lists:
            state = self.lists[-1]
            self.item_indent = "  " * (len(self.lists) - 1)
            if state.ordered:
                self.item_marker = f"{state.next_number}. "
                state.next_number += 1
            else:
                self.item_marker = "- "

    def _end(self, tag: Tag) -> None:
        if tag is Tag.HEADING:
            self._close_heading()
        elif tag is Tag.PARAGRAPH:
            self._close_paragraph()
        elif tag is Tag.CODE_BLOCK:
            self._close_code()
        elif tag is Tag.TABLE_CELL and self.sink is Sink.TABLE:
            self.row.append("".join(self.cell).strip().replace("|", "\\|"))
            self.cell = []
        elif tag is Tag.TABLE_ROW and self.sink is Sink.TABLE:
            if self.in_table_head:
                self.table_header = self.row
            else:
                self.table_rows.append(self.row)
            self.row = []
        elif tag is Tag.TABLE_HEAD:
            self.in_table_head = False
        elif tag is Tag.TABLE:
            self._close_table()
        elif tag is Tag.IMAGE and self.sink is Sink.IMAGE:
            self._close_image()
        elif tag is Tag.LIST and self.lists:
            self.lists.pop()
            if not self.lists:
                self._flush_list()

    def _close_heading(self) -> None:
        self.sink = Sink.PARAGRAPH
        title = "".join(self.title).strip()
        self.title = []
        if not title:
            logger.debug(f"Skipping empty level-{self.heading_level} heading")
            return
        if self.lists:
            self._add_list_line(f"{'#' * self.heading_level} {title}")
            return

        del self.heading_stack[self.heading_level :]
        parent_id, parent_hierarchy = self.heading_stack[-1]
        node = IntermediateNode.create(
            title=title,
            parent_id=parent_id,
            parent_hierarchy=parent_hierarchy,
            root_id=self.root_id,
            document_id=self.document_id,
            file_name=self.file_name,
        )
        self.tree.add_node(node)
        self.heading_stack.append((node.id, node.hierarchy))
        self.current_parent = node.id
        self.current_hierarchy = node.hierarchy

    def _close_paragraph(self) -> None:
        text = "".join(self.paragraph).strip()
        self.paragraph = []
        if not text:
            return
        if self.lists:
            self._add_list_line(text)
        else:
            self._add_leaf(text)

    def _close_code(self) -> None:
        self.sink = Sink.PARAGRAPH
        text = "".join(self.code).rstrip()
        self.code = []
        if not text.strip():
            return
        if self.lists:
            self._add_list_line(text)
        else:
            self._add_leaf(text)

    def _close_table(self) -> None:
        self.sink = Sink.PARAGRAPH
        lines: list[str] = []
        if self.table_header is not None:
            lines.append(_table_line(self.table_header))
            lines.append(_table_line(["---"] * len(self.table_header)))
        lines.extend(_table_line(row) for row in self.table_rows)
        self.table_header = None
        self.table_rows = []

        text = "\n".join(lines)
        if not text.strip():
            return
        if self.lists:
            self._add_list_line(text)
        else:
            self._add_leaf(text, label=table_label(self.chunk_index))

    def _close_image(self) -> None:
        self.sink = Sink.PARAGRAPH
        alt = "".join(self.image_alt).strip()
        dest = self.image_dest
        self.image_alt = []
        self.image_dest = ""
        markdown = f"![{alt}]({dest})"

        if self.image_inline:
            self.paragraph.append(markdown)
            return

        self._add_leaf(
            markdown,
            label=image_label(self.chunk_index),
            image_alt=alt or None,
            image_path=dest,
            image_id=dest.rsplit("/", 1)[-1],
        )

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _add_list_line(self, text: str) -> None:
        if self.item_marker is not None:
            prefix = self.item_indent + self.item_marker
            self.item_marker = None
        else:
            prefix = self.item_indent + "  "
        lines = text.split("\n")
        self.list_lines.append(prefix + lines[0])
        self.list_lines.extend(" " * len(prefix) + line for line in lines[1:])

    def _flush_list(self) -> None:
        text = "\n".join(self.list_lines)
        self.list_lines = []
        self.item_marker = None
        if text.strip():
            self._add_leaf(text)

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _add_leaf(self, text: str, *, label: str | None = None, **image_fields) -> None:
        leaf = LeafNode.create(
            text=text,
            chunk_index=self.chunk_index,
            parent_id=self.current_parent,
            parent_hierarchy=self.current_hierarchy,
            root_id=self.root_id,
            document_id=self.document_id,
            label=label,
            file_name=self.file_name,
            **image_fields,
        )
        self.tree.add_node(leaf)
        self.chunk_index += 1


def _table_line(cells: list[str]) -> str:
    return f"| {' | '.join(cells)} |"


class MarkdownTreeBuilder:
    """
    Builds one NodeTree per markdown document.

    Example:
        >>> tree = MarkdownTreeBuilder("d1").build("# T\\n## S\\npara text")
        >>> [leaf.hierarchy for leaf in tree.ordered_leaves()]
        [['Root', 'T', 'S', 'chunk_0_9']]
    """

    def __init__(self, document_id: str, file_name: str | None = None) -> None:
        self.document_id = document_id
        self.file_name = file_name

    def build(self, markdown: str) -> NodeTree:
        """Parse markdown and build its tree."""
        return self.build_from_events(parse_events(markdown))

    def build_from_events(self, events: Iterable[Event]) -> NodeTree:
        """Build a tree from an already-parsed event stream."""
        assembly = _TreeAssembly(self.document_id, self.file_name)
        for event in events:
            assembly.feed(event)
        tree = assembly.finish()

        counts = tree.counts()
        logger.info(
            f"Built tree for '{self.document_id}': "
            + ", ".join(f"{count} {node_type.value}" for node_type, count in counts.items())
        )
        return tree


def build_markdown_tree(
    markdown: str,
    document_id: str,
    file_name: str | None = None,
) -> NodeTree:
    """Build a NodeTree from markdown text."""
    return MarkdownTreeBuilder(document_id, file_name).build(markdown)
