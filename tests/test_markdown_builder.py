"""Tests for the markdown tree builder."""

from rag_indexing.ingestion.chunking.markdown import (
    MarkdownTreeBuilder,
    Sink,
    build_markdown_tree,
)
from rag_indexing.ingestion.chunking.markdown_events import End, Start, Tag, Text
from rag_indexing.types import IntermediateNode, LeafNode, NodeType, RootNode


def _leaves(markdown: str) -> list[LeafNode]:
    return build_markdown_tree(markdown, "d1").ordered_leaves()


def _outline(tree) -> list[tuple[int, str]]:
    """(depth, title or text) for every node, structure only."""
    rows = []
    for depth, node in tree.walk():
        if isinstance(node, RootNode):
            rows.append((depth, node.document_id))
        elif isinstance(node, IntermediateNode):
            rows.append((depth, node.title))
        else:
            rows.append((depth, node.text))
    return rows


class TestHeadings:
    """Test heading hierarchy."""

    def test_basic_scenario(self):
        """Root -> T -> S -> leaf with the expected hierarchy path."""
        tree = build_markdown_tree("# T\n## S\npara text", "d1")

        root = tree.root_node
        assert root.document_id == "d1"

        (t,) = tree.children(root.id)
        assert isinstance(t, IntermediateNode) and t.title == "T"
        (s,) = tree.children(t.id)
        assert isinstance(s, IntermediateNode) and s.title == "S"
        (leaf,) = tree.children(s.id)
        assert isinstance(leaf, LeafNode)
        assert leaf.text == "para text"
        assert leaf.hierarchy == ["Root", "T", "S", "chunk_0_9"]
        assert leaf.metadata.chunk_size == 9

    def test_sibling_headings(self):
        """Headings of the same level become siblings."""
        tree = build_markdown_tree("# A\ntext a\n# B\ntext b", "d1")

        assert _outline(tree) == [
            (0, "d1"),
            (1, "A"),
            (2, "text a"),
            (1, "B"),
            (2, "text b"),
        ]

    def test_level_skip_and_return(self):
        """A skipped level nests under the nearest heading; a shallower one pops back."""
        tree = build_markdown_tree("# A\n### C\nc text\n## B\nb text", "d1")

        assert _outline(tree) == [
            (0, "d1"),
            (1, "A"),
            (2, "C"),
            (3, "c text"),
            (2, "B"),
            (3, "b text"),
        ]
        b = next(n for n in tree.intermediate_nodes() if n.title == "B")
        assert b.hierarchy == ["Root", "A", "B"]

    def test_empty_heading_skipped(self):
        """A heading with no text creates no node."""
        tree = build_markdown_tree("# A\n#\ntext", "d1")

        assert tree.counts()[NodeType.INTERMEDIATE] == 1
        assert tree.ordered_leaves()[0].hierarchy == ["Root", "A", "chunk_0_4"]

    def test_content_before_first_heading(self):
        """Leading paragraphs hang off the root."""
        (leaf,) = _leaves("intro")
        assert leaf.hierarchy == ["Root", "chunk_0_5"]

    def test_inline_code_in_title_is_bare(self):
        """Inline code in a heading contributes plain text."""
        tree = build_markdown_tree("# The `api` module", "d1")
        assert tree.intermediate_nodes()[0].title == "The api module"


class TestLeaves:
    """Test leaf content."""

    def test_chunk_index_is_global(self):
        """The chunk index advances once per leaf across sections."""
        leaves = _leaves("one\n\n# A\ntwo\n\n## B\nthree")
        assert [leaf.hierarchy[-1] for leaf in leaves] == ["chunk_0_3", "chunk_1_3", "chunk_2_5"]

    def test_chunk_size_counts_utf8_bytes(self):
        """chunk_size is the UTF-8 byte length of the text."""
        (leaf,) = _leaves("你好")
        assert leaf.metadata.chunk_size == 6
        assert leaf.hierarchy[-1] == "chunk_0_6"

    def test_soft_and_hard_breaks(self):
        """Soft breaks join with a space, hard breaks keep a newline."""
        assert _leaves("line one\nline two")[0].text == "line one line two"
        assert _leaves("line one  \nline two")[0].text == "line one\nline two"

    def test_inline_code_in_paragraph(self):
        """Inline code keeps its backticks in paragraphs."""
        assert _leaves("Run `make` first")[0].text == "Run `make` first"

    def test_code_block(self):
        """Code blocks become one leaf without the trailing newline."""
        (leaf,) = _leaves("```python\nprint(1)\nprint(2)\n```\n")
        assert leaf.text == "print(1)\nprint(2)"
        assert leaf.hierarchy[-1].startswith("chunk_0_")

    def test_table(self):
        """Tables are rebuilt as markdown with a divider row."""
        (leaf,) = _leaves("# Data\n| a | b |\n|---|---|\n| 1 | 2 |\n| 3 | `x` |\n")

        assert leaf.text == "| a | b |\n| --- | --- |\n| 1 | 2 |\n| 3 | `x` |"
        assert leaf.hierarchy == ["Root", "Data", "table_0"]
        assert leaf.metadata.chunk_size == len(leaf.text.encode("utf-8"))

    def test_list_is_one_leaf(self):
        """A whole list becomes one leaf with one line per item."""
        (leaf,) = _leaves("- one\n- two\n  - nested\n- three\n")
        assert leaf.text == "- one\n- two\n  - nested\n- three"

    def test_ordered_list_numbers(self):
        """Ordered lists keep their numbering."""
        (leaf,) = _leaves("3. c\n4. d\n")
        assert leaf.text == "3. c\n4. d"

    def test_table_in_list_joins_list_leaf(self):
        """A table inside a list item stays in the list's leaf, in order."""
        leaves = _leaves("- first item\n\n  | a | b |\n  |---|---|\n  | 1 | 2 |\n- second item\n")

        assert [leaf.text for leaf in leaves] == [
            "- first item\n  | a | b |\n  | --- | --- |\n  | 1 | 2 |\n- second item"
        ]
        assert leaves[0].hierarchy[-1].startswith("chunk_0_")

    def test_heading_in_list_is_list_text(self):
        """A heading inside a list item neither opens a section nor closes one."""
        tree = build_markdown_tree("# Top\n- item one\n- # H\n- item three\n\nafter", "d1")

        assert [node.title for node in tree.intermediate_nodes()] == ["Top"]
        assert [(leaf.text, leaf.hierarchy[:-1]) for leaf in tree.ordered_leaves()] == [
            ("- item one\n- # H\n- item three", ["Root", "Top"]),
            ("after", ["Root", "Top"]),
        ]

    def test_block_quote_paragraphs(self):
        """Quoted paragraphs are ordinary leaves."""
        assert [leaf.text for leaf in _leaves("> quoted\n\nafter")] == ["quoted", "after"]


class TestImages:
    """Test image leaves."""

    def test_image_leaf(self):
        """A standalone image becomes an image leaf."""
        (leaf,) = _leaves("# Charts\n![AI chips](/docs/imgs/ai_chips_3.jpg)")

        assert leaf.text == "![AI chips](/docs/imgs/ai_chips_3.jpg)"
        assert leaf.hierarchy == ["Root", "Charts", "img_0"]
        assert leaf.image_alt == "AI chips"
        assert leaf.image_path == "/docs/imgs/ai_chips_3.jpg"
        assert leaf.image_id == "ai_chips_3.jpg"
        assert leaf.is_image

    def test_empty_alt(self):
        """An empty alt text is stored as None."""
        (leaf,) = _leaves("![](pic.png)")
        assert leaf.image_alt is None
        assert leaf.image_id == "pic.png"

    def test_text_around_image_is_kept(self):
        """Text before and after an image stays in document order."""
        leaves = _leaves("See chart ![c](a/b.png) for details")

        assert [leaf.text for leaf in leaves] == ["See chart", "![c](a/b.png)", "for details"]
        assert [leaf.hierarchy[-1] for leaf in leaves] == ["chunk_0_9", "img_1", "chunk_2_11"]

    def test_image_in_heading_is_title_text(self):
        """Images inside headings only contribute their alt text."""
        tree = build_markdown_tree("# Logo ![icon](i.png)\ntext", "d1")

        assert tree.intermediate_nodes()[0].title == "Logo icon"
        assert not any(leaf.is_image for leaf in tree.ordered_leaves())

    def test_image_in_table_cell_is_cell_text(self):
        """Images inside table cells only contribute their alt text."""
        (leaf,) = _leaves("| pic |\n|---|\n| ![cat](c.png) |\n")
        assert leaf.text == "| pic |\n| --- |\n| cat |"


class TestBuilder:
    """Test builder-level behavior."""

    def test_metadata(self):
        """document_id and file_name propagate to nodes."""
        tree = MarkdownTreeBuilder("doc-9", file_name="guide.md").build("# A\nbody")

        for _, node in tree.walk():
            assert node.metadata.document_id == "doc-9"
            assert node.metadata.file_name == "guide.md"
            assert node.root_id == tree.root

    def test_idempotent_up_to_ids(self):
        """Building twice gives the same structure."""
        markdown = "# A\nx\n\n| h |\n|---|\n| v |\n\n## B\n- i\n- j\n\n![p](q/r.png)\n"
        first = build_markdown_tree(markdown, "d1")
        second = build_markdown_tree(markdown, "d1")

        assert _outline(first) == _outline(second)
        assert [leaf.hierarchy for leaf in first.ordered_leaves()] == [
            leaf.hierarchy for leaf in second.ordered_leaves()
        ]
        assert first.root != second.root

    def test_pending_paragraph_flushed_at_end(self):
        """A paragraph left open at end of input still becomes a leaf."""
        events = [
            Start(Tag.HEADING, level=1),
            Text("A"),
            End(Tag.HEADING),
            Start(Tag.PARAGRAPH),
            Text("unterminated"),
        ]
        tree = MarkdownTreeBuilder("d1").build_from_events(events)

        (leaf,) = tree.ordered_leaves()
        assert leaf.text == "unterminated"
        assert leaf.hierarchy == ["Root", "A", "chunk_0_12"]

    def test_empty_document(self):
        """Empty markdown yields just the root."""
        tree = build_markdown_tree("", "d1")
        assert len(tree) == 1

    def test_sink_values(self):
        """The builder has exactly one sink per content kind."""
        assert {s.value for s in Sink} == {"heading", "code", "table", "image", "paragraph"}
