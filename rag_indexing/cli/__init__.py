"""
Command-Line Interface

CLI commands for rag-indexing.

Commands:
    rag-indexing tree    - Build and show the hierarchy tree of a markdown file
    rag-indexing chunk   - Token-budget chunking of a text file
    rag-indexing faq     - Parse and chunk an FAQ markdown file
    rag-indexing tokens  - Count tokens of a text
    rag-indexing index   - Embed a markdown tree's leaves and save it as JSON

Usage:
    # Show the tree of a document
    rag-indexing tree report.md

    # Chunk a text file (pages separated by form feeds) as JSON
    rag-indexing chunk book.txt --max-tokens 256 --json

    # FAQ chunks for a Qwen model
    rag-indexing faq FAQ.md --model qwen-max

Options default to IndexingConfig (environment variables and .env).
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from rag_indexing.config import IndexingConfig
from rag_indexing.exceptions import IndexingError, UnsupportedModelError
from rag_indexing.tree import NodeTree
from rag_indexing.types import IntermediateNode, Node, RootNode

__all__ = ["main", "app"]

app = typer.Typer(
    name="rag-indexing",
    help="Hierarchical document trees and token-budget chunking for RAG",
    no_args_is_help=True,
)
console = Console()

_PREVIEW_CHARS = 500


@app.callback()
def _configure(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
) -> None:
    """Hierarchical document trees and token-budget chunking for RAG."""
    load_dotenv()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/] {escape(message)}")
    raise typer.Exit(code=1)


def _node_label(node: Node) -> str:
    if isinstance(node, RootNode):
        file_info = f" [{node.metadata.file_name}]" if node.metadata.file_name else ""
        return f"[bold]ROOT {escape(node.document_id + file_info)}[/]"
    if isinstance(node, IntermediateNode):
        path = " > ".join(node.hierarchy)
        return f"[cyan]{escape(node.title)}[/] [dim]({escape(path)})[/]"

    label = escape(f"[{node.hierarchy[-1]}]")
    if node.is_image:
        alt = node.image_alt or "no description"
        return f"[magenta]{label}[/] {escape(f'[{alt}] {node.image_id} -> {node.image_path}')}"

    text = node.text
    if len(text) > _PREVIEW_CHARS:
        text = text[:_PREVIEW_CHARS] + "..."
    text = text.replace("\r", "").replace("\n", " ")
    return f"[green]{label}[/] {escape(text)}"


def render_tree(tree: NodeTree) -> Tree:
    """Build a rich Tree that mirrors the document tree."""
    branches: dict = {}
    rendered: Tree | None = None
    for _, node in tree.walk():
        if rendered is None:
            rendered = Tree(_node_label(node))
            branches[node.id] = rendered
            continue
        parent = branches[node.parent_id]
        branches[node.id] = parent.add(_node_label(node))
    assert rendered is not None
    return rendered


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


@app.command()
def tree(
    path: Path = typer.Argument(
        ...,
        help="Markdown file",
        exists=True,
        dir_okay=False,
    ),
    document_id: Optional[str] = typer.Option(
        None,
        "--document-id", "-d",
        help="Document ID (defaults to the file stem)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the tree as JSON",
    ),
) -> None:
    """Build and show the hierarchy tree of a markdown file."""
    from rag_indexing.ingestion.chunking.markdown import build_markdown_tree

    doc_tree = build_markdown_tree(_read(path), document_id or path.stem, path.name)

    if as_json:
        typer.echo(doc_tree.model_dump_json(indent=2))
        return

    console.print(render_tree(doc_tree))

    table = Table(title="Nodes")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for node_type, count in doc_tree.counts().items():
        table.add_row(node_type.value, str(count))
    table.add_row("total", str(len(doc_tree)))
    console.print(table)


@app.command()
def chunk(
    path: Path = typer.Argument(
        ...,
        help="Text file; pages are separated by form feed characters",
        exists=True,
        dir_okay=False,
    ),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens", "-t",
        help="Token budget per chunk",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Tokenizer model or alias",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print chunks as JSON",
    ),
) -> None:
    """Token-budget chunking of a text file."""
    from rag_indexing.ingestion.chunking.recursive import RecursiveChunker

    config = IndexingConfig()
    try:
        chunker = RecursiveChunker.from_config(
            config.with_overrides(
                max_tokens=config.max_tokens if max_tokens is None else max_tokens,
                tokenizer_model=model or config.tokenizer_model,
            )
        )
    except (UnsupportedModelError, ValueError) as e:
        _fail(str(e))

    pages = list(enumerate(_read(path).split("\f"), start=1))
    chunks = chunker.chunk(pages)

    if as_json:
        typer.echo(json.dumps([c.model_dump(mode="json") for c in chunks], ensure_ascii=False, indent=2))
        return

    table = Table(title=f"{len(chunks)} chunks ({chunker.model}, max {chunker.max_tokens} tokens)")
    table.add_column("#", justify="right")
    table.add_column("Page", justify="right")
    table.add_column("Tokens", justify="right", style="green")
    table.add_column("Bytes", style="dim")
    table.add_column("Content")
    for c in chunks:
        preview = c.content if len(c.content) <= 80 else c.content[:80] + "..."
        table.add_row(
            str(c.chunk_index),
            str(c.page_number),
            str(c.token_count),
            f"{c.char_range[0]}..{c.char_range[1]}",
            escape(preview),
        )
    console.print(table)


@app.command()
def faq(
    path: Path = typer.Argument(
        ...,
        help="FAQ markdown file",
        exists=True,
        dir_okay=False,
    ),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens", "-t",
        help="Token budget per chunk",
    ),
    overlap: Optional[int] = typer.Option(
        None,
        "--overlap", "-o",
        help="Units repeated between chunks of a split entry",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Tokenizer model or alias",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print chunks as JSON",
    ),
) -> None:
    """Parse and chunk an FAQ markdown file."""
    from rag_indexing.ingestion.chunking.faq import FAQChunker, parse_faq_markdown

    config = IndexingConfig()
    try:
        chunker = FAQChunker.from_config(
            config.with_overrides(
                faq_max_tokens=config.faq_max_tokens if max_tokens is None else max_tokens,
                faq_overlap=config.faq_overlap if overlap is None else overlap,
                tokenizer_model=model or config.tokenizer_model,
            )
        )
    except (UnsupportedModelError, ValueError) as e:
        _fail(str(e))

    entries = parse_faq_markdown(_read(path))
    chunks = chunker.chunk_by_qa(entries)

    if as_json:
        typer.echo(json.dumps([c.model_dump(mode="json") for c in chunks], ensure_ascii=False, indent=2))
        return

    console.print(f"Parsed {len(entries)} entries into {len(chunks)} chunks\n")
    for c in chunks:
        tags = f"\nTags: {', '.join(c.tags)}" if c.tags else ""
        console.print(Panel(
            escape(c.content + tags),
            title=escape(c.chunk_id),
            subtitle=f"{escape(c.category)} | {c.token_count} tokens",
        ))


@app.command()
def tokens(
    text: str = typer.Argument(
        ...,
        help="Text to count",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Tokenizer model or alias",
    ),
) -> None:
    """Count tokens of a text."""
    from rag_indexing.utils.token_count import get_tokenizer_service, normalize_model_name

    model = model or IndexingConfig().tokenizer_model
    try:
        count = get_tokenizer_service().count_tokens(text, model)
    except UnsupportedModelError as e:
        _fail(str(e))

    console.print(f"{count} tokens ({model} -> {normalize_model_name(model)})")


@app.command()
def index(
    path: Path = typer.Argument(
        ...,
        help="Markdown file",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Where to write the embedded tree as JSON",
    ),
    document_id: Optional[str] = typer.Option(
        None,
        "--document-id", "-d",
        help="Document ID (defaults to the file stem)",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size", "-b",
        help="Texts per embedding API call",
    ),
) -> None:
    """Embed a markdown tree's leaves and save the tree as JSON."""
    from rag_indexing.ingestion.assembly.indexer import TreeIndexer
    from rag_indexing.ingestion.chunking.markdown import build_markdown_tree
    from rag_indexing.providers.embedding.openai import OpenAIEmbeddingProvider

    config = IndexingConfig()
    doc_tree = build_markdown_tree(_read(path), document_id or path.stem, path.name)
    indexer = TreeIndexer(
        OpenAIEmbeddingProvider.from_config(config),
        batch_size=batch_size or config.embedding_batch_size,
    )

    try:
        result = asyncio.run(indexer.index(doc_tree))
    except IndexingError as e:
        _fail(e.message)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(doc_tree.model_dump_json(), encoding="utf-8")

    console.print(Panel(
        f"[green]Indexed {escape(path.name)}[/]\n\n"
        f"  Document ID: {escape(result.document_id)}\n"
        f"  Leaves: {result.leaves_total}\n"
        f"  Embedded: {result.leaves_embedded}\n"
        f"  Output: {escape(str(output))}",
        title="Indexing Complete",
    ))


def main() -> None:
    """Entry point for the CLI."""
    app()
