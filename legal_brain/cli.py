"""
Command-line interface for the Legal Brain.

Provides commands for document ingestion, semantic search, chunk
previews and index management.

Usage:
    legal-brain ingest <file_or_directory>
    legal-brain search "break clause notice period"
    legal-brain chunk lease.pdf
    legal-brain info
    legal-brain delete <doc_id>
    legal-brain clear --confirm
"""

import logging
from pathlib import Path

import click

from .config import AppConfig, DEFAULT_CONFIG_PATH, set_config
from .errors import LegalBrainError
from .ingestion.chunking.chunk_manager import ChunkManager
from .ingestion.document_manager import DocumentManager
from .ingestion.knowledge_base import KnowledgeBase
from .utils.logger import get_logger, set_global_level

logger = get_logger(__name__)


def _create_kb(ctx) -> KnowledgeBase:
    """Create a KnowledgeBase from the configuration on the context."""
    return KnowledgeBase(config=ctx.obj["config"])


def _describe_error(error: LegalBrainError) -> str:
    context = [
        f"{name}={value}"
        for name, value in (
            ("stage", error.stage),
            ("document", error.document_id),
            ("chunk", error.chunk_index),
        )
        if value is not None
    ]
    suffix = f" ({', '.join(context)})" if context else ""
    return f"{error}{suffix}"


@click.group()
@click.option(
    "--config", "config_path",
    default=str(DEFAULT_CONFIG_PATH),
    help="Path to the YAML configuration file.",
    show_default=True,
)
@click.option(
    "--index", "-i",
    default=None,
    help="Path to the FAISS index (overrides storage.index_path).",
)
@click.option(
    "--model", "-m",
    default=None,
    help="Sentence-transformer model for embeddings (overrides embedding.model_name).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, config_path, index, model, verbose):
    """Legal Brain: document ingestion and semantic retrieval.

    Ingest leases, contracts and other documents (.pdf, .txt, .md),
    build a vector index, and search with natural language queries.
    """
    if verbose:
        set_global_level(logging.DEBUG)

    config = AppConfig.from_yaml(config_path)
    if index:
        config.storage.index_path = index
    if model:
        config.embedding.model_name = model
    set_config(config)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--document-id", "-d", default=None,
              help="Document ID to store chunks under (single files only).")
@click.option("--pages/--no-pages", default=None,
              help="Force page-marker detection on or off.")
@click.option("--type", "-t", "document_type", default=None,
              help="Document type to tag the chunks with (e.g. lease).")
@click.pass_context
def ingest(ctx, path, document_id, pages, document_type):
    """Ingest a document or directory of documents.

    Parses the file(s), chunks the content, generates embeddings,
    and stores them in the vector index.

    \b
    Examples:
        legal-brain ingest lease.pdf
        legal-brain ingest ./contracts/
        legal-brain ingest notes.txt --document-id lease-2024
        legal-brain ingest ./leases/ --type lease
    """
    kb = _create_kb(ctx)
    path = Path(path)

    if path.is_file():
        files = [path]
    else:
        click.echo(f"Scanning directory: {path}")
        click.echo(f"Supported formats: {', '.join(kb.supported_formats)}")
        files = kb.find_documents(path)
        document_id = None

    failed = 0
    for file_path in files:
        click.echo(f"Ingesting: {file_path.name}")
        try:
            result = kb.ingest_file(
                file_path, document_id=document_id, detect_pages=pages, document_type=document_type,
            )
        except LegalBrainError as e:
            failed += 1
            click.echo(click.style(f"  ✗ {_describe_error(e)}", fg="red"))
            continue
        except ValueError as e:
            failed += 1
            click.echo(click.style(f"  ✗ {e}", fg="red"))
            continue

        click.echo(click.style(
            f"  ✓ {result.chunk_count} chunks, {result.token_usage} tokens "
            f"[{result.document_id}]", fg="green"
        ))

    click.echo(f"\nIndex size: {kb.size} chunks ({len(kb.document_ids)} documents)")
    if failed:
        raise SystemExit(1)


@cli.command()
@click.argument("query")
@click.option("--top-k", "-k", default=None, type=int,
              help="Number of results to return (default: retrieval.top_k).")
@click.option("--min-score", default=None, type=float,
              help="Drop results scoring below this.")
@click.option("--document", "-d", "document_ids", multiple=True,
              help="Only search this document ID (repeatable).")
@click.option("--type", "-t", "document_types", multiple=True,
              help="Only search documents of this type (repeatable).")
@click.option("--show-content/--no-content", default=True,
              help="Show chunk content in results.")
@click.pass_context
def search(ctx, query, top_k, min_score, document_ids, document_types, show_content):
    """Search the knowledge base with a natural language query.

    \b
    Examples:
        legal-brain search "When can the tenant break the lease?"
        legal-brain search "repair obligations" --top-k 10
        legal-brain search "rent review" --type lease
    """
    kb = _create_kb(ctx)

    if kb.size == 0:
        click.echo(click.style(
            "Index is empty. Ingest some documents first: "
            "legal-brain ingest <path>", fg="yellow"
        ))
        raise SystemExit(1)

    try:
        results = kb.search(
            query,
            top_k=top_k,
            min_score=min_score,
            document_ids=document_ids or None,
            document_types=document_types or None,
        )
    except LegalBrainError as e:
        click.echo(click.style(f"Search failed: {_describe_error(e)}", fg="red"))
        raise SystemExit(1)

    if not results:
        click.echo(click.style("No results found.", fg="yellow"))
        return

    for result in results:
        chunk = result.chunk
        score_colour = "green" if result.score > 0.5 else "yellow" if result.score > 0.3 else "red"

        click.echo(click.style(
            f"[{result.rank}] Score: {result.score:.4f}", fg=score_colour, bold=True
        ))
        click.echo(f"    Document: {result.document_id}")
        if result.document_type:
            click.echo(f"    Type: {result.document_type}")
        if chunk.page_number:
            click.echo(f"    Page: {chunk.page_number}")
        click.echo(f"    Chunk: {chunk.index}")

        if show_content:
            # Truncate long content for display
            content = chunk.content.strip()
            if len(content) > 300:
                content = content[:300] + "..."
            click.echo(f"    Content: {content}")
        click.echo()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pages/--no-pages", default=None,
              help="Force page-marker detection on or off.")
@click.option("--show-content/--no-content", default=False,
              help="Print each chunk's content.")
@click.pass_context
def chunk(ctx, path, pages, show_content):
    """Preview how a document would be chunked (no embedding).

    \b
    Examples:
        legal-brain chunk lease.pdf
        legal-brain chunk notes.txt --pages --show-content
    """
    config = ctx.obj["config"]
    parsed = DocumentManager().parse_document(Path(path))
    if pages is None:
        pages = parsed.has_page_markers or config.chunking.detect_pages

    manager = ChunkManager.from_config(config.chunking)
    try:
        chunks = manager.chunk_text(parsed.text, detect_pages=pages)
    except LegalBrainError as e:
        click.echo(click.style(f"Chunking failed: {_describe_error(e)}", fg="red"))
        raise SystemExit(1)

    click.echo(click.style(f"Chunks for {Path(path).name}: {len(chunks)}", bold=True))
    click.echo(f"{'Index':>5} {'Page':>5} {'Start':>8} {'End':>8} {'Tokens':>7}")
    click.echo("─" * 37)
    for c in chunks:
        page = str(c.page_number) if c.page_number is not None else "-"
        click.echo(f"{c.index:>5} {page:>5} {c.char_start:>8} {c.char_end:>8} {c.token_count:>7}")
        if show_content:
            click.echo(f"      {c.content[:200]}")


@cli.command()
@click.pass_context
def info(ctx):
    """Show index statistics and document inventory."""
    config = ctx.obj["config"]
    kb = _create_kb(ctx)

    click.echo(click.style("Legal Brain Info", bold=True))
    click.echo(f"  Index path:    {config.storage.index_path}")
    click.echo(f"  Model:         {config.embedding.model_name}")
    click.echo(f"  Target tokens: {config.chunking.target_tokens}")
    click.echo(f"  Max tokens:    {config.chunking.max_tokens}")
    click.echo(f"  Overlap:       {config.chunking.overlap_tokens}")
    click.echo(f"  Total chunks:  {kb.size}")
    click.echo(f"  Documents:     {len(kb.document_ids)}")
    click.echo(f"  Supported:     {', '.join(kb.supported_formats)}")

    if kb.document_ids:
        click.echo(click.style("\nDocuments:", bold=True))
        for doc_id in kb.document_ids:
            chunks = kb.get_document_chunks(doc_id)
            pages = {c.page_number for c in chunks if c.page_number is not None}
            page_info = f", {len(pages)} pages" if pages else ""
            click.echo(f"  [{doc_id}] {len(chunks)} chunks{page_info}")


@cli.command("delete")
@click.argument("doc_id")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete_doc(ctx, doc_id, confirm):
    """Delete a document from the index by its ID.

    Use 'info' command to see document IDs.
    """
    kb = _create_kb(ctx)

    if not confirm:
        click.confirm(f"Delete document {doc_id}?", abort=True)

    deleted = kb.delete_document(doc_id)
    if deleted > 0:
        click.echo(click.style(f"Deleted {deleted} chunks.", fg="green"))
    else:
        click.echo(click.style(f"No document found with ID: {doc_id}", fg="yellow"))


@cli.command()
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def clear(ctx, confirm):
    """Clear the entire index."""
    kb = _create_kb(ctx)

    if not confirm:
        click.confirm("Remove every document from the index?", abort=True)

    size_before = kb.size
    kb.clear()
    kb.save()
    click.echo(click.style(
        f"Index cleared. Removed {size_before} chunks.", fg="green"
    ))


if __name__ == "__main__":
    cli()
