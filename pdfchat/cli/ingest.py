"""CLI command for PDF document ingestion."""

import logging
from pathlib import Path
from typing import Annotated

import psycopg
import typer
from pypdf.errors import PdfReadError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from config.settings import get_settings
from pdfchat.exceptions import EmbeddingDimensionMismatch
from pdfchat.ingestion.pipeline import IngestionPipeline
from pdfchat.llm.config import get_embedding_client
from pdfchat.vectorstore.pgvector_store import PgVectorStore

console = Console()
app = typer.Typer()

logger = logging.getLogger(__name__)


@app.command()
def ingest(
    files: Annotated[
        list[Path],
        typer.Argument(help="PDF files to ingest", exists=True, dir_okay=False, readable=True),
    ],
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Chunk window size in characters"),
    ] = None,
    chunk_overlap: Annotated[
        int | None,
        typer.Option("--chunk-overlap", help="Overlap between chunks in characters"),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-w", help="Parallel embedding calls"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Ingest PDF files into the chunk store."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    chunk_size = chunk_size or settings.pdfchat_chunk_size
    chunk_overlap = settings.pdfchat_chunk_overlap if chunk_overlap is None else chunk_overlap
    if chunk_size <= 0 or not 0 <= chunk_overlap < chunk_size:
        console.print(
            f"[bold red]Invalid chunking:[/bold red] need chunk size > 0 and "
            f"0 <= overlap < size (got size={chunk_size}, overlap={chunk_overlap})."
        )
        raise typer.Exit(2)

    console.print("[bold]pdfchat Ingestion[/bold]")
    console.print(f"Files: {len(files)}")
    console.print(f"Chunk size: {chunk_size} chars, overlap: {chunk_overlap} chars")
    console.print()

    results = []
    unreadable = []
    with PgVectorStore(settings.pdfchat_database_url) as store:
        pipeline = IngestionPipeline(
            store=store,
            embedder=get_embedding_client(settings),
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            expected_dimension=settings.pdfchat_embedding_dimension,
            embedding_workers=workers or settings.pdfchat_embedding_workers,
        )

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Ingesting documents...", total=len(files))
                for path in files:
                    progress.update(task, description=f"Ingesting {path.name}...")
                    try:
                        results.append(pipeline.ingest(path.name, path.read_bytes()))
                    except PdfReadError as e:
                        logger.warning("Could not read %s as PDF: %s", path, e)
                        console.print(f"[bold yellow]Skipped {path.name}:[/bold yellow] not a readable PDF ({e})")
                        unreadable.append(path.name)
                    progress.advance(task)
            total = store.count()
        except EmbeddingDimensionMismatch as e:
            console.print(
                f"[bold red]Ingestion aborted:[/bold red] {e}.\n"
                f"The '{settings.pdfchat_embedding_model}' model does not match the "
                "storage column width (PDFCHAT_EMBEDDING_DIMENSION)."
            )
            raise typer.Exit(1)
        except psycopg.Error as e:
            logger.error("Storage error during ingestion: %s", e)
            console.print(
                "[bold red]Storage unavailable:[/bold red] could not write to the chunk table.\n"
                "Check PDFCHAT_DATABASE_URL and run 'pdfchat init-db' first."
            )
            raise typer.Exit(1)

    console.print()
    console.print("[bold green]Ingestion complete![/bold green]")
    for result in results:
        console.print(f"  {result['source_name']}:")
        console.print(f"    Chunks created: {result['chunks_created']}")
        console.print(f"    Embeddings stored: {result['embeddings_stored']}")
        console.print(f"    Embeddings missing: {result['embeddings_missing']}")
        console.print(f"    Embeddings rejected: {result['embeddings_rejected']}")
    console.print(f"  Total in store: {total} chunks")

    if unreadable:
        console.print(f"[bold red]{len(unreadable)} file(s) could not be read:[/bold red] {', '.join(unreadable)}")
        raise typer.Exit(1)
