"""CLI command for creating the chunk table."""

from typing import Annotated

import psycopg
import typer
from rich.console import Console

from config.settings import get_settings
from pdfchat.vectorstore.pgvector_store import TABLE_NAME, PgVectorStore

console = Console()
app = typer.Typer()


@app.command()
def init_db(
    dimension: Annotated[
        int | None,
        typer.Option("--dimension", "-d", help="Embedding vector width"),
    ] = None,
):
    """Create the pgvector extension and the document chunk table."""
    settings = get_settings()
    dimension = dimension or settings.pdfchat_embedding_dimension
    if dimension <= 0:
        console.print("[bold red]An embedding dimension > 0 is required.[/bold red]")
        raise typer.Exit(2)

    try:
        with PgVectorStore(settings.pdfchat_database_url) as store:
            store.create_schema(dimension)
    except psycopg.Error as e:
        console.print(f"[bold red]Storage unavailable:[/bold red] could not create {TABLE_NAME} ({e}).")
        raise typer.Exit(1)
    console.print(f"[bold green]Table {TABLE_NAME} ready[/bold green] (vector({dimension}))")
