"""CLI command for asking questions about ingested PDF documents."""

import logging
from typing import Annotated

import psycopg
import requests
import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from config.settings import get_settings
from pdfchat.exceptions import EmbeddingFailed, EmptyQuestion, NoWorkingEndpoint
from pdfchat.llm.config import get_embedding_client, get_generation_client
from pdfchat.retrieval.pipeline import NO_RELEVANT_EXCERPTS_MESSAGE, RetrievalPipeline
from pdfchat.vectorstore.pgvector_store import PgVectorStore

console = Console()
app = typer.Typer()

logger = logging.getLogger(__name__)


@app.command()
def ask(
    question: Annotated[
        str,
        typer.Argument(help="Your question about the ingested documents"),
    ],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Number of excerpts to ground the answer on"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Ask a question answered from the ingested PDF documents."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    session = requests.Session()
    store = PgVectorStore(settings.pdfchat_database_url)

    pipeline = RetrievalPipeline(
        store=store,
        embedder=get_embedding_client(settings, session=session),
        generator=get_generation_client(settings, session=session),
        top_k=top_k or settings.pdfchat_top_k,
        embed_attempts=settings.pdfchat_embed_attempts,
        embed_backoff=settings.pdfchat_embed_backoff,
        request_deadline=settings.pdfchat_request_deadline,
    )

    try:
        with console.status("[bold green]Thinking..."):
            answer = pipeline.answer(question)
    except EmptyQuestion:
        console.print("[bold red]A question is required.[/bold red]")
        raise typer.Exit(2)
    except EmbeddingFailed:
        console.print(
            "[bold red]Service unavailable:[/bold red] could not embed the question.\n"
            f"Check that the LLM service is running at {settings.pdfchat_llm_base_url} "
            f"and serves the '{settings.pdfchat_embedding_model}' model."
        )
        raise typer.Exit(3)
    except NoWorkingEndpoint:
        console.print(
            "[bold red]Service unavailable:[/bold red] no generation endpoint answered.\n"
            f"Check that the LLM service is running at {settings.pdfchat_llm_base_url} "
            f"and serves the '{settings.pdfchat_generation_model}' model."
        )
        raise typer.Exit(3)
    except psycopg.Error as e:
        logger.error("Storage error while answering: %s", e)
        console.print(
            "[bold red]Storage unavailable:[/bold red] could not search the chunk table.\n"
            "Check PDFCHAT_DATABASE_URL and run 'pdfchat init-db' first."
        )
        raise typer.Exit(1)
    finally:
        store.close()
        session.close()

    color = "yellow" if answer == NO_RELEVANT_EXCERPTS_MESSAGE else "green"
    header = Text()
    header.append("pdfchat", style="bold")
    header.append(f"  model: {settings.pdfchat_generation_model}", style="dim")

    console.print()
    console.print(Panel(answer or "No answer generated.", title=header, border_style=color, padding=(1, 2)))
