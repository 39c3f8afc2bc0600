"""pdfchat CLI entry point."""

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated

import typer

from pdfchat.cli.ask import ask
from pdfchat.cli.ingest import ingest
from pdfchat.cli.init_db import init_db

app = typer.Typer(
    name="pdfchat",
    help="PDF chat - Ask questions answered from your ingested PDF documents by a local LLM.",
)

app.command(name="init-db")(init_db)
app.command(name="ingest")(ingest)
app.command(name="ask")(ask)


def _print_version(value: bool):
    if not value:
        return
    try:
        typer.echo(f"pdfchat {version('pdfchat')}")
    except PackageNotFoundError:
        typer.echo("pdfchat (not installed)")
    raise typer.Exit()


@app.callback()
def main(
    show_version: Annotated[
        bool,
        typer.Option("--version", callback=_print_version, is_eager=True, help="Show the version and exit"),
    ] = False,
):
    """Ingest PDFs into pgvector, then ask questions about them."""


if __name__ == "__main__":
    app()
