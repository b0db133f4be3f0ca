"""docvault CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from docvault.cli.ingest import ingest_cmd
from docvault.cli.remove import remove_cmd
from docvault.cli.search import search_cmd
from docvault.cli.usage import usage_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("docvault")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"docvault {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="docvault",
    help=(
        "docvault: document ingestion and semantic search.\n\n"
        "  docvault ingest  Extract, chunk, embed, and index files.\n"
        "  docvault search  Rank indexed documents against a query."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """docvault: document ingestion and semantic search."""


app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("remove")(remove_cmd)
app.command("usage")(usage_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed docvault version."""
    typer.echo(f"docvault {_installed_version()}")


if __name__ == "__main__":
    app()
