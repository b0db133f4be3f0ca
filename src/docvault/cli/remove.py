"""docvault remove: delete a document, its chunks, and its embeddings.

Usage:
  docvault remove --id 3f2c...
  docvault remove --id 3f2c... --yes --storage ./mirror
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from docvault.cli.errors import err_config, err_document_not_found, err_no_db
from docvault.cli.runtime import DEFAULT_DB, open_runtime
from docvault.config import ConfigError

console = Console()


def remove_cmd(
    doc_id: Annotated[
        str,
        typer.Option("--id", help="Document id to remove."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the index database."),
    ] = DEFAULT_DB,
    storage: Annotated[
        Optional[Path],
        typer.Option("--storage", help="Directory mirroring uploads; the stored copy is removed too."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a document and everything derived from it."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    try:
        with open_runtime(db, storage_root=storage) as rt:
            document = rt.store.get(doc_id)
            if document is None:
                console.print(err_document_not_found(doc_id))
                raise typer.Exit(0)

            chunk_count = len(rt.store.children(doc_id))
            console.print(f"\nRemove document: [bold]{document.name}[/]")
            console.print(
                f"  Chunks: {chunk_count}  |  Storage ref: {document.storage_ref or '-'}"
            )

            if not yes:
                if not typer.confirm("Confirm removal?", default=False):
                    console.print("[dim]Cancelled.[/]")
                    raise typer.Exit(0)

            removed = rt.store.delete(doc_id)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    console.print(f"\n[green]✓[/] Removed: {document.name}")
    console.print(f"  {removed} documents deleted (including chunks)")
