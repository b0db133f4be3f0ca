"""docvault ingest: extract, embed, and index uploaded files.

Usage:
  docvault ingest --file report.pdf --owner ana@example.com
  docvault ingest -f a.docx -f b.xlsx --owner ana@example.com --folder contracts --storage ./mirror
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from docvault.cli.errors import err_config, err_file_not_found, warn_mock_embeddings
from docvault.cli.runtime import DEFAULT_DB, Runtime, open_runtime
from docvault.config import ConfigError
from docvault.db.models import Folder
from docvault.embedding.generator import missing_api_key
from docvault.extract.base import UploadedFile
from docvault.ingest.orchestrator import FAILED, BatchSummary

console = Console()


def ingest_cmd(
    file: Annotated[
        list[Path],
        typer.Option("--file", "-f", help="File to ingest (repeatable)."),
    ],
    owner: Annotated[
        str,
        typer.Option("--owner", help="Owner key the documents are indexed under."),
    ],
    folder: Annotated[
        Optional[str],
        typer.Option("--folder", help="Local folder id to file the documents in."),
    ] = None,
    category: Annotated[
        Optional[str],
        typer.Option("--category", help="Category label used by search filters."),
    ] = None,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the index database (created if missing)."),
    ] = DEFAULT_DB,
    storage: Annotated[
        Optional[Path],
        typer.Option("--storage", help="Directory mirroring uploads (folder = sub-directory)."),
    ] = None,
) -> None:
    """Ingest one or more files into the document index."""
    missing = [p for p in file if not p.is_file()]
    if missing:
        for p in missing:
            console.print(err_file_not_found(str(p)))
        raise typer.Exit(1)

    try:
        with open_runtime(db, storage_root=storage) as rt:
            env_var = missing_api_key(rt.config.embedding.model)
            if env_var:
                console.print(warn_mock_embeddings(rt.config.embedding.model, env_var))
            if folder is not None and rt.storage is not None:
                _ensure_folder(rt, folder, owner)
            summary = _run(rt, file, owner, folder, category)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    _print_summary(summary)
    if summary.failed:
        raise typer.Exit(1)


def _ensure_folder(rt: Runtime, folder_id: str, owner: str) -> None:
    """Register *folder_id* mirrored to a storage sub-directory of the same name."""
    if rt.store.folder(folder_id) is None:
        rt.store.add_folder(
            Folder(id=folder_id, owner=owner, name=folder_id, storage_folder_id=folder_id)
        )


def _run(
    rt: Runtime,
    paths: list[Path],
    owner: str,
    folder: str | None,
    category: str | None,
) -> BatchSummary:
    uploads = (UploadedFile.from_path(p) for p in paths)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        transient=True,
        console=console,
    ) as prog:
        tasks: dict[str, int] = {}

        def _on_progress(name: str, value: int | str) -> None:
            if name not in tasks:
                tasks[name] = prog.add_task(name, total=100)
            if value == FAILED:
                prog.update(tasks[name], description=f"[red]{name}[/]")
            else:
                prog.update(tasks[name], completed=value)

        return rt.orchestrator().ingest_batch(
            uploads, owner, folder_id=folder, category=category, progress_cb=_on_progress
        )


def _print_summary(summary: BatchSummary) -> None:
    for result in summary.results:
        if result.ok:
            detail = (
                f"{result.chunks_created} chunks"
                + (f", [yellow]{result.chunks_failed} failed[/]" if result.chunks_failed else "")
                if result.is_chunked
                else "single document"
            )
            mock = " [yellow](mock embedding)[/]" if result.embedding_source == "mock" else ""
            console.print(f"  [green]✓[/] {result.file_name}: {detail}{mock}")
            console.print(f"    [dim]id {result.document_id}[/]")
        else:
            console.print(f"  [red]✗[/] {result.file_name}: {result.reason}")
    console.print(
        f"\n[bold]{summary.succeeded}[/] ingested, "
        f"[bold]{summary.failed}[/] failed"
    )
