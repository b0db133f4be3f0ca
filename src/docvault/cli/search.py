"""docvault search: semantic search over an owner's documents."""

from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docvault.cli.errors import err_config, err_no_db, warn_degraded_search
from docvault.cli.runtime import DEFAULT_DB, open_runtime
from docvault.config import ConfigError

console = Console()

_MARK_RE = re.compile(r"<mark>(.*?)</mark>")


def search_cmd(
    query: Annotated[str, typer.Argument(help="Free-text query.")],
    owner: Annotated[
        str,
        typer.Option("--owner", help="Owner whose documents are searched."),
    ],
    top_k: Annotated[
        Optional[int],
        typer.Option("--top-k", "-k", min=1, help="Maximum results (default from config)."),
    ] = None,
    domain: Annotated[
        Optional[str],
        typer.Option("--domain", help="Only search documents with this category."),
    ] = None,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the index database."),
    ] = DEFAULT_DB,
) -> None:
    """Rank indexed documents by similarity to QUERY."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    try:
        with open_runtime(db) as rt:
            response = rt.search_engine().query(
                query,
                owner,
                top_k=top_k or rt.config.search.top_k,
                domain_filter=domain,
                user_id=owner,
            )
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    if response.degraded:
        console.print(warn_degraded_search())
    if not response.results:
        console.print("[dim]No results.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Document")
    table.add_column("Snippet")
    for rank, result in enumerate(response.results, start=1):
        doc = result.document
        table.add_row(
            str(rank),
            f"{result.similarity:.3f}",
            f"{escape(doc.name)}\n[dim]{doc.id}[/]",
            _render_snippet(result.snippet),
        )
    console.print(table)


def _render_snippet(snippet: str) -> str:
    """Turn ``<mark>`` highlights into rich markup."""
    parts: list[str] = []
    pos = 0
    for match in _MARK_RE.finditer(snippet):
        parts.append(escape(html.unescape(snippet[pos : match.start()])))
        parts.append(f"[bold yellow]{escape(html.unescape(match.group(1)))}[/]")
        pos = match.end()
    parts.append(escape(html.unescape(snippet[pos:])))
    return "".join(parts)
