"""docvault usage: token consumption for one user."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from docvault.cli.errors import err_config, err_no_db
from docvault.cli.runtime import DEFAULT_DB, open_runtime
from docvault.config import ConfigError
from docvault.errors import LedgerError

console = Console()


def usage_cmd(
    user: Annotated[
        str,
        typer.Option("--user", help="User id (the owner key used when ingesting)."),
    ],
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", min=1, help="Token allowance (default from config)."),
    ] = None,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the index database."),
    ] = DEFAULT_DB,
) -> None:
    """Show token usage and remaining allowance for a user."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    try:
        with open_runtime(db) as rt:
            status = rt.ledger.check_limits(user, limit or rt.config.usage.token_limit)
            stats = rt.ledger.stats(user)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    except LedgerError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)

    colour = "red" if status.usage_percentage >= 90 else "yellow" if status.usage_percentage >= 70 else "green"
    console.print(f"\n[bold]{user}[/]")
    console.print(
        f"  Used: [{colour}]{status.used:,}[/] / {status.limit:,} tokens "
        f"({status.usage_percentage:.1f}%)  |  Remaining: {status.remaining:,}"
    )

    if stats.by_reason:
        table = Table(title="By operation", show_header=True, header_style="bold")
        table.add_column("Operation")
        table.add_column("Tokens", justify="right")
        for reason, tokens in stats.by_reason.items():
            table.add_row(reason, f"{tokens:,}")
        console.print(table)

    if stats.recent:
        table = Table(title="Recent", show_header=True, header_style="bold")
        table.add_column("When")
        table.add_column("Operation")
        table.add_column("Tokens", justify="right")
        for event in stats.recent:
            table.add_row(event.created_at or "", event.reason, f"{event.tokens:,}")
        console.print(table)
