"""docvault rich error messages: what went wrong and how to fix it.

Usage:
    from docvault.cli.errors import err_no_db
    console.print(err_no_db("docvault.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_db(db_path: str = "docvault.db") -> str:
    """No index database at *db_path*."""
    return (
        f"[red]Error:[/] No index database found at '{db_path}'.\n"
        "  Run:  docvault ingest --file <path> --owner <owner>"
    )


def err_file_not_found(path: str) -> str:
    return f"[red]Error:[/] File not found: '{path}'"


def err_document_not_found(doc_id: str) -> str:
    return (
        f"[yellow]Document not found:[/] '{doc_id}' is not in the index.\n"
        "  Run:  docvault search <query> --owner <owner>  to find document ids."
    )


def err_config(message: str) -> str:
    """Config file failed validation."""
    return f"[red]Config error:[/] {message}"


def warn_mock_embeddings(model: str, env_var: str) -> str:
    """No API key: ingest/search will run on mock vectors."""
    return (
        f"[yellow]Warning:[/] No API key for '{model}'; using mock embeddings.\n"
        "  Mock vectors carry no meaning, so search ranking will be random.\n"
        f"  Set:  export {env_var}=<key>"
    )


def warn_degraded_search() -> str:
    return (
        "[yellow]Warning:[/] The query was embedded with a mock vector; "
        "results are not ranked by meaning."
    )
