"""Tests for the docvault usage command."""

from __future__ import annotations

from docvault.cli.main import app


def test_usage_no_db_exits_1(runner, tmp_path):
    result = runner.invoke(app, ["usage", "--user", "ana", "--db", str(tmp_path / "missing.db")])
    assert result.exit_code == 1


def test_usage_after_ingest(runner, db_path, ingest):
    ingest("notes.txt", "x" * 400)
    result = runner.invoke(
        app, ["usage", "--user", "ana@example.com", "--limit", "1000", "--db", str(db_path)]
    )
    assert result.exit_code == 0, result.output
    assert "Used: 100 / 1,000 tokens (10.0%)" in result.output
    assert "Remaining: 900" in result.output
    assert "upload" in result.output


def test_usage_search_is_billed(runner, db_path, ingest):
    ingest("notes.txt", "x" * 400)
    runner.invoke(app, ["search", "contract", "--owner", "ana@example.com", "--db", str(db_path)])
    result = runner.invoke(app, ["usage", "--user", "ana@example.com", "--db", str(db_path)])
    assert "search" in result.output
    assert "Used: 102 / 1,000 tokens" in result.output


def test_usage_unknown_user_is_zero(runner, db_path, ingest):
    ingest()
    result = runner.invoke(app, ["usage", "--user", "nobody", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Used: 0 / 1,000 tokens (0.0%)" in result.output
