"""Tests for the docvault CLI entry point."""

from __future__ import annotations

from docvault.cli.main import app


def test_version_option(runner):
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("docvault ")


def test_version_command(runner):
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("docvault ")


def test_help_lists_commands(runner):
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("ingest", "search", "remove", "usage"):
        assert command in result.output
