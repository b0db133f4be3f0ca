"""Fixtures shared by the CLI command tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from docvault.cli.main import app


@pytest.fixture(autouse=True)
def offline_cli(monkeypatch, tmp_path):
    """No API key, no global config, and no logging reconfiguration."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("DOCVAULT_EMBEDDING_MODEL", raising=False)
    monkeypatch.delenv("DOCVAULT_LOG_LEVEL", raising=False)
    monkeypatch.setattr("docvault.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.setattr("docvault.cli.runtime.configure_logging", lambda *a, **kw: None)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "docvault.db"


@pytest.fixture
def ingest(runner, db_path, tmp_path):
    """Write a text file and ingest it for ana@example.com; returns the CLI result."""

    def _ingest(name: str = "notes.txt", text: str = "contract renewal terms", *extra: str):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return runner.invoke(
            app,
            ["ingest", "--file", str(path), "--owner", "ana@example.com", "--db", str(db_path), *extra],
        )

    return _ingest
