"""Tests for docvault rich error messages."""

from __future__ import annotations

import pytest

from docvault.cli.errors import (
    err_config,
    err_document_not_found,
    err_file_not_found,
    err_no_db,
    warn_degraded_search,
    warn_mock_embeddings,
)


@pytest.mark.parametrize(
    "message",
    [
        err_no_db("x.db"),
        err_document_not_found("abc"),
        warn_mock_embeddings("gemini/text-embedding-004", "GEMINI_API_KEY"),
    ],
)
def test_error_includes_an_action(message):
    lower = message.lower()
    assert any(kw in lower for kw in ("run:", "set:", "export "))


def test_no_db_names_path():
    assert "'x.db'" in err_no_db("x.db")


def test_file_not_found_names_path():
    assert "'a/b.pdf'" in err_file_not_found("a/b.pdf")


def test_config_error_carries_message():
    assert "bad dimensions" in err_config("bad dimensions")


def test_mock_warning_names_env_var():
    assert "export GEMINI_API_KEY" in warn_mock_embeddings("gemini/x", "GEMINI_API_KEY")


def test_degraded_warning():
    assert "mock vector" in warn_degraded_search()
