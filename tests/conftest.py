"""Shared pytest fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from docvault.cache import TTLCache
from docvault.config import EmbeddingCfg
from docvault.db.connection import Database
from docvault.db.repository import Repository
from docvault.db.schema import initialize
from docvault.db.vectors import ensure_vec_table, model_to_slug
from docvault.embedding.generator import EmbeddingGenerator
from docvault.index.store import DocumentIndexStore
from docvault.scheduler import RequestScheduler
from docvault.usage.ledger import TokenUsageLedger

TEST_MODEL = "gemini/text-embedding-004"
TEST_DIMS = 8


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "docvault.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def vec_table(tmp_db):
    return ensure_vec_table(tmp_db, model_to_slug(TEST_MODEL), TEST_DIMS)


@pytest.fixture
def scheduler():
    """Scheduler that never actually sleeps between retries."""
    return RequestScheduler(sleep=lambda _seconds: None)


@pytest.fixture
def store(repo, scheduler, vec_table):
    return DocumentIndexStore(repo, scheduler, vec_table)


@pytest.fixture
def ledger(repo, scheduler):
    return TokenUsageLedger(repo, scheduler, TTLCache(ttl=30.0))


@pytest.fixture
def offline_embedder(monkeypatch):
    """Generator with no API key: every call degrades to a seeded mock vector."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return EmbeddingGenerator(
        EmbeddingCfg(model=TEST_MODEL, dimensions=TEST_DIMS),
        rng=np.random.default_rng(42),
    )
