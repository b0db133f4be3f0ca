"""Tests for the docvault ingest command."""

from __future__ import annotations

from pathlib import Path

from docvault.cli.main import app
from docvault.db.connection import Database
from docvault.db.repository import Repository


def _documents(db_path: Path, owner: str = "ana@example.com"):
    conn = Database(db_path).connect()
    try:
        return Repository(conn).list_documents(owner)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# argument validation
# ---------------------------------------------------------------------------


def test_ingest_missing_file_exits_1(runner, db_path, tmp_path):
    result = runner.invoke(
        app,
        ["ingest", "--file", str(tmp_path / "nope.pdf"), "--owner", "ana", "--db", str(db_path)],
    )
    assert result.exit_code == 1
    assert "File not found" in result.output
    assert not db_path.exists()


def test_ingest_invalid_config_exits_1(runner, db_path, tmp_path, ingest):
    (tmp_path / "docvault.yaml").write_text("embedding:\n  dimensions: 0\n", encoding="utf-8")
    result = ingest()
    assert result.exit_code == 1
    assert "Config error" in result.output


# ---------------------------------------------------------------------------
# simple and chunked files
# ---------------------------------------------------------------------------


def test_ingest_single_document(ingest, db_path):
    result = ingest()
    assert result.exit_code == 0, result.output
    assert "notes.txt: single document" in result.output
    assert "1 ingested, 0 failed" in result.output

    docs = _documents(db_path)
    assert [d.name for d in docs] == ["notes.txt"]
    assert docs[0].content == "contract renewal terms"
    assert docs[0].embedding_source == "mock"


def test_ingest_warns_about_mock_embeddings(ingest):
    result = ingest()
    assert "mock embeddings" in result.output
    assert "GEMINI_API_KEY" in result.output


def test_ingest_large_file_is_chunked(ingest, db_path):
    result = ingest("big.txt", "a" * 25_000)
    assert result.exit_code == 0, result.output
    assert "big.txt: 4 chunks" in result.output

    docs = _documents(db_path)
    assert len(docs) == 5
    parent, chunks = docs[0], docs[1:]
    assert parent.metadata_dict["chunks_created"] == 4
    assert [c.name for c in chunks] == [f"big.txt - Part {i}" for i in range(1, 5)]
    assert all(c.parent_id == parent.id for c in chunks)


def test_ingest_category(ingest, db_path):
    result = ingest("notes.txt", "text", "--category", "legal")
    assert result.exit_code == 0, result.output
    assert _documents(db_path)[0].category == "legal"


# ---------------------------------------------------------------------------
# failures
# ---------------------------------------------------------------------------


def test_ingest_unsupported_file_reports_and_exits_1(ingest, db_path):
    result = ingest("photo.png", "not really a png")
    assert result.exit_code == 1
    assert "✗ photo.png" in result.output
    assert "0 ingested, 1 failed" in result.output
    assert _documents(db_path) == []


def test_ingest_batch_continues_after_failure(runner, db_path, tmp_path):
    good = tmp_path / "good.md"
    good.write_text("# heading\n\nbody", encoding="utf-8")
    empty = tmp_path / "empty.txt"
    empty.write_text("   \n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["ingest", "-f", str(empty), "-f", str(good), "--owner", "ana@example.com", "--db", str(db_path)],
    )
    assert result.exit_code == 1
    assert "1 ingested, 1 failed" in result.output
    assert [d.name for d in _documents(db_path)] == ["good.md"]


# ---------------------------------------------------------------------------
# storage mirror
# ---------------------------------------------------------------------------


def test_ingest_mirrors_upload_into_storage_folder(ingest, db_path, tmp_path):
    mirror = tmp_path / "mirror"
    result = ingest("notes.txt", "contract", "--folder", "contracts", "--storage", str(mirror))
    assert result.exit_code == 0, result.output

    stored = list((mirror / "contracts").iterdir())
    assert len(stored) == 1
    assert stored[0].read_text(encoding="utf-8") == "contract"

    doc = _documents(db_path)[0]
    assert doc.folder_id == "contracts"
    assert doc.storage_ref == f"contracts/{stored[0].name}"


def test_ingest_without_storage_uses_local_ref(ingest, db_path):
    ingest()
    assert _documents(db_path)[0].storage_ref.startswith("local-")
