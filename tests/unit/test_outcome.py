"""Tests for Outcome and the error severity policy."""

from __future__ import annotations

import pytest

from docvault.errors import (
    CloudStorageError,
    EmbeddingError,
    ExtractionEmpty,
    ExtractionError,
    LedgerError,
    PersistenceError,
    UnsupportedFormat,
)
from docvault.outcome import Outcome, Severity, attempt, severity_of


@pytest.mark.parametrize(
    "exc,expected",
    [
        (UnsupportedFormat("a.bin", "application/octet-stream"), Severity.FATAL_TO_FILE),
        (ExtractionError("a.pdf", "bad xref"), Severity.FATAL_TO_FILE),
        (ExtractionEmpty("a.pdf"), Severity.FATAL_TO_FILE),
        (EmbeddingError("down"), Severity.FATAL_TO_RECORD),
        (PersistenceError("locked"), Severity.FATAL_TO_RECORD),
        (LedgerError("locked"), Severity.IGNORABLE),
        (CloudStorageError("403"), Severity.IGNORABLE),
        (RuntimeError("unknown"), Severity.FATAL_TO_FILE),
    ],
)
def test_severity_of(exc, expected):
    assert severity_of(exc) is expected


def test_severity_inherited_by_subclass():
    class QuotaExceeded(LedgerError):
        pass

    assert severity_of(QuotaExceeded("x")) is Severity.IGNORABLE


def test_error_messages_name_the_file():
    assert "report.pdf" in str(ExtractionError("report.pdf", "bad xref"))
    assert "scan.pdf" in str(ExtractionEmpty("scan.pdf"))
    assert "image/png" in str(UnsupportedFormat("pic.png", "image/png"))


def test_success_outcome():
    outcome = Outcome.success(3)
    assert outcome.ok
    assert outcome.severity is None
    assert outcome.unwrap() == 3


def test_failure_outcome_unwrap_reraises():
    error = PersistenceError("locked")
    outcome = Outcome.failure(error)
    assert not outcome.ok
    assert outcome.severity is Severity.FATAL_TO_RECORD
    with pytest.raises(PersistenceError):
        outcome.unwrap()


def test_attempt_captures_docvault_errors_only():
    def fail():
        raise LedgerError("nope")

    outcome = attempt(fail)
    assert isinstance(outcome.error, LedgerError)

    with pytest.raises(KeyError):
        attempt(lambda: {}["missing"])
