"""Explicit success/failure results for pipeline sub-steps.

Sub-steps return an ``Outcome`` instead of raising; the caller looks up the
error's ``Severity`` in ``POLICY`` and decides whether it aborts the file,
drops a single record, or is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, TypeVar

from docvault.errors import (
    CloudStorageError,
    DocvaultError,
    EmbeddingError,
    ExtractionEmpty,
    ExtractionError,
    LedgerError,
    PersistenceError,
    UnsupportedFormat,
)

T = TypeVar("T")


class Severity(str, Enum):
    FATAL_TO_FILE = "fatal_to_file"
    FATAL_TO_RECORD = "fatal_to_record"
    IGNORABLE = "ignorable"


POLICY: dict[type[Exception], Severity] = {
    UnsupportedFormat: Severity.FATAL_TO_FILE,
    ExtractionError: Severity.FATAL_TO_FILE,
    ExtractionEmpty: Severity.FATAL_TO_FILE,
    EmbeddingError: Severity.FATAL_TO_RECORD,
    PersistenceError: Severity.FATAL_TO_RECORD,
    LedgerError: Severity.IGNORABLE,
    CloudStorageError: Severity.IGNORABLE,
}


def severity_of(exc: BaseException) -> Severity:
    """Return the policy severity for *exc*.

    Lookup walks the exception's MRO so subclasses inherit their parent's
    severity. Anything unknown is treated as fatal to the file.
    """
    for cls in type(exc).__mro__:
        if cls in POLICY:
            return POLICY[cls]
    return Severity.FATAL_TO_FILE


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a sub-step: either ``value`` or ``error`` is set."""

    value: T | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def severity(self) -> Severity | None:
        return None if self.error is None else severity_of(self.error)

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def attempt(fn: Callable[[], T]) -> Outcome[T]:
    """Run *fn* and capture a ``DocvaultError`` as a failed Outcome.

    Non-docvault exceptions propagate: they are programming errors, not
    pipeline conditions.
    """
    try:
        return Outcome.success(fn())
    except DocvaultError as exc:
        return Outcome.failure(exc)
