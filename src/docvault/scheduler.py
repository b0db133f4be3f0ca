"""Bounded-concurrency request scheduler with retry for store calls.

Every database call made by the index store and the token ledger goes through
``RequestScheduler.submit()``:

- at most ``max_concurrent`` calls run at once (a bounded semaphore);
- a call failing with a retryable error is retried up to ``max_attempts``
  times in total, sleeping ``backoff_seconds * attempt`` between attempts
  (0.5 s, 1.0 s, ... with the defaults);
- the slot is held across retries, so a struggling backend sees less load.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from typing import Any, Callable, TypeVar

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_incrementing

log = structlog.get_logger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS = ("locked", "busy")


def is_transient(exc: BaseException) -> bool:
    """True for SQLite lock contention (``database is locked``, ``SQLITE_BUSY``).

    Other operational errors (a missing table, a vector of the wrong size)
    fail the same way on every attempt.
    """
    return isinstance(exc, sqlite3.OperationalError) and any(
        marker in str(exc).lower() for marker in _TRANSIENT_MARKERS
    )


class RequestScheduler:
    """Admission control for a rate-limited backend.

    Args:
        max_concurrent: Maximum number of calls in flight.
        max_attempts: Total attempts per call (1 disables retry).
        backoff_seconds: Base delay; attempt *n* waits ``n * backoff_seconds``.
        retry_if: Predicate selecting the errors worth retrying.
        sleep: Sleep function (injected by tests).
    """

    def __init__(
        self,
        max_concurrent: int = 2,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        retry_if: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_concurrent = max_concurrent
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._retry_if = retry_if
        self._sleep = sleep
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self._lock = threading.Lock()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(*args, **kwargs)`` inside a slot, retrying transient errors.

        The last error is re-raised unchanged once attempts are exhausted.
        """
        with self._slots:
            with self._lock:
                self._in_flight += 1
            try:
                for attempt in Retrying(
                    stop=stop_after_attempt(self.max_attempts),
                    wait=wait_incrementing(start=self.backoff_seconds, increment=self.backoff_seconds),
                    retry=retry_if_exception(self._retry_if),
                    before_sleep=self._log_retry,
                    sleep=self._sleep,
                    reraise=True,
                ):
                    with attempt:
                        return fn(*args, **kwargs)
            finally:
                with self._lock:
                    self._in_flight -= 1
        raise AssertionError("unreachable")  # pragma: no cover

    def _log_retry(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        log.warning(
            "store_call_retry",
            attempt=state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(exc),
        )
