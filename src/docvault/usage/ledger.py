"""Token usage ledger: per-user monotonic token totals.

Tokens are estimated as ``ceil(text_length / 4)``. Every billed unit is one
atomic UPSERT (see ``Repository.increment_usage``), so concurrent writers
never lose increments. Reads are served from a TTL cache that is dropped for
a user whenever that user's total changes.
"""

from __future__ import annotations

import math
import sqlite3
from dataclasses import dataclass, field

import structlog

from docvault.cache import TTLCache
from docvault.db.models import UsageEvent
from docvault.db.repository import Repository
from docvault.errors import LedgerError
from docvault.outcome import Outcome
from docvault.scheduler import RequestScheduler

log = structlog.get_logger(__name__)

DEFAULT_TOKEN_LIMIT = 1_000
RECENT_EVENTS = 10


def estimate_tokens(text_length: int) -> int:
    """Approximate token count for *text_length* characters: 4 chars ≈ 1 token."""
    if text_length < 0:
        raise ValueError("text_length must be >= 0")
    return math.ceil(text_length / 4)


@dataclass(frozen=True)
class UsageStats:
    """Per-user usage summary returned by ``TokenUsageLedger.stats``."""

    user_id: str
    total_tokens: int
    by_reason: dict[str, int] = field(default_factory=dict)
    recent: list[UsageEvent] = field(default_factory=list)


@dataclass(frozen=True)
class LimitStatus:
    """How much of a token allowance a user has consumed."""

    user_id: str
    used: int
    limit: int
    remaining: int
    usage_percentage: float

    @property
    def exceeded(self) -> bool:
        return self.used >= self.limit


class TokenUsageLedger:
    """Record and query token consumption per user.

    Args:
        repo: Repository over the index database.
        scheduler: Admission control for every database call.
        cache: Read cache (a fresh 30 s cache when omitted).
    """

    def __init__(
        self,
        repo: Repository,
        scheduler: RequestScheduler,
        cache: TTLCache | None = None,
    ) -> None:
        self._repo = repo
        self._scheduler = scheduler
        self._cache: TTLCache = cache if cache is not None else TTLCache(ttl=30.0)

    def record_usage(self, user_id: str, text_length: int, reason: str = "embedding") -> Outcome[int]:
        """Add ``ceil(text_length / 4)`` tokens to *user_id*'s total.

        Never raises: a failed write is logged and returned as a failed
        Outcome carrying ``LedgerError``.

        Returns:
            Outcome holding the user's new total.
        """
        try:
            tokens = estimate_tokens(text_length)
            total = self._scheduler.submit(self._repo.increment_usage, user_id, tokens, reason)
        except (sqlite3.Error, ValueError) as exc:
            log.warning("usage_record_failed", user_id=user_id, reason=reason, error=str(exc))
            return Outcome.failure(LedgerError(f"Could not record usage for '{user_id}': {exc}"))
        self._invalidate(user_id)
        log.debug("usage_recorded", user_id=user_id, tokens=tokens, total=total, reason=reason)
        return Outcome.success(total)

    def get_total(self, user_id: str) -> int:
        """Return the user's running total (0 if nothing was ever billed)."""
        return self._cache.get_or_load(("total", user_id), lambda: self._load_total(user_id))

    def stats(self, user_id: str) -> UsageStats:
        """Total, per-reason totals, and the most recent billing events."""
        return self._cache.get_or_load(("stats", user_id), lambda: self._load_stats(user_id))

    def check_limits(self, user_id: str, token_limit: int = DEFAULT_TOKEN_LIMIT) -> LimitStatus:
        """Compare the user's total against *token_limit*.

        ``usage_percentage`` is capped at 100.
        """
        if token_limit < 1:
            raise ValueError("token_limit must be >= 1")
        used = self.get_total(user_id)
        return LimitStatus(
            user_id=user_id,
            used=used,
            limit=token_limit,
            remaining=max(0, token_limit - used),
            usage_percentage=min(100.0, used / token_limit * 100),
        )

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    def _load_total(self, user_id: str) -> int:
        try:
            record = self._scheduler.submit(self._repo.get_usage, user_id)
        except sqlite3.Error as exc:
            raise LedgerError(f"Could not read usage for '{user_id}': {exc}") from exc
        return record.total_tokens if record else 0

    def _load_stats(self, user_id: str) -> UsageStats:
        try:
            by_reason = self._scheduler.submit(self._repo.usage_by_reason, user_id)
            recent = self._scheduler.submit(self._repo.recent_usage_events, user_id, RECENT_EVENTS)
        except sqlite3.Error as exc:
            raise LedgerError(f"Could not read usage for '{user_id}': {exc}") from exc
        return UsageStats(
            user_id=user_id,
            total_tokens=self.get_total(user_id),
            by_reason=by_reason,
            recent=recent,
        )

    def _invalidate(self, user_id: str) -> None:
        self._cache.invalidate(("total", user_id))
        self._cache.invalidate(("stats", user_id))
