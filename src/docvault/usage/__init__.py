"""Per-user token accounting."""

from docvault.usage.ledger import LimitStatus, TokenUsageLedger, UsageStats, estimate_tokens

__all__ = ["LimitStatus", "TokenUsageLedger", "UsageStats", "estimate_tokens"]
