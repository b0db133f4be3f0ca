"""Result snippets: truncated content with query words highlighted."""

from __future__ import annotations

import html
import re

MIN_HIGHLIGHT_LENGTH = 3


def truncate(text: str, max_length: int = 200) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def highlight(text: str, query: str) -> str:
    """Wrap every case-insensitive occurrence of a query word in ``<mark>``.

    Only words of at least three characters are highlighted. *text* is
    HTML-escaped first so the only markup in the output is the ``<mark>`` tags.
    """
    escaped = html.escape(text, quote=False)
    words = {
        html.escape(w, quote=False)
        for w in query.lower().split()
        if len(w) >= MIN_HIGHLIGHT_LENGTH
    }
    if not words:
        return escaped
    # Longest first so overlapping words prefer the longer match.
    pattern = re.compile(
        "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True)), re.IGNORECASE
    )
    return pattern.sub(lambda m: f"<mark>{m.group(0)}</mark>", escaped)


def make_snippet(content: str, query: str, max_length: int = 200) -> str:
    """Truncate *content* to *max_length* chars (plus ``...``) and highlight *query*."""
    return highlight(truncate(content, max_length), query)
