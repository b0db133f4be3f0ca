"""Fixed-window chunker for oversized document text."""

from __future__ import annotations

DEFAULT_CHUNK_SIZE = 8_000


def split(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split *text* into consecutive, non-overlapping windows of at most *max_chunk_size* chars.

    Windows are raw slices (no stripping), so ``"".join(split(t)) == t`` and
    ``len(split(t)) == ceil(len(t) / max_chunk_size)``. Only the last window
    may be shorter than the bound.

    Args:
        text: Full extracted text.
        max_chunk_size: Upper bound on each window, in characters.

    Returns:
        Ordered list of windows; ``[]`` for empty input.

    Raises:
        ValueError: If *max_chunk_size* is < 1.
    """
    if max_chunk_size < 1:
        raise ValueError("max_chunk_size must be >= 1")
    return [text[pos : pos + max_chunk_size] for pos in range(0, len(text), max_chunk_size)]
