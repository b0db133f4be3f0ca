"""Tests for the fixed-window chunker."""

from __future__ import annotations

import math

import pytest

from docvault.ingest.chunker import DEFAULT_CHUNK_SIZE, split


def test_default_bound_is_8000():
    assert DEFAULT_CHUNK_SIZE == 8_000


def test_empty_text_gives_no_chunks():
    assert split("") == []


def test_short_text_is_one_chunk():
    assert split("hello") == ["hello"]


def test_exact_multiple_has_no_trailing_empty_chunk():
    pieces = split("a" * 16_000)
    assert [len(p) for p in pieces] == [8_000, 8_000]


@pytest.mark.parametrize("length,bound", [(25_000, 8_000), (1, 1), (10, 3), (10_241, 8_000)])
def test_reconstruction_and_count(length, bound):
    text = "".join(chr(97 + i % 26) for i in range(length))
    pieces = split(text, bound)
    assert "".join(pieces) == text
    assert len(pieces) == math.ceil(length / bound)
    assert all(0 < len(p) <= bound for p in pieces)


def test_whitespace_is_preserved():
    text = "  a  \n\n  b  "
    assert "".join(split(text, 4)) == text


def test_deterministic():
    text = "lorem ipsum " * 1000
    assert split(text, 500) == split(text, 500)


@pytest.mark.parametrize("bound", [0, -5])
def test_invalid_bound(bound):
    with pytest.raises(ValueError):
        split("abc", bound)
