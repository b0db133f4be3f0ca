"""Tests for SemanticSearchEngine ranking."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docvault.db.models import Document
from docvault.embedding.generator import Embedding
from docvault.search.engine import SemanticSearchEngine

OWNER = "ana@example.com"


def _unit(i: int) -> list[float]:
    vector = [0.0] * 8
    vector[i] = 1.0
    return vector


def _mix(a: float, b: float) -> list[float]:
    vector = [0.0] * 8
    vector[0], vector[1] = a, b
    return vector


def _embedder(vector: list[float], source: str = "real") -> MagicMock:
    embedder = MagicMock()
    embedder.embed.return_value = Embedding(vector, source)
    return embedder


@pytest.fixture
def seeded_store(store):
    # Similarity to the query _unit(0): 1.0, 0.8, 0.0, and a tie at 0.6.
    store.create(Document(owner=OWNER, name="exact", content="contract terms"), _unit(0))
    store.create(Document(owner=OWNER, name="close", content="contract draft", category="legal"), _mix(0.8, 0.6))
    store.create(Document(owner=OWNER, name="unrelated", content="holiday photos"), _unit(2))
    store.create(Document(owner=OWNER, name="tie-a", content="misc"), _mix(0.6, 0.8))
    store.create(Document(owner=OWNER, name="tie-b", content="misc", embedding_source="mock"), _mix(0.6, 0.8))
    store.create(Document(owner="someone-else", name="foreign", content="contract"), _unit(0))
    return store


def test_results_sorted_by_similarity_with_stable_ties(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    results = engine.search("contract", OWNER)
    assert [r.document.name for r in results] == ["exact", "close", "tie-a", "tie-b", "unrelated"]
    similarities = [r.similarity for r in results]
    assert similarities == sorted(similarities, reverse=True)
    assert similarities[0] == pytest.approx(1.0)
    assert similarities[1] == pytest.approx(0.8)


def test_top_k_limits_results(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    assert [r.document.name for r in engine.search("contract", OWNER, top_k=2)] == ["exact", "close"]


def test_domain_filter(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    assert [r.document.name for r in engine.search("contract", OWNER, domain_filter="legal")] == ["close"]


def test_owner_isolation(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    assert all(r.document.owner == OWNER for r in engine.search("contract", OWNER))


def test_snippet_and_source_reported(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    results = engine.search("contract", OWNER)
    assert results[0].snippet == "<mark>contract</mark> terms"
    assert {r.document.name: r.embedding_source for r in results}["tie-b"] == "mock"


def test_blank_query_returns_nothing_without_embedding(seeded_store):
    embedder = _embedder(_unit(0))
    engine = SemanticSearchEngine(embedder, seeded_store)
    assert engine.search("   ", OWNER) == []
    embedder.embed.assert_not_called()


def test_no_candidates(store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), store)
    assert engine.search("anything", OWNER) == []


def test_degraded_flag_when_query_vector_is_mock(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0), "mock"), seeded_store)
    response = engine.query("contract", OWNER)
    assert response.degraded is True
    assert len(response.results) == 5


def test_query_billed_when_user_given(seeded_store, ledger):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store, ledger=ledger)
    engine.query("contract", OWNER, user_id="u1")
    assert ledger.stats("u1").by_reason == {"search": 2}


def test_invalid_top_k(seeded_store):
    engine = SemanticSearchEngine(_embedder(_unit(0)), seeded_store)
    with pytest.raises(ValueError):
        engine.search("contract", OWNER, top_k=0)
