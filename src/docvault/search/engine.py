"""Semantic search: rank an owner's documents by cosine similarity to a query."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from docvault.db.models import Document
from docvault.embedding.generator import EmbeddingGenerator, cosine_similarity
from docvault.index.store import DocumentIndexStore
from docvault.search.snippets import make_snippet
from docvault.usage.ledger import TokenUsageLedger

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SearchResult:
    document: Document
    similarity: float
    snippet: str
    embedding_source: str


@dataclass
class SearchResponse:
    """Ranked results plus whether the query vector was a mock.

    A degraded response is ranked against a random vector and carries no
    semantic signal.
    """

    query: str
    results: list[SearchResult] = field(default_factory=list)
    degraded: bool = False


class SemanticSearchEngine:
    """Brute-force cosine ranking over the candidates of one owner.

    Args:
        embedder: Embedding generator for the query.
        store: Document index store providing candidate vectors.
        ledger: When given, queries made with a ``user_id`` are billed.
        snippet_length: Characters of content kept in each snippet.
    """

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        store: DocumentIndexStore,
        ledger: TokenUsageLedger | None = None,
        snippet_length: int = 200,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._ledger = ledger
        self._snippet_length = snippet_length

    def search(
        self,
        query: str,
        owner: str,
        top_k: int = 10,
        domain_filter: str | None = None,
    ) -> list[SearchResult]:
        """Return up to *top_k* results, most similar first."""
        return self.query(query, owner, top_k, domain_filter).results

    def query(
        self,
        query: str,
        owner: str,
        top_k: int = 10,
        domain_filter: str | None = None,
        user_id: str | None = None,
    ) -> SearchResponse:
        """Rank *owner*'s documents against *query*.

        Ties keep store order. A blank query returns no results without
        calling the embedding backend.

        Args:
            query: Free-text query.
            owner: Owner whose documents are searched.
            top_k: Maximum number of results.
            domain_filter: Restrict to documents with this category.
            user_id: Bill the query to this user in the ledger.
        """
        if top_k < 1:
            raise ValueError("top_k must be >= 1")
        if not query.strip():
            return SearchResponse(query=query)

        embedding = self._embedder.embed(query)
        if user_id is not None and self._ledger is not None:
            self._ledger.record_usage(user_id, len(query), "search")

        candidates = self._store.candidates(owner, domain_filter)
        scored = [(cosine_similarity(embedding.vector, vector), doc) for doc, vector in candidates]
        scored.sort(key=lambda pair: pair[0], reverse=True)

        results = [
            SearchResult(
                document=doc,
                similarity=similarity,
                snippet=make_snippet(doc.content, query, self._snippet_length),
                embedding_source=doc.embedding_source,
            )
            for similarity, doc in scored[:top_k]
        ]
        log.info(
            "search_completed",
            owner=owner,
            candidates=len(candidates),
            returned=len(results),
            degraded=embedding.is_mock,
        )
        return SearchResponse(query=query, results=results, degraded=embedding.is_mock)
