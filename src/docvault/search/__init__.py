"""Semantic similarity search over indexed documents."""

from docvault.search.engine import SearchResponse, SearchResult, SemanticSearchEngine
from docvault.search.snippets import highlight, make_snippet, truncate

__all__ = [
    "SearchResponse",
    "SearchResult",
    "SemanticSearchEngine",
    "highlight",
    "make_snippet",
    "truncate",
]
