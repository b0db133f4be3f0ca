"""Text embeddings and vector similarity."""

from docvault.embedding.generator import (
    Embedding,
    EmbeddingGenerator,
    cosine_similarity,
    missing_api_key,
    mock_embedding,
    preprocess,
)

__all__ = [
    "Embedding",
    "EmbeddingGenerator",
    "cosine_similarity",
    "missing_api_key",
    "mock_embedding",
    "preprocess",
]
