"""Embedding generator: LiteLLM embeddings with an offline mock fallback.

Every call returns an ``Embedding`` tagged with its source:

- ``"real"``: the vector came from ``litellm.embedding()``;
- ``"mock"``: the backend was unavailable (missing API key, call failure,
  malformed or mis-sized response, empty input) and a random unit vector of
  the configured dimension was substituted so ingestion and search keep
  working. Mock vectors carry no semantic signal.

Set ``embedding.fallback_enabled: false`` to get ``EmbeddingError`` instead.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass

import litellm
import numpy as np
import structlog

from docvault.config import EmbeddingCfg
from docvault.errors import EmbeddingError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

log = structlog.get_logger(__name__)

# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "vertex_ai": None,  # Uses application default credentials
    "ollama": None,  # Local, no key required
}


def missing_api_key(model: str) -> str | None:
    """Return the env var name *model* needs if it is unset, else None."""
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)
    if env_var is None or os.getenv(env_var):
        return None
    return env_var


@dataclass(frozen=True)
class Embedding:
    """A vector plus where it came from (``"real"`` or ``"mock"``)."""

    vector: list[float]
    source: str = "real"

    @property
    def is_mock(self) -> bool:
        return self.source == "mock"


def preprocess(text: str, max_chars: int = 30_000) -> str:
    """Collapse whitespace runs to single spaces, trim, and cap the length.

    Text longer than *max_chars* is cut to *max_chars* and ``"..."`` appended.
    """
    cleaned = " ".join(text.split())
    if len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars] + "..."
    return cleaned


def mock_embedding(dimensions: int, rng: np.random.Generator | None = None) -> list[float]:
    """Return a random unit-length vector with components drawn from [-1, 1]."""
    generator = rng if rng is not None else np.random.default_rng()
    vector = generator.uniform(-1.0, 1.0, dimensions)
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector.tolist()
    return (vector / norm).tolist()


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two equal-length vectors, in [-1, 1].

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


class EmbeddingGenerator:
    """Turn text into fixed-dimension vectors via LiteLLM.

    Safe to share between threads; the mock RNG and the degrade counter are
    guarded by a lock.

    Args:
        config: Embedding section of the docvault config.
        rng: Random generator for mock vectors (seeded by tests).
    """

    def __init__(self, config: EmbeddingCfg | None = None, rng: np.random.Generator | None = None) -> None:
        self._config = config or EmbeddingCfg()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._lock = threading.Lock()
        self._degraded = 0

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    @property
    def degraded_count(self) -> int:
        """Number of mock vectors handed out so far."""
        with self._lock:
            return self._degraded

    def embed(self, text: str) -> Embedding:
        """Embed *text*, degrading to a mock vector when the backend fails.

        Raises:
            EmbeddingError: Only when ``fallback_enabled`` is False.
        """
        prepared = preprocess(text, self._config.max_input_chars)
        try:
            return Embedding(self._embed_real(prepared), "real")
        except EmbeddingError as exc:
            return self._fallback(exc)

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def _embed_real(self, prepared: str) -> list[float]:
        if not prepared:
            raise EmbeddingError("Cannot embed empty text")
        env_var = missing_api_key(self._config.model)
        if env_var:
            raise EmbeddingError(
                f"No API key found for '{self._config.model}'. "
                f"Set the {env_var} environment variable."
            )
        try:
            response = litellm.embedding(
                model=self._config.model,
                input=[prepared],
                num_retries=self._config.num_retries,
            )
        except Exception as exc:
            raise EmbeddingError(f"Embedding call failed: {exc}") from exc
        try:
            vector = [float(x) for x in response.data[0]["embedding"]]
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise EmbeddingError("Malformed embedding response") from exc
        if len(vector) != self._config.dimensions:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, expected {self._config.dimensions}"
            )
        return vector

    def _fallback(self, exc: EmbeddingError) -> Embedding:
        if not self._config.fallback_enabled:
            raise exc
        with self._lock:
            self._degraded += 1
            vector = mock_embedding(self._config.dimensions, self._rng)
        log.warning("embedding_fallback", model=self._config.model, reason=str(exc))
        return Embedding(vector, "mock")
