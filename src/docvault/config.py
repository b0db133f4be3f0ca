"""docvault configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (DOCVAULT_EMBEDDING_MODEL, DOCVAULT_LOG_LEVEL)
  3. Per-project docvault.yaml  (next to the index database)
  4. Global ~/.docvault/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".docvault"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "docvault.yaml"

# Key names that look like credentials. Does NOT match legitimate keys such
# as token_limit or max_input_chars.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "indexing", "scheduler", "search", "usage", "logging"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding backend configuration (docvault.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Vector length stored in the index; mock vectors use it too.
        max_input_chars: Preprocessed text is cut to this length before the call.
        num_retries: LiteLLM-level retries before falling back.
        fallback_enabled: Substitute a mock vector when the backend fails.
        workers: Concurrent chunk-embedding calls per file (1 = sequential).
    """

    model: str = "gemini/text-embedding-004"
    dimensions: int = 768
    max_input_chars: int = 30_000
    num_retries: int = 2
    fallback_enabled: bool = True
    workers: int = 1


@dataclass
class IndexingCfg:
    """Content cap and chunk bound (docvault.yaml: indexing:)."""

    content_cap: int = 10_240
    chunk_size: int = 8_000


@dataclass
class SchedulerCfg:
    """Admission control for store calls (docvault.yaml: scheduler:)."""

    max_concurrent: int = 2
    max_attempts: int = 3
    backoff_seconds: float = 0.5


@dataclass
class SearchCfg:
    """Search defaults (docvault.yaml: search:)."""

    top_k: int = 10
    snippet_length: int = 200


@dataclass
class UsageCfg:
    """Token ledger settings (docvault.yaml: usage:)."""

    token_limit: int = 1_000
    cache_ttl: float = 30.0


@dataclass
class LoggingCfg:
    """structlog settings (docvault.yaml: logging:)."""

    level: str = "INFO"
    json: bool = False


@dataclass
class DocvaultConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    indexing: IndexingCfg = field(default_factory=IndexingCfg)
    scheduler: SchedulerCfg = field(default_factory=SchedulerCfg)
    search: SearchCfg = field(default_factory=SearchCfg)
    usage: UsageCfg = field(default_factory=UsageCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: DocvaultConfig) -> None:
    """Reject values the pipeline cannot work with."""
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if not 1 <= cfg.embedding.workers <= 4:
        raise ConfigError(f"embedding.workers must be between 1 and 4, got {cfg.embedding.workers}")
    if cfg.indexing.chunk_size < 1:
        raise ConfigError(f"indexing.chunk_size must be >= 1, got {cfg.indexing.chunk_size}")
    if cfg.indexing.chunk_size > cfg.indexing.content_cap:
        raise ConfigError(
            f"indexing.chunk_size ({cfg.indexing.chunk_size}) must not exceed "
            f"indexing.content_cap ({cfg.indexing.content_cap})"
        )
    if cfg.scheduler.max_concurrent < 1:
        raise ConfigError("scheduler.max_concurrent must be >= 1")
    if cfg.scheduler.max_attempts < 1:
        raise ConfigError("scheduler.max_attempts must be >= 1")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> DocvaultConfig:
    """Build a *DocvaultConfig* from a merged raw YAML dict."""
    cfg = DocvaultConfig()

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            max_input_chars=int(e.get("max_input_chars", cfg.embedding.max_input_chars)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
            fallback_enabled=bool(e.get("fallback_enabled", cfg.embedding.fallback_enabled)),
            workers=int(e.get("workers", cfg.embedding.workers)),
        )

    if "indexing" in data:
        i = data["indexing"] or {}
        cfg.indexing = IndexingCfg(
            content_cap=int(i.get("content_cap", cfg.indexing.content_cap)),
            chunk_size=int(i.get("chunk_size", cfg.indexing.chunk_size)),
        )

    if "scheduler" in data:
        s = data["scheduler"] or {}
        cfg.scheduler = SchedulerCfg(
            max_concurrent=int(s.get("max_concurrent", cfg.scheduler.max_concurrent)),
            max_attempts=int(s.get("max_attempts", cfg.scheduler.max_attempts)),
            backoff_seconds=float(s.get("backoff_seconds", cfg.scheduler.backoff_seconds)),
        )

    if "search" in data:
        r = data["search"] or {}
        cfg.search = SearchCfg(
            top_k=int(r.get("top_k", cfg.search.top_k)),
            snippet_length=int(r.get("snippet_length", cfg.search.snippet_length)),
        )

    if "usage" in data:
        u = data["usage"] or {}
        cfg.usage = UsageCfg(
            token_limit=int(u.get("token_limit", cfg.usage.token_limit)),
            cache_ttl=float(u.get("cache_ttl", cfg.usage.cache_ttl)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(
            level=str(lg.get("level", cfg.logging.level)).upper(),
            json=bool(lg.get("json", cfg.logging.json)),
        )

    return cfg


def _apply_env_overrides(cfg: DocvaultConfig) -> DocvaultConfig:
    """Apply DOCVAULT_* environment variable overrides."""
    if model := os.environ.get("DOCVAULT_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if level := os.environ.get("DOCVAULT_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> DocvaultConfig:
    """Load and return a merged *DocvaultConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *docvault.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *DocvaultConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg
