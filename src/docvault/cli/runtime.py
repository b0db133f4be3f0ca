"""Wiring shared by the CLI commands: config, database, and pipeline objects."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from docvault.cache import TTLCache
from docvault.config import DocvaultConfig, load_config
from docvault.db.connection import Database
from docvault.db.repository import Repository
from docvault.db.schema import initialize
from docvault.db.vectors import ensure_vec_table, model_to_slug
from docvault.embedding.generator import EmbeddingGenerator
from docvault.extract.registry import ContentExtractor
from docvault.index.store import DocumentIndexStore
from docvault.ingest.orchestrator import IngestionOrchestrator
from docvault.logging_config import configure_logging
from docvault.scheduler import RequestScheduler
from docvault.search.engine import SemanticSearchEngine
from docvault.storage import DirectoryStorage
from docvault.usage.ledger import TokenUsageLedger

DEFAULT_DB = Path("docvault.db")


@dataclass
class Runtime:
    config: DocvaultConfig
    store: DocumentIndexStore
    ledger: TokenUsageLedger
    embedder: EmbeddingGenerator
    storage: DirectoryStorage | None = None

    def orchestrator(self) -> IngestionOrchestrator:
        return IngestionOrchestrator(
            extractor=ContentExtractor(),
            embedder=self.embedder,
            store=self.store,
            ledger=self.ledger,
            storage=self.storage,
            chunk_size=self.config.indexing.chunk_size,
            workers=self.config.embedding.workers,
        )

    def search_engine(self) -> SemanticSearchEngine:
        return SemanticSearchEngine(
            embedder=self.embedder,
            store=self.store,
            ledger=self.ledger,
            snippet_length=self.config.search.snippet_length,
        )


@contextmanager
def open_runtime(db_path: Path, storage_root: Path | None = None) -> Iterator[Runtime]:
    """Load config next to *db_path*, open the database, and build the pipeline.

    Raises:
        ConfigError: If a config file is invalid.
    """
    config = load_config(db_path.resolve().parent)
    configure_logging(config.logging.level, config.logging.json)

    with Database(db_path) as conn:
        initialize(conn)
        repo = Repository(conn)
        scheduler = RequestScheduler(
            max_concurrent=config.scheduler.max_concurrent,
            max_attempts=config.scheduler.max_attempts,
            backoff_seconds=config.scheduler.backoff_seconds,
        )
        vec_table = ensure_vec_table(
            conn, model_to_slug(config.embedding.model), config.embedding.dimensions
        )
        storage = DirectoryStorage(storage_root) if storage_root is not None else None
        yield Runtime(
            config=config,
            store=DocumentIndexStore(
                repo,
                scheduler,
                vec_table,
                storage=storage,
                content_cap=config.indexing.content_cap,
            ),
            ledger=TokenUsageLedger(repo, scheduler, TTLCache(ttl=config.usage.cache_ttl)),
            embedder=EmbeddingGenerator(config.embedding),
            storage=storage,
        )
