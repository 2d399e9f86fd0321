"""
API Dependency Injection

Builds the process-wide collaborators the routers depend on and exposes
them as FastAPI dependency functions (overridable in tests through
app.dependency_overrides).

Environment:
    MATCH_REPOSITORY: "memory" (default) or "redis"
    SOURCES_FILE: JSON array of sources (see InMemorySourceRegistry)
    CATALOG_INTERNAL_PATH / CATALOG_EXTERNAL_PATH: Catalog files used by
        the candidate lookup
    LOOKUP_TABLES_FILE: Optional JSON lookup tables

Architecture Notes:
    - Part of API Layer (composition root for HTTP requests)
    - One ApiContainer per process, created lazily with double-checked locking
    - The engine owns the DecisionLog served by /api/decision-log
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional

from src.application.queries.list_matches import ListMatchesQueryHandler
from src.application.services.candidate_lookup_service import CandidateLookupService
from src.application.services.match_service import MatchService
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.repositories.match_record_repository import (
    MatchRecordRepositoryProtocol,
)
from src.domain.product_matching.services.decision_log import DecisionLog
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.infrastructure.catalog.file_catalog_reader import FileCatalogReader
from src.infrastructure.persistence.repositories import (
    InMemoryMatchRecordRepository,
    InMemorySourceRegistry,
    RedisMatchRecordRepository,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERNAL_PATH = "data/internal_catalog.csv"
DEFAULT_EXTERNAL_PATH = "data/external_catalog.csv"


class ApiContainer:
    """
    Process-wide collaborators for the HTTP layer.

    Attributes:
        engine: MatchingEngine with its DecisionLog
        repository: Match record storage (in-memory or Redis)
        sources: Source registry
        catalog: File-backed catalog reader for candidate lookup
    """

    _instance: Optional["ApiContainer"] = None
    _lock = threading.Lock()

    def __init__(
        self,
        engine: MatchingEngine,
        repository: MatchRecordRepositoryProtocol,
        sources: InMemorySourceRegistry,
        catalog: FileCatalogReader,
    ):
        self.engine = engine
        self.repository = repository
        self.sources = sources
        self.catalog = catalog

    @property
    def decision_log(self) -> DecisionLog:
        return self.engine.decision_log

    @classmethod
    def from_env(cls) -> "ApiContainer":
        config = MatchingConfig.from_env()
        tables_file = os.getenv("LOOKUP_TABLES_FILE")
        tables = LookupTables.from_json(Path(tables_file)) if tables_file else LookupTables.default()
        engine = MatchingEngine(
            config=config,
            tables=tables,
            decision_log=DecisionLog(capacity=config.decision_log_capacity),
        )

        backend = os.getenv("MATCH_REPOSITORY", "memory").strip().lower()
        if backend == "redis":
            repository = RedisMatchRecordRepository()
        elif backend == "memory":
            repository = InMemoryMatchRecordRepository()
        else:
            raise ValueError(f"MATCH_REPOSITORY must be 'memory' or 'redis', got {backend!r}")

        sources = InMemorySourceRegistry.from_env()
        catalog = FileCatalogReader(
            os.getenv("CATALOG_INTERNAL_PATH", DEFAULT_INTERNAL_PATH),
            os.getenv("CATALOG_EXTERNAL_PATH", DEFAULT_EXTERNAL_PATH),
            sources=sources.all(),
        )

        logger.info(
            f"API container created: repository={backend}, sources={len(sources)}, "
            f"catalog={catalog.internal_path} / {catalog.external_path}"
        )
        return cls(engine, repository, sources, catalog)

    @classmethod
    def get_instance(cls) -> "ApiContainer":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls.from_env()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (test teardown)."""
        with cls._lock:
            cls._instance = None


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_container() -> ApiContainer:
    return ApiContainer.get_instance()


def get_match_service() -> MatchService:
    container = get_container()
    return MatchService(container.repository, container.sources)


def get_list_matches_handler() -> ListMatchesQueryHandler:
    return ListMatchesQueryHandler(get_container().repository)


def get_candidate_lookup_service() -> CandidateLookupService:
    container = get_container()
    return CandidateLookupService(
        container.engine, container.catalog, container.sources, container.repository
    )


def get_decision_log() -> DecisionLog:
    return get_container().decision_log
