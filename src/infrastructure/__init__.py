"""
Infrastructure Layer - External Dependencies

Implements technical capabilities that support the Domain and Application
layers: Redis, files on disk, catalog sources.

Architecture:
    - Implements Domain repository interfaces (Dependency Inversion)
    - Implements Application Layer ports (checkpoint store, report sink,
      progress reporter)
    - Depends on external libraries (redis, polars, openpyxl, psutil)
    - No Domain business logic (only technical implementations)

Modules:
    - persistence: Redis plumbing and repository implementations
    - batch: Checkpoint store for batch comparison runs
    - catalog: Paged CSV/Excel catalog reads
    - file_storage: Batch report writers

Usage:
    >>> from src.infrastructure import FileCatalogReader, CsvReportWriter
    >>> from src.infrastructure.persistence import RedisMatchRecordRepository
"""

from .batch import JsonCheckpointStore
from .catalog import FileCatalogReader
from .file_storage import CsvReportWriter, ExcelReportExporter
from .persistence import (
    BatchProgressTracker,
    InMemoryMatchRecordRepository,
    InMemorySourceRegistry,
    RedisMatchRecordRepository,
)

__all__ = [
    "JsonCheckpointStore",
    "FileCatalogReader",
    "CsvReportWriter",
    "ExcelReportExporter",
    "BatchProgressTracker",
    "InMemoryMatchRecordRepository",
    "InMemorySourceRegistry",
    "RedisMatchRecordRepository",
]
