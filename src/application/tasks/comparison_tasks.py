"""
Celery Task for Background Batch Comparison

Runs the resumable batch comparison driver in a Celery worker and
publishes progress to Redis and to the Celery task state.

Responsibility:
    - Wire engine, catalog reader, checkpoint store and report sink
    - Report progress via BatchProgressTracker and self.update_state()
    - Retry with exponential backoff on catalog read failures (the
      checkpoint makes the retry resume where the run stopped)
    - Log each stage with timestamp and memory usage

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Thin orchestrator - scoring lives in the Domain, I/O in Infrastructure
    - Same driver as scripts/run_bulk_comparison.py
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import psutil
from celery import Task
from celery.exceptions import SoftTimeLimitExceeded

from .celery_app import celery_app
from src.application.models import JobStatus
from src.application.services.batch_comparison import (
    BatchComparisonDriver,
    BatchComparisonSettings,
)
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import CatalogLoadError
from src.infrastructure.batch.checkpoint_store import JsonCheckpointStore
from src.infrastructure.catalog.file_catalog_reader import FileCatalogReader
from src.infrastructure.file_storage.report_writer import (
    CsvReportWriter,
    ExcelReportExporter,
)
from src.infrastructure.persistence.redis.progress_tracker import BatchProgressTracker
from src.infrastructure.persistence.repositories.source_registry import (
    InMemorySourceRegistry,
)

logger = logging.getLogger(__name__)


class _TaskProgressReporter:
    """Forwards driver progress to Redis and to the Celery task state."""

    def __init__(self, task: Task, tracker: BatchProgressTracker):
        self.task = task
        self.tracker = tracker

    def report(
        self,
        run_id: str,
        processed: int,
        total: int,
        message: str,
        stats: Optional[dict[str, Any]] = None,
    ) -> None:
        self.tracker.report(run_id, processed=processed, total=total, message=message, stats=stats)
        self.task.update_state(
            state="PROCESSING",
            meta={
                "progress": int(processed / total * 100) if total else 0,
                "message": message,
                "current_item": processed,
                "total_items": total,
                "stage": "MATCHING",
            },
        )


@celery_app.task(
    bind=True,
    name="run_batch_comparison",
    max_retries=3,
    retry_backoff=True,
    retry_backoff_max=900,
)
def run_batch_comparison(
    self: Task,
    internal_path: str,
    external_path: str,
    output_path: str,
    checkpoint_path: Optional[str] = None,
    source_code: str = "EXTERNAL",
    page_size: int = 1000,
    workers: int = 1,
    min_confidence: Optional[float] = None,
    excel_path: Optional[str] = None,
    lookup_tables_path: Optional[str] = None,
) -> dict:
    """
    Compare two catalog files and stream qualifying matches to a CSV report.

    Args:
        internal_path: Internal catalog (CSV or Excel)
        external_path: External catalog (CSV or Excel)
        output_path: CSV report path (appended to when resuming)
        checkpoint_path: Checkpoint file (default: next to the report)
        source_code: Source assigned to external rows without a known
            "source_code" column value
        page_size: Catalog page size
        workers: Scoring threads
        min_confidence: Report filter in percent (default from MatchingConfig)
        excel_path: Optional .xlsx export of the finished report
        lookup_tables_path: Optional JSON lookup tables

    Returns:
        dict: Run summary (BatchRunSummary.to_dict()) plus job_id and paths

    Raises:
        CatalogLoadError: Retried with exponential backoff, re-raised after
            max_retries
    """
    job_id = self.request.id or "local"
    process = psutil.Process(os.getpid())

    def log_with_memory(stage: str, message: str) -> None:
        memory_mb = process.memory_info().rss / 1024 / 1024
        timestamp = datetime.now().isoformat()
        logger.info(f"{timestamp} | {memory_mb:.1f}MB | {stage} | {message}")

    tracker = BatchProgressTracker()
    output = Path(output_path)
    checkpoint = Path(checkpoint_path) if checkpoint_path else output.with_suffix(".checkpoint.json")

    log_with_memory("START", f"Batch comparison {job_id}: {internal_path} vs {external_path}")
    self.update_state(state="PROCESSING", meta={"progress": 0, "message": "Task started", "stage": "START"})
    tracker.start_run(job_id)

    tables = LookupTables.from_json(Path(lookup_tables_path)) if lookup_tables_path else LookupTables.default()
    engine = MatchingEngine(config=MatchingConfig.from_env(), tables=tables)
    registry = InMemorySourceRegistry.from_env()
    default_source = SourceInfo(id=source_code.lower(), code=source_code, name=source_code)
    catalog = FileCatalogReader(
        internal_path, external_path, default_source=default_source, sources=registry.all()
    )
    settings = BatchComparisonSettings(
        page_size=page_size, workers=workers, min_confidence=min_confidence, run_id=job_id
    )

    sink = CsvReportWriter(output)
    driver = BatchComparisonDriver(
        engine,
        catalog,
        JsonCheckpointStore(checkpoint),
        sink,
        settings=settings,
        progress=_TaskProgressReporter(self, tracker),
    )

    try:
        summary = driver.run()
    except CatalogLoadError as e:
        log_with_memory("ERROR", f"Catalog load failed, retrying: {e}")
        tracker.fail_run(job_id, str(e))
        raise self.retry(exc=e)
    except SoftTimeLimitExceeded:
        log_with_memory("ERROR", "Soft time limit exceeded, checkpoint saved for resume")
        tracker.fail_run(job_id, "Soft time limit exceeded")
        raise
    except Exception as e:
        log_with_memory("ERROR", f"Batch comparison failed: {type(e).__name__}: {e}")
        tracker.fail_run(job_id, str(e))
        raise
    finally:
        sink.close()

    result = summary.to_dict()
    result.update(
        {
            "job_id": job_id,
            "output_path": str(output),
            "checkpoint_path": str(checkpoint),
            "excel_path": None,
        }
    )

    if excel_path and summary.status == JobStatus.COMPLETED and output.exists():
        result["excel_path"] = str(ExcelReportExporter().export(output, excel_path))
        log_with_memory("EXPORT", f"Excel report written to {excel_path}")

    tracker.complete_run(job_id, result, status=summary.status)
    log_with_memory(
        "COMPLETE",
        f"Batch comparison {summary.status.value}: {summary.rows_written} rows, "
        f"{summary.processed} records in {summary.elapsed_seconds:.1f}s",
    )
    return result
