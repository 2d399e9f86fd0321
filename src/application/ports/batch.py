"""
Batch Comparison Ports

Interfaces the batch comparison driver depends on. Infrastructure provides
the file-backed checkpoint store, the CSV report sink and the Redis
progress tracker; tests provide in-memory doubles.

Architecture Notes:
    - Part of Application Layer (ports in hexagonal architecture)
    - Protocol classes, structural typing (no inheritance required)
    - Synchronous: the driver runs in a CLI process or a Celery worker
"""

from typing import Any, Optional, Protocol


class CheckpointStoreProtocol(Protocol):
    """
    Durable set of processed internal record ids.

    Implementations:
        - JsonCheckpointStore (src/infrastructure/batch/checkpoint_store.py)
    """

    def load(self) -> set[str]:
        """
        Processed ids from the last run.

        Returns:
            Empty set when no checkpoint exists or it cannot be parsed
        """
        ...

    def save(self, processed_ids: set[str]) -> None:
        """
        Persist processed ids atomically.

        Raises:
            CheckpointError: If the checkpoint cannot be written
        """
        ...

    def delete(self) -> None:
        """Remove the checkpoint after a completed run."""
        ...

    def exists(self) -> bool:
        ...


class ReportSinkProtocol(Protocol):
    """
    Append-only destination for report rows.

    Implementations:
        - CsvReportWriter (src/infrastructure/file_storage/report_writer.py)
    """

    @property
    def rows_written(self) -> int:
        ...

    def write_rows(self, rows: list[dict[str, Any]]) -> None:
        """Append rows and flush them to durable storage."""
        ...

    def close(self) -> None:
        ...


class ProgressReporterProtocol(Protocol):
    """
    Receives progress snapshots from the batch driver.

    Implementations:
        - BatchProgressTracker (src/infrastructure/persistence/redis/progress_tracker.py)
    """

    def report(
        self,
        run_id: str,
        processed: int,
        total: int,
        message: str,
        stats: Optional[dict[str, Any]] = None,
    ) -> None:
        ...
