"""
BatchComparisonDriver - Resumable Bulk Catalog Comparison

Applies the matching engine to the full cross-product of the internal and
external catalogs, streaming qualifying rows to an append-only report and
checkpointing progress so an interrupted run can be resumed by rerunning
the same command.

Responsibility:
    - Page both catalogs into memory (external set is held whole)
    - Score each internal record against the whole external set
    - Stream rows with confidence >= batch minimum to the report sink
    - Persist processed internal ids every checkpoint_interval records
    - Log progress every progress_interval records, summary at the end

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Checkpoint store, report sink and progress reporter are ports
      (src/application/ports/batch.py)
    - workers > 1 scores records on a thread pool; the driver thread is the
      only writer of the checkpoint set, the checkpoint and the report
    - Cancellation is cooperative via threading.Event, checked between
      internal records

Recovery Model:
    - At-least-once: a record scored after the last checkpoint write is
      scored again on resume and its rows appended again
    - Completed run: checkpoint deleted
    - Cancelled run: checkpoint flushed, status CANCELLED
    - Fatal error: checkpoint flushed (best effort), exception re-raised
"""

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import uuid4

import numpy as np
import psutil

from src.application.models import JobStatus, ScenarioMatch
from src.application.ports.batch import (
    CheckpointStoreProtocol,
    ProgressReporterProtocol,
    ReportSinkProtocol,
)
from src.domain.product_matching.entities.catalog_record import CatalogRecord
from src.domain.product_matching.repositories.catalog_repository import (
    CatalogRepositoryProtocol,
)
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.match_candidate import (
    MatchCandidate,
    MatchTier,
    MatchType,
)
from src.domain.shared.exceptions import CatalogLoadError

logger = logging.getLogger(__name__)


# ============================================================================
# REPORT COLUMNS
# ============================================================================

REPORT_COLUMNS: list[str] = [
    "Internal ID",
    "External ID",
    "Internal EAN/GTIN",
    "External EAN/GTIN",
    "Internal Product Name",
    "Internal Brand",
    "Internal Category",
    "External Product Name",
    "External Brand",
    "External Category",
    "Internal Price",
    "External Price",
    "Scenario Match (EAN or fallback)",
    "Score",
    "Confidence",
    "Quality Tier",
    "Match Reasons",
    "Name Score",
    "Brand Score",
    "Category Score",
    "Price Score",
    "Price Difference %",
    "Processed At",
]


# ============================================================================
# SETTINGS AND SUMMARY
# ============================================================================


@dataclass(frozen=True)
class BatchComparisonSettings:
    """
    Knobs of one batch run.

    Attributes:
        page_size: Rows per catalog page
        checkpoint_interval: Save the checkpoint every N processed records
        progress_interval: Log progress every N processed records
        workers: Thread pool size (1 = sequential)
        min_confidence: Report filter in percent; None uses
            MatchingConfig.batch_min_confidence
        run_id: Identifier used for progress reporting
    """

    page_size: int = 1000
    checkpoint_interval: int = 10
    progress_interval: int = 50
    workers: int = 1
    min_confidence: Optional[float] = None
    run_id: str = field(default_factory=lambda: uuid4().hex)

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.checkpoint_interval < 1:
            raise ValueError(
                f"checkpoint_interval must be >= 1, got {self.checkpoint_interval}"
            )
        if self.progress_interval < 1:
            raise ValueError(f"progress_interval must be >= 1, got {self.progress_interval}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.min_confidence is not None and not 0.0 <= self.min_confidence <= 100.0:
            raise ValueError(f"min_confidence must be in [0, 100], got {self.min_confidence}")


@dataclass
class BatchRunSummary:
    """Outcome and statistics of one batch run."""

    run_id: str
    status: JobStatus
    total_internal: int = 0
    total_external: int = 0
    skipped_from_checkpoint: int = 0
    processed: int = 0
    records_with_matches: int = 0
    rows_written: int = 0
    tier_counts: dict[str, int] = field(
        default_factory=lambda: {tier.value: 0 for tier in MatchTier}
    )
    scenario_counts: dict[str, int] = field(
        default_factory=lambda: {scenario.value: 0 for scenario in ScenarioMatch}
    )
    score_stats: dict[str, float] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "total_internal": self.total_internal,
            "total_external": self.total_external,
            "skipped_from_checkpoint": self.skipped_from_checkpoint,
            "processed": self.processed,
            "records_with_matches": self.records_with_matches,
            "rows_written": self.rows_written,
            "tier_counts": dict(self.tier_counts),
            "scenario_counts": dict(self.scenario_counts),
            "score_stats": dict(self.score_stats),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


# ============================================================================
# ROW BUILDING
# ============================================================================


def determine_scenario(candidate: MatchCandidate) -> ScenarioMatch:
    """Scenario tag of a report row, taken from the path the engine scored it on."""
    if candidate.match_type == MatchType.GTIN_EXACT_MATCH:
        return ScenarioMatch.IDENTIFIER_EXACT
    return ScenarioMatch.FEATURE_SCORED


def price_difference_percent(
    internal_price: Optional[Decimal], external_price: Optional[float]
) -> float:
    """
    |a - b| / mean(a, b) x 100, one decimal; 0 when either price is missing.

    Examples:
        >>> price_difference_percent(Decimal("100"), 110.0)
        9.5
        >>> price_difference_percent(None, 10.0)
        0.0
    """
    if not internal_price or not external_price:
        return 0.0
    a = float(internal_price)
    b = float(external_price)
    average = (a + b) / 2
    return round(abs(b - a) / average * 100, 1)


def build_report_row(
    internal: CatalogRecord, candidate: MatchCandidate, processed_at: str
) -> dict[str, Any]:
    """One report row for a qualifying candidate (keys = REPORT_COLUMNS)."""
    scenario = determine_scenario(candidate)
    subscores = candidate.subscores
    return {
        "Internal ID": internal.id,
        "External ID": candidate.external_key,
        "Internal EAN/GTIN": internal.identifier or "",
        "External EAN/GTIN": candidate.identifier or "",
        "Internal Product Name": internal.title or "",
        "Internal Brand": internal.brand or "",
        "Internal Category": internal.category or "",
        "External Product Name": candidate.title or "",
        "External Brand": candidate.brand or "",
        "External Category": candidate.category or "",
        "Internal Price": float(internal.price) if internal.price is not None else 0.0,
        "External Price": candidate.price if candidate.price is not None else 0.0,
        "Scenario Match (EAN or fallback)": scenario.value,
        "Score": round(candidate.overall_score, 2),
        "Confidence": round(candidate.confidence_percent, 1),
        "Quality Tier": candidate.tier.value,
        "Match Reasons": "; ".join(candidate.reasons),
        "Name Score": round(subscores.name, 1),
        "Brand Score": round(subscores.brand, 1),
        "Category Score": round(subscores.category, 1),
        "Price Score": round(subscores.price, 1),
        "Price Difference %": price_difference_percent(internal.price, candidate.price),
        "Processed At": processed_at,
    }


# ============================================================================
# DRIVER
# ============================================================================


@dataclass
class _RecordResult:
    internal_id: str
    rows: list[dict[str, Any]]
    candidates: list[MatchCandidate]


class BatchComparisonDriver:
    """
    Resumable bulk comparison of two catalogs.

    Usage:
        driver = BatchComparisonDriver(engine, catalog, checkpoint_store, sink)
        summary = driver.run()
        if summary.status == JobStatus.CANCELLED:
            ...  # rerun the same command to resume
    """

    def __init__(
        self,
        engine: MatchingEngine,
        catalog: CatalogRepositoryProtocol,
        checkpoint: CheckpointStoreProtocol,
        sink: ReportSinkProtocol,
        settings: Optional[BatchComparisonSettings] = None,
        progress: Optional[ProgressReporterProtocol] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.engine = engine
        self.catalog = catalog
        self.checkpoint = checkpoint
        self.sink = sink
        self.settings = settings or BatchComparisonSettings()
        self.progress = progress
        self.cancel_event = cancel_event or threading.Event()

        min_confidence = self.settings.min_confidence
        if min_confidence is None:
            min_confidence = engine.config.batch_min_confidence
        self.min_confidence = min_confidence

        self._process = psutil.Process(os.getpid())
        self._scores: list[float] = []

    def cancel(self) -> None:
        """Request a cooperative stop after the record in progress."""
        self.cancel_event.set()

    def run(self) -> BatchRunSummary:
        """
        Execute the run.

        Returns:
            BatchRunSummary with status COMPLETED or CANCELLED

        Raises:
            CatalogLoadError: A catalog page could not be read
            CheckpointError: The checkpoint could not be written
        """
        started = time.time()
        summary = BatchRunSummary(run_id=self.settings.run_id, status=JobStatus.PROCESSING)
        self._scores = []

        processed_ids = self.checkpoint.load()
        if processed_ids:
            logger.info(f"Loaded checkpoint: {len(processed_ids)} internal records already processed")
        else:
            logger.info("Starting fresh - no checkpoint found")

        externals = self._load_all(self.catalog.load_external_records, "external")
        internals = self._load_all(self.catalog.load_internal_records, "internal")
        pending = [record for record in internals if record.id not in processed_ids]

        summary.total_internal = len(internals)
        summary.total_external = len(externals)
        summary.skipped_from_checkpoint = len(internals) - len(pending)
        logger.info(
            f"Loaded {len(internals)} internal and {len(externals)} external records, "
            f"{len(pending)} internal records to process "
            f"(min confidence {self.min_confidence:g}%, workers {self.settings.workers})"
        )

        try:
            if self.settings.workers > 1:
                status = self._run_parallel(pending, externals, processed_ids, summary, started)
            else:
                status = self._run_sequential(pending, externals, processed_ids, summary, started)
        except Exception:
            logger.error(
                f"Batch run {summary.run_id} failed after {summary.processed} records, "
                f"saving checkpoint",
                exc_info=True,
            )
            self._save_checkpoint_after_failure(processed_ids)
            raise

        if status == JobStatus.CANCELLED:
            self.checkpoint.save(processed_ids)
            logger.warning(
                f"Batch run {summary.run_id} cancelled after {summary.processed} records; "
                f"checkpoint saved ({len(processed_ids)} processed)"
            )
        else:
            self.checkpoint.delete()

        summary.status = status
        summary.elapsed_seconds = time.time() - started
        summary.score_stats = self._score_stats()
        self._log_summary(summary)
        self._report(summary, len(processed_ids), "Batch run finished")
        return summary

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    def _run_sequential(
        self,
        pending: list[CatalogRecord],
        externals: list[CatalogRecord],
        processed_ids: set[str],
        summary: BatchRunSummary,
        started: float,
    ) -> JobStatus:
        for internal in pending:
            if self.cancel_event.is_set():
                return JobStatus.CANCELLED
            result = self._score_record(internal, externals)
            self._record_result(result, processed_ids, summary, started)
        return JobStatus.COMPLETED

    def _run_parallel(
        self,
        pending: list[CatalogRecord],
        externals: list[CatalogRecord],
        processed_ids: set[str],
        summary: BatchRunSummary,
        started: float,
    ) -> JobStatus:
        max_in_flight = self.settings.workers * 2
        remaining = iter(pending)
        in_flight: dict[Future, str] = {}
        exhausted = False
        cancelled = False

        with ThreadPoolExecutor(
            max_workers=self.settings.workers, thread_name_prefix="batch-compare"
        ) as executor:
            while True:
                while not (exhausted or cancelled) and len(in_flight) < max_in_flight:
                    if self.cancel_event.is_set():
                        cancelled = True
                        break
                    internal = next(remaining, None)
                    if internal is None:
                        exhausted = True
                        break
                    future = executor.submit(self._score_record, internal, externals)
                    in_flight[future] = internal.id

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    in_flight.pop(future)
                    self._record_result(future.result(), processed_ids, summary, started)

        return JobStatus.CANCELLED if cancelled else JobStatus.COMPLETED

    # ------------------------------------------------------------------
    # Per-record work
    # ------------------------------------------------------------------

    def _score_record(
        self, internal: CatalogRecord, externals: list[CatalogRecord]
    ) -> _RecordResult:
        candidates = self.engine.find_matches(internal, externals)
        qualifying = [c for c in candidates if c.confidence_percent >= self.min_confidence]
        processed_at = datetime.now().isoformat()
        rows = [build_report_row(internal, c, processed_at) for c in qualifying]
        return _RecordResult(internal_id=internal.id, rows=rows, candidates=qualifying)

    def _record_result(
        self,
        result: _RecordResult,
        processed_ids: set[str],
        summary: BatchRunSummary,
        started: float,
    ) -> None:
        if result.rows:
            self.sink.write_rows(result.rows)
            summary.records_with_matches += 1
            summary.rows_written += len(result.rows)
            for candidate, row in zip(result.candidates, result.rows):
                summary.tier_counts[candidate.tier.value] += 1
                summary.scenario_counts[row["Scenario Match (EAN or fallback)"]] += 1
                self._scores.append(candidate.overall_score)

        processed_ids.add(result.internal_id)
        summary.processed += 1

        if summary.processed % self.settings.checkpoint_interval == 0:
            self.checkpoint.save(processed_ids)

        if summary.processed % self.settings.progress_interval == 0:
            self._log_progress(summary, len(processed_ids), started)

    # ------------------------------------------------------------------
    # Catalog paging
    # ------------------------------------------------------------------

    def _load_all(self, loader: Callable[[int, int], list], label: str) -> list:
        records: list = []
        offset = 0
        page_size = self.settings.page_size
        while True:
            try:
                page = loader(page_size, offset)
            except CatalogLoadError:
                raise
            except Exception as e:
                raise CatalogLoadError(
                    f"Failed to load {label} catalog page at offset {offset}: {e}",
                    label,
                    e,
                ) from e

            records.extend(page)
            logger.debug(f"Loaded {label} page at offset {offset}: {len(page)} records")
            if len(page) < page_size:
                return records
            offset += page_size

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _log_progress(self, summary: BatchRunSummary, done: int, started: float) -> None:
        elapsed = time.time() - started
        rate = summary.processed / elapsed if elapsed > 0 else 0.0
        memory_mb = self._process.memory_info().rss / 1024 / 1024
        message = (
            f"{memory_mb:.1f}MB | Processed {done}/{summary.total_internal} internal records | "
            f"{summary.records_with_matches} with matches | "
            f"{summary.rows_written} rows written | {rate:.1f} rec/s | {elapsed:.0f}s elapsed"
        )
        logger.info(message)
        self._report(summary, done, message)

    def _report(self, summary: BatchRunSummary, done: int, message: str) -> None:
        if self.progress is None:
            return
        self.progress.report(
            summary.run_id,
            processed=done,
            total=summary.total_internal,
            message=message,
            stats={
                "records_with_matches": summary.records_with_matches,
                "rows_written": summary.rows_written,
            },
        )

    def _score_stats(self) -> dict[str, float]:
        if not self._scores:
            return {"average": 0.0, "max": 0.0, "min": 0.0}
        scores = np.asarray(self._scores, dtype=float)
        return {
            "average": round(float(scores.mean()), 2),
            "max": round(float(scores.max()), 2),
            "min": round(float(scores.min()), 2),
        }

    def _log_summary(self, summary: BatchRunSummary) -> None:
        total_rows = summary.rows_written
        logger.info("=" * 80)
        logger.info(f"BATCH COMPARISON SUMMARY ({summary.status.value})")
        logger.info(
            f"Processed {summary.processed} internal records this run "
            f"({summary.skipped_from_checkpoint} skipped from checkpoint) "
            f"in {summary.elapsed_seconds:.2f}s"
        )
        logger.info(
            f"Rows written: {total_rows} from {summary.records_with_matches} internal records"
        )
        for scenario, count in summary.scenario_counts.items():
            share = count / total_rows * 100 if total_rows else 0.0
            logger.info(f"  Scenario {scenario}: {count} ({share:.1f}%)")
        for tier, count in summary.tier_counts.items():
            share = count / total_rows * 100 if total_rows else 0.0
            logger.info(f"  Tier {tier}: {count} ({share:.1f}%)")
        stats = summary.score_stats
        logger.info(
            f"Score average {stats['average']:.2f}, "
            f"highest {stats['max']:.2f}, lowest {stats['min']:.2f}"
        )
        logger.info("=" * 80)

    def _save_checkpoint_after_failure(self, processed_ids: set[str]) -> None:
        try:
            self.checkpoint.save(processed_ids)
        except Exception as e:
            logger.error(f"Could not save checkpoint after failure: {e}")
