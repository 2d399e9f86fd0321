#!/usr/bin/env python3
"""
CLI tool for comparing a full internal catalog against an external catalog.

Every internal record is scored against every external record; qualifying
candidates are appended to a CSV report. A checkpoint file lists the
internal records already processed, so an interrupted run (Ctrl+C, crash,
catalog read failure) resumes where it stopped when the same command is
run again.

Usage:
    python scripts/run_bulk_comparison.py --internal data/internal.csv --external data/amazon.csv
    python scripts/run_bulk_comparison.py --internal internal.xlsx --external ext.xlsx \\
        --output results/report.csv --excel results/report.xlsx --workers 4

Exit codes:
    0   - Run completed
    1   - Fatal error (checkpoint kept, rerun the printed command to resume)
    130 - Interrupted (checkpoint saved)
"""

import argparse
import logging
import shlex
import signal
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.application.models import JobStatus
from src.application.services.batch_comparison import (
    BatchComparisonDriver,
    BatchComparisonSettings,
)
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import DomainException
from src.infrastructure.batch.checkpoint_store import (
    DEFAULT_CHECKPOINT_FILE,
    JsonCheckpointStore,
)
from src.infrastructure.catalog.file_catalog_reader import FileCatalogReader
from src.infrastructure.file_storage.report_writer import (
    CsvReportWriter,
    ExcelReportExporter,
)
from src.infrastructure.persistence.repositories.source_registry import (
    InMemorySourceRegistry,
)

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compare an internal catalog against an external catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare two CSV catalogs
  python scripts/run_bulk_comparison.py --internal internal.csv --external amazon.csv

  # Four scoring threads, report only confidence >= 70, Excel export at the end
  python scripts/run_bulk_comparison.py --internal internal.csv --external amazon.csv \\
      --workers 4 --min-confidence 70 --excel report.xlsx

  # Resume an interrupted run: rerun the same command
        """,
    )

    parser.add_argument("--internal", type=Path, required=True, help="Internal catalog (CSV/Excel)")
    parser.add_argument("--external", type=Path, required=True, help="External catalog (CSV/Excel)")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("comparison_results.csv"),
        help="CSV report path, appended to when resuming (default: comparison_results.csv)",
    )
    parser.add_argument(
        "--checkpoint",
        type=Path,
        default=Path(DEFAULT_CHECKPOINT_FILE),
        help=f"Checkpoint file (default: {DEFAULT_CHECKPOINT_FILE})",
    )
    parser.add_argument("--page-size", type=int, default=1000, help="Catalog page size (default: 1000)")
    parser.add_argument("--workers", type=int, default=1, help="Scoring threads (default: 1)")
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Minimum confidence percent for report rows (default: MATCHING_BATCH_MIN_CONFIDENCE or 50)",
    )
    parser.add_argument(
        "--source-code",
        default="EXTERNAL",
        help="Source code for external rows without a known source_code column (default: EXTERNAL)",
    )
    parser.add_argument("--lookup-tables", type=Path, default=None, help="JSON lookup tables file")
    parser.add_argument("--excel", type=Path, default=None, help="Also export the report to .xlsx")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG logging")

    return parser.parse_args(argv)


def resume_command(argv) -> str:
    return " ".join(shlex.quote(part) for part in [sys.executable, *sys.argv[:1], *argv])


def build_driver(args) -> tuple[BatchComparisonDriver, CsvReportWriter]:
    """Wire engine, catalog reader, checkpoint store and report writer from CLI args."""
    tables = LookupTables.from_json(args.lookup_tables) if args.lookup_tables else LookupTables.default()
    engine = MatchingEngine(config=MatchingConfig.from_env(), tables=tables)

    registry = InMemorySourceRegistry.from_env()
    source_code = args.source_code.strip().upper()
    catalog = FileCatalogReader(
        args.internal,
        args.external,
        default_source=SourceInfo(id=source_code.lower(), code=source_code, name=source_code),
        sources=registry.all(),
    )

    settings = BatchComparisonSettings(
        page_size=args.page_size,
        workers=args.workers,
        min_confidence=args.min_confidence,
    )
    sink = CsvReportWriter(args.output)
    driver = BatchComparisonDriver(
        engine, catalog, JsonCheckpointStore(args.checkpoint), sink, settings=settings
    )
    return driver, sink


def main(argv=None) -> int:
    """Main execution function. Returns the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        driver, sink = build_driver(args)
    except (OSError, ValueError, DomainException) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    def handle_sigint(signum, frame):
        logger.warning("Interrupt received, stopping after the current record...")
        driver.cancel()

    previous_handler = None
    if threading.current_thread() is threading.main_thread():
        previous_handler = signal.signal(signal.SIGINT, handle_sigint)

    logger.info(f"Comparing {args.internal} against {args.external} -> {args.output}")
    try:
        summary = driver.run()
    except DomainException as e:
        logger.error(f"Batch comparison failed: {e}")
        print(f"\nCheckpoint kept at {args.checkpoint}. Resume with:\n  {resume_command(argv)}")
        return EXIT_ERROR
    except Exception as e:
        logger.error(f"Batch comparison failed: {e}", exc_info=True)
        print(f"\nCheckpoint kept at {args.checkpoint}. Resume with:\n  {resume_command(argv)}")
        return EXIT_ERROR
    finally:
        sink.close()
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    if summary.status == JobStatus.CANCELLED:
        print(
            f"\nInterrupted after {summary.processed} records. "
            f"Resume with:\n  {resume_command(argv)}"
        )
        return EXIT_INTERRUPTED

    if args.excel and not args.output.exists():
        logger.warning(f"No report rows written, skipping Excel export to {args.excel}")
    elif args.excel:
        try:
            ExcelReportExporter().export(args.output, args.excel)
            logger.info(f"Excel report saved to {args.excel}")
        except (OSError, ValueError) as e:
            logger.error(f"Excel export failed: {e}")
            return EXIT_ERROR

    logger.info(f"Report saved to {args.output} ({summary.rows_written} rows)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
