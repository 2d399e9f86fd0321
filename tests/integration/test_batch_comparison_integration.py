"""
Integration tests for the batch comparison pipeline.

Real files end to end: FileCatalogReader -> MatchingEngine ->
BatchComparisonDriver -> CsvReportWriter / JsonCheckpointStore, plus the
run_bulk_comparison CLI.

Covers:
- Full run over CSV catalogs with identifier and feature-scored matches
- Resume after a failure produces the same report as an uninterrupted run
- CLI exit codes (0, 1, 130) and Excel export
"""

import json
from unittest.mock import patch

import polars as pl
import pytest

from scripts.run_bulk_comparison import EXIT_ERROR, EXIT_INTERRUPTED, EXIT_OK, main
from src.application.models import JobStatus
from src.application.services.batch_comparison import (
    BatchComparisonDriver,
    BatchComparisonSettings,
    BatchRunSummary,
)
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.infrastructure.batch.checkpoint_store import JsonCheckpointStore
from src.infrastructure.catalog.file_catalog_reader import FileCatalogReader
from src.infrastructure.file_storage.report_writer import CsvReportWriter

INTERNAL_CSV = (
    "id,title,brand,category,price,gtin\n"
    "P-1,Pampers Baby Dry Diapers Size 4,Pampers,diapers,20.00,\n"
    "P-2,Philips Avent Natural Baby Bottle 9oz,Philips,bottles,12.99,0075020028714\n"
    "P-3,Organic Cotton Swaddle Blanket,,,15.00,\n"
    "P-4,Huggies Snug and Dry Diapers Size 4,Huggies,diapers,19.00,\n"
)
EXTERNAL_CSV = (
    "external_id,title,brand,category,price,gtin\n"
    "B-1,Pampers Baby Dry Diapers Size 4,Pampers,diapers,20.50,\n"
    "B-2,Avent Bottle (single),Philips,bottles,13.49,0075020028714\n"
    "B-3,Joovy Caboose Stroller,Joovy,strollers,299.00,\n"
)


@pytest.fixture
def catalogs(tmp_path):
    internal = tmp_path / "internal.csv"
    external = tmp_path / "external.csv"
    internal.write_text(INTERNAL_CSV, encoding="utf-8")
    external.write_text(EXTERNAL_CSV, encoding="utf-8")
    return internal, external


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("SOURCES_FILE", raising=False)
    monkeypatch.delenv("MATCHING_BATCH_MIN_CONFIDENCE", raising=False)


def _run(catalogs, output, checkpoint, engine=None, **settings):
    internal, external = catalogs
    reader = FileCatalogReader(
        internal, external, default_source=SourceInfo(id="amz", code="AMZ", name="Amazon")
    )
    with CsvReportWriter(output) as sink:
        driver = BatchComparisonDriver(
            engine or MatchingEngine(config=MatchingConfig.default()),
            reader,
            JsonCheckpointStore(checkpoint),
            sink,
            settings=BatchComparisonSettings(**settings),
        )
        return driver.run()


def _report_pairs(path):
    frame = pl.read_csv(path, infer_schema=False)
    return sorted(zip(frame["Internal ID"].to_list(), frame["External ID"].to_list()))


# ============================================================================
# TESTS - Driver over real files
# ============================================================================


def test_full_run(catalogs, tmp_path):
    output = tmp_path / "report.csv"
    checkpoint = tmp_path / "checkpoint.json"

    summary = _run(catalogs, output, checkpoint, min_confidence=90.0, page_size=2)

    assert summary.status == JobStatus.COMPLETED
    assert summary.total_internal == 4
    assert summary.total_external == 3
    assert ("P-1", "B-1") in _report_pairs(output)
    assert ("P-2", "B-2") in _report_pairs(output)
    assert not checkpoint.exists()

    frame = pl.read_csv(output, infer_schema=False)
    gtin_row = frame.filter(pl.col("Internal ID") == "P-2").row(0, named=True)
    assert gtin_row["Scenario Match (EAN or fallback)"] == "IDENTIFIER_EXACT"
    assert gtin_row["Internal EAN/GTIN"] == "0075020028714"
    assert gtin_row["Confidence"] == "100.0"
    assert summary.scenario_counts["IDENTIFIER_EXACT"] == 1


def test_resume_after_failure_matches_uninterrupted_run(catalogs, tmp_path):
    baseline = tmp_path / "baseline.csv"
    _run(catalogs, baseline, tmp_path / "baseline.json", min_confidence=50.0)

    output = tmp_path / "report.csv"
    checkpoint = tmp_path / "checkpoint.json"
    engine = MatchingEngine(config=MatchingConfig.default())
    original = engine.find_matches

    def fail_on_p3(internal, externals, source=None):
        if internal.id == "P-3":
            raise RuntimeError("worker lost")
        return original(internal, externals, source)

    with patch.object(engine, "find_matches", side_effect=fail_on_p3):
        with pytest.raises(RuntimeError):
            _run(catalogs, output, checkpoint, engine=engine, min_confidence=50.0)

    saved = json.loads(checkpoint.read_text(encoding="utf-8"))
    assert saved["processed_internal_ids"] == ["P-1", "P-2"]

    summary = _run(catalogs, output, checkpoint, min_confidence=50.0)

    assert summary.status == JobStatus.COMPLETED
    assert summary.skipped_from_checkpoint == 2
    assert _report_pairs(output) == _report_pairs(baseline)
    assert not checkpoint.exists()


# ============================================================================
# TESTS - CLI
# ============================================================================


def _cli_args(catalogs, tmp_path, *extra):
    internal, external = catalogs
    return [
        "--internal", str(internal),
        "--external", str(external),
        "--output", str(tmp_path / "cli.csv"),
        "--checkpoint", str(tmp_path / "cli.checkpoint.json"),
        *extra,
    ]


def test_cli_completes_and_exports_excel(catalogs, tmp_path):
    code = main(_cli_args(catalogs, tmp_path, "--excel", str(tmp_path / "cli.xlsx")))

    assert code == EXIT_OK
    assert (tmp_path / "cli.csv").exists()
    assert (tmp_path / "cli.xlsx").exists()
    assert not (tmp_path / "cli.checkpoint.json").exists()


def test_cli_without_rows_skips_excel(catalogs, tmp_path):
    internal, _ = catalogs
    external = tmp_path / "strollers.csv"
    external.write_text(
        "external_id,title,brand,category,price\nB-3,Joovy Caboose Stroller,Joovy,strollers,299.00\n",
        encoding="utf-8",
    )

    code = main(
        _cli_args((internal, external), tmp_path, "--excel", str(tmp_path / "cli.xlsx"))
    )

    assert code == EXIT_OK
    assert not (tmp_path / "cli.csv").exists()
    assert not (tmp_path / "cli.xlsx").exists()


def test_cli_invalid_configuration(catalogs, tmp_path):
    assert main(_cli_args(catalogs, tmp_path, "--workers", "0")) == EXIT_ERROR


def test_cli_missing_catalog_prints_resume_command(catalogs, tmp_path, capsys):
    args = _cli_args(catalogs, tmp_path)
    args[1] = str(tmp_path / "missing.csv")

    assert main(args) == EXIT_ERROR
    assert "Resume with:" in capsys.readouterr().out


def test_cli_interrupted(catalogs, tmp_path, capsys):
    cancelled = BatchRunSummary(run_id="r", status=JobStatus.CANCELLED, processed=2)

    with patch.object(BatchComparisonDriver, "run", return_value=cancelled):
        code = main(_cli_args(catalogs, tmp_path))

    assert code == EXIT_INTERRUPTED
    out = capsys.readouterr().out
    assert "Interrupted after 2 records" in out
    assert "--internal" in out
