"""
Tests for CsvReportWriter and ExcelReportExporter.
"""

import polars as pl
import pytest
from openpyxl import load_workbook

from src.application.services.batch_comparison import REPORT_COLUMNS
from src.infrastructure.file_storage.report_writer import (
    CsvReportWriter,
    ExcelReportExporter,
)


def _row(internal_id: str, tier: str = "high", **overrides) -> dict:
    row = {column: "" for column in REPORT_COLUMNS}
    row.update(
        {
            "Internal ID": internal_id,
            "External ID": "B-1",
            "Internal EAN/GTIN": "0037000863427",
            "Score": 0.91,
            "Confidence": 91.0,
            "Quality Tier": tier,
        }
    )
    row.update(overrides)
    return row


# ============================================================================
# TESTS - CsvReportWriter
# ============================================================================


def test_file_is_created_lazily(tmp_path):
    path = tmp_path / "report.csv"

    with CsvReportWriter(path) as writer:
        writer.write_rows([])

    assert not path.exists()
    assert writer.rows_written == 0


def test_header_written_once(tmp_path):
    path = tmp_path / "out" / "report.csv"

    with CsvReportWriter(path) as writer:
        writer.write_rows([_row("P-1")])
        writer.write_rows([_row("P-2"), _row("P-3")])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Internal ID,External ID")
    assert len(lines) == 4
    assert writer.rows_written == 3


def test_resumed_run_appends_without_header(tmp_path):
    path = tmp_path / "report.csv"
    with CsvReportWriter(path) as writer:
        writer.write_rows([_row("P-1")])

    with CsvReportWriter(path) as writer:
        writer.write_rows([_row("P-2")])

    frame = pl.read_csv(path, infer_schema=False)
    assert frame["Internal ID"].to_list() == ["P-1", "P-2"]
    assert frame["Internal EAN/GTIN"].to_list() == ["0037000863427", "0037000863427"]
    assert frame.columns == REPORT_COLUMNS


# ============================================================================
# TESTS - ExcelReportExporter
# ============================================================================


def test_excel_export_styles_tiers(tmp_path):
    csv_path = tmp_path / "report.csv"
    with CsvReportWriter(csv_path) as writer:
        writer.write_rows([_row("P-1", "high"), _row("P-2", "review"), _row("P-3", "low")])

    result = ExcelReportExporter().export(csv_path, tmp_path / "xlsx" / "report.xlsx")

    sheet = load_workbook(result).active
    tier_column = REPORT_COLUMNS.index("Quality Tier") + 1
    assert sheet.title == "Matches"
    assert sheet.cell(row=1, column=1).value == "Internal ID"
    assert sheet.cell(row=1, column=1).font.bold
    assert sheet.cell(row=2, column=3).value == "0037000863427"
    assert sheet.cell(row=2, column=REPORT_COLUMNS.index("Score") + 1).value == 0.91
    assert sheet.cell(row=2, column=tier_column).fill.start_color.rgb.endswith("C6EFCE")
    assert sheet.cell(row=3, column=tier_column).fill.start_color.rgb.endswith("FFEB9C")
    assert sheet.cell(row=4, column=tier_column).fill.start_color.rgb.endswith("FFC7CE")
    assert sheet.freeze_panes == "A2"


def test_excel_export_requires_csv(tmp_path):
    with pytest.raises(FileNotFoundError):
        ExcelReportExporter().export(tmp_path / "missing.csv", tmp_path / "out.xlsx")


def test_get_color_for_tier():
    exporter = ExcelReportExporter()

    assert exporter._get_color_for_tier("HIGH") == ExcelReportExporter.COLOR_HIGH
    assert exporter._get_color_for_tier(None) is None
