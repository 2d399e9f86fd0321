"""
Batch Report Writers

CSV sink for the batch comparison driver and an Excel export of the
finished report.

Responsibility:
    - Append report rows to a CSV file, flushing after every batch of rows
    - Write the header only when the file is new (resumed runs append)
    - Export a finished CSV to a styled .xlsx (header style, tier colours,
      auto-sized columns)

Architecture Notes:
    - Infrastructure Layer (depends on polars and openpyxl)
    - CsvReportWriter implements ReportSinkProtocol
    - Rows are dictionaries keyed by REPORT_COLUMNS
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, Optional, Sequence, Union

import polars as pl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from src.application.services.batch_comparison import REPORT_COLUMNS

logger = logging.getLogger(__name__)

NUMERIC_COLUMNS = frozenset(
    {
        "Internal Price",
        "External Price",
        "Score",
        "Confidence",
        "Name Score",
        "Brand Score",
        "Category Score",
        "Price Score",
        "Price Difference %",
    }
)
TIER_COLUMN = "Quality Tier"


class CsvReportWriter:
    """
    Append-only CSV report (ReportSinkProtocol).

    Examples:
        >>> with CsvReportWriter("/tmp/report.csv") as writer:
        ...     writer.write_rows([row])
        >>> writer.rows_written
        1
    """

    def __init__(
        self, path: Union[str, Path], columns: Sequence[str] = REPORT_COLUMNS
    ) -> None:
        self.path = Path(path)
        self.columns = list(columns)
        self._rows_written = 0
        self._handle: Optional[BinaryIO] = None
        self._needs_header = False

    @property
    def rows_written(self) -> int:
        return self._rows_written

    def write_rows(self, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        if self._handle is None:
            self._open()

        frame = pl.DataFrame(
            {column: [row.get(column) for row in rows] for column in self.columns},
            strict=False,
        )
        frame.write_csv(self._handle, include_header=self._needs_header)
        self._handle.flush()
        self._needs_header = False
        self._rows_written += len(rows)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logger.info(f"Report {self.path} closed ({self._rows_written} rows written)")

    def __enter__(self) -> "CsvReportWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._needs_header = not self.path.exists() or self.path.stat().st_size == 0
        self._handle = self.path.open("ab")
        mode = "new" if self._needs_header else "appending"
        logger.info(f"Writing report to {self.path} ({mode})")


class ExcelReportExporter:
    """
    Convert a finished CSV report into a formatted Excel workbook.

    Tier colours (applied to the "Quality Tier" cell):
        high -> green, review -> yellow, low -> red
    """

    COLOR_HEADER = "DDEBF7"
    COLOR_HIGH = "C6EFCE"
    COLOR_REVIEW = "FFEB9C"
    COLOR_LOW = "FFC7CE"

    def export(self, csv_path: Union[str, Path], output_path: Union[str, Path]) -> Path:
        """
        Write csv_path as an .xlsx file.

        Raises:
            FileNotFoundError: If csv_path does not exist
            OSError: If the workbook cannot be written
        """
        csv_path = Path(csv_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"Report not found: {csv_path}")

        # All columns as strings so identifiers keep their leading zeros
        frame = pl.read_csv(csv_path, infer_schema=False)

        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = "Matches"
        worksheet.append(frame.columns)
        self._style_header(worksheet, len(frame.columns))

        tier_index = frame.columns.index(TIER_COLUMN) if TIER_COLUMN in frame.columns else None
        for row_number, values in enumerate(frame.iter_rows(), start=2):
            worksheet.append(
                [self._cell_value(column, value) for column, value in zip(frame.columns, values)]
            )
            if tier_index is not None:
                color = self._get_color_for_tier(values[tier_index])
                if color:
                    worksheet.cell(row=row_number, column=tier_index + 1).fill = PatternFill(
                        start_color=color, end_color=color, fill_type="solid"
                    )

        worksheet.freeze_panes = "A2"
        self._autosize_columns(worksheet, len(frame.columns))
        result = self._save_workbook(workbook, Path(output_path))
        logger.info(f"Excel report written to {result} ({frame.height} rows)")
        return result

    def _style_header(self, worksheet: Worksheet, column_count: int) -> None:
        fill = PatternFill(
            start_color=self.COLOR_HEADER, end_color=self.COLOR_HEADER, fill_type="solid"
        )
        for column in range(1, column_count + 1):
            cell = worksheet.cell(row=1, column=column)
            cell.font = Font(bold=True)
            cell.fill = fill

    def _get_color_for_tier(self, tier: Optional[str]) -> Optional[str]:
        """
        Examples:
            >>> ExcelReportExporter()._get_color_for_tier("review")
            'FFEB9C'
        """
        return {
            "high": self.COLOR_HIGH,
            "review": self.COLOR_REVIEW,
            "low": self.COLOR_LOW,
        }.get((tier or "").lower())

    @staticmethod
    def _cell_value(column: str, value: Optional[str]) -> Any:
        if value is None or column not in NUMERIC_COLUMNS:
            return value
        try:
            return float(value)
        except ValueError:
            return value

    @staticmethod
    def _autosize_columns(worksheet: Worksheet, column_count: int) -> None:
        for column in range(1, column_count + 1):
            letter = get_column_letter(column)
            max_width = 0
            for cell in worksheet[letter]:
                if cell.value is None:
                    continue
                max_width = max(max_width, len(str(cell.value)))
            # Minimum width of 8 keeps narrow columns visible
            worksheet.column_dimensions[letter].width = max(max_width + 2, 8)

    @staticmethod
    def _save_workbook(workbook: Workbook, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
        return output_path
