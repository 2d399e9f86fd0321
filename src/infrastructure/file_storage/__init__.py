"""
File Storage Infrastructure Module

Batch report output (CSV with polars, Excel export with openpyxl).

Exports:
    - CsvReportWriter: Append-only CSV report sink
    - ExcelReportExporter: Styled .xlsx export of a finished report
"""

from .report_writer import CsvReportWriter, ExcelReportExporter

__all__ = [
    "CsvReportWriter",
    "ExcelReportExporter",
]
