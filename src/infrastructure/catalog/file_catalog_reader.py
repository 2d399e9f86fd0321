"""
File Catalog Reader

Paged reads of the internal and external catalogs from CSV or Excel files.
Implements CatalogRepositoryProtocol for the batch comparison driver and
the interactive candidate lookup.

Responsibility:
    - Read one page (offset, page_size) at a time
    - Read every column as text so identifiers keep leading zeros
    - Resolve each external row's source from a "source_code" column, or
      fall back to the configured default source
    - Wrap I/O, parse and row validation failures in CatalogLoadError

Architecture Notes:
    - Infrastructure Layer (depends on polars; Excel through fastexcel,
      openpyxl as fallback engine)
    - CSV is scanned lazily, only the requested slice is materialized
    - Excel files are loaded once and cached, then sliced
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import polars as pl

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import CatalogLoadError, DomainException

logger = logging.getLogger(__name__)

SOURCE_CODE_COLUMN = "source_code"
EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm", ".xls"})


class FileCatalogReader:
    """
    CSV/Excel-backed catalog pages.

    Examples:
        >>> reader = FileCatalogReader("internal.csv", "external.csv",
        ...                            default_source=SourceInfo(id="amz", code="AMZ"))
        >>> page = reader.load_internal_records(page_size=1000, offset=0)
    """

    def __init__(
        self,
        internal_path: Union[str, Path],
        external_path: Union[str, Path],
        default_source: Optional[SourceInfo] = None,
        sources: Iterable[SourceInfo] = (),
    ) -> None:
        self.internal_path = Path(internal_path)
        self.external_path = Path(external_path)
        self.default_source = default_source
        self._sources_by_code = {source.code: source for source in sources}
        self._excel_cache: dict[str, pl.DataFrame] = {}

    def load_internal_records(self, page_size: int, offset: int) -> list[CatalogRecord]:
        rows = self._read_page(self.internal_path, page_size, offset)
        return [
            self._build(self.internal_path, offset + i, CatalogRecord.from_row, row)
            for i, row in enumerate(rows)
        ]

    def load_external_records(
        self,
        page_size: int,
        offset: int,
        source_filter: Optional[str] = None,
    ) -> list[ExternalCatalogRecord]:
        rows = self._read_page(self.external_path, page_size, offset, source_filter)
        return [
            self._build(
                self.external_path,
                offset + i,
                lambda r: ExternalCatalogRecord.from_row(r, self._source_for(r)),
                row,
            )
            for i, row in enumerate(rows)
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _source_for(self, row: dict[str, Any]) -> Optional[SourceInfo]:
        code = row.get(SOURCE_CODE_COLUMN)
        if code:
            source = self._sources_by_code.get(str(code).strip().upper())
            if source is not None:
                return source
        return self.default_source

    def _default_source_is(self, code: str) -> bool:
        if self.default_source is None:
            return False
        return self.default_source.code == code.strip().upper()

    def _read_page(
        self,
        path: Path,
        page_size: int,
        offset: int,
        source_filter: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        try:
            frame = self._lazy_frame(path)
            if source_filter:
                if SOURCE_CODE_COLUMN in frame.collect_schema().names():
                    frame = frame.filter(
                        pl.col(SOURCE_CODE_COLUMN).str.strip_chars().str.to_uppercase()
                        == source_filter.strip().upper()
                    )
                elif not self._default_source_is(source_filter):
                    return []
            return frame.slice(offset, page_size).collect().to_dicts()
        except (OSError, pl.exceptions.PolarsError) as e:
            raise CatalogLoadError(
                f"Cannot read catalog file {path} at offset {offset}: {e}", str(path), e
            ) from e

    def _lazy_frame(self, path: Path) -> pl.LazyFrame:
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")
        if path.suffix.lower() in EXCEL_SUFFIXES:
            return self._read_excel(path).lazy()
        return pl.scan_csv(path, infer_schema=False)

    def _read_excel(self, path: Path) -> pl.DataFrame:
        cache_key = str(path)
        if cache_key in self._excel_cache:
            return self._excel_cache[cache_key]
        try:
            frame = pl.read_excel(path, infer_schema_length=0)
        except Exception as e:
            logger.warning(f"Default Excel engine failed for {path}, retrying with openpyxl: {e}")
            frame = pl.read_excel(path, engine="openpyxl", infer_schema_length=0)
        self._excel_cache[cache_key] = frame
        return frame

    @staticmethod
    def _build(path: Path, row_number: int, factory, row: dict[str, Any]):
        try:
            return factory(row)
        except DomainException as e:
            raise CatalogLoadError(
                f"Invalid record at row {row_number + 1} of {path}: {e.message}", str(path), e
            ) from e
