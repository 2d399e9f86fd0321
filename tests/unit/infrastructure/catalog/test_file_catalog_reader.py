"""
Tests for FileCatalogReader.

Covers:
- CSV paging with identifiers kept as text
- Source resolution from the source_code column and the default source
- Source filtering for candidate lookup
- Excel input
- Error wrapping into CatalogLoadError
"""

from decimal import Decimal

import pytest
from openpyxl import Workbook

from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import CatalogLoadError
from src.infrastructure.catalog.file_catalog_reader import FileCatalogReader

INTERNAL_CSV = (
    "id,title,brand,category,price,gtin\n"
    "P-1,Pampers Baby Dry Size 4,Pampers,diapers,20.00,0037000863427\n"
    "P-2,Organic Cotton Blanket,,,,\n"
    "P-3,Joovy Stroller,Joovy,strollers,299.99,\n"
)
EXTERNAL_CSV = (
    "external_id,title,brand,price,source_code\n"
    "B-1,Pampers Baby Dry,Pampers,19.50,amz\n"
    "E-1,Pampers Cruisers,Pampers,22.00,EBAY\n"
    "X-1,Huggies Snug,Huggies,18.00,\n"
)


@pytest.fixture
def amazon():
    return SourceInfo(id="src-amz", code="AMZ", name="Amazon")


@pytest.fixture
def ebay():
    return SourceInfo(id="src-ebay", code="EBAY", name="eBay")


@pytest.fixture
def reader(tmp_path, amazon, ebay):
    internal = tmp_path / "internal.csv"
    external = tmp_path / "external.csv"
    internal.write_text(INTERNAL_CSV, encoding="utf-8")
    external.write_text(EXTERNAL_CSV, encoding="utf-8")
    return FileCatalogReader(internal, external, default_source=amazon, sources=[amazon, ebay])


# ============================================================================
# TESTS - Internal catalog
# ============================================================================


def test_internal_records_are_paged(reader):
    first = reader.load_internal_records(page_size=2, offset=0)
    second = reader.load_internal_records(page_size=2, offset=2)
    beyond = reader.load_internal_records(page_size=2, offset=4)

    assert [r.id for r in first] == ["P-1", "P-2"]
    assert [r.id for r in second] == ["P-3"]
    assert beyond == []


def test_internal_fields_are_parsed(reader):
    p1, p2, _ = reader.load_internal_records(page_size=10, offset=0)

    assert p1.identifier == "0037000863427"
    assert p1.price == Decimal("20.00")
    assert p2.brand is None
    assert p2.price is None


# ============================================================================
# TESTS - External catalog
# ============================================================================


def test_external_sources_resolved_per_row(reader):
    records = reader.load_external_records(page_size=10, offset=0)

    assert [(r.external_key, r.source.code) for r in records] == [
        ("B-1", "AMZ"),
        ("E-1", "EBAY"),
        ("X-1", "AMZ"),
    ]


def test_external_source_filter(reader):
    records = reader.load_external_records(page_size=10, offset=0, source_filter="ebay")

    assert [r.external_key for r in records] == ["E-1"]


def test_source_filter_without_source_column(tmp_path, amazon):
    external = tmp_path / "plain.csv"
    external.write_text("id,title\nB-1,Bottle\n", encoding="utf-8")
    reader = FileCatalogReader(tmp_path / "unused.csv", external, default_source=amazon)

    assert len(reader.load_external_records(10, 0, source_filter="AMZ")) == 1
    assert reader.load_external_records(10, 0, source_filter="EBAY") == []


def test_excel_catalog(tmp_path, amazon):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["id", "title", "gtin"])
    sheet.append(["B-1", "Bottle", "0012345678905"])
    sheet.append(["B-2", "Teether", None])
    path = tmp_path / "external.xlsx"
    workbook.save(path)

    reader = FileCatalogReader(tmp_path / "unused.csv", path, default_source=amazon)
    records = reader.load_external_records(page_size=1, offset=1)

    assert [r.id for r in records] == ["B-2"]
    assert reader.load_external_records(10, 0)[0].identifier == "0012345678905"


# ============================================================================
# TESTS - Errors
# ============================================================================


def test_missing_file_raises_catalog_load_error(tmp_path):
    reader = FileCatalogReader(tmp_path / "missing.csv", tmp_path / "missing.csv")

    with pytest.raises(CatalogLoadError, match="missing.csv") as exc_info:
        reader.load_internal_records(10, 0)

    assert exc_info.value.source == str(tmp_path / "missing.csv")


def test_invalid_row_raises_catalog_load_error(tmp_path):
    internal = tmp_path / "internal.csv"
    internal.write_text("id,title,price\nP-1,Bottle,9.99\nP-2,Teether,abc\n", encoding="utf-8")
    reader = FileCatalogReader(internal, internal)

    with pytest.raises(CatalogLoadError, match="row 2"):
        reader.load_internal_records(10, 0)
