"""
Tests for CatalogRecord / ExternalCatalogRecord.
Covers: price parsing (absent vs empty), row mapping with column aliases.
"""

from decimal import Decimal

import pytest

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
    parse_price,
)
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import InvalidCatalogRecordError


# ============================================================================
# TESTS - Price
# ============================================================================


def test_parse_price_values():
    assert parse_price("19.99") == Decimal("19.99")
    assert parse_price(5) == Decimal("5")
    assert parse_price(None) is None


@pytest.mark.parametrize("value", ["", "   ", "abc", "-1", "NaN"])
def test_parse_price_rejects_invalid(value):
    with pytest.raises(InvalidCatalogRecordError) as exc_info:
        parse_price(value)

    assert exc_info.value.field_name == "price"


def test_empty_string_price_is_an_error_absent_is_not():
    assert CatalogRecord(id="P-1", price=None).price is None
    with pytest.raises(InvalidCatalogRecordError, match="empty string"):
        CatalogRecord(id="P-1", price="")


# ============================================================================
# TESTS - Construction
# ============================================================================


def test_id_is_required():
    with pytest.raises(InvalidCatalogRecordError):
        CatalogRecord(id="  ")


def test_blank_identifier_becomes_none():
    assert CatalogRecord(id="P-1", identifier="  ").identifier is None


def test_has_title():
    assert CatalogRecord(id="P-1", title="Bottle").has_title()
    assert not CatalogRecord(id="P-1", title=" ").has_title()
    assert not CatalogRecord(id="P-1").has_title()


# ============================================================================
# TESTS - Row mapping
# ============================================================================


def test_from_row_accepts_aliases_and_passthrough():
    row = {
        "product_id": 42,
        "name": "Baby Bottle",
        "moombs_brand": "Philips",
        "gtin": "8710103876595",
        "price": "9.50",
        "color": "blue",
        "warehouse": "ignored",
    }

    record = CatalogRecord.from_row(row)

    assert record.id == "42"
    assert record.title == "Baby Bottle"
    assert record.brand == "Philips"
    assert record.identifier == "8710103876595"
    assert record.price == Decimal("9.50")
    assert record.attributes == {"color": "blue"}


def test_external_from_row_uses_given_source():
    source = SourceInfo(id="src-amz", code="amz")
    record = ExternalCatalogRecord.from_row(
        {"external_id": "B00X1", "title": "Bottle", "discount": "-10%"}, source
    )

    assert record.external_key == "B00X1"
    assert record.source.code == "AMZ"
    assert record.on_sale


def test_external_from_row_without_source_is_unknown():
    record = ExternalCatalogRecord.from_row({"id": "B00X1", "source_id": "src-9"})

    assert record.source.id == "src-9"
    assert record.source.code == "UNKNOWN"
    assert not record.on_sale


def test_to_dict_keeps_price_precision():
    data = ExternalCatalogRecord(id="B00X1", price="10.10").to_dict()

    assert data["price"] == "10.10"
    assert data["source"]["code"] == "UNKNOWN"
