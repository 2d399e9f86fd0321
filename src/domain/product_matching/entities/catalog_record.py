"""
Catalog Record Entities.

Records describing a product in the internal catalog or in one of the
external (retailer/scraped) catalogs. Only title, brand, category, price
and identifier are scored; everything else is carried through to output.

Absent vs. empty:
    Optional fields use None for "absent". An absent price is scored as a
    neutral value, while an empty-string price is a data error and raises
    InvalidCatalogRecordError.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import InvalidCatalogRecordError

PriceInput = Union[Decimal, int, float, str, None]


# Column name aliases accepted by from_row(), first match wins
_ID_COLUMNS = ("id", "internal_id", "product_id", "local_product_id")
_EXTERNAL_KEY_COLUMNS = ("external_product_key", "external_key", "external_id", "id")
_TITLE_COLUMNS = ("title", "name", "product_name")
_BRAND_COLUMNS = ("brand", "moombs_brand")
_CATEGORY_COLUMNS = ("category", "moombs_category", "category_id")
_IDENTIFIER_COLUMNS = ("identifier", "gtin", "ean", "upc")
_IMAGE_COLUMNS = ("image", "image_url")
_DESCRIPTION_COLUMNS = ("description", "short_description", "long_description")

# Passthrough attributes copied into candidates when present
PASSTHROUGH_ATTRIBUTES = (
    "product_type",
    "offer_price",
    "color",
    "color_options",
    "size_options",
    "measurements",
    "specifications",
    "dimensions",
)


def _first(row: Mapping[str, Any], columns: tuple[str, ...]) -> Any:
    for column in columns:
        value = row.get(column)
        if value is not None and value != "":
            return value
    return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_price(value: PriceInput, field_name: str = "price") -> Optional[Decimal]:
    """
    Convert a raw price to Decimal, keeping None as "absent".

    Raises:
        InvalidCatalogRecordError: Empty string, non-numeric or negative price

    Examples:
        >>> parse_price("19.99")
        Decimal('19.99')
        >>> parse_price(None) is None
        True
    """
    if value is None:
        return None
    if isinstance(value, str) and value.strip() == "":
        raise InvalidCatalogRecordError(
            "Price is an empty string; use None for an absent price",
            field_name=field_name,
        )
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidCatalogRecordError(
            f"Price is not a number: {value!r}", field_name=field_name
        ) from e
    if not price.is_finite() or price < 0:
        raise InvalidCatalogRecordError(
            f"Price must be a finite, non-negative number, got {value!r}",
            field_name=field_name,
        )
    return price


@dataclass
class CatalogRecord:
    """
    Product record from the internal catalog.

    Attributes:
        id: Record identifier within its catalog
        title: Product title (required for scoring; None/blank is rejected
            by the engine, not by the constructor)
        brand: Brand name
        category: Category label (flat or hierarchical)
        price: Price as Decimal, currency-agnostic
        identifier: GTIN/EAN-like product code (opaque numeric string)
        description, image, sku, url: Display-only fields
        attributes: Further display-only fields (see PASSTHROUGH_ATTRIBUTES)

    Examples:
        >>> record = CatalogRecord(id="P-1", title="Pampers Baby Dry Size 4",
        ...                        brand="Pampers", price="19.99")
        >>> record.price
        Decimal('19.99')
        >>> record.has_title()
        True
    """

    id: str
    title: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    identifier: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    sku: Optional[str] = None
    url: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.id is None or str(self.id).strip() == "":
            raise InvalidCatalogRecordError("Record id is required", field_name="id")
        self.id = str(self.id)
        self.price = parse_price(self.price)
        if self.identifier is not None:
            self.identifier = str(self.identifier).strip() or None

    def has_title(self) -> bool:
        """Title present and not blank."""
        return bool(self.title and self.title.strip())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CatalogRecord":
        """
        Build an internal record from a tabular row (CSV/Excel/DB).

        Accepts common column aliases (name/title, gtin/ean/identifier,
        moombs_brand/brand, ...). Unknown columns listed in
        PASSTHROUGH_ATTRIBUTES are kept in attributes.

        Raises:
            InvalidCatalogRecordError: Missing id or malformed price
        """
        return cls(id=_first(row, _ID_COLUMNS), **_common_fields(row))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (price as string to keep precision)."""
        return {
            "id": self.id,
            "title": self.title,
            "brand": self.brand,
            "category": self.category,
            "price": str(self.price) if self.price is not None else None,
            "identifier": self.identifier,
            "description": self.description,
            "image": self.image,
            "sku": self.sku,
            "url": self.url,
            "attributes": dict(self.attributes),
        }


@dataclass
class ExternalCatalogRecord(CatalogRecord):
    """
    Product record from an external catalog.

    Adds the origin source and the retailer discount marker. `id` is the
    external product key within the source.

    Examples:
        >>> record = ExternalCatalogRecord(id="B00X", title="Pampers Baby Dry",
        ...                                discount="-10%")
        >>> record.on_sale
        True
    """

    source: SourceInfo = field(default_factory=SourceInfo.unknown)
    discount: Optional[str] = None

    @property
    def external_key(self) -> str:
        return self.id

    @property
    def on_sale(self) -> bool:
        """External retailer flags a discount (relaxes the price band)."""
        return bool(self.discount)

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], source: Optional[SourceInfo] = None
    ) -> "ExternalCatalogRecord":
        """Build an external record from a tabular row."""
        return cls(
            id=_first(row, _EXTERNAL_KEY_COLUMNS),
            source=source or SourceInfo.unknown(_optional_text(row.get("source_id"))),
            discount=_optional_text(row.get("discount")) or None,
            **_common_fields(row),
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["source"] = self.source.model_dump()
        data["discount"] = self.discount
        return data


def _common_fields(row: Mapping[str, Any]) -> dict[str, Any]:
    """Map the shared columns of a row to constructor keyword arguments."""
    price = row.get("price")
    return {
        "title": _optional_text(_first(row, _TITLE_COLUMNS)),
        "brand": _optional_text(_first(row, _BRAND_COLUMNS)),
        "category": _optional_text(_first(row, _CATEGORY_COLUMNS)),
        "price": price,
        "identifier": _optional_text(_first(row, _IDENTIFIER_COLUMNS)),
        "description": _optional_text(_first(row, _DESCRIPTION_COLUMNS)),
        "image": _optional_text(_first(row, _IMAGE_COLUMNS)),
        "sku": _optional_text(row.get("sku")),
        "url": _optional_text(row.get("url")),
        "attributes": {
            key: row[key]
            for key in PASSTHROUGH_ATTRIBUTES
            if row.get(key) is not None
        },
    }
