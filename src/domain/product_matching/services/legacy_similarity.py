"""
Legacy Aggregate Similarity

Older weighted aggregate over all five similarity primitives, kept for the
"simple" comparison path and for diagnostics next to the feature scorer.

Business Rules:
    - Name (0.25) and category (0.25) always contribute
    - Brand (0.35), identifier (0.25) and price (0.05) contribute only when
      both records carry the field
    - The weighted sum is normalized by the weights that actually applied
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from src.domain.product_matching.services.similarity import (
    brand_similarity,
    category_similarity,
    identifier_similarity,
    name_similarity,
    price_similarity,
)

if TYPE_CHECKING:
    from src.domain.product_matching.entities.catalog_record import CatalogRecord


LEGACY_WEIGHT_NAME: float = 0.25
LEGACY_WEIGHT_BRAND: float = 0.35
LEGACY_WEIGHT_IDENTIFIER: float = 0.25
LEGACY_WEIGHT_CATEGORY: float = 0.25
LEGACY_WEIGHT_PRICE: float = 0.05


@dataclass(frozen=True)
class LegacySimilarity:
    """Aggregate 0-1 score plus the raw per-field similarities."""

    overall: float
    name: float
    brand: float
    category: float
    price: float
    identifier: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": round(self.overall, 4),
            "breakdown": {
                "name": round(self.name, 4),
                "brand": round(self.brand, 4),
                "category": round(self.category, 4),
                "price": round(self.price, 4),
                "identifier": round(self.identifier, 4),
            },
        }


class LegacySimilarityScorer:
    """
    Weighted aggregate similarity between two catalog records.

    Examples:
        >>> scorer = LegacySimilarityScorer()
        >>> result = scorer.score(internal, external)
        >>> 0.0 <= result.overall <= 1.0
        True
    """

    def score(self, first: "CatalogRecord", second: "CatalogRecord") -> LegacySimilarity:
        name = name_similarity(first.title, second.title)
        brand = brand_similarity(first.brand, second.brand)
        category = category_similarity(first.category, second.category)
        price = price_similarity(first.price, second.price)
        identifier = identifier_similarity(first.identifier, second.identifier)

        weighted_sum = name * LEGACY_WEIGHT_NAME + category * LEGACY_WEIGHT_CATEGORY
        total_weight = LEGACY_WEIGHT_NAME + LEGACY_WEIGHT_CATEGORY

        if first.brand and second.brand:
            weighted_sum += brand * LEGACY_WEIGHT_BRAND
            total_weight += LEGACY_WEIGHT_BRAND
        if first.identifier and second.identifier:
            weighted_sum += identifier * LEGACY_WEIGHT_IDENTIFIER
            total_weight += LEGACY_WEIGHT_IDENTIFIER
        if first.price and second.price:
            weighted_sum += price * LEGACY_WEIGHT_PRICE
            total_weight += LEGACY_WEIGHT_PRICE

        overall = min(weighted_sum / total_weight, 1.0)
        return LegacySimilarity(
            overall=overall,
            name=name,
            brand=brand,
            category=category,
            price=price,
            identifier=identifier,
        )
