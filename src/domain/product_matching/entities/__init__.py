"""
Product Matching Entities.

Entities have identity and lifecycle - they are mutable objects tracked by ID.

Available Entities:
    - CatalogRecord: Internal catalog product record
    - ExternalCatalogRecord: External catalog product record with source
    - MatchRecord: Durable match decision with status lifecycle
    - MatchStatus: Enum of match record statuses
"""

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.entities.match_record import (
    MatchRecord,
    MatchStatus,
)

__all__ = [
    "CatalogRecord",
    "ExternalCatalogRecord",
    "MatchRecord",
    "MatchStatus",
]
