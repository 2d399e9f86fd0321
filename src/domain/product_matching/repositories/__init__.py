"""
Product Matching Repository Interfaces.

Contracts defined in the Domain Layer and implemented in Infrastructure.

Available Interfaces:
    - MatchRecordRepositoryProtocol: Match decision persistence
    - MatchRecordFilter: Listing filter
    - CatalogRepositoryProtocol: Paged catalog reads
    - SourceRepositoryProtocol: External source registry
"""

from src.domain.product_matching.repositories.catalog_repository import (
    CatalogRepositoryProtocol,
)
from src.domain.product_matching.repositories.match_record_repository import (
    DEFAULT_LIST_LIMIT,
    MatchRecordFilter,
    MatchRecordRepositoryProtocol,
)
from src.domain.product_matching.repositories.source_repository import (
    SourceRepositoryProtocol,
)

__all__ = [
    "CatalogRepositoryProtocol",
    "DEFAULT_LIST_LIMIT",
    "MatchRecordFilter",
    "MatchRecordRepositoryProtocol",
    "SourceRepositoryProtocol",
]
