"""
CatalogRepository Interface

Paged read contract for the internal and external catalogs. Catalog storage
itself is owned elsewhere; the batch driver only pulls fixed-size pages
until a short or empty page signals the end.
"""

from typing import Optional, Protocol

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)


class CatalogRepositoryProtocol(Protocol):
    """
    Paged catalog reads.

    Implementations raise CatalogLoadError when a page cannot be read.
    """

    def load_internal_records(self, page_size: int, offset: int) -> list[CatalogRecord]:
        """Up to page_size internal records starting at offset."""
        ...

    def load_external_records(
        self,
        page_size: int,
        offset: int,
        source_filter: Optional[str] = None,
    ) -> list[ExternalCatalogRecord]:
        """Up to page_size external records starting at offset, optionally one source."""
        ...
