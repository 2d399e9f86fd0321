"""
Catalog Infrastructure Module

Exports:
    - FileCatalogReader: Paged CSV/Excel catalog reads (CatalogRepositoryProtocol)
"""

from .file_catalog_reader import FileCatalogReader

__all__ = ["FileCatalogReader"]
