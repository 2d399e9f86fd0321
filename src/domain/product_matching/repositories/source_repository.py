"""
SourceRepository Interface

Registry of external catalog sources. Match operations take a source code
and resolve it here.
"""

from typing import Optional, Protocol

from src.domain.product_matching.value_objects.source_info import SourceInfo


class SourceRepositoryProtocol(Protocol):
    async def get_by_code(self, code: str) -> Optional[SourceInfo]:
        """Source by code (case-insensitive), None if unknown."""
        ...

    async def get_by_id(self, source_id: str) -> Optional[SourceInfo]:
        ...

    async def list_active(self) -> list[SourceInfo]:
        """Active sources ordered by code."""
        ...
