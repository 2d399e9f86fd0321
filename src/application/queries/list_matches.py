"""
ListMatchesQuery - CQRS Read Query

Query object and handler for paging through match records.
Part of CQRS pattern - separates read operations from write operations.

Responsibility:
    - Query: Filters plus pagination
    - Handler: Executes the query against MatchRecordRepositoryProtocol

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Results ordered by created_at descending (repository contract)
    - Result DTO is converted to the API response by the router
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.domain.product_matching.entities.match_record import MatchStatus
from src.domain.product_matching.repositories.match_record_repository import (
    DEFAULT_LIST_LIMIT,
    MatchRecordFilter,
    MatchRecordRepositoryProtocol,
)


class ListMatchesQuery(BaseModel):
    """
    Filters and pagination for listing match records.

    Every filter is optional; unset filters match everything.

    Examples:
        >>> ListMatchesQuery(local_product_id="P-1", status="matched").limit
        50
    """

    model_config = {"frozen": True}

    local_product_id: Optional[str] = None
    external_product_key: Optional[str] = None
    source_id: Optional[str] = None
    status: Optional[MatchStatus] = None
    reviewed_by: Optional[str] = None
    tenant_id: Optional[str] = None
    limit: int = Field(default=DEFAULT_LIST_LIMIT, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

    def to_filter(self) -> MatchRecordFilter:
        return MatchRecordFilter(
            local_product_id=self.local_product_id,
            external_product_key=self.external_product_key,
            source_id=self.source_id,
            status=self.status,
            reviewed_by=self.reviewed_by,
            tenant_id=self.tenant_id,
        )


class MatchListResult(BaseModel):
    """
    Result DTO returned by ListMatchesQueryHandler.

    Attributes:
        items: Match records as dictionaries (MatchRecord.to_dict())
        total: Number of records matching the filters (before pagination)
        limit: Page size used
        offset: Offset used
    """

    items: list[dict[str, Any]]
    total: int
    limit: int
    offset: int


class ListMatchesQueryHandler:
    """
    Handler for listing match records.

    Usage:
        handler = ListMatchesQueryHandler(repository)
        result = await handler.handle(ListMatchesQuery(status="matched"))
    """

    def __init__(self, repository: MatchRecordRepositoryProtocol):
        self.repository = repository

    async def handle(self, query: ListMatchesQuery) -> MatchListResult:
        items, total = await self.repository.list(
            query.to_filter(), limit=query.limit, offset=query.offset
        )
        return MatchListResult(
            items=[record.to_dict() for record in items],
            total=total,
            limit=query.limit,
            offset=query.offset,
        )
