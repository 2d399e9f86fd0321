"""
API Router for Match Records

Responsibility:
    HTTP interface for the durable match decision lifecycle.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Request bodies are the Application Layer commands themselves
    - Domain errors are mapped to HTTP codes by the global handlers in
      src/api/main.py (409 conflict, 404 not found, 400 other)

Contains:
    - POST   /matches               - Record a decision (matched / not_matched)
    - DELETE /matches               - Soft-delete the active match of a pair
    - POST   /matches/{id}/review   - Confirm or reject a record
    - GET    /matches               - Filtered, paginated listing
"""

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.dependencies import get_list_matches_handler, get_match_service
from src.api.schemas.common import ErrorResponse
from src.application.commands.match_commands import (
    CreateMatchCommand,
    RemoveMatchCommand,
    ReviewMatchCommand,
)
from src.application.queries.list_matches import (
    ListMatchesQuery,
    ListMatchesQueryHandler,
    MatchListResult,
)
from src.application.services.match_service import MatchService
from src.domain.product_matching.entities.match_record import MatchStatus
from src.domain.product_matching.repositories.match_record_repository import (
    DEFAULT_LIST_LIMIT,
)

logger = logging.getLogger(__name__)


class ReviewRequest(BaseModel):
    decision: Literal["confirm", "reject"]
    reviewer: Optional[str] = None
    notes: Optional[str] = None


router = APIRouter(
    prefix="/matches",
    tags=["matches"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid transition or input"},
        404: {"model": ErrorResponse, "description": "Match or source not found"},
        409: {"model": ErrorResponse, "description": "Active match already exists"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Record a match decision for a pair",
)
async def create_match(
    command: CreateMatchCommand,
    service: MatchService = Depends(get_match_service),
) -> dict[str, Any]:
    record = await service.create_match(command)
    return record.to_dict()


@router.delete(
    "",
    status_code=status.HTTP_200_OK,
    summary="Remove (supersede) the active match of a pair",
)
async def remove_match(
    command: RemoveMatchCommand,
    service: MatchService = Depends(get_match_service),
) -> dict[str, Any]:
    record = await service.remove_match(command)
    return record.to_dict()


@router.post(
    "/{match_id}/review",
    status_code=status.HTTP_200_OK,
    summary="Confirm or reject a match record",
)
async def review_match(
    match_id: str,
    request: ReviewRequest,
    service: MatchService = Depends(get_match_service),
) -> dict[str, Any]:
    command = ReviewMatchCommand(match_id=match_id, **request.model_dump())
    record = await service.review_match(command)
    return record.to_dict()


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=MatchListResult,
    summary="List match records",
    description="Filtered listing ordered by created_at descending.",
)
async def list_matches(
    local_product_id: Optional[str] = None,
    external_product_key: Optional[str] = None,
    source_id: Optional[str] = None,
    match_status: Optional[MatchStatus] = Query(default=None, alias="status"),
    reviewed_by: Optional[str] = None,
    tenant_id: Optional[str] = None,
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    handler: ListMatchesQueryHandler = Depends(get_list_matches_handler),
) -> MatchListResult:
    query = ListMatchesQuery(
        local_product_id=local_product_id,
        external_product_key=external_product_key,
        source_id=source_id,
        status=match_status,
        reviewed_by=reviewed_by,
        tenant_id=tenant_id,
        limit=limit,
        offset=offset,
    )
    return await handler.handle(query)
