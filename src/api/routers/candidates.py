"""
API Router for Interactive Candidate Lookup

Responsibility:
    HTTP interface for ranking external candidates for one internal product.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Delegates to CandidateLookupService (Application Layer)
    - The internal record is sent in the request body, so the caller does
      not need the internal catalog file on the server

Contains:
    - POST /candidates - Ranked candidates across active sources
"""

import logging
from decimal import Decimal
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_candidate_lookup_service
from src.api.schemas.common import ErrorResponse
from src.application.services.candidate_lookup_service import (
    DEFAULT_LOOKUP_LIMIT,
    CandidateLookupResult,
    CandidateLookupService,
)
from src.domain.product_matching.entities.catalog_record import CatalogRecord

logger = logging.getLogger(__name__)


# ============================================================================
# REQUEST MODELS
# ============================================================================


class InternalProductPayload(BaseModel):
    """Internal catalog record to match (same fields as CatalogRecord)."""

    id: str = Field(min_length=1)
    title: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Union[Decimal, str]] = Field(
        default=None, description="Decimal value; an empty string is rejected"
    )
    identifier: Optional[str] = Field(default=None, description="GTIN/EAN/UPC")
    description: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> CatalogRecord:
        return CatalogRecord(**self.model_dump())


class CandidateLookupRequest(BaseModel):
    product: InternalProductPayload
    limit: int = Field(default=DEFAULT_LOOKUP_LIMIT, ge=1, le=200)
    source_codes: Optional[list[str]] = Field(
        default=None, description="Restrict to these source codes (default: all active)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "product": {
                    "id": "P-1001",
                    "title": "Pampers Baby Dry Diapers Size 4, 120 Count",
                    "brand": "Pampers",
                    "category": "Baby > Diapering > Diapers",
                    "price": "39.99",
                    "identifier": "037000863427",
                },
                "limit": 10,
            }
        }
    }


# ============================================================================
# ROUTER
# ============================================================================


router = APIRouter(
    prefix="/candidates",
    tags=["candidates"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid product data"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    response_model=CandidateLookupResult,
    summary="Rank external candidates for an internal product",
)
async def find_candidates(
    request: CandidateLookupRequest,
    service: CandidateLookupService = Depends(get_candidate_lookup_service),
) -> CandidateLookupResult:
    """
    Score the product against every active source and return the merged,
    ranked candidates. Each candidate carries `already_decided` when a
    match record exists for the pair.
    """
    result = await service.lookup(
        request.product.to_record(),
        limit=request.limit,
        source_codes=request.source_codes,
    )
    logger.info(
        f"Candidate lookup {request.product.id}: {result.summary.total} candidates "
        f"(high={result.summary.high}, review={result.summary.review}, low={result.summary.low})"
    )
    return result
