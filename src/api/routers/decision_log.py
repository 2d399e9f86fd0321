"""
API Router for the Decision Log

Read-only view of the engine's recent accept/reject decisions, for
debugging why a pair was or was not proposed.

Contains:
    - GET /decision-log        - Recent entries, or entries for one product
    - GET /decision-log/stats  - Counts, match rate and average score
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_decision_log
from src.domain.product_matching.services.decision_log import (
    DEFAULT_RECENT_LIMIT,
    DecisionLog,
)

router = APIRouter(prefix="/decision-log", tags=["decision-log"])


@router.get("", status_code=status.HTTP_200_OK, summary="Recent matching decisions")
async def get_decisions(
    product: Optional[str] = Query(
        default=None, description="Case-insensitive substring of either title"
    ),
    limit: int = Query(default=DEFAULT_RECENT_LIMIT, ge=1, le=1000),
    log: DecisionLog = Depends(get_decision_log),
) -> dict[str, Any]:
    entries = log.for_product(product)[:limit] if product else log.recent(limit)
    return {
        "entries": [entry.to_dict() for entry in entries],
        "count": len(entries),
        "capacity": log.capacity,
    }


@router.get("/stats", status_code=status.HTTP_200_OK, summary="Decision statistics")
async def get_decision_stats(log: DecisionLog = Depends(get_decision_log)) -> dict[str, Any]:
    return log.stats()
