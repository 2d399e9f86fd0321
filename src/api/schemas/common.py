"""
Common API Schemas

Shared Pydantic models used across all API routers.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response model for all API errors.

    Attributes:
        code: Machine-readable error code (e.g., "MATCH_CONFLICT", "SOURCE_NOT_FOUND")
        message: Human-readable error message
        details: Optional additional error details (pair, source code, debug info)
    """

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error context"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "MATCH_CONFLICT",
                "message": "Match already exists between these products",
                "details": {
                    "exception_type": "MatchConflictError",
                    "pair": {
                        "local_product_id": "P-1001",
                        "external_product_key": "B00X1",
                        "source_id": "src-amz",
                    },
                },
            }
        }
    }
