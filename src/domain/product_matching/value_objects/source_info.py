"""
SourceInfo Value Object

Identifies the external catalog (retailer, scraper feed) a record comes
from. Candidates and match records reference their origin through it.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class SourceInfo(BaseModel):
    """
    Immutable reference to an external catalog source.

    Attributes:
        id: Stable source identifier used in match records
        code: Short code used by callers and reports (e.g. "AMZ")
        name: Human-readable name
        is_active: Inactive sources are skipped by candidate lookup
        base_config: Free-form per-source settings (scraper config, currency)

    Examples:
        >>> source = SourceInfo(id="src-1", code="amz", name="Amazon")
        >>> source.code
        'AMZ'
    """

    id: str = Field(..., min_length=1, description="Stable source identifier")
    code: str = Field(..., min_length=1, description="Short source code")
    name: str = Field(default="", description="Display name")
    is_active: bool = Field(default=True)
    base_config: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [{"id": "src-1", "code": "AMZ", "name": "Amazon", "is_active": True}]
        },
    }

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        """Source codes are compared case-insensitively; store them upper case."""
        return value.strip().upper()

    @classmethod
    def unknown(cls, source_id: Optional[str] = None) -> "SourceInfo":
        """Placeholder used when an external record carries no source."""
        return cls(id=source_id or "unknown", code="UNKNOWN", name="Unknown source")
