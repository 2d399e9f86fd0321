"""
Match Record Commands - CQRS Write Commands

Encapsulate the data needed to create, remove and review match records.
Part of CQRS pattern - separates write operations from read operations.

Responsibility:
    - Data holders for the decision persistence use cases
    - Field validation (non-empty keys, score range, allowed statuses)
    - Conversion from API request to application command

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Consumed by MatchService
    - Immutable data structures (Command pattern)
    - Sources are addressed by code; MatchService resolves them to ids
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from src.domain.product_matching.entities.match_record import (
    DEFAULT_CREATE_NOTES,
    MatchStatus,
)


# ============================================================================
# BASE
# ============================================================================


class _PairCommand(BaseModel):
    """Fields shared by commands that address an (internal, external, source) pair."""

    model_config = {"frozen": True}

    local_product_id: str = Field(min_length=1, description="Internal catalog record id")
    external_product_key: str = Field(
        min_length=1, description="External product key within its source"
    )
    source_code: str = Field(min_length=1, description="External source code (e.g. 'AMZ')")
    actor: Optional[str] = Field(default=None, description="User performing the action")

    @field_validator("local_product_id", "external_product_key")
    @classmethod
    def strip_keys(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("source_code")
    @classmethod
    def normalize_source_code(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("source_code must not be blank")
        return value


# ============================================================================
# COMMANDS
# ============================================================================


class CreateMatchCommand(_PairCommand):
    """
    Record a decision about a pair.

    By default records an accepted match ("matched"). Passing
    status="not_matched" records an explicit rejection instead, which marks
    the pair as already decided for future candidate lookups.

    Attributes:
        score: Overall score (0-1) at decision time
        price_delta_pct: Relative price difference in percent
        notes: Free text, defaults to "Created via Match button"
        status: "matched" or "not_matched"
        tenant_id / rule_id / session_id: Optional provenance

    Examples:
        >>> command = CreateMatchCommand(
        ...     local_product_id="P-1", external_product_key="B00X",
        ...     source_code="amz", score=0.91
        ... )
        >>> command.source_code, command.notes
        ('AMZ', 'Created via Match button')
    """

    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    price_delta_pct: Optional[float] = None
    notes: Optional[str] = DEFAULT_CREATE_NOTES
    status: MatchStatus = MatchStatus.MATCHED
    tenant_id: Optional[str] = None
    rule_id: Optional[str] = None
    session_id: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, value: MatchStatus) -> MatchStatus:
        if value == MatchStatus.SUPERSEDED:
            raise ValueError("a new match record cannot start as superseded")
        return value


class RemoveMatchCommand(_PairCommand):
    """
    Soft-delete the active match of a pair (matched -> superseded).

    Raises a MatchNotFoundError in MatchService when no active match exists.
    """


class ReviewMatchCommand(BaseModel):
    """
    Confirm or reject an existing match record.

    Attributes:
        match_id: MatchRecord id
        decision: "confirm" (-> matched) or "reject" (-> not_matched)
        reviewer: Reviewer name
        notes: Optional review notes (replace existing notes when given)
    """

    model_config = {"frozen": True}

    match_id: str = Field(min_length=1)
    decision: Literal["confirm", "reject"]
    reviewer: Optional[str] = None
    notes: Optional[str] = None

    @property
    def target_status(self) -> MatchStatus:
        return MatchStatus.MATCHED if self.decision == "confirm" else MatchStatus.NOT_MATCHED
