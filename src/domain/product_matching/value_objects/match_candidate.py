"""
MatchCandidate Value Object

Ephemeral, engine-produced pairing between one internal record and one
external record, scored and tiered but not yet a durable decision.

Responsibility:
    - Carry the overall score, confidence percent, tier and per-field subscores
    - Carry human-readable reasons (including which penalties and caps fired)
    - Copy the external record's display fields for the reviewer
    - Summarize a candidate list (tier counts, average and top score)

Architecture Notes:
    - Value Object (immutable, defined by values)
    - Uses Pydantic for validation and JSON serialization
    - Never persisted as-is; a reviewer/batch turns it into a MatchRecord
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from src.domain.product_matching.value_objects.source_info import SourceInfo


class MatchTier(str, Enum):
    """
    Confidence bucket of a scored candidate.

    HIGH: confidence >= 85, safe to accept
    REVIEW: 70 <= confidence < 85, needs a look
    LOW: below 70, shown only with a warning
    """

    HIGH = "high"
    REVIEW = "review"
    LOW = "low"


class MatchType(str, Enum):
    """Which scoring path produced the candidate."""

    GTIN_EXACT_MATCH = "GTIN_EXACT_MATCH"
    FEATURE_SCORED = "FEATURE_SCORED"


class FeatureSubscores(BaseModel):
    """Per-field subscores on the 0-100 scale."""

    name: float = Field(default=0.0, ge=0.0, le=100.0)
    brand: float = Field(default=0.0, ge=0.0, le=100.0)
    category: float = Field(default=0.0, ge=0.0, le=100.0)
    price: float = Field(default=0.0, ge=0.0, le=100.0)

    model_config = {"frozen": True}

    @classmethod
    def perfect(cls) -> "FeatureSubscores":
        """All fields 100 (identifier exact match)."""
        return cls(name=100.0, brand=100.0, category=100.0, price=100.0)


class MatchCandidate(BaseModel):
    """
    Immutable scored pairing produced by MatchingEngine.find_matches().

    Attributes:
        internal_id: Internal record identifier
        external_key: External record key within its source
        source: Origin catalog of the external record
        overall_score: Weighted, capped score (0-1)
        confidence_percent: overall_score x 100
        tier: high / review / low
        match_type: GTIN_EXACT_MATCH or FEATURE_SCORED
        subscores: Per-field 0-100 subscores
        reasons: Similarity reasons, penalties and caps that fired (in that order)
        warnings: Reviewer-facing warnings (low tier)
        title..attributes: Copies of the external record's display fields
        already_decided: Status of an existing match record for the pair, if any

    Examples:
        >>> candidate.tier
        <MatchTier.HIGH: 'high'>
        >>> candidate.reasons
        ['gtin_exact_match']
    """

    internal_id: str
    external_key: str
    source: SourceInfo

    overall_score: float = Field(..., ge=0.0, le=1.0)
    confidence_percent: float = Field(..., ge=0.0, le=100.0)
    tier: MatchTier
    match_type: MatchType = MatchType.FEATURE_SCORED
    subscores: FeatureSubscores = Field(default_factory=FeatureSubscores)
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # External display fields (carried through, never scored)
    title: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    identifier: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    discount: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    already_decided: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_confidence(self) -> "MatchCandidate":
        """confidence_percent must equal overall_score x 100."""
        if abs(self.confidence_percent - self.overall_score * 100) > 0.01:
            raise ValueError(
                f"confidence_percent {self.confidence_percent} does not match "
                f"overall_score {self.overall_score}"
            )
        return self

    @property
    def source_code(self) -> str:
        return self.source.code

    def with_decision(self, status: Optional[str]) -> "MatchCandidate":
        """Copy annotated with an existing match record status."""
        return self.model_copy(update={"already_decided": status})


class MatchQualitySummary(BaseModel):
    """Tier counts and score statistics over a candidate list."""

    total: int = 0
    high: int = 0
    review: int = 0
    low: int = 0
    average_score: float = 0.0
    top_score: float = 0.0

    model_config = {"frozen": True}

    @classmethod
    def summarize(cls, candidates: list[MatchCandidate]) -> "MatchQualitySummary":
        """
        Build a summary of a candidate list.

        Scores are reported as confidence percent, rounded to one decimal.

        Examples:
            >>> MatchQualitySummary.summarize([]).total
            0
        """
        if not candidates:
            return cls()

        confidences = [c.confidence_percent for c in candidates]
        return cls(
            total=len(candidates),
            high=sum(1 for c in candidates if c.tier == MatchTier.HIGH),
            review=sum(1 for c in candidates if c.tier == MatchTier.REVIEW),
            low=sum(1 for c in candidates if c.tier == MatchTier.LOW),
            average_score=round(sum(confidences) / len(confidences), 1),
            top_score=round(max(confidences), 1),
        )
