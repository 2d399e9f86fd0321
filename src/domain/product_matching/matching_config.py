"""
Matching Configuration

Configuration constants for the feature scorer and matching engine:
field weights, per-field scores, price bands, penalties, caps, tier
boundaries and acceptance thresholds.

Business Context:
    The scorer combines four semantic fields. The weights reflect how much
    each field identifies a physical product:
    - Name (50%) - Most informative, but noisy across retailers
    - Brand (20%) - Near-binary identity signal
    - Category (15%) - Guards against cross-department false positives
    - Price (15%) - Weak signal, neutral when missing

Design Principles:
    - Configuration as code, injected into the engine (no global state)
    - Two separate acceptance knobs: the engine rejection floor and the
      stricter batch report filter
    - Environment overrides for deployment tuning (from_env)
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Final, Optional

logger = logging.getLogger(__name__)


# ============================================================================
# FEATURE WEIGHTS - must sum to 1.0
# ============================================================================

WEIGHT_NAME: Final[float] = 0.50
WEIGHT_BRAND: Final[float] = 0.20
WEIGHT_CATEGORY: Final[float] = 0.15
WEIGHT_PRICE: Final[float] = 0.15

FEATURE_WEIGHTS_SUM: Final[float] = WEIGHT_NAME + WEIGHT_BRAND + WEIGHT_CATEGORY + WEIGHT_PRICE


# ============================================================================
# FIELD SCORES (0-100)
# ============================================================================

BRAND_EXACT_SCORE: Final[float] = 100.0
BRAND_ALIAS_SCORE: Final[float] = 90.0
BRAND_INFERRED_SCORE: Final[float] = 75.0
BRAND_CONFLICT_SCORE: Final[float] = 0.0
BRAND_INFERRED_THRESHOLD: Final[float] = 0.8  # fuzzy brand similarity must exceed this

CATEGORY_EXACT_SCORE: Final[float] = 100.0
CATEGORY_BRANCH_SCORE: Final[float] = 85.0
CATEGORY_DEPARTMENT_SCORE: Final[float] = 65.0
CATEGORY_CROSS_SCORE: Final[float] = 0.0


# ============================================================================
# PRICE BANDS
# ============================================================================

PRICE_PERFECT_BAND: Final[float] = 0.10  # within +-10% -> 100
PRICE_SALE_RELAX_BAND: Final[float] = 0.15  # perfect band when external is on sale
PRICE_GOOD_BAND: Final[float] = 0.30  # interpolate down to PRICE_FLOOR_SCORE
PRICE_FLOOR_SCORE: Final[float] = 40.0
PRICE_POOR_SCORE: Final[float] = 20.0  # beyond the good band
PRICE_MISSING_SCORE: Final[float] = 70.0  # neutral, not a penalty


# ============================================================================
# NAME PENALTIES AND CAPS
# ============================================================================

ACCESSORY_PENALTY: Final[float] = 10.0
PACK_MISMATCH_PENALTY: Final[float] = 8.0

BRAND_CONFLICT_CAP: Final[float] = 0.60
CROSS_DEPARTMENT_CAP: Final[float] = 0.55
MODEL_MISMATCH_CAP: Final[float] = 0.65


# ============================================================================
# TIERS AND THRESHOLDS
# ============================================================================

HIGH_TIER_THRESHOLD: Final[float] = 85.0  # confidence percent
REVIEW_TIER_THRESHOLD: Final[float] = 70.0

MIN_CANDIDATE_SCORE: Final[float] = 0.30  # engine rejection floor (0-1)
BATCH_MIN_CONFIDENCE: Final[float] = 50.0  # batch report filter (0-100)
MAX_CANDIDATES: Final[int] = 10
IDENTIFIER_WIDTH: Final[int] = 14
DECISION_LOG_CAPACITY: Final[int] = 100


# ============================================================================
# CONFIG DATACLASSES
# ============================================================================


@dataclass(frozen=True)
class FeatureWeights:
    """
    Weight distribution over the four scored fields.

    Usage:
        weights = FeatureWeights.default()
        overall = (weights.name * name + weights.brand * brand + ...) / 100
    """

    name: float = WEIGHT_NAME
    brand: float = WEIGHT_BRAND
    category: float = WEIGHT_CATEGORY
    price: float = WEIGHT_PRICE

    def __post_init__(self) -> None:
        """Validate that weights sum to approximately 1.0"""
        total = self.name + self.brand + self.category + self.price
        if not 0.99 <= total <= 1.01:
            raise ValueError(
                f"Feature weights must sum to 1.0, got {total:.4f}. "
                f"Weights: name={self.name}, brand={self.brand}, "
                f"category={self.category}, price={self.price}"
            )

    @classmethod
    def default(cls) -> "FeatureWeights":
        return cls()

    def to_dict(self) -> dict[str, float]:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "price": self.price,
        }


# Environment variable -> (field name, converter)
_ENV_OVERRIDES: Final[dict[str, tuple[str, type]]] = {
    "MATCHING_MIN_CANDIDATE_SCORE": ("min_candidate_score", float),
    "MATCHING_BATCH_MIN_CONFIDENCE": ("batch_min_confidence", float),
    "MATCHING_MAX_CANDIDATES": ("max_candidates", int),
    "MATCHING_HIGH_TIER": ("high_tier_threshold", float),
    "MATCHING_REVIEW_TIER": ("review_tier_threshold", float),
}


@dataclass(frozen=True)
class MatchingConfig:
    """
    Complete configuration for FeatureScorer and MatchingEngine.

    Encapsulates all tunable values in a single immutable object that is
    passed to the engine constructor.

    Attributes:
        weights: Field weight distribution (name/brand/category/price)
        brand_*_score: Brand field scores per outcome (0-100)
        brand_inferred_threshold: Fuzzy brand similarity needed for "inferred"
        category_*_score: Category field scores per outcome (0-100)
        price_perfect_band: Relative difference scoring 100 (0.10)
        price_sale_relax_band: Perfect band when the external record is on sale
        price_good_band: Upper bound of the interpolated band (0.30)
        price_floor_score: Score at the upper bound of the good band (40)
        price_poor_score: Score beyond the good band (20)
        price_missing_score: Neutral score when a price is absent (70)
        accessory_penalty / pack_mismatch_penalty: Name penalties in points
        *_cap: Score ceilings applied when a risk signal fires
        high_tier_threshold / review_tier_threshold: Tier boundaries (percent)
        min_candidate_score: Engine rejection floor (0-1)
        batch_min_confidence: Batch report filter (percent)
        max_candidates: Result list length per internal record per source
        identifier_width: Zero-padded identifier width
        decision_log_capacity: Decision log ring buffer size

    Usage:
        config = MatchingConfig.default()
        engine = MatchingEngine(config=config)
    """

    weights: FeatureWeights = field(default_factory=FeatureWeights.default)

    brand_exact_score: float = BRAND_EXACT_SCORE
    brand_alias_score: float = BRAND_ALIAS_SCORE
    brand_inferred_score: float = BRAND_INFERRED_SCORE
    brand_conflict_score: float = BRAND_CONFLICT_SCORE
    brand_inferred_threshold: float = BRAND_INFERRED_THRESHOLD

    category_exact_score: float = CATEGORY_EXACT_SCORE
    category_branch_score: float = CATEGORY_BRANCH_SCORE
    category_department_score: float = CATEGORY_DEPARTMENT_SCORE
    category_cross_score: float = CATEGORY_CROSS_SCORE

    price_perfect_band: float = PRICE_PERFECT_BAND
    price_sale_relax_band: float = PRICE_SALE_RELAX_BAND
    price_good_band: float = PRICE_GOOD_BAND
    price_floor_score: float = PRICE_FLOOR_SCORE
    price_poor_score: float = PRICE_POOR_SCORE
    price_missing_score: float = PRICE_MISSING_SCORE

    accessory_penalty: float = ACCESSORY_PENALTY
    pack_mismatch_penalty: float = PACK_MISMATCH_PENALTY

    brand_conflict_cap: float = BRAND_CONFLICT_CAP
    cross_department_cap: float = CROSS_DEPARTMENT_CAP
    model_mismatch_cap: float = MODEL_MISMATCH_CAP

    high_tier_threshold: float = HIGH_TIER_THRESHOLD
    review_tier_threshold: float = REVIEW_TIER_THRESHOLD

    min_candidate_score: float = MIN_CANDIDATE_SCORE
    batch_min_confidence: float = BATCH_MIN_CONFIDENCE
    max_candidates: int = MAX_CANDIDATES
    identifier_width: int = IDENTIFIER_WIDTH
    decision_log_capacity: int = DECISION_LOG_CAPACITY

    def __post_init__(self) -> None:
        """Validate bands, tiers and thresholds"""
        if not 0.0 <= self.min_candidate_score <= 1.0:
            raise ValueError(
                f"min_candidate_score must be 0-1, got {self.min_candidate_score}"
            )
        if not 0.0 <= self.batch_min_confidence <= 100.0:
            raise ValueError(
                f"batch_min_confidence must be 0-100, got {self.batch_min_confidence}"
            )
        if not 0.0 <= self.review_tier_threshold <= self.high_tier_threshold <= 100.0:
            raise ValueError(
                f"Tier thresholds must satisfy 0 <= review <= high <= 100, got "
                f"review={self.review_tier_threshold}, high={self.high_tier_threshold}"
            )
        if not 0.0 < self.price_perfect_band <= self.price_good_band:
            raise ValueError(
                f"Price bands must satisfy 0 < perfect <= good, got "
                f"perfect={self.price_perfect_band}, good={self.price_good_band}"
            )
        if not self.price_perfect_band <= self.price_sale_relax_band <= self.price_good_band:
            raise ValueError(
                f"price_sale_relax_band must lie between perfect and good bands, "
                f"got {self.price_sale_relax_band}"
            )
        for name in ("brand_conflict_cap", "cross_department_cap", "model_mismatch_cap"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be 0-1, got {value}")
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be >= 1, got {self.max_candidates}")
        if self.identifier_width < 1:
            raise ValueError(f"identifier_width must be >= 1, got {self.identifier_width}")
        if self.decision_log_capacity < 1:
            raise ValueError(
                f"decision_log_capacity must be >= 1, got {self.decision_log_capacity}"
            )

    @classmethod
    def default(cls) -> "MatchingConfig":
        """
        Get default configuration from module constants.

        Examples:
            >>> config = MatchingConfig.default()
            >>> config.min_candidate_score
            0.3
            >>> config.batch_min_confidence
            50.0
        """
        return cls()

    @classmethod
    def for_testing(cls, **overrides: Any) -> "MatchingConfig":
        """
        Create configuration with custom overrides for testing.

        Args:
            **overrides: Field values to override (validated by __post_init__)

        Returns:
            MatchingConfig with specified overrides applied

        Raises:
            ValueError: If the resulting configuration is invalid
            TypeError: If an override names an unknown field

        Examples:
            >>> config = MatchingConfig.for_testing(max_candidates=3)
            >>> config.max_candidates
            3
        """
        return replace(cls.default(), **overrides)

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "MatchingConfig":
        """
        Default configuration with optional environment overrides.

        Reads MATCHING_MIN_CANDIDATE_SCORE, MATCHING_BATCH_MIN_CONFIDENCE,
        MATCHING_MAX_CANDIDATES, MATCHING_HIGH_TIER and MATCHING_REVIEW_TIER.

        Args:
            environ: Mapping to read instead of os.environ (tests)

        Raises:
            ValueError: If a variable cannot be converted or the result is invalid
        """
        source = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for variable, (field_name, converter) in _ENV_OVERRIDES.items():
            raw = source.get(variable)
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides[field_name] = converter(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {variable}: {raw!r}") from e

        if overrides:
            logger.info(f"Matching config overrides from environment: {overrides}")
        return replace(cls.default(), **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging"""
        data: dict[str, Any] = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            data[config_field.name] = (
                value.to_dict() if isinstance(value, FeatureWeights) else value
            )
        return data


# ============================================================================
# MODULE-LEVEL VALIDATION
# ============================================================================

assert (
    0.99 <= FEATURE_WEIGHTS_SUM <= 1.01
), f"Feature weights must sum to 1.0, got {FEATURE_WEIGHTS_SUM}"

assert (
    0.0 <= MIN_CANDIDATE_SCORE <= 1.0
), f"Rejection floor must be 0-1, got {MIN_CANDIDATE_SCORE}"

assert (
    REVIEW_TIER_THRESHOLD <= HIGH_TIER_THRESHOLD
), f"Review tier ({REVIEW_TIER_THRESHOLD}) must not exceed high tier ({HIGH_TIER_THRESHOLD})"
