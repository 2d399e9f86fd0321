"""
Product Matching Value Objects.

Immutable objects that represent matching concepts by their value.

Available Value Objects:
    - SourceInfo: Reference to an external catalog source
    - MatchPair: (local product, external key, source) uniqueness key
    - MatchCandidate: Scored, tiered pairing produced by the engine
    - FeatureSubscores: Per-field 0-100 subscores
    - MatchTier / MatchType: Candidate tier and scoring path
    - MatchQualitySummary: Tier counts and score stats over candidates
"""

from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.product_matching.value_objects.match_candidate import (
    FeatureSubscores,
    MatchCandidate,
    MatchQualitySummary,
    MatchTier,
    MatchType,
)

__all__ = [
    "SourceInfo",
    "MatchPair",
    "MatchCandidate",
    "FeatureSubscores",
    "MatchTier",
    "MatchType",
    "MatchQualitySummary",
]
