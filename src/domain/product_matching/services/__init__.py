"""
Product Matching Domain Services

Stateless scoring services and the decision log.

This module exports:
    - MatchingEngine: Ranks and tiers external candidates for an internal record
    - FeatureScorer: Per-field 0-100 subscores
    - LegacySimilarityScorer: Older weighted aggregate over all primitives
    - DecisionLog: Bounded ring buffer of accept/reject decisions
"""

from .decision_log import Decision, DecisionLog, DecisionLogEntry
from .feature_scorer import FeatureScorer, FeatureScores
from .legacy_similarity import LegacySimilarity, LegacySimilarityScorer
from .matching_engine import MatchingEngine, PairEvaluation

__all__ = [
    "Decision",
    "DecisionLog",
    "DecisionLogEntry",
    "FeatureScorer",
    "FeatureScores",
    "LegacySimilarity",
    "LegacySimilarityScorer",
    "MatchingEngine",
    "PairEvaluation",
]
