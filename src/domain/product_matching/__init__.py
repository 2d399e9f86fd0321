"""
Product Matching Subdomain Module

Core business logic for linking internal catalog records to external
catalog records: similarity primitives, feature scoring, the matching
engine, the decision log and the match record lifecycle.

Exports:
    Entities:
        - CatalogRecord / ExternalCatalogRecord: Catalog product records
        - MatchRecord / MatchStatus: Durable match decisions

    Value Objects:
        - MatchCandidate, MatchTier, MatchType, FeatureSubscores
        - MatchPair, SourceInfo, MatchQualitySummary

    Services:
        - MatchingEngine, FeatureScorer, LegacySimilarityScorer, DecisionLog

    Repository Interfaces:
        - MatchRecordRepositoryProtocol, CatalogRepositoryProtocol,
          SourceRepositoryProtocol

Usage:
    >>> from src.domain.product_matching import MatchingEngine, CatalogRecord
    >>> from src.domain.product_matching.services import DecisionLog
"""

from . import constants
from . import patterns
from . import matching_config
from .lookup_tables import LookupTables
from .matching_config import FeatureWeights, MatchingConfig

# Entities
from .entities import CatalogRecord, ExternalCatalogRecord, MatchRecord, MatchStatus

# Value Objects
from .value_objects import (
    FeatureSubscores,
    MatchCandidate,
    MatchPair,
    MatchQualitySummary,
    MatchTier,
    MatchType,
    SourceInfo,
)

# Services
from .services import DecisionLog, FeatureScorer, LegacySimilarityScorer, MatchingEngine

# Repository Interfaces
from .repositories import (
    CatalogRepositoryProtocol,
    MatchRecordFilter,
    MatchRecordRepositoryProtocol,
    SourceRepositoryProtocol,
)

__all__ = [
    "constants",
    "patterns",
    "matching_config",
    "LookupTables",
    "FeatureWeights",
    "MatchingConfig",
    # Entities
    "CatalogRecord",
    "ExternalCatalogRecord",
    "MatchRecord",
    "MatchStatus",
    # Value Objects
    "FeatureSubscores",
    "MatchCandidate",
    "MatchPair",
    "MatchQualitySummary",
    "MatchTier",
    "MatchType",
    "SourceInfo",
    # Services
    "DecisionLog",
    "FeatureScorer",
    "LegacySimilarityScorer",
    "MatchingEngine",
    # Repository Interfaces
    "CatalogRepositoryProtocol",
    "MatchRecordFilter",
    "MatchRecordRepositoryProtocol",
    "SourceRepositoryProtocol",
]
