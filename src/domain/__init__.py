"""
Domain Layer - Core Business Logic

Contains the business rules of catalog matching: entities, value objects,
domain services and repository interfaces. Framework-independent and
highly testable.

Architecture:
    - Clean Architecture: Domain Layer is the center, no external I/O
    - Domain-Driven Design: Entities, Value Objects, Services, Repositories
    - Dependency Inversion: Domain defines interfaces, Infrastructure implements

Subdomains:
    - product_matching: Scoring engine and match record lifecycle
    - shared: Cross-subdomain concepts (exceptions)

Usage:
    >>> from src.domain import MatchingEngine, CatalogRecord, DomainException
    >>> from src.domain.product_matching.services import DecisionLog
"""

# Product Matching Subdomain
from .product_matching import (
    CatalogRecord,
    ExternalCatalogRecord,
    MatchCandidate,
    MatchingEngine,
    MatchRecord,
    MatchRecordRepositoryProtocol,
)

# Shared Domain
from .shared import DomainException

__all__ = [
    "CatalogRecord",
    "ExternalCatalogRecord",
    "MatchCandidate",
    "MatchingEngine",
    "MatchRecord",
    "MatchRecordRepositoryProtocol",
    "DomainException",
]
