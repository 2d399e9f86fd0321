"""
Pytest Configuration and Shared Fixtures

This module contains pytest configuration and shared fixtures used across
all test suites (unit, integration).

Fixtures:
    - amazon_source / ebay_source: SourceInfo instances
    - make_internal / make_external: Catalog record factories
    - engine: MatchingEngine with a fresh DecisionLog
    - source_registry: InMemorySourceRegistry with both sources
    - match_repository: Empty InMemoryMatchRecordRepository

Architecture Notes:
    - No fixture touches Redis or the network; Redis-backed classes are
      tested against MagicMock clients in their own modules
    - Async code is driven with asyncio.run() inside sync tests

Usage:
    def test_something(engine, make_internal, make_external):
        candidates = engine.find_matches(make_internal(), [make_external()])
"""

import logging

import pytest

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.decision_log import DecisionLog
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.infrastructure.persistence.repositories import (
    InMemoryMatchRecordRepository,
    InMemorySourceRegistry,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# ============================================================================
# SOURCES
# ============================================================================


@pytest.fixture
def amazon_source() -> SourceInfo:
    return SourceInfo(id="src-amz", code="AMZ", name="Amazon")


@pytest.fixture
def ebay_source() -> SourceInfo:
    return SourceInfo(id="src-ebay", code="EBAY", name="eBay")


@pytest.fixture
def source_registry(amazon_source, ebay_source) -> InMemorySourceRegistry:
    return InMemorySourceRegistry([amazon_source, ebay_source])


# ============================================================================
# RECORD FACTORIES
# ============================================================================


@pytest.fixture
def make_internal():
    """
    Factory for internal records with diaper defaults.

    Usage:
        record = make_internal(brand="Huggies", price=None)
    """

    def _make(**overrides) -> CatalogRecord:
        data = {
            "id": "P-1",
            "title": "Pampers Baby Dry Diapers Size 4",
            "brand": "Pampers",
            "category": "diapers",
            "price": "20.00",
            "identifier": None,
        }
        data.update(overrides)
        return CatalogRecord(**data)

    return _make


@pytest.fixture
def make_external(amazon_source):
    """Factory for external records matching make_internal() defaults."""

    def _make(**overrides) -> ExternalCatalogRecord:
        data = {
            "id": "B00X1",
            "title": "Pampers Baby Dry Diapers Size 4",
            "brand": "Pampers",
            "category": "diapers",
            "price": "20.00",
            "identifier": None,
            "source": amazon_source,
        }
        data.update(overrides)
        return ExternalCatalogRecord(**data)

    return _make


# ============================================================================
# ENGINE AND STORAGE
# ============================================================================


@pytest.fixture
def decision_log() -> DecisionLog:
    return DecisionLog(capacity=100)


@pytest.fixture
def engine(decision_log) -> MatchingEngine:
    return MatchingEngine(config=MatchingConfig.default(), decision_log=decision_log)


@pytest.fixture
def match_repository() -> InMemoryMatchRecordRepository:
    return InMemoryMatchRecordRepository()
