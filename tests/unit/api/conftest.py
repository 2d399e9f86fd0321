"""
Common fixtures for API unit tests.

Provides shared test utilities:
- ApiContainer wired with in-memory storage and a MagicMock catalog,
  installed as the process-wide instance for the test
- FastAPI TestClient
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import ApiContainer
from src.api.main import app


@pytest.fixture
def catalog(make_external, ebay_source):
    """Catalog serving two Amazon records and one eBay record."""
    pages = {
        "AMZ": [make_external(id="A-1"), make_external(id="A-2", brand="Huggies")],
        "EBAY": [make_external(id="E-1", source=ebay_source)],
    }

    def load(page_size, offset, source_filter=None):
        return pages.get(source_filter, [])[offset : offset + page_size]

    mock = MagicMock()
    mock.load_external_records.side_effect = load
    return mock


@pytest.fixture
def container(engine, match_repository, source_registry, catalog):
    container = ApiContainer(engine, match_repository, source_registry, catalog)
    ApiContainer._instance = container
    yield container
    ApiContainer.reset_instance()


@pytest.fixture
def client(container):
    """FastAPI TestClient backed by the test container."""
    return TestClient(app)
