"""
Tests for InMemoryMatchRecordRepository and InMemorySourceRegistry.
"""

import asyncio
import json

import pytest

from src.domain.product_matching.entities.match_record import MatchRecord, MatchStatus
from src.domain.product_matching.repositories.match_record_repository import (
    MatchRecordFilter,
)
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import MatchConflictError
from src.infrastructure.persistence.repositories import (
    InMemoryMatchRecordRepository,
    InMemorySourceRegistry,
)


def _record(**overrides) -> MatchRecord:
    data = {"local_product_id": "P-1", "external_product_key": "B00X1", "source_id": "src-amz"}
    data.update(overrides)
    return MatchRecord(**data)


# ============================================================================
# TESTS - InMemoryMatchRecordRepository
# ============================================================================


def test_save_and_get_returns_copy(match_repository):
    record = _record()
    asyncio.run(match_repository.save(record))

    loaded = asyncio.run(match_repository.get_by_id(record.id))
    loaded.notes = "changed"

    assert asyncio.run(match_repository.get_by_id(record.id)).notes != "changed"
    assert len(match_repository) == 1


def test_one_active_record_per_pair(match_repository):
    asyncio.run(match_repository.save(_record()))

    with pytest.raises(MatchConflictError):
        asyncio.run(match_repository.save(_record()))


def test_superseding_frees_the_pair(match_repository):
    record = _record()
    asyncio.run(match_repository.save(record))
    record.supersede()
    asyncio.run(match_repository.save(record))

    assert asyncio.run(match_repository.find_active(record.pair)) is None
    replacement = asyncio.run(match_repository.save(_record()))
    assert asyncio.run(match_repository.find_active(record.pair)).id == replacement.id


def test_concurrent_saves_allow_single_winner(match_repository):
    async def attempt():
        try:
            await match_repository.save(_record())
            return True
        except MatchConflictError:
            return False

    async def race():
        return await asyncio.gather(*(attempt() for _ in range(10)))

    assert sum(asyncio.run(race())) == 1


def test_find_latest(match_repository):
    first = _record()
    asyncio.run(match_repository.save(first))
    first.review(MatchStatus.NOT_MATCHED, reviewer="bob")
    asyncio.run(match_repository.save(first))

    latest = asyncio.run(match_repository.find_latest(first.pair))

    assert latest.status == MatchStatus.NOT_MATCHED
    assert asyncio.run(
        match_repository.find_latest(_record(external_product_key="other").pair)
    ) is None


def test_list_filters(match_repository):
    asyncio.run(match_repository.save(_record(external_product_key="A")))
    asyncio.run(match_repository.save(_record(external_product_key="B", tenant_id="t1")))
    asyncio.run(
        match_repository.save(_record(external_product_key="C", status=MatchStatus.NOT_MATCHED))
    )

    items, total = asyncio.run(match_repository.list(MatchRecordFilter(tenant_id="t1")))
    assert total == 1
    assert items[0].external_product_key == "B"

    items, total = asyncio.run(
        match_repository.list(MatchRecordFilter(status=MatchStatus.MATCHED), limit=1, offset=1)
    )
    assert total == 2
    assert len(items) == 1


# ============================================================================
# TESTS - InMemorySourceRegistry
# ============================================================================


def test_registry_lookup_by_code_and_id(source_registry):
    assert asyncio.run(source_registry.get_by_code(" amz ")).id == "src-amz"
    assert asyncio.run(source_registry.get_by_id("src-ebay")).code == "EBAY"
    assert asyncio.run(source_registry.get_by_code("NOPE")) is None


def test_registry_replaces_source_with_same_id(source_registry):
    source_registry.add(SourceInfo(id="src-amz", code="AMZN"))

    assert asyncio.run(source_registry.get_by_code("AMZ")) is None
    assert asyncio.run(source_registry.get_by_code("AMZN")).id == "src-amz"
    assert len(source_registry) == 2


def test_registry_lists_active_sources():
    registry = InMemorySourceRegistry(
        [SourceInfo(id="a", code="A"), SourceInfo(id="b", code="B", is_active=False)]
    )

    assert [s.code for s in asyncio.run(registry.list_active())] == ["A"]
    assert len(registry.all()) == 2


def test_registry_from_json(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(
        json.dumps([{"id": "src-amz", "code": "amz", "name": "Amazon"}]), encoding="utf-8"
    )

    registry = InMemorySourceRegistry.from_json(path)

    assert asyncio.run(registry.get_by_code("AMZ")).name == "Amazon"


@pytest.mark.parametrize("content", ['{"id": "x"}', '[{"name": "no id"}]'])
def test_registry_from_json_rejects_invalid(tmp_path, content):
    path = tmp_path / "sources.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        InMemorySourceRegistry.from_json(path)


def test_registry_from_env(tmp_path, monkeypatch):
    monkeypatch.delenv("SOURCES_FILE", raising=False)
    assert len(InMemorySourceRegistry.from_env()) == 0

    path = tmp_path / "sources.json"
    path.write_text(json.dumps([{"id": "s1", "code": "S1"}]), encoding="utf-8")
    monkeypatch.setenv("SOURCES_FILE", str(path))

    assert len(InMemorySourceRegistry.from_env()) == 1
