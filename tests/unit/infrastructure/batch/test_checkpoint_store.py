"""
Tests for JsonCheckpointStore.
"""

import json

import pytest

from src.domain.shared.exceptions import CheckpointError
from src.infrastructure.batch.checkpoint_store import JsonCheckpointStore


@pytest.fixture
def store(tmp_path):
    return JsonCheckpointStore(tmp_path / "checkpoint.json")


def test_missing_file_is_fresh_start(store):
    assert not store.exists()
    assert store.load() == set()


def test_save_and_load(store):
    store.save({"P-2", "P-1"})

    assert store.exists()
    assert store.load() == {"P-1", "P-2"}

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data["processed_internal_ids"] == ["P-1", "P-2"]
    assert data["total_processed"] == 2
    assert "last_updated" in data


def test_save_leaves_no_temp_file(store, tmp_path):
    store.save({"P-1"})

    assert [p.name for p in tmp_path.iterdir()] == ["checkpoint.json"]


def test_ids_are_loaded_as_strings(store):
    store.path.write_text(json.dumps({"processed_internal_ids": [1, 2]}), encoding="utf-8")

    assert store.load() == {"1", "2"}


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"processed_internal_ids": 5}'])
def test_corrupt_checkpoint_is_fresh_start(store, content):
    store.path.write_text(content, encoding="utf-8")

    assert store.load() == set()


def test_save_failure_raises_checkpoint_error(tmp_path):
    target = tmp_path / "occupied"
    target.mkdir()
    store = JsonCheckpointStore(target)

    with pytest.raises(CheckpointError) as exc_info:
        store.save({"P-1"})

    assert exc_info.value.path == str(target)


def test_delete(store):
    store.save({"P-1"})
    store.delete()
    store.delete()

    assert not store.exists()
