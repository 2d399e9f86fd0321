"""
Tests for BatchProgressTracker.

Covers:
- Key generation
- Snapshots on start / report / complete / fail
- History list trimming and TTLs
- File fallback when Redis is unavailable
"""

import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import RedisError

from src.application.models import JobStatus
from src.infrastructure.persistence.redis.progress_tracker import (
    MAX_HISTORY_ENTRIES,
    BatchProgressTracker,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def mock_redis():
    """Mock Redis client whose pipeline returns itself."""
    redis_mock = MagicMock()
    redis_mock.pipeline.return_value = redis_mock
    redis_mock.execute.return_value = [True, True, True, True]
    return redis_mock


@pytest.fixture
def tracker(mock_redis, tmp_path):
    return BatchProgressTracker(redis=mock_redis, fallback_dir=tmp_path / "fallback")


@pytest.fixture
def run_id():
    return "run-123"


def _stored_snapshot(mock_redis) -> dict:
    key, ttl, payload = mock_redis.setex.call_args_list[0].args
    return json.loads(payload)


# ============================================================================
# TESTS - Keys
# ============================================================================


def test_keys(run_id):
    assert BatchProgressTracker._progress_key(run_id) == "batch:progress:run-123"
    assert BatchProgressTracker._result_key(run_id) == "batch:result:run-123"
    assert BatchProgressTracker._history_key(run_id) == "batch:progress:run-123:history"


# ============================================================================
# TESTS - Writes
# ============================================================================


def test_start_run_stores_processing_snapshot(tracker, mock_redis, run_id):
    tracker.start_run(run_id, total=200)

    key, ttl, _ = mock_redis.setex.call_args.args
    snapshot = _stored_snapshot(mock_redis)
    assert key == "batch:progress:run-123"
    assert ttl == 3600
    assert snapshot["status"] == "processing"
    assert snapshot["progress"] == 0
    assert snapshot["total"] == 200
    assert snapshot["errors"] == []
    mock_redis.execute.assert_called_once()


def test_report_stores_progress_and_history(tracker, mock_redis, run_id):
    tracker.report(run_id, processed=50, total=200, message="50/200", stats={"rows_written": 7})

    snapshot = _stored_snapshot(mock_redis)
    assert snapshot["progress"] == 25
    assert snapshot["processed"] == 50
    assert snapshot["stats"] == {"rows_written": 7}

    history_key, entry = mock_redis.lpush.call_args.args
    assert history_key == "batch:progress:run-123:history"
    assert json.loads(entry)["message"] == "50/200"
    mock_redis.ltrim.assert_called_once_with(history_key, 0, MAX_HISTORY_ENTRIES - 1)
    mock_redis.expire.assert_called_once_with(history_key, 3600)


def test_report_clamps_progress(tracker, mock_redis, run_id):
    tracker.report(run_id, processed=300, total=200, message="resumed")

    assert _stored_snapshot(mock_redis)["progress"] == 100


def test_complete_run_stores_result_with_longer_ttl(tracker, mock_redis, run_id):
    summary = {"total_internal": 10, "processed": 4, "rows_written": 3}

    tracker.complete_run(run_id, summary)

    calls = {c.args[0]: c.args for c in mock_redis.setex.call_args_list}
    progress = json.loads(calls["batch:progress:run-123"][2])
    assert progress["status"] == "completed"
    assert progress["progress"] == 100
    assert calls["batch:result:run-123"][1] == 86400
    assert json.loads(calls["batch:result:run-123"][2]) == summary


def test_complete_run_cancelled_keeps_processed_count(tracker, mock_redis, run_id):
    tracker.complete_run(
        run_id, {"total_internal": 10, "processed": 4}, status=JobStatus.CANCELLED
    )

    progress = _stored_snapshot(mock_redis)
    assert progress["status"] == "cancelled"
    assert progress["progress"] == 40


def test_fail_run_appends_error(tracker, mock_redis, run_id):
    mock_redis.get.return_value = json.dumps(
        {"processed": 5, "total": 10, "errors": ["first"], "stats": {"rows_written": 1}}
    )

    tracker.fail_run(run_id, "second")

    snapshot = json.loads(mock_redis.setex.call_args.args[2])
    assert snapshot["status"] == "failed"
    assert snapshot["errors"] == ["first", "second"]
    assert snapshot["processed"] == 5
    assert snapshot["message"] == "Batch run failed: second"


# ============================================================================
# TESTS - Reads
# ============================================================================


def test_get_status(tracker, mock_redis, run_id):
    mock_redis.get.return_value = json.dumps({"progress": 42})

    assert tracker.get_status(run_id) == {"progress": 42}
    mock_redis.get.assert_called_once_with("batch:progress:run-123")


def test_get_status_unknown_run(tracker, mock_redis, run_id):
    mock_redis.get.return_value = None

    assert tracker.get_status(run_id) is None


def test_get_history(tracker, mock_redis, run_id):
    mock_redis.lrange.return_value = [json.dumps({"progress": 20}), json.dumps({"progress": 10})]

    assert [h["progress"] for h in tracker.get_history(run_id)] == [20, 10]


# ============================================================================
# TESTS - Fallback
# ============================================================================


def test_report_falls_back_to_file(tracker, mock_redis, run_id, tmp_path):
    mock_redis.execute.side_effect = RedisError("down")

    tracker.report(run_id, processed=1, total=2, message="half")

    path = tmp_path / "fallback" / "batch_progress_run-123.json"
    assert json.loads(path.read_text())["progress"]["progress"] == 50


def test_get_status_reads_fallback_when_redis_down(tracker, mock_redis, run_id):
    mock_redis.execute.side_effect = RedisError("down")
    mock_redis.get.side_effect = RedisError("down")
    tracker.complete_run(run_id, {"total_internal": 2, "processed": 2})

    status = tracker.get_status(run_id)

    assert status["status"] == "completed"


def test_reads_never_raise(tracker, mock_redis, run_id):
    mock_redis.get.side_effect = RedisError("down")
    mock_redis.lrange.side_effect = RedisError("down")

    assert tracker.get_status(run_id) is None
    assert tracker.get_result(run_id) is None
    assert tracker.get_history(run_id) == []
