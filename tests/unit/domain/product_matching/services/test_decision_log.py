"""
Tests for DecisionLog ring buffer.
"""

import json
import threading

import pytest

from src.domain.product_matching.services.decision_log import Decision, DecisionLog


def _record(log: DecisionLog, n: int, decision=Decision.MATCHED, score=None) -> None:
    log.record(f"Internal {n}", f"External {n}", "AMZ", decision, f"reason {n}", score)


# ============================================================================
# TESTS - Capacity
# ============================================================================


def test_capacity_must_be_positive():
    with pytest.raises(ValueError, match="capacity"):
        DecisionLog(capacity=0)


def test_oldest_entries_are_dropped():
    log = DecisionLog(capacity=3)
    for n in range(5):
        _record(log, n)

    assert len(log) == 3
    assert [e.internal_title for e in log.entries()] == ["Internal 2", "Internal 3", "Internal 4"]


def test_concurrent_appends_respect_capacity():
    log = DecisionLog(capacity=50)

    def worker(offset):
        for n in range(100):
            _record(log, offset + n)

    threads = [threading.Thread(target=worker, args=(i * 100,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(log) == 50


# ============================================================================
# TESTS - Queries
# ============================================================================


def test_recent_is_newest_first():
    log = DecisionLog()
    for n in range(5):
        _record(log, n)

    assert [e.internal_title for e in log.recent(2)] == ["Internal 4", "Internal 3"]
    assert log.recent(0) == []


def test_for_product_matches_either_title_case_insensitive():
    log = DecisionLog()
    log.record("Pampers Baby Dry", "Huggies Snug", "AMZ", Decision.REJECTED, "low")
    log.record("Joovy Stroller", "Pampers Cruisers", "AMZ", Decision.MATCHED, "ok")
    log.record("Joovy Stroller", "Bugaboo Fox", "AMZ", Decision.REJECTED, "low")

    entries = log.for_product("pampers")

    assert [e.external_title for e in entries] == ["Pampers Cruisers", "Huggies Snug"]


def test_stats():
    log = DecisionLog()
    _record(log, 1, Decision.MATCHED, 0.9)
    _record(log, 2, Decision.REJECTED, 0.1)
    _record(log, 3, Decision.REJECTED)

    stats = log.stats()

    assert stats == {
        "total": 3,
        "matched": 1,
        "rejected": 2,
        "match_rate": "33.3%",
        "average_score": 0.5,
    }


def test_stats_empty_log():
    assert DecisionLog().stats() == {
        "total": 0,
        "matched": 0,
        "rejected": 0,
        "match_rate": "0%",
        "average_score": 0.0,
    }


def test_clear():
    log = DecisionLog()
    _record(log, 1)
    log.clear()

    assert len(log) == 0


def test_export_json_round_trips_fields():
    log = DecisionLog()
    log.record("A", "B", "AMZ", Decision.MATCHED, "ok", 0.91, {"overall": 0.91})

    [exported] = json.loads(log.export_json())

    assert exported["decision"] == "MATCHED"
    assert exported["score"] == 0.91
    assert exported["breakdown"] == {"overall": 0.91}
    assert "timestamp" in exported
