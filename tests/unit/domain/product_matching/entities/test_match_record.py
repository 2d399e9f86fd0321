"""
Tests for MatchRecord entity and MatchPair value object.
Covers: state machine, review metadata, versioning, serialization.
"""

import pytest

from src.domain.product_matching.entities.match_record import (
    MatchRecord,
    MatchStatus,
)
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.shared.exceptions import InvalidMatchTransitionError


@pytest.fixture
def record() -> MatchRecord:
    return MatchRecord(
        local_product_id="P-1",
        external_product_key="B00X1",
        source_id="src-amz",
        score=0.92,
        created_by="alice",
    )


# ============================================================================
# TESTS - Defaults
# ============================================================================


def test_new_record_is_active_version_one(record):
    assert record.status == MatchStatus.MATCHED
    assert record.is_active()
    assert record.version == 1
    assert record.updated_by == "alice"


def test_pair_key(record):
    assert record.pair == MatchPair(
        local_product_id="P-1", external_product_key="B00X1", source_id="src-amz"
    )
    assert record.pair.key == "P-1|B00X1|src-amz"


# ============================================================================
# TESTS - Transitions
# ============================================================================


def test_supersede(record):
    record.supersede(actor="bob")

    assert record.status == MatchStatus.SUPERSEDED
    assert not record.is_active()
    assert record.version == 2
    assert record.updated_by == "bob"


def test_superseded_is_terminal(record):
    record.supersede()

    with pytest.raises(InvalidMatchTransitionError):
        record.transition_to(MatchStatus.MATCHED)
    with pytest.raises(InvalidMatchTransitionError):
        record.review(MatchStatus.NOT_MATCHED, reviewer="bob")


def test_not_matched_cannot_be_superseded(record):
    record.review(MatchStatus.NOT_MATCHED, reviewer="bob")

    with pytest.raises(InvalidMatchTransitionError) as exc_info:
        record.supersede()

    assert exc_info.value.current_status == "not_matched"
    assert exc_info.value.target_status == "superseded"


def test_review_reject_then_confirm(record):
    record.review(MatchStatus.NOT_MATCHED, reviewer="bob", notes="different size")

    assert record.status == MatchStatus.NOT_MATCHED
    assert record.reviewed_by == "bob"
    assert record.reviewed_at == record.updated_at
    assert record.notes == "different size"

    record.review(MatchStatus.MATCHED, reviewer="carol")

    assert record.status == MatchStatus.MATCHED
    assert record.reviewed_by == "carol"
    assert record.notes == "different size"
    assert record.version == 3


def test_review_same_status_refreshes_metadata(record):
    record.review(MatchStatus.MATCHED, reviewer="bob")

    assert record.status == MatchStatus.MATCHED
    assert record.version == 2
    assert record.reviewed_by == "bob"


def test_review_cannot_supersede(record):
    with pytest.raises(InvalidMatchTransitionError, match="supersede"):
        record.review(MatchStatus.SUPERSEDED, reviewer="bob")


# ============================================================================
# TESTS - Serialization
# ============================================================================


def test_to_dict_from_dict_preserves_state(record):
    record.review(MatchStatus.NOT_MATCHED, reviewer="bob", notes="no")

    restored = MatchRecord.from_dict(record.to_dict())

    assert restored == record
    assert restored.to_dict()["status"] == "not_matched"
