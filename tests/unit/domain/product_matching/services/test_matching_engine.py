"""
Tests for MatchingEngine.

Covers:
- Title gate and identifier short-circuit
- Weighted sum and caps (brand conflict, cross department, model mismatch)
- Rejection floor, tiers and warnings
- Ranking, per-source candidate cap, per-pair failure isolation
- Decision log side effects
"""

from unittest.mock import patch

import pytest

from src.domain.product_matching.entities.catalog_record import CatalogRecord
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.decision_log import Decision
from src.domain.product_matching.services.matching_engine import (
    IDENTIFIER_MATCH_REASON,
    LOW_TIER_WARNING,
    MISSING_TITLE_REASON,
    MatchingEngine,
)
from src.domain.product_matching.value_objects.match_candidate import MatchTier, MatchType
from src.domain.product_matching.value_objects.source_info import SourceInfo


# ============================================================================
# TITLE GATE AND IDENTIFIER
# ============================================================================


def test_missing_title_is_rejected_and_logged(engine, decision_log, make_internal, make_external):
    candidates = engine.find_matches(make_internal(), [make_external(title="   ")])

    assert candidates == []
    entry = decision_log.recent(1)[0]
    assert entry.decision == Decision.REJECTED
    assert entry.reason == MISSING_TITLE_REASON


def test_identifier_match_short_circuits(engine, make_internal, make_external):
    internal = make_internal(identifier="037000863427", brand="Pampers")
    external = make_external(
        identifier="00037000863427", brand="Huggies", title="Totally different listing"
    )

    [candidate] = engine.find_matches(internal, [external])

    assert candidate.overall_score == 1.0
    assert candidate.confidence_percent == 100.0
    assert candidate.tier == MatchTier.HIGH
    assert candidate.match_type == MatchType.GTIN_EXACT_MATCH
    assert candidate.reasons == [IDENTIFIER_MATCH_REASON]
    assert candidate.subscores.name == 100.0


def test_identifier_match_still_requires_titles(engine, make_internal, make_external):
    internal = make_internal(identifier="037000863427", title=None)

    assert engine.find_matches(internal, [make_external(identifier="037000863427")]) == []


def test_is_identifier_match_requires_both(engine):
    assert engine.is_identifier_match("123", "0000123")
    assert not engine.is_identifier_match(None, None)
    assert not engine.is_identifier_match("123", None)


# ============================================================================
# WEIGHTED SUM AND CAPS
# ============================================================================


def test_identical_records_score_one(engine, make_internal, make_external):
    [candidate] = engine.find_matches(make_internal(), [make_external()])

    assert candidate.overall_score == pytest.approx(1.0)
    assert candidate.match_type == MatchType.FEATURE_SCORED
    assert candidate.tier == MatchTier.HIGH
    assert "brand:exact" in candidate.reasons


def test_brand_conflict_caps_score(engine, make_internal, make_external):
    [candidate] = engine.find_matches(make_internal(), [make_external(brand="Huggies")])

    # 0.50 + 0.15 + 0.15 = 0.80 before the cap
    assert candidate.overall_score == pytest.approx(0.60)
    assert "brand_conflict" in candidate.reasons
    assert "brand_conflict_cap_60" in candidate.reasons
    assert candidate.tier == MatchTier.LOW
    assert candidate.warnings == [LOW_TIER_WARNING]


def test_cross_department_caps_score(engine, make_internal, make_external):
    [candidate] = engine.find_matches(
        make_internal(category="feeding"), [make_external(category="toys")]
    )

    assert candidate.overall_score == pytest.approx(0.55)
    assert "cross_dept_cap_55" in candidate.reasons


def test_caps_apply_in_order_and_only_lower(engine, make_internal, make_external):
    [candidate] = engine.find_matches(
        make_internal(category="feeding"),
        [make_external(brand="Huggies", category="toys")],
    )

    # Name 100 and price 100 only: 0.65 -> 0.60 (brand) -> 0.55 (category)
    assert candidate.overall_score == pytest.approx(0.55)
    assert candidate.reasons[-2:] == ["brand_conflict_cap_60", "cross_dept_cap_55"]


def test_model_mismatch_caps_core_gear(engine, make_internal, make_external):
    internal = make_internal(
        title="Joovy Stroller B500", brand="Joovy", category="strollers", price="300"
    )
    external = make_external(
        title="Joovy Stroller B700", brand="Joovy", category="strollers", price="300"
    )

    [candidate] = engine.find_matches(internal, [external])

    assert candidate.overall_score == pytest.approx(0.65)
    assert "model_mismatch_core" in candidate.reasons
    assert "model_mismatch_cap_65" in candidate.reasons


# ============================================================================
# REJECTION FLOOR AND TIERS
# ============================================================================


def test_low_score_is_rejected_and_logged(engine, decision_log):
    internal = CatalogRecord(id="P-1", title="Stroller Rain Cover")
    external = CatalogRecord(id="X-1", title="Organic Cotton Blanket")

    assert engine.find_matches(internal, [external]) == []

    entry = decision_log.recent(1)[0]
    assert entry.decision == Decision.REJECTED
    assert entry.reason == "Score too low: 10.5% < 30%"
    assert entry.score == pytest.approx(0.105)
    assert entry.breakdown["match_type"] == "FEATURE_SCORED"


def test_rejection_floor_is_configurable(make_internal, make_external):
    engine = MatchingEngine(config=MatchingConfig.for_testing(min_candidate_score=0.9))

    assert engine.find_matches(make_internal(), [make_external(brand="Huggies")]) == []


@pytest.mark.parametrize(
    "confidence,tier",
    [
        (100.0, MatchTier.HIGH),
        (85.0, MatchTier.HIGH),
        (84.9, MatchTier.REVIEW),
        (70.0, MatchTier.REVIEW),
        (69.9, MatchTier.LOW),
        (30.0, MatchTier.LOW),
    ],
)
def test_classify_tier_boundaries(engine, confidence, tier):
    assert engine.classify_tier(confidence) == tier


# ============================================================================
# RANKING AND ISOLATION
# ============================================================================


def test_results_sorted_by_score(engine, make_internal, make_external):
    externals = [
        make_external(id="X-conflict", brand="Huggies"),
        make_external(id="X-exact"),
    ]

    candidates = engine.find_matches(make_internal(), externals)

    assert [c.external_key for c in candidates] == ["X-exact", "X-conflict"]


def test_candidate_cap_is_per_source(make_internal, make_external, amazon_source, ebay_source):
    engine = MatchingEngine(config=MatchingConfig.for_testing(max_candidates=2))
    externals = [make_external(id=f"A-{i}", source=amazon_source) for i in range(3)]
    externals += [make_external(id=f"E-{i}", source=ebay_source) for i in range(3)]

    candidates = engine.find_matches(make_internal(), externals)

    assert len(candidates) == 4
    assert sum(1 for c in candidates if c.source_code == "AMZ") == 2
    assert sum(1 for c in candidates if c.source_code == "EBAY") == 2


def test_explicit_source_overrides_record_source(engine, make_internal, make_external):
    override = SourceInfo(id="src-x", code="X")

    [candidate] = engine.find_matches(make_internal(), [make_external()], override)

    assert candidate.source == override


def test_plain_record_gets_unknown_source(engine, make_internal):
    external = CatalogRecord(id="X-1", title="Pampers Baby Dry Diapers Size 4")

    [candidate] = engine.find_matches(make_internal(), [external])

    assert candidate.source == SourceInfo.unknown()


def test_failing_pair_is_skipped(engine, make_internal, make_external):
    externals = [make_external(id="X-bad"), make_external(id="X-good")]
    original = engine.scorer.score

    def flaky(internal, external):
        if external.id == "X-bad":
            raise ValueError("corrupt record")
        return original(internal, external)

    with patch.object(engine.scorer, "score", side_effect=flaky):
        candidates = engine.find_matches(make_internal(), externals)

    assert [c.external_key for c in candidates] == ["X-good"]


# ============================================================================
# CANDIDATE CONTENT
# ============================================================================


def test_candidate_copies_external_display_fields(engine, make_internal, make_external):
    external = make_external(
        url="https://example.com/p/1",
        image="https://example.com/p/1.jpg",
        sku="SKU-1",
        discount="-5%",
        attributes={"color": "white"},
    )

    [candidate] = engine.find_matches(make_internal(), [external])

    assert candidate.title == external.title
    assert candidate.price == 20.0
    assert candidate.url == "https://example.com/p/1"
    assert candidate.discount == "-5%"
    assert candidate.attributes == {"color": "white"}
    assert candidate.already_decided is None


def test_matched_decision_is_logged(engine, decision_log, make_internal, make_external):
    engine.find_matches(make_internal(), [make_external()])

    entry = decision_log.recent(1)[0]
    assert entry.decision == Decision.MATCHED
    assert entry.source == "Amazon"
    assert entry.reason.startswith("Match found (high tier")


def test_engine_without_decision_log(make_internal, make_external):
    engine = MatchingEngine()

    assert len(engine.find_matches(make_internal(), [make_external()])) == 1
