"""
MatchingEngine - Domain Service

Scores one internal catalog record against a list of external records and
returns the ranked, tiered candidates. Used by both the interactive
candidate lookup and the batch comparison driver.

Architecture Notes:
    - Pure domain service, synchronous, no shared mutable state apart from
      the optional injected DecisionLog
    - Weights, caps, tiers and thresholds come from MatchingConfig
    - Field scoring is delegated to FeatureScorer

Business Rules:
    - Stage 0: both titles must be present, otherwise the pair is rejected
    - Stage 1: equal zero-padded identifiers short-circuit to score 1.0
    - Stage 2: weighted sum of the four field subscores
    - Stage 3: caps (brand conflict, cross department, model mismatch),
      applied in that order and only ever lowering the score
    - Stage 4: pairs below the rejection floor are discarded
    - Stage 5: tier by confidence percent (high / review / low)
    - One failing external record never aborts the scan
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.services.decision_log import Decision, DecisionLog
from src.domain.product_matching.services.feature_scorer import FeatureScorer
from src.domain.product_matching.services.similarity import normalize_identifier
from src.domain.product_matching.value_objects.match_candidate import (
    FeatureSubscores,
    MatchCandidate,
    MatchTier,
    MatchType,
)
from src.domain.product_matching.value_objects.source_info import SourceInfo

logger = logging.getLogger(__name__)

MISSING_TITLE_REASON = "Missing product title"
IDENTIFIER_MATCH_REASON = "gtin_exact_match"
LOW_TIER_WARNING = "Lower confidence match - review carefully"


@dataclass(frozen=True)
class PairEvaluation:
    """
    Scoring outcome for one pair before acceptance filtering.

    Attributes:
        overall_score: Weighted, capped score (0-1)
        subscores: Per-field 0-100 subscores
        reasons: Field reasons
        penalties: Penalties and risk flags
        caps_applied: Caps that lowered the score, in application order
        match_type: Scoring path
    """

    overall_score: float
    subscores: FeatureSubscores
    reasons: tuple[str, ...]
    penalties: tuple[str, ...]
    caps_applied: tuple[str, ...]
    match_type: MatchType

    @property
    def all_reasons(self) -> list[str]:
        return [r for r in (*self.reasons, *self.penalties, *self.caps_applied) if r]

    def breakdown(self) -> dict:
        return {
            "overall": self.overall_score,
            "subscores": self.subscores.model_dump(),
            "reasons": list(self.reasons),
            "penalties": list(self.penalties),
            "caps_applied": list(self.caps_applied),
            "match_type": self.match_type.value,
        }


@dataclass
class MatchingEngine:
    """
    Rule-based matching engine.

    Attributes:
        config: Weights, caps, tiers and thresholds
        tables: Lookup tables for brand/category/name rules
        decision_log: Optional sink for accept/reject decisions

    Examples:
        >>> engine = MatchingEngine()
        >>> internal = CatalogRecord(id="P-1", title="Pampers Baby Dry Size 4",
        ...                          brand="Pampers", identifier="037000863427")
        >>> external = ExternalCatalogRecord(id="B00X",
        ...     title="Pampers Baby Dry Size 4 Premium Pack",
        ...     brand="Pampers", identifier="037000863427")
        >>> [c.tier for c in engine.find_matches(internal, [external])]
        [<MatchTier.HIGH: 'high'>]
    """

    config: MatchingConfig = field(default_factory=MatchingConfig.default)
    tables: LookupTables = field(default_factory=LookupTables.default)
    decision_log: Optional[DecisionLog] = None
    scorer: FeatureScorer = field(init=False)

    def __post_init__(self) -> None:
        self.scorer = FeatureScorer(config=self.config, tables=self.tables)

    def find_matches(
        self,
        internal: CatalogRecord,
        externals: list[CatalogRecord],
        source: Optional[SourceInfo] = None,
    ) -> list[MatchCandidate]:
        """
        Score an internal record against external records.

        Args:
            internal: Internal catalog record
            externals: External records to compare against
            source: Source of all externals; when None each external's own
                source is used (ExternalCatalogRecord) or SourceInfo.unknown()

        Returns:
            Candidates with overall_score >= min_candidate_score, sorted by
            score descending, at most max_candidates per source
        """
        candidates: list[MatchCandidate] = []
        rejected = 0
        failed = 0

        for external in externals:
            pair_source = source or self._source_of(external)
            try:
                candidate = self.score_pair(internal, external, pair_source)
            except Exception as e:
                failed += 1
                logger.warning(
                    f"Skipping external record {getattr(external, 'id', '?')!r} "
                    f"for internal {internal.id!r}: {type(e).__name__}: {e}"
                )
                continue

            if candidate is None:
                rejected += 1
            else:
                candidates.append(candidate)

        ranked = self._rank(candidates)
        logger.debug(
            f"Matching summary for {internal.id!r}: {len(externals)} processed, "
            f"{len(candidates)} matches, {rejected} rejected, {failed} failed"
        )
        return ranked

    def score_pair(
        self,
        internal: CatalogRecord,
        external: CatalogRecord,
        source: SourceInfo,
    ) -> Optional[MatchCandidate]:
        """
        Score one pair and build its candidate.

        Returns:
            MatchCandidate, or None when the pair is rejected (missing title
            or score below the rejection floor)

        Raises:
            Exception: Anything raised while scoring malformed data;
                find_matches() catches it per pair
        """
        if not internal.has_title() or not external.has_title():
            self._log(internal, external, source, Decision.REJECTED, MISSING_TITLE_REASON)
            return None

        evaluation = self.evaluate_pair(internal, external)

        if evaluation.overall_score < self.config.min_candidate_score:
            self._log(
                internal,
                external,
                source,
                Decision.REJECTED,
                f"Score too low: {evaluation.overall_score * 100:.1f}% < "
                f"{self.config.min_candidate_score * 100:.0f}%",
                evaluation.overall_score,
                evaluation.breakdown(),
            )
            return None

        candidate = self._build_candidate(internal, external, source, evaluation)
        self._log(
            internal,
            external,
            source,
            Decision.MATCHED,
            f"Match found ({candidate.tier.value} tier, "
            f"{candidate.confidence_percent:.1f}% confidence)",
            candidate.overall_score,
            evaluation.breakdown(),
        )
        return candidate

    def evaluate_pair(self, internal: CatalogRecord, external: CatalogRecord) -> PairEvaluation:
        """Stages 1-3: identifier short-circuit, feature scoring and caps."""
        if self.is_identifier_match(internal.identifier, external.identifier):
            return PairEvaluation(
                overall_score=1.0,
                subscores=FeatureSubscores.perfect(),
                reasons=(IDENTIFIER_MATCH_REASON,),
                penalties=(),
                caps_applied=(),
                match_type=MatchType.GTIN_EXACT_MATCH,
            )

        features = self.scorer.score(internal, external)
        weights = self.config.weights
        subscores = features.subscores
        overall = (
            subscores.name * weights.name
            + subscores.brand * weights.brand
            + subscores.category * weights.category
            + subscores.price * weights.price
        ) / 100

        caps_applied = []
        if features.brand_conflict and overall > self.config.brand_conflict_cap:
            overall = self.config.brand_conflict_cap
            caps_applied.append(f"brand_conflict_cap_{self.config.brand_conflict_cap * 100:.0f}")
        if features.cross_department and overall > self.config.cross_department_cap:
            overall = self.config.cross_department_cap
            caps_applied.append(f"cross_dept_cap_{self.config.cross_department_cap * 100:.0f}")
        if features.model_mismatch and overall > self.config.model_mismatch_cap:
            overall = self.config.model_mismatch_cap
            caps_applied.append(f"model_mismatch_cap_{self.config.model_mismatch_cap * 100:.0f}")

        return PairEvaluation(
            overall_score=max(0.0, min(1.0, overall)),
            subscores=subscores,
            reasons=features.reasons,
            penalties=features.penalties,
            caps_applied=tuple(caps_applied),
            match_type=MatchType.FEATURE_SCORED,
        )

    def is_identifier_match(self, identifier1: Optional[str], identifier2: Optional[str]) -> bool:
        """Both identifiers present and equal once zero-padded to fixed width."""
        width = self.config.identifier_width
        normalized1 = normalize_identifier(identifier1, width)
        normalized2 = normalize_identifier(identifier2, width)
        return normalized1 is not None and normalized1 == normalized2

    def classify_tier(self, confidence_percent: float) -> MatchTier:
        """
        Tier by confidence percent.

        Examples:
            >>> engine = MatchingEngine()
            >>> engine.classify_tier(85.0), engine.classify_tier(84.9)
            (<MatchTier.HIGH: 'high'>, <MatchTier.REVIEW: 'review'>)
            >>> engine.classify_tier(69.9)
            <MatchTier.LOW: 'low'>
        """
        if confidence_percent >= self.config.high_tier_threshold:
            return MatchTier.HIGH
        if confidence_percent >= self.config.review_tier_threshold:
            return MatchTier.REVIEW
        return MatchTier.LOW

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_candidate(
        self,
        internal: CatalogRecord,
        external: CatalogRecord,
        source: SourceInfo,
        evaluation: PairEvaluation,
    ) -> MatchCandidate:
        # Rounded to keep tier boundaries stable against float noise
        confidence = round(evaluation.overall_score * 100, 6)
        tier = self.classify_tier(confidence)
        warnings = [LOW_TIER_WARNING] if tier == MatchTier.LOW else []

        return MatchCandidate(
            internal_id=internal.id,
            external_key=external.id,
            source=source,
            overall_score=evaluation.overall_score,
            confidence_percent=confidence,
            tier=tier,
            match_type=evaluation.match_type,
            subscores=evaluation.subscores,
            reasons=evaluation.all_reasons,
            warnings=warnings,
            title=external.title,
            brand=external.brand,
            category=external.category,
            price=float(external.price) if external.price is not None else None,
            identifier=external.identifier,
            image=external.image,
            url=external.url,
            sku=external.sku,
            description=external.description,
            discount=getattr(external, "discount", None),
            attributes=dict(external.attributes),
        )

    def _rank(self, candidates: list[MatchCandidate]) -> list[MatchCandidate]:
        """Sort by score descending, keep max_candidates per source."""
        ordered = sorted(candidates, key=lambda c: c.overall_score, reverse=True)
        kept: list[MatchCandidate] = []
        per_source: dict[str, int] = {}
        for candidate in ordered:
            count = per_source.get(candidate.source.id, 0)
            if count >= self.config.max_candidates:
                continue
            per_source[candidate.source.id] = count + 1
            kept.append(candidate)
        return kept

    @staticmethod
    def _source_of(external: CatalogRecord) -> SourceInfo:
        if isinstance(external, ExternalCatalogRecord):
            return external.source
        return SourceInfo.unknown()

    def _log(
        self,
        internal: CatalogRecord,
        external: CatalogRecord,
        source: SourceInfo,
        decision: Decision,
        reason: str,
        score: Optional[float] = None,
        breakdown: Optional[dict] = None,
    ) -> None:
        if self.decision_log is None:
            return
        self.decision_log.record(
            internal_title=internal.title or "",
            external_title=external.title or "",
            source=source.name or source.code,
            decision=decision,
            reason=reason,
            score=score,
            breakdown=breakdown,
        )
