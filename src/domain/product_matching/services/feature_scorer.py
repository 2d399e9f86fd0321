"""
FeatureScorer - Domain Service

Turns the similarity primitives into per-field 0-100 subscores for one
internal x external record pair, applying field-specific rules and
penalties and raising the risk flags consumed by the engine's caps.

Architecture Notes:
    - Pure domain service (no I/O), stateless between calls
    - Thresholds and field scores come from an injected MatchingConfig
    - Brand aliases, category branches/departments and vocabularies come
      from an injected LookupTables

Business Rules:
    - Name: semantic similarity x 100, minus accessory (-10) and pack (-8)
      penalties; core-gear model mismatch only raises a flag
    - Brand: exact 100, alias 90, inferred 75, else 0 with brand conflict;
      an absent brand scores 0 without conflict
    - Category: exact 100, same branch 85, same department 65, else 0 with
      cross-department; an absent category scores 0 without the flag
    - Price: absent 70 (neutral); perfect band 100; linear to 40 at 30%;
      beyond that 20; an external discount widens the perfect band
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.matching_config import MatchingConfig
from src.domain.product_matching.patterns import MODEL_TOKEN_PATTERN, PACK_COUNT_PATTERN
from src.domain.product_matching.services.similarity import (
    brand_similarity,
    name_similarity,
    relative_price_difference,
)
from src.domain.product_matching.value_objects.match_candidate import FeatureSubscores


@dataclass(frozen=True)
class NameScore:
    score: float
    reasons: tuple[str, ...] = ()
    penalties: tuple[str, ...] = ()
    model_mismatch: bool = False


@dataclass(frozen=True)
class BrandScore:
    score: float
    reasons: tuple[str, ...] = ()
    conflict: bool = False


@dataclass(frozen=True)
class CategoryScore:
    score: float
    reasons: tuple[str, ...] = ()
    cross_department: bool = False


@dataclass(frozen=True)
class PriceScore:
    score: float
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeatureScores:
    """
    All four field results for one pair.

    Attributes:
        subscores: 0-100 per field
        reasons: Field reasons in name/brand/category/price order
        penalties: Penalties and risk flags that fired
        brand_conflict / cross_department / model_mismatch: Cap triggers
    """

    subscores: FeatureSubscores
    reasons: tuple[str, ...]
    penalties: tuple[str, ...]
    brand_conflict: bool
    cross_department: bool
    model_mismatch: bool


@dataclass
class FeatureScorer:
    """
    Per-field scoring of an internal/external pair.

    Examples:
        >>> scorer = FeatureScorer()
        >>> scorer.score_brand("Pampers", "pampers").score
        100.0
        >>> scorer.score_price(None, Decimal("10")).reasons
        ('price_missing->neutral70',)
    """

    config: MatchingConfig = field(default_factory=MatchingConfig.default)
    tables: LookupTables = field(default_factory=LookupTables.default)

    def score(self, internal: CatalogRecord, external: CatalogRecord) -> FeatureScores:
        """Score all four fields of a pair."""
        on_sale = isinstance(external, ExternalCatalogRecord) and external.on_sale

        name = self.score_name(internal.title or "", external.title or "")
        brand = self.score_brand(internal.brand, external.brand)
        category = self.score_category(internal.category, external.category)
        price = self.score_price(internal.price, external.price, on_sale=on_sale)

        penalties = list(name.penalties)
        if brand.conflict:
            penalties.append("brand_conflict")
        if category.cross_department:
            penalties.append("cross_dept")

        return FeatureScores(
            subscores=FeatureSubscores(
                name=name.score,
                brand=brand.score,
                category=category.score,
                price=price.score,
            ),
            reasons=name.reasons + brand.reasons + category.reasons + price.reasons,
            penalties=tuple(penalties),
            brand_conflict=brand.conflict,
            cross_department=category.cross_department,
            model_mismatch=name.model_mismatch,
        )

    # ------------------------------------------------------------------
    # Name
    # ------------------------------------------------------------------

    def score_name(self, name1: str, name2: str) -> NameScore:
        if not name1 or not name2:
            return NameScore(score=0.0)

        semantic = name_similarity(name1, name2)
        score = semantic * 100
        penalties = []

        if self.has_accessory_mismatch(name1, name2):
            score -= self.config.accessory_penalty
            penalties.append(f"accessory_confusion:-{self.config.accessory_penalty:g}")

        if self.has_pack_mismatch(name1, name2):
            score -= self.config.pack_mismatch_penalty
            penalties.append(f"pack_mismatch:-{self.config.pack_mismatch_penalty:g}")

        model_mismatch = self.has_model_mismatch(name1, name2)
        if model_mismatch:
            penalties.append("model_mismatch_core")

        return NameScore(
            score=max(0.0, min(100.0, score)),
            reasons=(f"name_sem:{semantic:.2f}",),
            penalties=tuple(penalties),
            model_mismatch=model_mismatch,
        )

    def has_accessory_mismatch(self, name1: str, name2: str) -> bool:
        """Exactly one of the two names mentions an accessory word."""
        return self.tables.mentions_accessory(name1) != self.tables.mentions_accessory(name2)

    @staticmethod
    def has_pack_mismatch(name1: str, name2: str) -> bool:
        """
        Pack/count quantities differ, or only one name states one.

        Examples:
            >>> FeatureScorer.has_pack_mismatch("Wipes 3 pack", "Wipes 6 pack")
            True
            >>> FeatureScorer.has_pack_mismatch("Wipes 3 pack", "Wipes 3pack")
            False
        """
        pack1 = PACK_COUNT_PATTERN.search(name1)
        pack2 = PACK_COUNT_PATTERN.search(name2)
        if pack1 and pack2:
            return int(pack1.group(1)) != int(pack2.group(1))
        return (pack1 is None) != (pack2 is None)

    def has_model_mismatch(self, name1: str, name2: str) -> bool:
        """Core gear on either side, model tokens on both, none shared."""
        if not (self.tables.mentions_core_gear(name1) or self.tables.mentions_core_gear(name2)):
            return False
        models1 = set(MODEL_TOKEN_PATTERN.findall(name1))
        models2 = set(MODEL_TOKEN_PATTERN.findall(name2))
        return bool(models1) and bool(models2) and models1.isdisjoint(models2)

    # ------------------------------------------------------------------
    # Brand
    # ------------------------------------------------------------------

    def score_brand(self, brand1: Optional[str], brand2: Optional[str]) -> BrandScore:
        if not brand1 or not brand2:
            return BrandScore(score=0.0)

        normalized1 = brand1.lower().strip()
        normalized2 = brand2.lower().strip()

        if normalized1 == normalized2:
            return BrandScore(score=self.config.brand_exact_score, reasons=("brand:exact",))

        if self.tables.are_brand_aliases(normalized1, normalized2):
            return BrandScore(score=self.config.brand_alias_score, reasons=("brand:alias",))

        if brand_similarity(brand1, brand2) > self.config.brand_inferred_threshold:
            return BrandScore(
                score=self.config.brand_inferred_score, reasons=("brand:inferred",)
            )

        return BrandScore(
            score=self.config.brand_conflict_score,
            reasons=("brand:conflict",),
            conflict=True,
        )

    # ------------------------------------------------------------------
    # Category
    # ------------------------------------------------------------------

    def score_category(
        self, category1: Optional[str], category2: Optional[str]
    ) -> CategoryScore:
        if not category1 or not category2:
            return CategoryScore(score=0.0)

        normalized1 = category1.lower().strip()
        normalized2 = category2.lower().strip()

        if normalized1 == normalized2:
            return CategoryScore(
                score=self.config.category_exact_score, reasons=("category:exact-leaf",)
            )

        if self.tables.same_branch(normalized1, normalized2):
            return CategoryScore(
                score=self.config.category_branch_score, reasons=("category:same-branch",)
            )

        if self.tables.same_department(normalized1, normalized2):
            return CategoryScore(
                score=self.config.category_department_score,
                reasons=("category:department",),
            )

        return CategoryScore(
            score=self.config.category_cross_score,
            reasons=("category:cross-dept",),
            cross_department=True,
        )

    # ------------------------------------------------------------------
    # Price
    # ------------------------------------------------------------------

    def score_price(
        self,
        price1: Optional[Decimal],
        price2: Optional[Decimal],
        on_sale: bool = False,
    ) -> PriceScore:
        """
        Banded price score.

        Examples:
            >>> FeatureScorer().score_price(Decimal("100"), Decimal("105")).score
            100.0
            >>> FeatureScorer().score_price(Decimal("100"), Decimal("200")).reasons
            ('price:diff-67%',)
        """
        if not price1 or not price2:
            return PriceScore(
                score=self.config.price_missing_score,
                reasons=(f"price_missing->neutral{self.config.price_missing_score:g}",),
            )

        relative = relative_price_difference(price1, price2)
        if relative is None:
            return PriceScore(
                score=self.config.price_missing_score,
                reasons=(f"price_missing->neutral{self.config.price_missing_score:g}",),
            )

        perfect_band = (
            self.config.price_sale_relax_band if on_sale else self.config.price_perfect_band
        )
        reasons = ["sale_relax"] if on_sale else []
        percent = f"{relative * 100:.0f}"

        if relative <= perfect_band:
            reasons.append(f"price:within-{percent}%")
            return PriceScore(score=100.0, reasons=tuple(reasons))

        good_band = self.config.price_good_band
        if relative <= good_band:
            position = (relative - perfect_band) / (good_band - perfect_band)
            drop = 100.0 - self.config.price_floor_score
            reasons.append(f"price:within-{percent}%")
            # Half-up rounding to whole points
            score = float(math.floor(100.0 - position * drop + 0.5))
            return PriceScore(score=score, reasons=tuple(reasons))

        reasons.append(f"price:diff-{percent}%")
        return PriceScore(score=self.config.price_poor_score, reasons=tuple(reasons))
