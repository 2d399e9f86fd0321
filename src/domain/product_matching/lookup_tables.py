"""
Lookup Tables

Immutable bundle of the string-keyed tables the feature scorer consults:
brand aliases, category branches, departments, related categories and the
accessory / core-gear vocabularies.

Responsibility:
    - Hold the tables as explicit finite maps (no literals in control flow)
    - Answer membership questions (aliases? same branch? same department?)
    - Load a deployment-specific replacement from a JSON file

Architecture Notes:
    - Value object (frozen dataclass), safe to share between threads
    - Defaults come from constants.py
    - Injected into FeatureScorer; tests can build isolated tables
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple

from src.domain.product_matching import constants

logger = logging.getLogger(__name__)


def _word_list_pattern(words: Tuple[str, ...]) -> Pattern:
    """Whole-word (optionally plural) alternation for a vocabulary."""
    escaped = "|".join(re.escape(word) for word in words)
    return re.compile(rf"\b(?:{escaped})s?\b", re.IGNORECASE)


@dataclass(frozen=True)
class LookupTables:
    """
    Tables used by brand, category and name scoring.

    Attributes:
        brand_aliases: canonical brand -> list of variants (lowercase)
        category_branches: curated groups of sibling categories
        category_departments: coarse department keyword groups
        related_categories: category -> {related category: similarity}
        accessory_words: words marking an accessory product
        core_gear_words: phrases marking core gear (model numbers matter)

    Examples:
        >>> tables = LookupTables.default()
        >>> tables.are_brand_aliases("pampers", "p&g")
        True
        >>> tables.same_branch("bottles", "high chairs")
        True
    """

    brand_aliases: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in constants.BRAND_ALIASES.items()}
    )
    category_branches: List[List[str]] = field(
        default_factory=lambda: [list(b) for b in constants.CATEGORY_BRANCHES]
    )
    category_departments: List[List[str]] = field(
        default_factory=lambda: [list(d) for d in constants.CATEGORY_DEPARTMENTS]
    )
    related_categories: Dict[str, Dict[str, float]] = field(
        default_factory=lambda: {
            k: dict(v) for k, v in constants.RELATED_CATEGORIES.items()
        }
    )
    accessory_words: Tuple[str, ...] = constants.ACCESSORY_WORDS
    core_gear_words: Tuple[str, ...] = constants.CORE_GEAR_WORDS

    def __post_init__(self) -> None:
        """Validate related-category scores and precompile vocabularies."""
        for category, related in self.related_categories.items():
            for other, score in related.items():
                if not 0.0 <= score <= 1.0:
                    raise ValueError(
                        f"Related category score must be 0-1, got {score} "
                        f"for {category!r} -> {other!r}"
                    )
        if not self.accessory_words:
            raise ValueError("accessory_words must not be empty")

        object.__setattr__(
            self, "_accessory_pattern", _word_list_pattern(tuple(self.accessory_words))
        )

    @classmethod
    def default(cls) -> "LookupTables":
        """Built-in tables from constants.py."""
        return cls()

    @classmethod
    def from_json(cls, path: Path) -> "LookupTables":
        """
        Load tables from a JSON file.

        Missing keys keep their built-in defaults, so a deployment can
        override only the brand aliases, for example.

        Args:
            path: JSON file with any of the attribute names as keys

        Returns:
            LookupTables with file values applied

        Raises:
            FileNotFoundError: If path does not exist
            ValueError: If the file is not a JSON object or scores are invalid
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Lookup table file must contain an object: {path}")

        overrides: Dict[str, Any] = {}
        for key in (
            "brand_aliases",
            "category_branches",
            "category_departments",
            "related_categories",
        ):
            if key in data:
                overrides[key] = data[key]
        for key in ("accessory_words", "core_gear_words"):
            if key in data:
                overrides[key] = tuple(data[key])

        logger.info(f"Loaded lookup tables from {path} (keys: {sorted(overrides)})")
        return cls(**overrides)

    # ------------------------------------------------------------------
    # Brand
    # ------------------------------------------------------------------

    def are_brand_aliases(self, brand1: str, brand2: str) -> bool:
        """
        Check whether two lowercase brands are known aliases of each other.

        A pair is an alias when one side is the canonical name and the
        other a listed variant, or both are variants of the same canonical.
        """
        for canonical, variants in self.brand_aliases.items():
            if brand1 == canonical and brand2 in variants:
                return True
            if brand2 == canonical and brand1 in variants:
                return True
            if brand1 in variants and brand2 in variants:
                return True
        return False

    # ------------------------------------------------------------------
    # Category
    # ------------------------------------------------------------------

    def same_branch(self, category1: str, category2: str) -> bool:
        """Both categories mention a member of the same curated branch."""
        return self._share_group(self.category_branches, category1, category2)

    def same_department(self, category1: str, category2: str) -> bool:
        """Both categories mention a keyword of the same department."""
        return self._share_group(self.category_departments, category1, category2)

    def related_category_score(self, category1: str, category2: str) -> float:
        """
        Similarity for a known related pair, checked in both directions.

        Returns:
            Mapped similarity (0-1), or 0.0 when the pair is not listed
        """
        direct = self.related_categories.get(category1, {}).get(category2)
        if direct:
            return direct
        reverse = self.related_categories.get(category2, {}).get(category1)
        if reverse:
            return reverse
        return 0.0

    @staticmethod
    def _share_group(groups: List[List[str]], text1: str, text2: str) -> bool:
        for group in groups:
            if any(member in text1 for member in group) and any(
                member in text2 for member in group
            ):
                return True
        return False

    # ------------------------------------------------------------------
    # Name vocabularies
    # ------------------------------------------------------------------

    def mentions_accessory(self, name: str) -> bool:
        """Name contains an accessory word (whole word, plural allowed)."""
        return self._accessory_pattern.search(name) is not None  # type: ignore[attr-defined]

    def mentions_core_gear(self, name: str) -> bool:
        """Name mentions a core-gear phrase (case-insensitive substring)."""
        lowered = name.lower()
        return any(gear in lowered for gear in self.core_gear_words)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (same shape from_json() accepts)."""
        return {
            "brand_aliases": self.brand_aliases,
            "category_branches": self.category_branches,
            "category_departments": self.category_departments,
            "related_categories": self.related_categories,
            "accessory_words": list(self.accessory_words),
            "core_gear_words": list(self.core_gear_words),
        }


def load_lookup_tables(path: Optional[Path] = None) -> LookupTables:
    """Tables from `path` if given, otherwise the built-in defaults."""
    if path is None:
        return LookupTables.default()
    return LookupTables.from_json(path)

