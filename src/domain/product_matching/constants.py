"""
Product Matching Domain Constants

Word lists and lookup tables used by the similarity primitives and the
feature scorer. These are the built-in defaults; a deployment can replace
them with its own JSON file through LookupTables.from_json().

Contents:
    - Stop words removed during name normalization
    - Extended stop words removed when extracting key product terms
    - Accessory and core-gear vocabularies used by name penalties
    - Brand aliases, category branches, departments, related-category map
"""

from typing import Dict, FrozenSet, List, Tuple


# ============================================================================
# NAME NORMALIZATION
# ============================================================================

# Filler words stripped from normalized product names
NAME_STOP_WORDS: FrozenSet[str] = frozenset(
    {"the", "and", "or", "with", "for", "in", "on", "at", "to", "from", "by"}
)

# Words that never count as key product terms (articles, size/age qualifiers)
KEY_TERM_STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # English articles and prepositions
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by",
        # Spanish articles and prepositions (catalogs are bilingual)
        "de", "del", "la", "el", "con", "para", "por", "sin", "sobre",
        "entre", "hasta", "desde",
        # Age and size qualifiers
        "baby", "infant", "child", "kids", "toddler", "newborn", "junior",
        "mini", "small", "large", "big", "little",
        # Style qualifiers
        "new", "old", "classic", "modern", "traditional", "contemporary",
    }
)

# Key terms must be longer than this many characters
KEY_TERM_MIN_LENGTH: int = 3


# ============================================================================
# NAME PENALTY VOCABULARIES
# ============================================================================

# One side naming an accessory while the other does not is a common false positive
ACCESSORY_WORDS: Tuple[str, ...] = ("cover", "case", "strap", "belt", "adapter", "charger")

# Categories where different model numbers mean a different product
CORE_GEAR_WORDS: Tuple[str, ...] = ("stroller", "car seat", "crib", "highchair")


# ============================================================================
# BRAND TABLES
# ============================================================================

# Canonical brand -> known variants (all lowercase)
BRAND_ALIASES: Dict[str, List[str]] = {
    "johnsons": ["johnson's", "johnson & johnson", "johnson"],
    "johnson's": ["johnsons", "johnson & johnson", "johnson"],
    "pampers": ["p&g", "procter & gamble"],
    "huggies": ["kimberly-clark", "kc"],
}

# Legal suffixes removed by brand normalization
BRAND_LEGAL_SUFFIXES: Tuple[str, ...] = ("inc", "llc", "ltd", "corp", "company", "co")


# ============================================================================
# CATEGORY TABLES
# ============================================================================

# Curated branches: categories in one branch score "same-branch"
CATEGORY_BRANCHES: List[List[str]] = [
    ["feeding", "bottles", "sippy cups", "high chairs"],
    ["safety", "car seats", "gates", "monitors"],
    ["sleep", "cribs", "mattresses", "bedding"],
    ["play", "toys", "books", "games"],
    ["baby-care", "baby-personal-care", "baby-hygiene", "baby-health"],
]

# Coarse departments: categories mentioning the same department score "department"
CATEGORY_DEPARTMENTS: List[List[str]] = [
    ["baby", "infant", "toddler", "newborn"],
    ["kids", "children", "child"],
]

# Known related category pairs and their similarity (checked in both directions)
RELATED_CATEGORIES: Dict[str, Dict[str, float]] = {
    "blankets": {"sleep": 0.95, "textiles": 0.9, "crib-textiles": 0.95},
    "sleep": {"blankets": 0.95, "textiles": 0.9, "crib-textiles": 0.95},
    "textiles": {"sleep": 0.9, "blankets": 0.9, "crib-textiles": 0.95},
    "crib-textiles": {"sleep": 0.95, "blankets": 0.95, "textiles": 0.95},
    "all": {"other": 0.5, "accessories": 0.3},
    "other": {"all": 0.5, "accessories": 0.3},
}


# ============================================================================
# PRICE STEP FUNCTION (legacy aggregate path)
# ============================================================================

# (max percentage difference, similarity); anything above the last step -> 0.1
PRICE_SIMILARITY_STEPS: Tuple[Tuple[float, float], ...] = (
    (2.0, 1.0),
    (5.0, 0.95),
    (10.0, 0.9),
    (15.0, 0.8),
    (20.0, 0.7),
    (25.0, 0.6),
    (30.0, 0.5),
    (40.0, 0.3),
)
PRICE_SIMILARITY_FLOOR: float = 0.1
