"""
Product Matching Regex Patterns

Compiled regular expressions used by name normalization, key-term
extraction, identifier cleanup and the name penalty rules.

Pattern Design Principles:
- Compile once at import time
- Case-insensitive where the catalog text is free-form
- Model tokens stay case-sensitive (SKU-like codes are upper case)
"""

import re
from typing import Pattern

from src.domain.product_matching.constants import BRAND_LEGAL_SUFFIXES, NAME_STOP_WORDS


# ============================================================================
# NORMALIZATION PATTERNS
# ============================================================================

# Anything that is not a word character or whitespace
PUNCTUATION_PATTERN: Pattern = re.compile(r"[^\w\s]")

# Runs of whitespace
WHITESPACE_PATTERN: Pattern = re.compile(r"\s+")

# Filler words removed from normalized names
NAME_STOP_WORD_PATTERN: Pattern = re.compile(
    r"\b(?:" + "|".join(sorted(NAME_STOP_WORDS)) + r")\b"
)

# Separators used when splitting names into key terms
KEY_TERM_SPLIT_PATTERN: Pattern = re.compile(r"[\s\-_]+")

# Word tokenizer for set/vector similarities
WORD_TOKEN_PATTERN: Pattern = re.compile(r"\w+")

# Pure numbers never count as key terms
DIGITS_ONLY_PATTERN: Pattern = re.compile(r"^\d+$")

# Non-word characters removed from brands
NON_WORD_PATTERN: Pattern = re.compile(r"[^\w]")

# Separators stripped from identifiers before comparison
IDENTIFIER_SEPARATOR_PATTERN: Pattern = re.compile(r"[\s\-]")

# Non-digits stripped when tagging batch scenarios
NON_DIGIT_PATTERN: Pattern = re.compile(r"\D")


# ============================================================================
# NAME PENALTY PATTERNS
# ============================================================================

# Explicit pack/count quantity
# Matches: "3 pack", "24count", "10 pcs", "2 pieces"
PACK_COUNT_PATTERN: Pattern = re.compile(
    r"""
    (\d+)                       # Capture quantity
    \s*                         # Optional whitespace
    (?:pack|count|pcs|pieces)   # Quantity unit
    """,
    re.IGNORECASE | re.VERBOSE,
)

# SKU-like model token: upper-case letter followed by 2+ digits
# Matches: "B500", "X12"
MODEL_TOKEN_PATTERN: Pattern = re.compile(r"[A-Z]\d{2,}")


# ============================================================================
# BRAND PATTERNS
# ============================================================================

# Legal suffixes as whole words ("Acme Inc." -> "acme")
BRAND_LEGAL_SUFFIX_PATTERN: Pattern = re.compile(
    r"\b(?:" + "|".join(BRAND_LEGAL_SUFFIXES) + r")\b", re.IGNORECASE
)
