"""
Similarity Primitives

Pure, stateless functions computing a bounded similarity between two
catalog fields (name, brand, category, price, identifier).

Responsibility:
    - Text normalization for names and brands
    - Token-set, term-frequency, edit-distance and bigram similarities
    - Field-level similarities with their conservative staircases
    - Identifier (GTIN/EAN) normalization

Architecture Notes:
    - Domain service module (plain functions, no I/O, no state)
    - Every function accepts None for an absent field and returns 0
    - Edit distance comes from rapidfuzz; stemming from NLTK's Porter stemmer
      (original 1980 algorithm)

Business Rules:
    - Names whose key terms share nothing score 0.0 (key-term gate)
    - Brand and identifier similarities are deliberately strict: they are
      near-binary identity signals and must not produce loose positives
"""

import math
from collections import Counter
from functools import lru_cache
from decimal import Decimal
from typing import Optional, Union

from nltk.stem.porter import PorterStemmer
from rapidfuzz.distance import Levenshtein

from src.domain.product_matching.constants import (
    KEY_TERM_MIN_LENGTH,
    KEY_TERM_STOP_WORDS,
    PRICE_SIMILARITY_FLOOR,
    PRICE_SIMILARITY_STEPS,
)
from src.domain.product_matching.lookup_tables import LookupTables
from src.domain.product_matching.patterns import (
    BRAND_LEGAL_SUFFIX_PATTERN,
    DIGITS_ONLY_PATTERN,
    IDENTIFIER_SEPARATOR_PATTERN,
    KEY_TERM_SPLIT_PATTERN,
    NAME_STOP_WORD_PATTERN,
    NON_WORD_PATTERN,
    PUNCTUATION_PATTERN,
    WHITESPACE_PATTERN,
    WORD_TOKEN_PATTERN,
)

Number = Union[int, float, Decimal]

# Blend weights for name similarity (jaccard, cosine, levenshtein, dice, stemmed)
NAME_BLEND_WEIGHTS: tuple[float, float, float, float, float] = (0.30, 0.25, 0.20, 0.15, 0.10)

# Key-term overlap scales the blend between these two factors
KEY_TERM_BASE_FACTOR: float = 0.7
KEY_TERM_OVERLAP_FACTOR: float = 0.3

_DEFAULT_TABLES = LookupTables.default()

_STEMMER = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)


# ============================================================================
# NORMALIZATION AND TOKENS
# ============================================================================


def normalize_product_name(name: str) -> str:
    """
    Lowercase, strip punctuation, drop filler words and collapse whitespace.

    Examples:
        >>> normalize_product_name("The Bottle, with Handles!")
        'bottle handles'
    """
    text = PUNCTUATION_PATTERN.sub(" ", name.lower())
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    text = NAME_STOP_WORD_PATTERN.sub("", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def extract_key_terms(normalized_name: str) -> list[str]:
    """
    Key product terms: tokens longer than two characters that are neither
    extended stop words (size/age qualifiers included) nor pure numbers.

    Examples:
        >>> extract_key_terms("baby bottle 250 ml anti colic")
        ['bottle', 'anti', 'colic']
    """
    words = KEY_TERM_SPLIT_PATTERN.split(normalized_name.lower())
    return [
        word
        for word in words
        if len(word) >= KEY_TERM_MIN_LENGTH
        and word not in KEY_TERM_STOP_WORDS
        and not DIGITS_ONLY_PATTERN.match(word)
    ]


def key_term_overlap(terms1: list[str], terms2: list[str]) -> float:
    """Jaccard overlap of two key-term lists (0.0 if either is empty)."""
    if not terms1 or not terms2:
        return 0.0
    set1, set2 = set(terms1), set(terms2)
    return len(set1 & set2) / len(set1 | set2)


def tokenize(text: str) -> list[str]:
    """Split text into word tokens."""
    return WORD_TOKEN_PATTERN.findall(text)


@lru_cache(maxsize=65536)
def stem(word: str) -> str:
    """
    Porter stem of one token.

    Examples:
        >>> stem("bottles"), stem("feeding")
        ('bottl', 'feed')
    """
    return _STEMMER.stem(word)


# ============================================================================
# GENERIC STRING SIMILARITIES (0-1)
# ============================================================================


def jaccard_similarity(text1: str, text2: str) -> float:
    """Token-set Jaccard similarity."""
    tokens1, tokens2 = set(tokenize(text1)), set(tokenize(text2))
    union = tokens1 | tokens2
    if not union:
        return 0.0
    return len(tokens1 & tokens2) / len(union)


def cosine_similarity(text1: str, text2: str) -> float:
    """Cosine similarity of term-frequency vectors."""
    counts1, counts2 = Counter(tokenize(text1)), Counter(tokenize(text2))
    dot = sum(count * counts2[token] for token, count in counts1.items())
    magnitude1 = math.sqrt(sum(c * c for c in counts1.values()))
    magnitude2 = math.sqrt(sum(c * c for c in counts2.values()))
    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0
    return dot / (magnitude1 * magnitude2)


def levenshtein_similarity(text1: str, text2: str) -> float:
    """1 - edit distance / longer length (two empty strings -> 1.0)."""
    return Levenshtein.normalized_similarity(text1, text2)


def dice_coefficient(text1: str, text2: str) -> float:
    """
    Sørensen-Dice coefficient over character bigrams (whitespace ignored).

    Examples:
        >>> dice_coefficient("healed", "sealed")
        0.8
    """
    first = WHITESPACE_PATTERN.sub("", text1)
    second = WHITESPACE_PATTERN.sub("", text2)
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    bigrams = Counter(first[i : i + 2] for i in range(len(first) - 1))
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i : i + 2]
        if bigrams[bigram] > 0:
            bigrams[bigram] -= 1
            intersection += 1

    return (2.0 * intersection) / (len(first) + len(second) - 2)


def stemmed_jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity on Porter-stemmed tokens ("semantic" similarity)."""
    stems1 = {stem(token) for token in tokenize(text1)}
    stems2 = {stem(token) for token in tokenize(text2)}
    union = stems1 | stems2
    if not union:
        return 0.0
    return len(stems1 & stems2) / len(union)


# ============================================================================
# FIELD SIMILARITIES
# ============================================================================


def name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    """
    Blended name similarity gated on key-term overlap.

    Algorithm:
        1. Normalize both names; identical -> 1.0
        2. Extract key terms; zero overlap -> 0.0
        3. Blend jaccard (.30), cosine (.25), levenshtein (.20),
           dice (.15), stemmed jaccard (.10)
        4. Multiply by 0.7 + 0.3 x overlap, cap at 1.0

    Args:
        name1: First product name (None/empty -> 0.0)
        name2: Second product name (None/empty -> 0.0)

    Returns:
        Similarity in [0, 1]

    Examples:
        >>> name_similarity("Baby Bottle 250ml", "baby bottle 250ml")
        1.0
        >>> name_similarity("The Baby Mini", "A Baby Mini")
        0.0
    """
    if not name1 or not name2:
        return 0.0

    normalized1 = normalize_product_name(name1)
    normalized2 = normalize_product_name(name2)
    if normalized1 == normalized2:
        return 1.0

    overlap = key_term_overlap(
        extract_key_terms(normalized1), extract_key_terms(normalized2)
    )
    if overlap == 0:
        return 0.0

    scores = (
        jaccard_similarity(normalized1, normalized2),
        cosine_similarity(normalized1, normalized2),
        levenshtein_similarity(normalized1, normalized2),
        dice_coefficient(normalized1, normalized2),
        stemmed_jaccard_similarity(normalized1, normalized2),
    )
    blended = sum(score * weight for score, weight in zip(scores, NAME_BLEND_WEIGHTS))
    blended *= KEY_TERM_BASE_FACTOR + KEY_TERM_OVERLAP_FACTOR * overlap
    return max(0.0, min(blended, 1.0))


def normalize_brand(brand: str) -> str:
    """
    Lowercase, drop legal suffixes and strip every non-word character.

    Examples:
        >>> normalize_brand("Acme Corp.")
        'acme'
        >>> normalize_brand("Johnson & Johnson")
        'johnsonjohnson'
    """
    text = PUNCTUATION_PATTERN.sub(" ", brand.lower())
    text = BRAND_LEGAL_SUFFIX_PATTERN.sub(" ", text)
    return NON_WORD_PATTERN.sub("", text)


def brand_similarity(brand1: Optional[str], brand2: Optional[str]) -> float:
    """
    Conservative brand similarity.

    Exact (case-insensitive) -> 1.0; normalized exact -> 0.95; otherwise the
    best of dice/levenshtein/jaccard passed through a strict staircase:
    >=0.95 x0.8, >=0.90 x0.6, >=0.85 x0.4, else 0.

    Examples:
        >>> brand_similarity("Pampers", "PAMPERS")
        1.0
        >>> brand_similarity("Acme Inc", "acme")
        0.95
        >>> brand_similarity("Pampers", "Huggies")
        0.0
    """
    if not brand1 or not brand2:
        return 0.0
    if brand1.lower() == brand2.lower():
        return 1.0

    normalized1 = normalize_brand(brand1)
    normalized2 = normalize_brand(brand2)
    if normalized1 and normalized1 == normalized2:
        return 0.95

    best = max(
        dice_coefficient(normalized1, normalized2),
        levenshtein_similarity(normalized1, normalized2),
        jaccard_similarity(normalized1, normalized2),
    )
    if best >= 0.95:
        return best * 0.8
    if best >= 0.90:
        return best * 0.6
    if best >= 0.85:
        return best * 0.4
    return 0.0


def category_similarity(
    category1: Optional[str],
    category2: Optional[str],
    tables: Optional[LookupTables] = None,
) -> float:
    """
    Category similarity: exact -> 1.0, known related pair -> mapped value,
    otherwise stemmed similarity damped by >=0.9 x0.8, >=0.8 x0.6, else 0.

    Examples:
        >>> category_similarity("Blankets", "sleep")
        0.95
        >>> category_similarity("toys", "kitchen")
        0.0
    """
    if not category1 or not category2:
        return 0.0

    normalized1 = category1.lower().strip()
    normalized2 = category2.lower().strip()
    if normalized1 == normalized2:
        return 1.0

    mapped = (tables or _DEFAULT_TABLES).related_category_score(normalized1, normalized2)
    if mapped > 0.0:
        return mapped

    similarity = stemmed_jaccard_similarity(normalized1, normalized2)
    if similarity >= 0.9:
        return similarity * 0.8
    if similarity >= 0.8:
        return similarity * 0.6
    return 0.0


def relative_price_difference(price1: Number, price2: Number) -> Optional[float]:
    """|p1 - p2| / avg(p1, p2), or None when the average is zero."""
    first, second = float(price1), float(price2)
    average = (first + second) / 2
    if average == 0:
        return None
    return abs(first - second) / average


def price_similarity(price1: Optional[Number], price2: Optional[Number]) -> float:
    """
    Fine-grained price step function used by the legacy aggregate path.

    <=2% -> 1.0, <=5% -> 0.95, <=10% -> 0.9, <=15% -> 0.8, <=20% -> 0.7,
    <=25% -> 0.6, <=30% -> 0.5, <=40% -> 0.3, otherwise 0.1.
    Either price missing (or zero) -> 0.

    Examples:
        >>> price_similarity(100, 101)
        1.0
        >>> price_similarity(10, None)
        0.0
    """
    if not price1 or not price2:
        return 0.0

    relative = relative_price_difference(price1, price2)
    if relative is None:
        return 0.0

    percentage = relative * 100
    for max_percentage, similarity in PRICE_SIMILARITY_STEPS:
        if percentage <= max_percentage:
            return similarity
    return PRICE_SIMILARITY_FLOOR


def identifier_similarity(identifier1: Optional[str], identifier2: Optional[str]) -> float:
    """
    GTIN/EAN similarity.

    Exact (after stripping whitespace and dashes) -> 1.0; one contains the
    other (padding differences) -> 0.8; edit-distance similarity above 0.8
    -> similarity x 0.7; otherwise 0.

    Examples:
        >>> identifier_similarity("0370-0086-3427", "037000863427")
        1.0
        >>> identifier_similarity("00037000863427", "037000863427")
        0.8
    """
    if not identifier1 or not identifier2:
        return 0.0
    if identifier1 == identifier2:
        return 1.0

    normalized1 = IDENTIFIER_SEPARATOR_PATTERN.sub("", identifier1)
    normalized2 = IDENTIFIER_SEPARATOR_PATTERN.sub("", identifier2)
    if normalized1 == normalized2:
        return 1.0
    if not normalized1 or not normalized2:
        return 0.0
    if normalized1 in normalized2 or normalized2 in normalized1:
        return 0.8

    similarity = levenshtein_similarity(normalized1, normalized2)
    return similarity * 0.7 if similarity > 0.8 else 0.0


def normalize_identifier(identifier: Optional[str], width: int = 14) -> Optional[str]:
    """
    Fixed-width, zero-padded identifier used for exact-match short-circuit.

    Returns:
        Padded identifier, or None when absent/blank

    Examples:
        >>> normalize_identifier("037000863427")
        '00037000863427'
        >>> normalize_identifier("   ") is None
        True
    """
    if identifier is None:
        return None
    cleaned = IDENTIFIER_SEPARATOR_PATTERN.sub("", identifier)
    if not cleaned:
        return None
    return cleaned.zfill(width)
