"""Query shape classification."""

from __future__ import annotations

import re
from dataclasses import dataclass

from matmatch.types import QueryShape

# Letter immediately followed or preceded by a digit: DN32, 065B8310R, M8
DIGIT_LETTER = re.compile(r"[^\W\d_]\d|\d[^\W\d_]")
# Hyphenated code with an uppercase or digit part: BVR-R, ПВ-3
CODE_HYPHEN = re.compile(r"[^\W_]*[A-ZА-ЯЁ0-9][^\W_]*[-_][^\W_]*[A-ZА-ЯЁ0-9][^\W_]*")
# Dimensions: 100x50, 2×1,5, 50 мм, 0,75
DIMENSION = re.compile(
    r"\d+(?:[.,]\d+)?\s*[xх×*]\s*\d+|\d+(?:[.,]\d+)?\s*(?:мм|см|mm|cm)\b|\d+,\d+",
    re.IGNORECASE,
)


def longest_upper_run(text: str) -> int:
    """Length of the longest run of consecutive uppercase letters."""
    best = run = 0
    for ch in text:
        if ch.isupper():
            run += 1
            best = max(best, run)
        else:
            run = 0
    return best


@dataclass(frozen=True)
class QueryFeatures:
    token_count: int
    has_digit: bool
    upper_run: int
    has_digit_letter: bool
    has_code_hyphen: bool
    has_dimension: bool


def query_features(text: str | None) -> QueryFeatures:
    """Extract the surface features the classifier decides on."""
    text = text or ""
    return QueryFeatures(
        token_count=len(text.split()),
        has_digit=any(ch.isdigit() for ch in text),
        upper_run=longest_upper_run(text),
        has_digit_letter=DIGIT_LETTER.search(text) is not None,
        has_code_hyphen=CODE_HYPHEN.search(text) is not None,
        has_dimension=DIMENSION.search(text) is not None,
    )


def classify(query: str | None) -> QueryShape:
    """Assign a query shape from the original (non-normalized) text.

    Empty or whitespace-only input classifies as ``simple``.
    """
    f = query_features(query)

    if f.token_count <= 2 and not f.has_digit and f.upper_run < 2:
        return "simple"

    if f.has_digit_letter or f.has_code_hyphen or f.upper_run >= 2 or f.has_dimension:
        return "technical"

    return "mixed"
