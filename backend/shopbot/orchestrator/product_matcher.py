from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from rapidfuzz.distance import Levenshtein

SUBSTRING_SCORE = 0.9
ACCEPT_THRESHOLD = 0.5


@dataclass
class ProductMatch:
    product: dict[str, Any]
    score: float


class ProductMatcher(Protocol):
    def best_match(self, query: str, products: list[dict[str, Any]]) -> ProductMatch | None:
        ...


def similarity(left: str, right: str) -> float:
    """Score two product names in [0, 1].

    Containment in either direction scores a flat 0.9; otherwise the score is
    the Levenshtein distance normalized by the longer string.
    """
    a = left.strip().lower()
    b = right.strip().lower()
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return SUBSTRING_SCORE
    longest = max(len(a), len(b))
    return (longest - Levenshtein.distance(a, b)) / longest


class LevenshteinProductMatcher:
    def __init__(self, threshold: float = ACCEPT_THRESHOLD) -> None:
        self.threshold = threshold

    def best_match(self, query: str, products: list[dict[str, Any]]) -> ProductMatch | None:
        best: ProductMatch | None = None
        for product in products:
            title = str(product.get("title") or "")
            score = similarity(query, title)
            if score < self.threshold:
                continue
            if best is None or score > best.score:
                best = ProductMatch(product=product, score=score)
        return best
