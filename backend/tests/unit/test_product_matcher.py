from __future__ import annotations

from shopbot.orchestrator.product_matcher import LevenshteinProductMatcher, similarity


def test_similarity_scores_containment_and_edit_distance() -> None:
    assert similarity("Classic Tee", "classic tee") == 1.0
    assert similarity("tee", "Classic Tee") == 0.9
    assert similarity("shirt", "shirk") == 0.8
    assert similarity("", "anything") == 0.0


def test_best_match_picks_highest_score_above_threshold() -> None:
    products = [
        {"title": "Canvas Tote"},
        {"title": "Hoodie"},
        {"title": "Hoody"},
    ]
    match = LevenshteinProductMatcher().best_match("hoodie", products)
    assert match is not None
    assert match.product["title"] == "Hoodie"
    assert match.score == 1.0


def test_best_match_rejects_weak_candidates() -> None:
    products = [{"title": "Canvas Tote"}, {"title": "Ceramic Mug"}]
    assert LevenshteinProductMatcher().best_match("sneakers", products) is None
