"""Tests for explain and corpus profiling."""

from matmatch.diagnostics import explain, profile_corpus
from matmatch.engine import SearchEngine


def _engine():
    return SearchEngine(records=[
        (1, "Пеноплэкс Комфорт 50мм"),
        (2, "Пеноплекс"),
        (3, "Кабель ВВГ"),
    ])


def test_explain_breakdown():
    exp = explain(_engine(), "пеноплэкс")

    assert exp.shape == "simple"
    assert exp.query_norm == "пеноплэкс"
    assert exp.strategy.threshold == 0.2
    assert exp.candidate_count == 3
    assert [c.candidate_id for c in exp.candidates] == [1]
    top = exp.candidates[0]
    assert top.accepted
    assert top.scores.exact == 13
    assert "exact_phrase" in top.reasons


def test_explain_near_misses_find_typos():
    exp = explain(_engine(), "пеноплэкс")

    ids = [nm.candidate_id for nm in exp.near_misses]
    assert ids[0] == 2
    assert 3 not in ids
    assert 0.7 <= exp.near_misses[0].similarity <= 1.0


def test_explain_near_misses_disabled():
    exp = explain(_engine(), "пеноплэкс", near_misses=0)
    assert exp.near_misses == []


def test_explain_respects_context():
    engine = SearchEngine(records=[
        {"id": 1, "name": "Пеноплекс", "category": "foam"},
        {"id": 2, "name": "Пеноплекс", "category": "cable"},
    ])
    exp = explain(engine, "пеноплэкс", {"category": "foam"})
    assert [nm.candidate_id for nm in exp.near_misses] == [1]


def test_explain_empty_query():
    exp = explain(_engine(), "")
    assert exp.candidates == []
    assert exp.near_misses == []


def test_profile_corpus():
    profile = profile_corpus([
        "Кабель ВВГ 3x2,5",
        "Кран DN32",
        "песок",
        "",
        'Утеплитель "Технониколь"',
    ])

    assert profile.total == 4
    assert profile.counts["simple"] == 1
    assert profile.counts["dimensions"] == 1
    assert profile.counts["brands"] == 3
    assert profile.counts["articles"] == 2
    assert profile.examples["simple"] == ["песок"]
    assert profile.shapes["technical"] == 2
    assert profile.percentages()["simple"] == 25.0


def test_profile_empty():
    profile = profile_corpus([])
    assert profile.total == 0
    assert profile.percentages()["brands"] == 0.0
