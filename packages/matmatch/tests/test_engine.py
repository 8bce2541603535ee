"""End-to-end tests for the search engine."""

import threading

from matmatch.config import SearchConfig
from matmatch.engine import SearchEngine
from matmatch.index import CorpusIndex
from matmatch.types import Query

VALVES = [
    {"id": 1, "name": "Кран шаровой резьбовой DN32 Ридан", "category": "valves"},
    {"id": 2, "name": "Кран шаровой фланцевый DN50", "category": "valves"},
]


def test_simple_query_finds_brand_name():
    engine = SearchEngine(records=[
        (1, "Пеноплэкс Комфорт 50мм"),
        (2, "Пеноплекс"),
        (3, "Кабель ВВГ"),
    ])
    outcome = engine.search_detailed("пеноплэкс")

    assert outcome.shape == "simple"
    assert outcome.results[0].candidate_id == 1
    assert outcome.results[0].confidence > 0.5
    assert 3 not in [r.candidate_id for r in outcome.results]


def test_technical_query_prefers_segment_overlap():
    engine = SearchEngine(records=VALVES)
    outcome = engine.search_detailed("Кран шаровой резьбовой BVR-R DN32 BVR-R DN32 065B8310R Ридан")

    assert outcome.shape == "technical"
    assert outcome.threshold == 0.5
    ids = [r.candidate_id for r in outcome.results]
    assert ids == [1, 2]
    assert outcome.results[0].confidence > outcome.results[1].confidence
    assert "DN32" in outcome.results[0].matched_segments
    assert "Ридан" in outcome.results[0].matched_segments


def test_empty_corpus():
    engine = SearchEngine()
    assert engine.search("кран шаровой") == []
    assert engine.search_detailed("кран").candidate_count == 0


def test_context_filter_is_hard():
    engine = SearchEngine(records=VALVES + [{"id": 3, "name": "Кран шаровой", "category": "plumbing"}])
    assert engine.search("кран шаровой", {"category": "paint"}) == []
    assert [r.candidate_id for r in engine.search("кран шаровой", {"category": "plumbing"})] == [3]


def test_unknown_context_key_ignored():
    engine = SearchEngine(records=VALVES)
    assert engine.search("кран шаровой", {"warehouse": "north"}) != []


def test_empty_query_returns_empty():
    engine = SearchEngine(records=VALVES)
    assert engine.search("") == []
    assert engine.search("   ") == []
    assert engine.search(None) == []


def test_deterministic():
    engine = SearchEngine(records=VALVES)
    first = engine.search("кран шаровой DN32")
    for _ in range(5):
        again = engine.search("кран шаровой DN32")
        assert [(r.candidate_id, r.confidence) for r in again] == [(r.candidate_id, r.confidence) for r in first]


def test_outcome_reports_counts_and_timing():
    engine = SearchEngine(records=VALVES + [(3, "Кабель ВВГ")])
    outcome = engine.search_detailed("кран шаровой", {"category": "valves"})
    assert outcome.candidate_count == 2
    assert outcome.scored_count <= 2
    assert outcome.processing_time_ms >= 0
    assert outcome.strategy == "simple"


def test_reload_replaces_corpus():
    engine = SearchEngine(records=VALVES)
    engine.load([(10, "Кабель ВВГ 3x2,5")])
    assert engine.search("кран шаровой") == []
    assert [r.candidate_id for r in engine.search("кабель")] == [10]


def test_publish_prebuilt_index():
    engine = SearchEngine()
    engine.publish(CorpusIndex.build([(1, "Кран шаровой")]))
    assert len(engine.index) == 1


def test_search_many():
    engine = SearchEngine(records=VALVES + [(3, "Кабель ВВГ")])
    batch = engine.search_many([
        "кабель",
        Query("кран шаровой", {"category": "valves"}),
        "",
    ])
    assert [r.candidate_id for r in batch[0]] == [3]
    assert {r.candidate_id for r in batch[1]} == {1, 2}
    assert batch[2] == []


def test_top_n_default_from_config():
    config = SearchConfig()
    config.ranking.default_top_n = 1
    engine = SearchEngine(config, records=VALVES)
    assert len(engine.search("кран шаровой")) == 1


def test_searches_see_one_snapshot_during_reload():
    old = [(i, f"Кран шаровой {i}") for i in range(50)]
    new = [(1000 + i, f"Кран шаровой {i}") for i in range(50)]
    engine = SearchEngine(records=old)
    errors = []
    stop = threading.Event()

    def searcher():
        while not stop.is_set():
            results = engine.search("кран шаровой", top_n=50)
            ids = {r.candidate_id for r in results}
            if not (ids <= {i for i, _ in old} or ids <= {i for i, _ in new}):
                errors.append(ids)

    threads = [threading.Thread(target=searcher) for _ in range(4)]
    for t in threads:
        t.start()
    for n in range(10):
        engine.load(new if n % 2 == 0 else old)
    stop.set()
    for t in threads:
        t.join()

    assert errors == []
