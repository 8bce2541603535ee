"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest

from matmatch.cli import _parse_context, main


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    path = tmp_path / "corpus.csv"
    path.write_text(
        "id,name,category\n"
        "1,Кран шаровой резьбовой DN32 Ридан,valves\n"
        "2,Кран шаровой фланцевый DN50,valves\n"
        "3,Пеноплэкс Комфорт 50мм,insulation\n",
        encoding="utf-8",
    )
    return path


def test_parse_context():
    assert _parse_context(None) is None
    assert _parse_context(["category=valves"]) == {"category": "valves"}
    assert _parse_context(["c=a", "c=b", "c=d"]) == {"c": ["a", "b", "d"]}
    with pytest.raises(SystemExit):
        _parse_context(["novalue"])


def test_search(corpus, capsys):
    main(["search", "--corpus", str(corpus), "пеноплэкс"])
    out = capsys.readouterr().out
    assert "Shape: simple" in out
    assert "Пеноплэкс Комфорт 50мм" in out
    assert "high" in out


def test_search_no_results(corpus, capsys):
    main(["search", "--corpus", str(corpus), "бетон"])
    assert "No suggestions" in capsys.readouterr().out


def test_search_with_context(corpus, capsys):
    main(["search", "--corpus", str(corpus), "кран шаровой", "--context", "category=insulation"])
    assert "No suggestions" in capsys.readouterr().out


def test_batch(corpus, tmp_path, capsys):
    queries = tmp_path / "queries.txt"
    queries.write_text("пеноплэкс\nбетон\n", encoding="utf-8")
    output = tmp_path / "out.jsonl"

    main(["batch", "--corpus", str(corpus), "--queries", str(queries), "--output", str(output)])

    rows = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert rows[0]["candidate_id"] == 3
    assert rows[-1]["query"] == "бетон"
    assert rows[-1]["candidate_id"] is None
    assert "With suggestions: 1, without: 1" in capsys.readouterr().out


def test_explain(corpus, capsys):
    main(["explain", "--corpus", str(corpus), "кран DN32"])
    out = capsys.readouterr().out
    assert "Shape: technical" in out
    assert "DN32[dimension]" in out
    assert "Threshold: 0.5" in out


def test_profile(corpus, capsys):
    main(["profile", "--corpus", str(corpus)])
    out = capsys.readouterr().out
    assert "Names: 3" in out
    assert "dimensions: 1" in out


def test_evaluate(corpus, tmp_path, capsys):
    labels = tmp_path / "labels.csv"
    labels.write_text("query,expected_id\nпеноплэкс,3\nкран DN50,2\n", encoding="utf-8")

    main(["evaluate", "--corpus", str(corpus), "--labels", str(labels)])

    out = capsys.readouterr().out
    assert "hit@1: 1.000" in out
    assert "MRR: 1.000" in out


def test_config_file(corpus, tmp_path, capsys):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"strategy": {"simple": {"threshold": 0.95}}}))

    main(["search", "--corpus", str(corpus), "--config", str(config), "пеноплэкс"])

    assert "No suggestions" in capsys.readouterr().out


def test_config_from_env(corpus, tmp_path, capsys, monkeypatch):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"strategy": {"simple": {"threshold": 0.95}}}))
    monkeypatch.setenv("MATMATCH_CONFIG", str(config))

    main(["search", "--corpus", str(corpus), "пеноплэкс"])

    assert "No suggestions" in capsys.readouterr().out


def test_missing_corpus_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["search", "--corpus", str(tmp_path / "missing.csv"), "кран"])
    assert exc.value.code == 2


def test_bad_corpus_format_exits(tmp_path):
    bad = tmp_path / "corpus.parquet"
    bad.write_text("")
    with pytest.raises(SystemExit) as exc:
        main(["profile", "--corpus", str(bad)])
    assert exc.value.code == 2


def test_invalid_config_exits(corpus, tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"ranking": {"bogus": 1}}))
    with pytest.raises(SystemExit) as exc:
        main(["search", "--corpus", str(corpus), "--config", str(config), "кран"])
    assert exc.value.code == 2


def test_malformed_config_json_exits(corpus, tmp_path):
    config = tmp_path / "config.json"
    config.write_text("{not json")
    with pytest.raises(SystemExit) as exc:
        main(["search", "--corpus", str(corpus), "--config", str(config), "кран"])
    assert exc.value.code == 2
