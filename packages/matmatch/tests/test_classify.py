"""Tests for query shape classification."""

import pytest

from matmatch.classify import classify, longest_upper_run, query_features


@pytest.mark.parametrize(
    "query",
    ["пеноплэкс", "кабель медный", "Кран шаровой", ""],
)
def test_simple(query):
    assert classify(query) == "simple"


@pytest.mark.parametrize(
    "query",
    [
        "Кабель ВВГ",
        "кран DN32",
        "065B8310R",
        "клапан BVR-R",
        "брус 100x50",
        "плита 50 мм",
        "провод 0,75",
        "Кран шаровой резьбовой BVR-R DN32 BVR-R DN32 065B8310R Ридан",
    ],
)
def test_technical(query):
    assert classify(query) == "technical"


@pytest.mark.parametrize(
    "query",
    ["кабель медный гибкий", "труба стальная 3 штуки"],
)
def test_mixed(query):
    assert classify(query) == "mixed"


def test_whitespace_only_is_simple():
    assert classify("   ") == "simple"


def test_single_uppercase_letter_does_not_make_technical():
    # "Кран" has an upper run of 1
    assert classify("Кран шаровой латунный") == "mixed"


def test_longest_upper_run():
    assert longest_upper_run("Кабель ВВГнг") == 3
    assert longest_upper_run("кабель") == 0


def test_query_features():
    f = query_features("кран DN32")
    assert f.token_count == 2
    assert f.has_digit
    assert f.has_digit_letter
    assert f.upper_run == 2
