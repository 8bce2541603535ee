"""Tests for strategy selection."""

import pytest

from matmatch.config import SearchConfig, config_from_dict
from matmatch.strategy import select_strategy


def test_default_table():
    assert select_strategy("simple").weights == (3, 2, 1, 0)
    assert select_strategy("simple").threshold == 0.2
    assert select_strategy("technical").weights == (1, 2, 2, 3)
    assert select_strategy("technical").threshold == 0.5
    assert select_strategy("mixed").weights == (2, 2, 2, 2)
    assert select_strategy("mixed").threshold == 0.35


def test_strategy_name_matches_shape():
    for shape in ("simple", "technical", "mixed"):
        assert select_strategy(shape).name == shape


def test_overridden_table():
    config = config_from_dict({"strategy": {"technical": {"threshold": 0.6, "segment": 4}}})
    strategy = select_strategy("technical", config)
    assert strategy.threshold == 0.6
    assert strategy.weights == (1, 2, 2, 4)


def test_accepts_search_config():
    assert select_strategy("mixed", SearchConfig()).threshold == 0.35


def test_unknown_shape():
    with pytest.raises(ValueError):
        select_strategy("exotic")
