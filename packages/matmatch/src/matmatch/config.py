"""Configuration for the matmatch material name search engine."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any


@dataclass
class NormalizationConfig:
    # Characters deleted outright; hyphens and digits carry meaning in part numbers
    strip_chars: str = "\"'«»„“”‘’`,;!?()"
    fold_yo: bool = True


@dataclass
class ScoringConfig:
    exact_phrase_bonus: float = 10.0
    word_substring_bonus: float = 3.0
    overlap_contains: float = 0.3
    overlap_starts: float = 0.2
    overlap_ends: float = 0.1
    keyword_base: float = 3.0
    keyword_technical: float = 2.0  # article / dimension / brand
    keyword_free: float = 1.0
    segment_scale: float = 10.0
    min_partial_length: int = 2


@dataclass
class Strategy:
    name: str
    exact: float
    overlap: float
    keyword: float
    segment: float
    threshold: float

    @property
    def weights(self) -> tuple[float, float, float, float]:
        return (self.exact, self.overlap, self.keyword, self.segment)


def _default_strategies() -> dict[str, Strategy]:
    return {
        "simple": Strategy("simple", exact=3, overlap=2, keyword=1, segment=0, threshold=0.2),
        "technical": Strategy("technical", exact=1, overlap=2, keyword=2, segment=3, threshold=0.5),
        "mixed": Strategy("mixed", exact=2, overlap=2, keyword=2, segment=2, threshold=0.35),
    }


@dataclass
class StrategyConfig:
    table: dict[str, Strategy] = field(default_factory=_default_strategies)


@dataclass
class RankingConfig:
    saturation_k: float = 10.0
    default_top_n: int = 10


@dataclass
class CandidateConfig:
    use_index: bool = True


@dataclass
class SearchConfig:
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    candidates: CandidateConfig = field(default_factory=CandidateConfig)
    min_query_length: int = 1


def _apply(target: Any, overrides: dict[str, Any], path: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {path}{key}")
        current = getattr(target, key)
        if is_dataclass(current) and isinstance(value, dict):
            _apply(current, value, f"{path}{key}.")
        else:
            setattr(target, key, value)


def config_from_dict(data: dict[str, Any]) -> SearchConfig:
    """Build a SearchConfig from a nested dict of overrides.

    The strategy table is given as ``{"strategy": {"simple": {...}}}``; each
    shape entry may override any subset of weights and the threshold.
    """
    config = SearchConfig()
    data = dict(data)
    strategy_overrides = data.pop("strategy", None) or {}
    _apply(config, data, "")

    for shape, values in strategy_overrides.items():
        if shape not in config.strategy.table:
            raise ValueError(f"Unknown query shape in strategy table: {shape}")
        if not isinstance(values, dict):
            raise ValueError(f"Strategy override for {shape} must be an object")
        _apply(config.strategy.table[shape], values, f"strategy.{shape}.")
    return config


def load_config(path: str | Path) -> SearchConfig:
    """Load a JSON file of config overrides on top of the defaults."""
    return config_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
