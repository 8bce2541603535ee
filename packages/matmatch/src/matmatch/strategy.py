"""Strategy selection: query shape to scorer weights and threshold."""

from __future__ import annotations

from matmatch.config import SearchConfig, Strategy, StrategyConfig
from matmatch.types import QueryShape


def select_strategy(
    shape: QueryShape,
    config: SearchConfig | StrategyConfig | None = None,
) -> Strategy:
    """Look up the weight vector and acceptance threshold for a query shape.

    Weights are ordered (exact, overlap, keyword, segment). The threshold
    applies to the saturated confidence, not to raw scorer output.
    """
    if isinstance(config, SearchConfig):
        config = config.strategy
    elif config is None:
        config = StrategyConfig()

    try:
        return config.table[shape]
    except KeyError:
        raise ValueError(f"No strategy configured for query shape {shape!r}") from None
