"""matmatch - Adaptive search over construction material and supplier names."""

from matmatch.classify import classify
from matmatch.config import SearchConfig, Strategy, load_config
from matmatch.engine import SearchEngine
from matmatch.index import CorpusIndex
from matmatch.normalize import normalize
from matmatch.rank import rank
from matmatch.segment import segment
from matmatch.session import SearchSession
from matmatch.strategy import select_strategy
from matmatch.types import Candidate, Query, ScoreVector, SearchOutcome, SearchResult, Segment

__all__ = [
    "Candidate",
    "CorpusIndex",
    "Query",
    "ScoreVector",
    "SearchConfig",
    "SearchEngine",
    "SearchOutcome",
    "SearchResult",
    "SearchSession",
    "Segment",
    "Strategy",
    "classify",
    "load_config",
    "normalize",
    "rank",
    "segment",
    "select_strategy",
]
