"""Aggregation of scorer output into ranked, thresholded results."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from matmatch.classify import classify
from matmatch.config import SearchConfig, Strategy
from matmatch.index import CorpusIndex, apply_context
from matmatch.normalize import normalize, words
from matmatch.scoring import score_candidate
from matmatch.segment import segment
from matmatch.strategy import select_strategy
from matmatch.types import (
    Candidate,
    CandidateId,
    Query,
    QueryShape,
    ScoreVector,
    SearchResult,
    Segment,
)

log = structlog.get_logger()


def id_sort_key(candidate_id: CandidateId) -> tuple[int, Any, str]:
    """Total order over mixed int/str ids: numbers first, then strings."""
    if isinstance(candidate_id, (int, float)) and not isinstance(candidate_id, bool):
        return (0, candidate_id, "")
    return (1, 0, str(candidate_id))


def saturate(raw_total: float, k: float) -> float:
    """Map an unbounded raw total into [0, 1] as raw / (raw + k).

    NaN and non-positive totals give 0; an infinite total clamps to 1.
    """
    if raw_total is None or math.isnan(raw_total) or raw_total <= 0:
        return 0.0
    if math.isinf(raw_total) or k <= 0:
        return 1.0
    value = raw_total / (raw_total + k)
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def confidence_band(confidence: float) -> str:
    """Badge tier for a suggestion: high above 0.7, medium above 0.5."""
    if confidence > 0.7:
        return "high"
    if confidence > 0.5:
        return "medium"
    return "low"


def aggregate(vector: ScoreVector, strategy: Strategy, k: float) -> ScoreVector:
    """Fill raw_total and confidence on a score vector in place."""
    raw = (
        strategy.exact * vector.exact
        + strategy.overlap * vector.overlap
        + strategy.keyword * vector.keyword
        + strategy.segment * vector.segment
    )
    vector.raw_total = 0.0 if math.isnan(raw) else raw
    vector.confidence = saturate(vector.raw_total, k)
    return vector


@dataclass
class ScoredCandidate:
    candidate: Candidate
    scores: ScoreVector
    reasons: list[str] = field(default_factory=list)


@dataclass
class RankTrace:
    """Everything the ranker saw for one query, including dropped candidates."""

    query_text: str
    query_norm: str
    shape: QueryShape
    strategy: Strategy
    query_segments: list[Segment] = field(default_factory=list)
    candidate_count: int = 0
    scored: list[ScoredCandidate] = field(default_factory=list)
    results: list[SearchResult] = field(default_factory=list)


def _as_query(query: Query | str | None, context: Mapping[str, Any] | None) -> Query:
    if isinstance(query, Query):
        if context is None:
            return query
        return Query(text=query.text, context=dict(context))
    return Query(text=query or "", context=dict(context) if context else None)


def rank_with_trace(
    query: Query | str | None,
    context: Mapping[str, Any] | None,
    candidates: CorpusIndex | Iterable[Candidate],
    config: SearchConfig | None = None,
    top_n: int | None = None,
) -> RankTrace:
    """Rank candidates for a query and keep the intermediate state."""
    config = config or SearchConfig()
    q = _as_query(query, context)
    text = q.text or ""
    query_norm = normalize(text, config)
    shape = classify(text)
    strategy = select_strategy(shape, config)
    trace = RankTrace(query_text=text, query_norm=query_norm, shape=shape, strategy=strategy)

    if top_n is None:
        top_n = config.ranking.default_top_n

    # Empty query short-circuits before any scoring
    if not query_norm or len(query_norm) < config.min_query_length:
        return trace

    trace.query_segments = segment(text, config)

    # 1. Hard context pre-filter, then the lossless index pre-filter
    if isinstance(candidates, CorpusIndex):
        pool = candidates.filter(q.context)
        trace.candidate_count = len(pool)
        if config.candidates.use_index and pool:
            probes = words(query_norm) + [s.norm for s in trace.query_segments]
            allowed = candidates.prefilter(probes, config.scoring.min_partial_length)
            pool = [c for c in pool if c.id in allowed]
    else:
        pool = apply_context(candidates, q.context)
        trace.candidate_count = len(pool)

    # 2-3. Score and saturate
    k = config.ranking.saturation_k
    for cand in pool:
        vector, reasons = score_candidate(query_norm, trace.query_segments, cand, config)
        aggregate(vector, strategy, k)
        trace.scored.append(ScoredCandidate(candidate=cand, scores=vector, reasons=reasons))

    if top_n <= 0:
        return trace

    # 4. Threshold
    accepted = [sc for sc in trace.scored if sc.scores.confidence > strategy.threshold]

    # 5. Sort, tie-break on id, dedup
    accepted.sort(key=lambda sc: (-sc.scores.confidence, id_sort_key(sc.candidate.id)))
    seen: set[CandidateId] = set()
    results: list[SearchResult] = []
    for sc in accepted:
        if sc.candidate.id in seen:
            continue
        seen.add(sc.candidate.id)
        results.append(SearchResult(
            candidate_id=sc.candidate.id,
            display_name=sc.candidate.raw_name,
            confidence=sc.scores.confidence,
            matched_segments=list(sc.scores.matched_segments),
            scores=sc.scores,
            reasoning=[f"shape:{shape}", *sc.reasons],
        ))
        # 6. Truncate
        if len(results) >= top_n:
            break

    trace.results = results
    log.debug(
        "rank_done",
        query=text,
        shape=shape,
        candidates=trace.candidate_count,
        scored=len(trace.scored),
        accepted=len(accepted),
        returned=len(results),
    )
    return trace


def rank(
    query: Query | str | None,
    context: Mapping[str, Any] | None,
    candidates: CorpusIndex | Iterable[Candidate],
    config: SearchConfig | None = None,
    top_n: int | None = None,
) -> list[SearchResult]:
    """Score, threshold, sort and truncate candidates for one query."""
    return rank_with_trace(query, context, candidates, config, top_n).results
