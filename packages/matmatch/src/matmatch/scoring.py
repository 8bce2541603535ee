"""Deterministic scoring of a query against one candidate.

Four independent scorers, each a pure function of the normalized query, its
segments, the normalized candidate and the candidate segments:

- exact:   +10 when the candidate contains the whole query, +3 per query word
           found as a substring
- overlap: per query word +0.3 if contained, +0.2 if the candidate starts
           with it, +0.1 if it ends with it
- keyword: per distinct query segment found in the candidate, weighted by
           kind (base 3, article/dimension/brand 2, free 1)
- segment: share of distinct query segments matched by a candidate segment
           of the same kind, scaled by 10

Scores are raw and unbounded; the ranker weights and saturates them.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from matmatch.config import ScoringConfig, SearchConfig
from matmatch.normalize import words
from matmatch.segment import segments_by_kind, unique_segments
from matmatch.types import Candidate, ScoreVector, Segment

Segments = Sequence[Segment]


def _scoring(config: SearchConfig | ScoringConfig | None) -> ScoringConfig:
    if isinstance(config, SearchConfig):
        return config.scoring
    return config or ScoringConfig()


def finite(value: float) -> float:
    """Map NaN, infinities and negatives to 0."""
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def partial_match(a: str, b: str, min_length: int = 2) -> bool:
    """Equal, or one contains the other with the shorter side long enough."""
    if not a or not b:
        return False
    if a == b:
        return True
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return len(shorter) >= min_length and shorter in longer


def score_exact(
    query_norm: str,
    query_segments: Segments,
    candidate_norm: str,
    candidate_segments: Segments,
    config: SearchConfig | ScoringConfig | None = None,
) -> float:
    cfg = _scoring(config)
    if not query_norm or not candidate_norm:
        return 0.0

    score = 0.0
    if query_norm in candidate_norm:
        score += cfg.exact_phrase_bonus
    for word in words(query_norm):
        if word in candidate_norm:
            score += cfg.word_substring_bonus
    return finite(score)


def score_overlap(
    query_norm: str,
    query_segments: Segments,
    candidate_norm: str,
    candidate_segments: Segments,
    config: SearchConfig | ScoringConfig | None = None,
) -> float:
    cfg = _scoring(config)
    if not query_norm or not candidate_norm:
        return 0.0

    score = 0.0
    for word in words(query_norm):
        if word in candidate_norm:
            score += cfg.overlap_contains
        if candidate_norm.startswith(word):
            score += cfg.overlap_starts
        if candidate_norm.endswith(word):
            score += cfg.overlap_ends
    return finite(score)


def _kind_weight(kind: str, cfg: ScoringConfig) -> float:
    if kind == "base":
        return cfg.keyword_base
    if kind == "free":
        return cfg.keyword_free
    return cfg.keyword_technical


def keyword_matches(query_segments: Segments, candidate_norm: str) -> list[Segment]:
    """Distinct query segments found verbatim in the candidate."""
    if not candidate_norm:
        return []
    return [seg for seg in unique_segments(query_segments) if seg.norm in candidate_norm]


def score_keyword(
    query_norm: str,
    query_segments: Segments,
    candidate_norm: str,
    candidate_segments: Segments,
    config: SearchConfig | ScoringConfig | None = None,
) -> float:
    cfg = _scoring(config)
    score = sum(_kind_weight(seg.kind, cfg) for seg in keyword_matches(query_segments, candidate_norm))
    return finite(score)


def segment_matches(
    query_segments: Segments,
    candidate_segments: Segments,
    min_length: int = 2,
) -> list[Segment]:
    """Distinct query segments satisfied by a same-kind candidate segment."""
    by_kind = segments_by_kind(candidate_segments)
    matched: list[Segment] = []
    for seg in unique_segments(query_segments):
        for cand in by_kind.get(seg.kind, []):
            if partial_match(seg.norm, cand.norm, min_length):
                matched.append(seg)
                break
    return matched


def score_segment(
    query_norm: str,
    query_segments: Segments,
    candidate_norm: str,
    candidate_segments: Segments,
    config: SearchConfig | ScoringConfig | None = None,
) -> float:
    cfg = _scoring(config)
    distinct = unique_segments(query_segments)
    if not distinct or not candidate_segments:
        return 0.0
    matched = segment_matches(distinct, candidate_segments, cfg.min_partial_length)
    return finite(len(matched) / len(distinct) * cfg.segment_scale)


def score_candidate(
    query_norm: str,
    query_segments: Segments,
    candidate: Candidate,
    config: SearchConfig | ScoringConfig | None = None,
) -> tuple[ScoreVector, list[str]]:
    """Run all four scorers against one candidate.

    Returns the raw score vector (aggregate fields left at zero) and the
    reasons behind it.
    """
    cfg = _scoring(config)
    cand_norm = candidate.normalized_name
    cand_segs = candidate.segments
    reasons: list[str] = []

    vector = ScoreVector(
        exact=score_exact(query_norm, query_segments, cand_norm, cand_segs, cfg),
        overlap=score_overlap(query_norm, query_segments, cand_norm, cand_segs, cfg),
        keyword=score_keyword(query_norm, query_segments, cand_norm, cand_segs, cfg),
        segment=score_segment(query_norm, query_segments, cand_norm, cand_segs, cfg),
    )

    if query_norm and query_norm in cand_norm:
        reasons.append("exact_phrase")

    by_keyword = keyword_matches(query_segments, cand_norm)
    by_segment = segment_matches(query_segments, cand_segs, cfg.min_partial_length)

    matched_ids = {(s.norm, s.kind) for s in by_keyword} | {(s.norm, s.kind) for s in by_segment}
    vector.matched_segments = [
        seg.text for seg in unique_segments(query_segments) if (seg.norm, seg.kind) in matched_ids
    ]

    for kind in ("base", "article", "dimension", "brand", "free"):
        hits = [s.text for s in by_segment if s.kind == kind]
        if hits:
            reasons.append(f"{kind}_match:{','.join(hits)}")

    distinct = unique_segments(query_segments)
    if distinct and by_segment:
        reasons.append(f"segments_matched:{len(by_segment)}/{len(distinct)}")

    return vector, reasons
