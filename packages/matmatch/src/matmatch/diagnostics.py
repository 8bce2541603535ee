"""Diagnostics: per-candidate score breakdowns and corpus pattern profiles."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz, process

from matmatch.classify import CODE_HYPHEN, DIGIT_LETTER, DIMENSION, classify
from matmatch.config import Strategy
from matmatch.engine import SearchEngine
from matmatch.rank import id_sort_key
from matmatch.types import CandidateId, QueryShape, ScoreVector, Segment

BRAND_PATTERN = re.compile(r"[A-ZА-ЯЁ]{2,}|\"[^\"]+\"|«[^»]+»")
SPECIAL_CHARS = re.compile(r"[-_()\[\]{}#№@&%]")

PATTERNS = ("brands", "articles", "dimensions", "special_chars", "simple")


@dataclass
class CandidateExplanation:
    candidate_id: CandidateId
    display_name: str
    scores: ScoreVector
    accepted: bool
    reasons: list[str] = field(default_factory=list)


@dataclass
class NearMiss:
    candidate_id: CandidateId
    display_name: str
    similarity: float


@dataclass
class Explanation:
    query: str
    query_norm: str
    shape: QueryShape
    strategy: Strategy
    segments: list[Segment]
    candidate_count: int
    candidates: list[CandidateExplanation] = field(default_factory=list)
    near_misses: list[NearMiss] = field(default_factory=list)


def explain(
    engine: SearchEngine,
    query: str,
    context: Mapping[str, Any] | None = None,
    near_misses: int = 5,
    limit: int = 20,
    near_miss_cutoff: float = 70.0,
) -> Explanation:
    """Break a search down per scorer, including candidates under threshold.

    Candidates that scored nothing at all are checked with rapidfuzz WRatio
    against the query to surface typos and spelling variants the lexical
    scorers cannot see.
    """
    trace = engine.trace(query, context)
    threshold = trace.strategy.threshold

    scored = sorted(
        (sc for sc in trace.scored if sc.scores.raw_total > 0),
        key=lambda sc: (-sc.scores.confidence, id_sort_key(sc.candidate.id)),
    )
    explanation = Explanation(
        query=trace.query_text,
        query_norm=trace.query_norm,
        shape=trace.shape,
        strategy=trace.strategy,
        segments=trace.query_segments,
        candidate_count=trace.candidate_count,
        candidates=[
            CandidateExplanation(
                candidate_id=sc.candidate.id,
                display_name=sc.candidate.raw_name,
                scores=sc.scores,
                accepted=sc.scores.confidence > threshold,
                reasons=sc.reasons,
            )
            for sc in scored[:limit]
        ],
    )

    if near_misses <= 0 or not trace.query_norm:
        return explanation

    hit_ids = {sc.candidate.id for sc in scored}
    pool = [c for c in engine.index.filter(context) if c.id not in hit_ids]
    if not pool:
        return explanation

    by_id = {c.id: c for c in pool}
    choices = {c.id: c.normalized_name for c in pool}
    matches = process.extract(
        trace.query_norm,
        choices,
        scorer=fuzz.WRatio,
        limit=near_misses,
        score_cutoff=near_miss_cutoff,
    )
    explanation.near_misses = [
        NearMiss(candidate_id=key, display_name=by_id[key].raw_name, similarity=round(score / 100.0, 4))
        for _, score, key in matches
    ]
    return explanation


@dataclass
class CorpusProfile:
    total: int = 0
    counts: dict[str, int] = field(default_factory=lambda: {p: 0 for p in PATTERNS})
    shapes: dict[str, int] = field(default_factory=dict)
    examples: dict[str, list[str]] = field(default_factory=lambda: {p: [] for p in PATTERNS})

    def percentages(self) -> dict[str, float]:
        if not self.total:
            return {p: 0.0 for p in PATTERNS}
        return {p: round(100.0 * n / self.total, 1) for p, n in self.counts.items()}


def profile_corpus(names: Iterable[str], max_examples: int = 5) -> CorpusProfile:
    """Count naming patterns (brands, articles, dimensions, ...) in a corpus."""
    profile = CorpusProfile()
    shapes: Counter[str] = Counter()

    for name in names:
        if not name or not str(name).strip():
            continue
        name = str(name)
        profile.total += 1
        shapes[classify(name)] += 1

        hits = {
            "brands": BRAND_PATTERN.search(name) is not None,
            "articles": DIGIT_LETTER.search(name) is not None or CODE_HYPHEN.search(name) is not None,
            "dimensions": DIMENSION.search(name) is not None,
            "special_chars": SPECIAL_CHARS.search(name) is not None,
        }
        hits["simple"] = not any(hits.values())

        for pattern, hit in hits.items():
            if not hit:
                continue
            profile.counts[pattern] += 1
            if len(profile.examples[pattern]) < max_examples:
                profile.examples[pattern].append(name)

    profile.shapes = dict(shapes)
    return profile
