"""Evaluation and tuning utilities for the search engine."""

from __future__ import annotations

import csv
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from matmatch.classify import classify
from matmatch.engine import SearchEngine
from matmatch.types import CandidateId


@dataclass
class EvalMetrics:
    k: int = 5
    total_queries: int = 0
    hits_at_1: int = 0
    hits_at_k: int = 0
    no_result_count: int = 0
    hit_at_1: float = 0.0
    hit_at_k: float = 0.0
    mrr: float = 0.0
    by_shape: dict[str, int] = field(default_factory=dict)
    misses: list[str] = field(default_factory=list)


@dataclass
class LabeledQuery:
    query: str
    expected_id: CandidateId
    context: dict[str, Any] | None = None


def load_labeled_queries(path: str | Path) -> list[LabeledQuery]:
    """Load labeled queries from CSV (query, expected_id[, context columns]).

    Non-empty extra columns become the query's context filter.
    """
    path = Path(path)
    labeled: list[LabeledQuery] = []
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            query = (row.get("query") or "").strip()
            expected = (row.get("expected_id") or "").strip()
            if not query or not expected:
                continue
            context = {
                k: v.strip() for k, v in row.items()
                if k not in ("query", "expected_id") and v and v.strip()
            }
            labeled.append(LabeledQuery(
                query=query,
                expected_id=int(expected) if expected.isdigit() else expected,
                context=context or None,
            ))
    return labeled


def evaluate(
    engine: SearchEngine,
    labeled: list[LabeledQuery],
    k: int = 5,
) -> EvalMetrics:
    """Measure hit@1, hit@k and MRR of the engine on labeled queries.

    A query counts toward MRR only when the expected id appears in the top k.
    """
    metrics = EvalMetrics(k=k, total_queries=len(labeled))
    shapes: Counter[str] = Counter()
    reciprocal_sum = 0.0

    for item in labeled:
        shapes[classify(item.query)] += 1
        results = engine.search(item.query, item.context, top_n=k)
        if not results:
            metrics.no_result_count += 1

        rank = None
        for i, r in enumerate(results):
            if str(r.candidate_id) == str(item.expected_id):
                rank = i + 1
                break

        if rank is None:
            metrics.misses.append(item.query)
            continue
        metrics.hits_at_k += 1
        if rank == 1:
            metrics.hits_at_1 += 1
        reciprocal_sum += 1.0 / rank

    if metrics.total_queries:
        metrics.hit_at_1 = metrics.hits_at_1 / metrics.total_queries
        metrics.hit_at_k = metrics.hits_at_k / metrics.total_queries
        metrics.mrr = reciprocal_sum / metrics.total_queries

    metrics.by_shape = dict(shapes)
    return metrics
