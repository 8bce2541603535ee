"""Core types for the matmatch material name search engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

CandidateId = Union[int, str]

QueryShape = Literal["simple", "technical", "mixed"]
QUERY_SHAPES: tuple[QueryShape, ...] = ("simple", "technical", "mixed")

SegmentKind = Literal["base", "article", "dimension", "brand", "free"]


@dataclass(frozen=True)
class Segment:
    text: str
    kind: SegmentKind
    norm: str


@dataclass(frozen=True)
class Candidate:
    id: CandidateId
    raw_name: str
    normalized_name: str
    segments: tuple[Segment, ...]
    attributes: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass
class Query:
    text: str
    context: dict[str, Any] | None = None


@dataclass
class ScoreVector:
    exact: float = 0.0
    overlap: float = 0.0
    keyword: float = 0.0
    segment: float = 0.0
    raw_total: float = 0.0
    confidence: float = 0.0
    matched_segments: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "exact": self.exact,
            "overlap": self.overlap,
            "keyword": self.keyword,
            "segment": self.segment,
            "raw_total": self.raw_total,
            "confidence": self.confidence,
            "matched_segments": list(self.matched_segments),
        }


@dataclass
class SearchResult:
    candidate_id: CandidateId
    display_name: str
    confidence: float
    matched_segments: list[str] = field(default_factory=list)
    scores: ScoreVector = field(default_factory=ScoreVector)
    reasoning: list[str] = field(default_factory=list)


@dataclass
class SearchOutcome:
    results: list[SearchResult]
    shape: QueryShape
    strategy: str
    threshold: float
    candidate_count: int = 0
    scored_count: int = 0
    processing_time_ms: float = 0.0
