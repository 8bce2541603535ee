"""FastAPI server exposing material name search to autocomplete widgets."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from matmatch.engine import SearchEngine
from matmatch.io import CorpusFormatError, read_candidates
from matmatch.rank import confidence_band
from matmatch.types import SearchOutcome

log = structlog.get_logger()

RESERVED_PARAMS = {"q", "top"}


class SearchRequest(BaseModel):
    """Request body for a search."""

    query: str = ""
    context: dict[str, Any] | None = None
    top_n: int | None = None


class Suggestion(BaseModel):
    """One ranked suggestion."""

    candidate_id: int | str
    display_name: str
    confidence: float
    band: str
    matched_segments: list[str]
    reasoning: list[str]


class SearchResponse(BaseModel):
    """Ranked suggestions plus how the query was handled."""

    query: str
    shape: str
    strategy: str
    threshold: float
    candidate_count: int
    processing_time_ms: float
    results: list[Suggestion]


class CorpusRecord(BaseModel):
    """A candidate supplied by the surrounding application."""

    id: int | str
    name: str
    attributes: dict[str, Any] = Field(default_factory=dict)


class CorpusRequest(BaseModel):
    """Request body replacing the whole corpus."""

    records: list[CorpusRecord]


class CorpusStats(BaseModel):
    """Size of the published corpus snapshot."""

    candidates: int
    vocabulary: int
    attribute_keys: list[str]


def _response(query: str, outcome: SearchOutcome) -> SearchResponse:
    return SearchResponse(
        query=query,
        shape=outcome.shape,
        strategy=outcome.strategy,
        threshold=outcome.threshold,
        candidate_count=outcome.candidate_count,
        processing_time_ms=round(outcome.processing_time_ms, 3),
        results=[
            Suggestion(
                candidate_id=r.candidate_id,
                display_name=r.display_name,
                confidence=round(r.confidence, 4),
                band=confidence_band(r.confidence),
                matched_segments=r.matched_segments,
                reasoning=r.reasoning,
            )
            for r in outcome.results
        ],
    )


def create_app(
    engine: SearchEngine,
    corpus_path: str | None = None,
    name_column: str = "name",
    id_column: str | None = "id",
) -> FastAPI:
    """Create the FastAPI application around a loaded engine.

    Reloads read corpus_path with the same columns the engine was loaded with.
    """
    app = FastAPI(title="matmatch")

    def stats() -> CorpusStats:
        index = engine.index
        return CorpusStats(
            candidates=len(index),
            vocabulary=index.vocabulary_size,
            attribute_keys=sorted(index.attribute_keys),
        )

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        """Liveness plus current corpus size."""
        return {"status": "ok", "candidates": len(engine.index)}

    @app.get("/api/search")
    async def search_get(request: Request, q: str = "", top: int | None = None) -> SearchResponse:
        """Search; any query parameter other than q and top is a context filter."""
        context: dict[str, Any] = {}
        for key in request.query_params:
            if key in RESERVED_PARAMS:
                continue
            values = request.query_params.getlist(key)
            context[key] = values if len(values) > 1 else values[0]
        outcome = engine.search_detailed(q, context or None, top)
        return _response(q, outcome)

    @app.post("/api/search")
    async def search_post(req: SearchRequest) -> SearchResponse:
        """Search with a JSON body."""
        outcome = engine.search_detailed(req.query, req.context, req.top_n)
        return _response(req.query, outcome)

    @app.get("/api/corpus/stats")
    async def corpus_stats() -> CorpusStats:
        """Describe the published corpus snapshot."""
        return stats()

    @app.post("/api/corpus")
    async def replace_corpus(req: CorpusRequest) -> CorpusStats:
        """Replace the corpus; the new snapshot is swapped in atomically."""
        engine.load([r.model_dump() for r in req.records])
        log.info("corpus_replaced_via_api", count=len(req.records))
        return stats()

    @app.post("/api/corpus/reload")
    async def reload_corpus() -> CorpusStats:
        """Re-read the corpus file the server was started with."""
        if not corpus_path:
            raise HTTPException(status_code=400, detail="No corpus file configured")
        if not Path(corpus_path).exists():
            raise HTTPException(status_code=404, detail="Corpus file not found")
        try:
            records = read_candidates(corpus_path, name_column=name_column, id_column=id_column)
        except CorpusFormatError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        engine.load(records)
        return stats()

    return app
