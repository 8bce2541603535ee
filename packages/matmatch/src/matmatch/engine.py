"""Search engine facade: corpus snapshots and the search operation."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from matmatch.config import SearchConfig
from matmatch.index import CorpusIndex, Record
from matmatch.rank import RankTrace, rank_with_trace
from matmatch.types import Query, SearchOutcome, SearchResult

log = structlog.get_logger()


class SearchEngine:
    """Adaptive material name search over an in-memory corpus.

    The corpus lives in an immutable CorpusIndex. Refreshing builds a new
    index and publishes it with a single reference swap, so a search always
    runs against one consistent snapshot and needs no locking.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        records: Iterable[Record] | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._index = CorpusIndex([], self.config)
        self._publish_lock = threading.Lock()
        if records is not None:
            self.load(records)

    @property
    def index(self) -> CorpusIndex:
        return self._index

    def load(self, records: Iterable[Record]) -> CorpusIndex:
        """Build a new snapshot from records and publish it."""
        log.info("corpus_load_start")
        index = CorpusIndex.build(records, self.config)
        self.publish(index)
        return index

    def publish(self, index: CorpusIndex) -> None:
        """Swap in a prebuilt snapshot."""
        with self._publish_lock:
            previous = len(self._index)
            self._index = index
        log.info("corpus_published", candidates=len(index), previous=previous)

    def trace(
        self,
        query_text: str | None,
        context: Mapping[str, Any] | None = None,
        top_n: int | None = None,
    ) -> RankTrace:
        """Rank against the current snapshot, keeping intermediate state."""
        index = self._index
        return rank_with_trace(query_text, context, index, self.config, top_n)

    def search(
        self,
        query_text: str | None,
        context: Mapping[str, Any] | None = None,
        top_n: int | None = None,
    ) -> list[SearchResult]:
        """Rank corpus candidates for a free-text query.

        Never raises on user input: an empty query, empty corpus or a context
        that filters everything out all give an empty list.
        """
        return self.search_detailed(query_text, context, top_n).results

    def search_detailed(
        self,
        query_text: str | None,
        context: Mapping[str, Any] | None = None,
        top_n: int | None = None,
    ) -> SearchOutcome:
        """Search and report shape, strategy, candidate counts and timing."""
        started = time.perf_counter()
        trace = self.trace(query_text, context, top_n)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        log.debug(
            "search_done",
            query=trace.query_text,
            shape=trace.shape,
            results=len(trace.results),
            top_confidence=round(trace.results[0].confidence, 4) if trace.results else None,
            elapsed_ms=round(elapsed_ms, 2),
        )

        return SearchOutcome(
            results=trace.results,
            shape=trace.shape,
            strategy=trace.strategy.name,
            threshold=trace.strategy.threshold,
            candidate_count=trace.candidate_count,
            scored_count=len(trace.scored),
            processing_time_ms=elapsed_ms,
        )

    def search_many(
        self,
        queries: Iterable[str | Query],
        top_n: int | None = None,
    ) -> list[list[SearchResult]]:
        """Run a batch of queries against one snapshot."""
        index = self._index
        batch: list[list[SearchResult]] = []
        for i, query in enumerate(queries):
            # Query objects carry their own context
            trace = rank_with_trace(query, None, index, self.config, top_n)
            batch.append(trace.results)
            if (i + 1) % 1000 == 0:
                log.info("search_progress", processed=i + 1)
        return batch
