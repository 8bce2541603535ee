"""Request sequencing so callers can drop superseded search results."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from matmatch.engine import SearchEngine
from matmatch.types import SearchResult

log = structlog.get_logger()


@dataclass
class Ticket:
    seq: int
    query_text: str
    results: list[SearchResult] = field(default_factory=list)


class SearchSession:
    """Issues increasing sequence numbers for one input field.

    A newer query supersedes older ones: results for a ticket whose seq is
    no longer the latest should be discarded. Only the counter is shared;
    the searches themselves run without locks.
    """

    def __init__(self, engine: SearchEngine) -> None:
        self.engine = engine
        self._lock = threading.Lock()
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def next_seq(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, seq: int) -> bool:
        return seq == self._latest

    def submit(
        self,
        query_text: str,
        context: Mapping[str, Any] | None = None,
        top_n: int | None = None,
    ) -> Ticket:
        """Register a new request and run the search for it."""
        seq = self.next_seq()
        results = self.engine.search(query_text, context, top_n)
        return Ticket(seq=seq, query_text=query_text, results=results)

    def accept(self, ticket: Ticket) -> list[SearchResult] | None:
        """Results of the ticket if it is still current, else None."""
        if not self.is_current(ticket.seq):
            log.debug("stale_results_dropped", seq=ticket.seq, latest=self._latest)
            return None
        return ticket.results
