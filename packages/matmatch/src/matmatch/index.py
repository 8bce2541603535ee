"""Corpus index: candidate snapshot, token lookup and context pre-filter."""

from __future__ import annotations

from bisect import bisect_left
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Union

import structlog

from matmatch.config import SearchConfig
from matmatch.normalize import normalize, words
from matmatch.segment import segment
from matmatch.types import Candidate, CandidateId

log = structlog.get_logger()

_COLLECTIONS = (list, tuple, set, frozenset)

Record = Union[Candidate, tuple, Mapping[str, Any]]


def build_candidate(
    candidate_id: CandidateId,
    raw_name: str,
    attributes: Mapping[str, Any] | None = None,
    config: SearchConfig | None = None,
) -> Candidate:
    """Derive normalized name and segments for one corpus record."""
    raw_name = str(raw_name)
    return Candidate(
        id=candidate_id,
        raw_name=raw_name,
        normalized_name=normalize(raw_name, config),
        segments=tuple(segment(raw_name, config)),
        attributes=dict(attributes or {}),
    )


def coerce_record(record: Record, position: int, config: SearchConfig | None = None) -> Candidate | None:
    """Turn a loader record into a Candidate; None for records without a name.

    Accepts a Candidate, an ``(id, name)`` / ``(id, name, attributes)`` tuple,
    or a mapping with ``id`` and ``name`` keys whose remaining keys become
    attributes (or an explicit ``attributes`` mapping).
    """
    if isinstance(record, Candidate):
        return record

    if isinstance(record, tuple):
        if len(record) < 2:
            raise ValueError(f"Corpus record {position} must be (id, name[, attributes])")
        candidate_id, name = record[0], record[1]
        attributes = record[2] if len(record) > 2 else None
    elif isinstance(record, Mapping):
        candidate_id = record.get("id", position)
        name = record.get("name", record.get("raw_name"))
        if "attributes" in record:
            attributes = record["attributes"]
        else:
            attributes = {
                k: v for k, v in record.items() if k not in ("id", "name", "raw_name")
            }
    else:
        raise ValueError(f"Unsupported corpus record type: {type(record).__name__}")

    if name is None or not str(name).strip():
        return None
    return build_candidate(candidate_id, str(name).strip(), attributes, config)


def _same(actual: Any, wanted: Any) -> bool:
    if isinstance(actual, _COLLECTIONS):
        return any(_same(item, wanted) for item in actual)
    if actual == wanted:
        return True
    return actual is not None and wanted is not None and str(actual) == str(wanted)


def _attribute_matches(actual: Any, wanted: Any) -> bool:
    if isinstance(wanted, _COLLECTIONS):
        return any(_same(actual, w) for w in wanted)
    return _same(actual, wanted)


def apply_context(
    candidates: Iterable[Candidate],
    context: Mapping[str, Any] | None,
    known_keys: set[str] | None = None,
) -> list[Candidate]:
    """Hard pre-filter candidates by context.

    Keys that no candidate carries, and keys with a None value, impose no
    constraint. A candidate lacking a constrained key is excluded.
    """
    candidates = list(candidates)
    if not context:
        return candidates

    if known_keys is None:
        known_keys = {k for c in candidates for k in c.attributes}

    constraints: dict[str, Any] = {}
    for key, value in context.items():
        if value is None:
            continue
        if key not in known_keys:
            log.debug("context_key_ignored", key=key)
            continue
        constraints[key] = value

    if not constraints:
        return candidates

    return [
        c for c in candidates
        if all(k in c.attributes and _attribute_matches(c.attributes[k], v) for k, v in constraints.items())
    ]


class CorpusIndex:
    """Immutable snapshot of the candidate corpus.

    Holds candidates by id, an inverted index from name tokens and segment
    texts to candidate ids, and the attribute keys seen in the corpus. A new
    snapshot is built for every corpus refresh; searches never mutate it.
    """

    def __init__(self, candidates: Iterable[Candidate], config: SearchConfig | None = None) -> None:
        self.config = config or SearchConfig()
        self._candidates: dict[CandidateId, Candidate] = {}
        for cand in candidates:
            if cand.id in self._candidates:
                log.warning("duplicate_candidate_id", candidate_id=cand.id, kept=cand.raw_name)
                del self._candidates[cand.id]
            self._candidates[cand.id] = cand

        entries: dict[str, set[CandidateId]] = defaultdict(set)
        attribute_keys: set[str] = set()
        for cand in self._candidates.values():
            for token in words(cand.normalized_name):
                entries[token].add(cand.id)
            for seg in cand.segments:
                entries[seg.norm].add(cand.id)
            attribute_keys.update(cand.attributes)

        self._entries: dict[str, frozenset[CandidateId]] = {
            k: frozenset(v) for k, v in entries.items()
        }
        self._vocabulary: list[str] = sorted(self._entries)
        self._attribute_keys: frozenset[str] = frozenset(attribute_keys)

    @classmethod
    def build(cls, records: Iterable[Record], config: SearchConfig | None = None) -> CorpusIndex:
        """Build a snapshot from loader records (tuples, mappings or Candidates)."""
        candidates: list[Candidate] = []
        skipped = 0
        for position, record in enumerate(records):
            cand = coerce_record(record, position, config)
            if cand is None:
                skipped += 1
                continue
            candidates.append(cand)

        index = cls(candidates, config)
        log.info(
            "corpus_index_built",
            candidates=len(index),
            vocabulary=len(index._vocabulary),
            skipped=skipped,
        )
        return index

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates.values())

    def __contains__(self, candidate_id: object) -> bool:
        return candidate_id in self._candidates

    @property
    def candidates(self) -> list[Candidate]:
        return list(self._candidates.values())

    @property
    def attribute_keys(self) -> frozenset[str]:
        return self._attribute_keys

    @property
    def vocabulary_size(self) -> int:
        return len(self._vocabulary)

    def get(self, candidate_id: CandidateId) -> Candidate | None:
        return self._candidates.get(candidate_id)

    def ids_with_prefix(self, prefix: str) -> set[CandidateId]:
        """Ids of candidates having a token or segment starting with prefix."""
        prefix = normalize(prefix, self.config)
        if not prefix:
            return set()
        ids: set[CandidateId] = set()
        start = bisect_left(self._vocabulary, prefix)
        for entry in self._vocabulary[start:]:
            if not entry.startswith(prefix):
                break
            ids.update(self._entries[entry])
        return ids

    def ids_with_substring(self, text: str) -> set[CandidateId]:
        """Ids of candidates having a token or segment containing text."""
        text = normalize(text, self.config)
        if not text:
            return set()
        ids: set[CandidateId] = set()
        for entry in self._vocabulary:
            if text in entry:
                ids.update(self._entries[entry])
        return ids

    def prefilter(self, probes: Iterable[str], min_length: int = 2) -> set[CandidateId]:
        """Ids of candidates that can score above zero for these probes.

        A candidate qualifies when one of its tokens or segment texts contains
        a probe, or is contained in one (and is at least min_length long).
        Probes are normalized query words and query segment texts.
        """
        probe_set = {p for p in probes if p}
        if not probe_set:
            return set()
        ids: set[CandidateId] = set()
        for entry in self._vocabulary:
            for probe in probe_set:
                if probe in entry or (len(entry) >= min_length and entry in probe):
                    ids.update(self._entries[entry])
                    break
        return ids

    def filter(self, context: Mapping[str, Any] | None) -> list[Candidate]:
        """Candidates passing the hard context filter."""
        return apply_context(self._candidates.values(), context, set(self._attribute_keys))
