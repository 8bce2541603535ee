"""CSV/JSONL/Excel input and output for corpora, queries and results."""

from __future__ import annotations

import csv
import json
import math
from pathlib import Path
from typing import Any

import pandas as pd

from matmatch.types import CandidateId, SearchResult

EXCEL_SUFFIXES = {".xlsx", ".xls"}


class CorpusFormatError(ValueError):
    """Raised when an input file cannot be read as a corpus or query list."""


def _coerce_id(value: Any, fallback: int) -> CandidateId:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return fallback
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return fallback
    if text.isdigit():
        return int(text)
    return text


def _clean(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _rows(path: Path) -> list[dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix == ".jsonl":
        rows = []
        with path.open(encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    rows.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise CorpusFormatError(f"{path}:{lineno}: invalid JSON ({e.msg})") from e
        return rows
    if suffix == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as f:
            return list(csv.DictReader(f))
    if suffix in EXCEL_SUFFIXES:
        df = pd.read_excel(path)
        return [{k: _clean(v) for k, v in row.items()} for row in df.to_dict(orient="records")]
    raise CorpusFormatError(f"Unsupported file type: {path.suffix or '(none)'}")


def read_candidates(
    path: str | Path,
    name_column: str = "name",
    id_column: str | None = "id",
    attribute_columns: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Read corpus records from CSV, JSONL or Excel.

    Returns dicts with ``id``, ``name`` and ``attributes``. Without an id
    column the row position is the id. When attribute_columns is None every
    other column becomes an attribute usable by context filters.
    """
    path = Path(path)
    rows = _rows(path)
    if rows and name_column not in rows[0]:
        raise CorpusFormatError(f"{path}: missing name column {name_column!r}")

    records: list[dict[str, Any]] = []
    for i, row in enumerate(rows):
        name = _clean(row.get(name_column))
        if name is None or not str(name).strip():
            continue
        if id_column and id_column in row:
            item_id = _coerce_id(row[id_column], i)
        else:
            item_id = i
        if attribute_columns is None:
            columns = [c for c in row if c not in (name_column, id_column)]
        else:
            columns = attribute_columns
        attributes = {c: _clean(row.get(c)) for c in columns if _clean(row.get(c)) not in (None, "")}
        records.append({"id": item_id, "name": str(name).strip(), "attributes": attributes})
    return records


def read_queries(path: str | Path, column: str = "query") -> list[str]:
    """Read query strings from a text file (one per line), CSV, JSONL or Excel."""
    path = Path(path)
    if path.suffix.lower() == ".txt":
        return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    rows = _rows(path)
    if rows and column not in rows[0]:
        raise CorpusFormatError(f"{path}: missing query column {column!r}")
    return [str(row[column]).strip() for row in rows if _clean(row.get(column)) not in (None, "")]


def result_rows(query: str, results: list[SearchResult]) -> list[dict[str, Any]]:
    """Flatten one query's results into output rows (one empty row if none)."""
    if not results:
        return [{
            "query": query, "rank": None, "candidate_id": None, "display_name": None,
            "confidence": None, "matched_segments": "",
        }]
    return [
        {
            "query": query,
            "rank": i + 1,
            "candidate_id": r.candidate_id,
            "display_name": r.display_name,
            "confidence": round(r.confidence, 4),
            "matched_segments": "|".join(r.matched_segments),
        }
        for i, r in enumerate(results)
    ]


def write_results(rows: list[dict[str, Any]], path: str | Path) -> None:
    """Write flattened result rows to CSV, JSONL or Excel."""
    path = Path(path)
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".jsonl":
        with path.open("w", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
    elif suffix == ".csv":
        fieldnames = list(rows[0].keys()) if rows else ["query"]
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for row in rows:
                writer.writerow({k: "" if v is None else v for k, v in row.items()})
    elif suffix in EXCEL_SUFFIXES:
        pd.DataFrame(rows).to_excel(path, index=False)
    else:
        raise CorpusFormatError(f"Unsupported output type: {path.suffix or '(none)'}")
