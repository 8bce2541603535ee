"""CLI for material and supplier name search."""

import argparse
import os
import sys

import pandas as pd
import structlog

from matmatch.config import SearchConfig, load_config
from matmatch.diagnostics import PATTERNS, explain, profile_corpus
from matmatch.engine import SearchEngine
from matmatch.evaluation import evaluate, load_labeled_queries
from matmatch.io import CorpusFormatError, read_candidates, read_queries, result_rows, write_results
from matmatch.logging import configure_logging
from matmatch.rank import confidence_band


def _build_config(args: argparse.Namespace) -> SearchConfig:
    """Build a SearchConfig from --config (or MATMATCH_CONFIG) and CLI flags."""
    log = structlog.get_logger()
    path = args.config or os.environ.get("MATMATCH_CONFIG")
    config = load_config(path) if path else SearchConfig()
    if path:
        log.info("config_loaded", path=path)
    if getattr(args, "k", None) is not None:
        config.ranking.saturation_k = args.k
    if getattr(args, "no_index", False):
        config.candidates.use_index = False
    return config


def _parse_context(pairs: list[str] | None) -> dict[str, object] | None:
    """Turn repeated key=value flags into a context dict (repeats become lists)."""
    if not pairs:
        return None
    context: dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"Invalid --context value {pair!r}, expected key=value")
        if key in context:
            existing = context[key]
            context[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            context[key] = value
    return context


def _build_engine(args: argparse.Namespace) -> SearchEngine:
    log = structlog.get_logger()
    config = _build_config(args)
    log.info("load_corpus_start", corpus=args.corpus)
    records = read_candidates(args.corpus, name_column=args.name_column, id_column=args.id_column)
    engine = SearchEngine(config, records)
    log.info("load_corpus_done", candidates=len(engine.index))
    return engine


def cmd_search(args: argparse.Namespace) -> None:
    engine = _build_engine(args)
    outcome = engine.search_detailed(args.query, _parse_context(args.context), args.top)

    print(f"Query: {args.query}")
    print(f"Shape: {outcome.shape} (threshold {outcome.threshold})")
    print(f"Candidates: {outcome.candidate_count}, scored: {outcome.scored_count}, "
          f"time: {outcome.processing_time_ms:.1f} ms")
    if not outcome.results:
        print("\n=== No suggestions ===")
        return

    df = pd.DataFrame([
        {
            "id": r.candidate_id,
            "name": r.display_name,
            "confidence": round(r.confidence, 4),
            "band": confidence_band(r.confidence),
            "matched": ", ".join(r.matched_segments),
        }
        for r in outcome.results
    ])
    print(f"\n=== Suggestions ({len(df)}) ===")
    print(df.to_string(index=False))


def cmd_batch(args: argparse.Namespace) -> None:
    engine = _build_engine(args)
    queries = read_queries(args.queries, column=args.query_column)
    print(f"Queries: {len(queries)}")

    batch = engine.search_many(queries, top_n=args.top)
    rows = []
    found = 0
    for query, results in zip(queries, batch):
        rows.extend(result_rows(query, results))
        if results:
            found += 1

    write_results(rows, args.output)
    print(f"With suggestions: {found}, without: {len(queries) - found}")
    print(f"\nSaved to: {args.output}")


def cmd_explain(args: argparse.Namespace) -> None:
    engine = _build_engine(args)
    exp = explain(
        engine,
        args.query,
        _parse_context(args.context),
        near_misses=args.near_misses,
        limit=args.limit,
    )

    s = exp.strategy
    print(f"Query: {exp.query}")
    print(f"Normalized: {exp.query_norm}")
    print(f"Shape: {exp.shape}")
    print(f"Weights: exact={s.exact} overlap={s.overlap} keyword={s.keyword} segment={s.segment}")
    print(f"Threshold: {s.threshold}")
    print("Segments: " + ", ".join(f"{seg.text}[{seg.kind}]" for seg in exp.segments))

    if exp.candidates:
        df = pd.DataFrame([
            {
                "id": c.candidate_id,
                "name": c.display_name,
                "exact": c.scores.exact,
                "overlap": round(c.scores.overlap, 2),
                "keyword": c.scores.keyword,
                "segment": round(c.scores.segment, 2),
                "raw": round(c.scores.raw_total, 2),
                "confidence": round(c.scores.confidence, 4),
                "passes": c.accepted,
            }
            for c in exp.candidates
        ])
        print(f"\n=== Scored candidates ({len(df)} of {exp.candidate_count}) ===")
        print(df.to_string(index=False))
    else:
        print("\n=== No candidate scored above zero ===")

    if exp.near_misses:
        print("\n=== Near misses (zero score, similar spelling) ===")
        for nm in exp.near_misses:
            print(f"  {nm.candidate_id}: {nm.display_name} (similarity {nm.similarity:.2f})")


def cmd_profile(args: argparse.Namespace) -> None:
    records = read_candidates(args.corpus, name_column=args.name_column, id_column=args.id_column)
    profile = profile_corpus(r["name"] for r in records)
    pct = profile.percentages()

    print(f"Names: {profile.total}")
    print("\n--- Patterns ---")
    for pattern in PATTERNS:
        print(f"  {pattern}: {profile.counts[pattern]} ({pct[pattern]}%)")
    print("\n--- Query shapes ---")
    for shape, count in sorted(profile.shapes.items()):
        print(f"  {shape}: {count}")
    for pattern in PATTERNS:
        if profile.examples[pattern]:
            print(f"\nExamples ({pattern}):")
            for i, name in enumerate(profile.examples[pattern], start=1):
                print(f"  {i}. {name}")


def cmd_evaluate(args: argparse.Namespace) -> None:
    engine = _build_engine(args)
    labeled = load_labeled_queries(args.labels)
    metrics = evaluate(engine, labeled, k=args.top)

    print("\n--- Evaluation ---")
    print(f"Queries: {metrics.total_queries}")
    print(f"hit@1: {metrics.hit_at_1:.3f}")
    print(f"hit@{metrics.k}: {metrics.hit_at_k:.3f}")
    print(f"MRR: {metrics.mrr:.3f}")
    print(f"No results: {metrics.no_result_count}")
    print("Shapes: " + ", ".join(f"{k}={v}" for k, v in sorted(metrics.by_shape.items())))
    if metrics.misses and args.show_misses:
        print("\n=== Misses ===")
        for q in metrics.misses:
            print(f"  {q}")


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from matmatch.server import create_app

    log = structlog.get_logger()
    engine = _build_engine(args)
    log.info("server_start", port=args.port, candidates=len(engine.index))
    app = create_app(
        engine,
        corpus_path=args.corpus,
        name_column=args.name_column,
        id_column=args.id_column,
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")


def main(argv: list[str] | None = None) -> None:
    # Parent parser with global options (inherited by all subcommands)
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level (default: WARNING)",
    )
    parent_parser.add_argument("--config", help="JSON file with config overrides (default: $MATMATCH_CONFIG)")
    parent_parser.add_argument("--corpus", required=True, help="Corpus file (.csv, .jsonl, .xlsx)")
    parent_parser.add_argument("--name-column", default="name", help="Column holding candidate names")
    parent_parser.add_argument("--id-column", default="id", help="Column holding candidate ids")

    parser = argparse.ArgumentParser(description="Material and supplier name search CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", parents=[parent_parser], help="Search one query")
    search_parser.add_argument("query", help="Free-text material description")
    search_parser.add_argument("--top", type=int, default=10, help="Number of suggestions (default: 10)")
    search_parser.add_argument("--context", action="append", metavar="KEY=VALUE", help="Context filter (repeatable)")
    search_parser.add_argument("--k", type=float, help="Saturation constant override")
    search_parser.add_argument("--no-index", action="store_true", help="Score every candidate, skip index pre-filter")
    search_parser.set_defaults(func=cmd_search)

    batch_parser = subparsers.add_parser("batch", parents=[parent_parser], help="Search a file of queries")
    batch_parser.add_argument("--queries", required=True, help="Queries file (.txt, .csv, .jsonl, .xlsx)")
    batch_parser.add_argument("--query-column", default="query", help="Column holding queries")
    batch_parser.add_argument("--output", default="matmatch_results.csv", help="Output file path")
    batch_parser.add_argument("--top", type=int, default=10, help="Suggestions per query (default: 10)")
    batch_parser.set_defaults(func=cmd_batch)

    explain_parser = subparsers.add_parser("explain", parents=[parent_parser], help="Per-scorer breakdown of a query")
    explain_parser.add_argument("query", help="Free-text material description")
    explain_parser.add_argument("--context", action="append", metavar="KEY=VALUE", help="Context filter (repeatable)")
    explain_parser.add_argument("--limit", type=int, default=20, help="Scored candidates to show")
    explain_parser.add_argument("--near-misses", type=int, default=5, help="Near misses to show (0 disables)")
    explain_parser.set_defaults(func=cmd_explain)

    profile_parser = subparsers.add_parser("profile", parents=[parent_parser], help="Naming pattern statistics")
    profile_parser.set_defaults(func=cmd_profile)

    eval_parser = subparsers.add_parser("evaluate", parents=[parent_parser], help="Evaluate on labeled queries")
    eval_parser.add_argument("--labels", required=True, help="CSV with query,expected_id columns")
    eval_parser.add_argument("--top", type=int, default=5, help="k for hit@k (default: 5)")
    eval_parser.add_argument("--show-misses", action="store_true", help="List queries that missed")
    eval_parser.set_defaults(func=cmd_evaluate)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        args.func(args)
    except (CorpusFormatError, FileNotFoundError, ValueError) as e:
        structlog.get_logger().error("input_error", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
