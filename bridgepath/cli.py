from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import ResolverConfig
from .ingest import import_into_sqlite
from .recommendation import ConnectionRecommendation
from .system import BridgePath
from .util import json_dumps


def _print_recommendation(console: Console, rec: ConnectionRecommendation, *, title: str = "Recommendation") -> None:
    console.print(f"\n[bold]{title}[/bold]: {rec.type.value}")
    console.print(f"confidence={rec.confidence:.2f}  acceptance={rec.estimated_acceptance_rate:.0%}")
    console.print(rec.reasoning)

    d = rec.to_dict()
    if d.get("path"):
        console.print("path: " + " -> ".join(n["name"] or n["id"] for n in d["path"]["nodes"]))
    if d.get("intermediary"):
        m = d["intermediary"]
        console.print(
            f"bridge: {m['intermediary']['name'] or m['intermediary']['id']} "
            f"({m['direction']}, strength={m['path_strength']:.2f})"
        )
    if d.get("similarity"):
        table = Table(title="Similarity")
        table.add_column("Dimension")
        table.add_column("Score", justify="right")
        for k, v in d["similarity"]["breakdown"].items():
            table.add_row(k, f"{v:.2f}")
        table.add_row("[bold]overall[/bold]", f"{d['similarity']['overall']:.2f}")
        console.print(table)

    console.print("[bold]Next steps[/bold]")
    for step in rec.next_steps:
        console.print(f"- {step}")


def _print_discovered(console: Console, rows: list[dict]) -> None:
    table = Table(title="Suggested connections")
    table.add_column("Rank", justify="right")
    table.add_column("Actor")
    table.add_column("Strategy")
    table.add_column("Confidence", justify="right")
    table.add_column("Acceptance", justify="right")
    for i, row in enumerate(rows, start=1):
        rec = row["recommendation"]
        table.add_row(
            str(i),
            f"{row['target']['name']} ({row['target']['id']})",
            rec["type"],
            f"{rec['confidence']:.2f}",
            f"{rec['estimated_acceptance_rate']:.0%}",
        )
    console.print(table)


def main() -> None:
    p = argparse.ArgumentParser(description="Find the best way to reach someone through your network")
    p.add_argument("--network", default="data/network.json", help="Network JSON or SQLite (.db) path")
    p.add_argument("--source", default=None, help="Source actor id or name")
    p.add_argument("--target", default=None, help="Target actor id or name")
    p.add_argument("--compare", action="store_true", help="Show the recommendation and viable alternatives")
    p.add_argument("--discover", action="store_true", help="Rank every actor in the network as a target")
    p.add_argument("--top", type=int, default=10, help="Results to show with --discover")
    p.add_argument("--import-to", default=None, help="Write the JSON network into this SQLite file and exit")
    p.add_argument("--hop-limit", type=int, default=None, help="Maximum path length for mutual paths")
    p.add_argument("--timeout", type=float, default=None, help="Per-call graph timeout in seconds")
    p.add_argument("--semantic", action="store_true", help="Use OpenAI embeddings as a cold-outreach fallback")
    p.add_argument("--cache", default=".cache/bridgepath/embeddings.npz", help="Embedding cache path")
    p.add_argument("--json", action="store_true", help="Print raw JSON output")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args()

    console = Console()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    if args.import_to:
        import_into_sqlite(args.network, args.import_to)
        console.print(f"Imported {args.network} into {args.import_to}")
        return

    if not args.source or (not args.target and not args.discover):
        p.error("--source and either --target or --discover are required")

    config = ResolverConfig.from_env()
    overrides = {}
    if args.hop_limit is not None:
        overrides["hop_limit"] = args.hop_limit
    if args.timeout is not None:
        overrides["graph_timeout"] = args.timeout
    if overrides:
        config = replace(config, **overrides)

    app = BridgePath.from_files(
        network_path=args.network, config=config, semantic=args.semantic, cache_path=args.cache
    )

    if args.discover:
        rows = app.discover(source=args.source, limit=args.top)
        if args.json:
            console.print(json_dumps(rows))
        else:
            _print_discovered(console, rows)
        return

    if args.compare:
        options = app.compare(source=args.source, target=args.target)
        if args.json:
            console.print(json_dumps([o.to_dict() for o in options]))
        else:
            for i, rec in enumerate(options):
                _print_recommendation(console, rec, title=f"Option {i + 1}")
        return

    rec = app.recommend(source=args.source, target=args.target)
    if args.json:
        console.print(json_dumps(rec.to_dict()))
    else:
        _print_recommendation(console, rec)


if __name__ == "__main__":
    main()
