# =============================================================================
# src/cli/recommend.py: CLI Recommend Command
# =============================================================================
#
# Runs the sales-for-you aggregation against a local SQLite catalog and
# prints the result, bypassing the API server.  Handy for checking how a
# given mix of favorites and viewing history cascades through the tiers.
#
# Typical usage:
#   python -m src.cli.recommend --favorites 7 --limit 5
#   python -m src.cli.recommend --favorites 7,12 --recent ABC-123,XYZ-9 --json
#   python -m src.cli.recommend --recent ABC-123 --db /tmp/catalog.db
#
# Output modes:
#   - Text (default): one line per candidate with its tier badge
#   - JSON (--json):  {"candidates": [...], "tiers_invoked": [...], ...}
#
# --json implies --quiet: logs go to stderr at WARNING+ so stdout holds
# only the JSON document.
# =============================================================================

"""Standalone CLI for the sales-for-you aggregation.

Usage::

    python -m src.cli.recommend --favorites 7 --recent ABC-123 --limit 5
    python -m src.cli.recommend --favorites 7 --json

Exit code is 0 on success and 1 when every tier failed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import structlog

from src.config.loader import load_config
from src.models.candidate import AggregationResult
from src.providers.data_source.sqlite_catalog_provider import SQLiteCatalogProvider
from src.services.recommendation_service import ForYouService, split_csv
from src.utils.errors import DataSourceError

_BADGES = {
    "favorite_match": "FAV",
    "history_match": "HIST",
    "trending_fallback": "TREND",
}


def _suppress_logs() -> None:
    """Send structlog and stdlib logging to stderr at WARNING+."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def format_text(result: AggregationResult) -> str:
    """Human-readable listing, one candidate per line."""
    if not result.candidates:
        return "No candidates."
    lines: list[str] = []
    for position, c in enumerate(result.candidates, start=1):
        badge = _BADGES.get(c.match_reason.value, c.match_reason.value)
        performers = ", ".join(p.name for p in c.performers) or "-"
        detail = f" ({c.match_detail})" if c.match_detail else ""
        lines.append(
            f"{position:>2}. [{badge:<5}] #{c.primary_id} {c.title or c.normalized_product_id or ''}"
            f"  -{c.discount_percent}%{detail}  performers: {performers}"
        )
    lines.append("")
    lines.append(f"tiers: {', '.join(result.tiers_invoked) or '-'}")
    if result.failed_tiers:
        lines.append(f"failed: {', '.join(result.failed_tiers)}")
    if result.enrichment_failed:
        lines.append("performer enrichment failed")
    return "\n".join(lines)


def format_json(result: AggregationResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False)


async def _run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    db_path = args.db or config["storage"]["catalog_db_path"]
    catalog = SQLiteCatalogProvider(db_path=db_path)
    await catalog.initialize()

    service = ForYouService(catalog, options=config.get("recommendations", {}))
    try:
        result = await service.recommend(
            favorite_ids=split_csv(args.favorites),
            recent_ids=split_csv(args.recent),
            limit=args.limit,
        )
    except DataSourceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(format_json(result) if args.json else format_text(result))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.recommend",
        description="Print tiered sale recommendations for a favorites/history mix.",
    )
    parser.add_argument("--favorites", default="", help="Comma-separated favorite performer ids")
    parser.add_argument("--recent", default="", help="Comma-separated recently viewed product ids")
    parser.add_argument("--limit", type=int, default=None, help="Number of candidates (default from config)")
    parser.add_argument("--db", default=None, help="Path to the catalog SQLite database")
    parser.add_argument("--config", default="config/config.yaml", help="Path to config.yaml")
    parser.add_argument("--json", action="store_true", help="Output JSON instead of text")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.json or args.quiet:
        _suppress_logs()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
