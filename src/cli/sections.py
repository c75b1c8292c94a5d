# =============================================================================
# src/cli/sections.py: CLI Section Layout Command
# =============================================================================
#
# Inspect and edit the stored section layout of a page without going
# through the API.  Uses the same PreferenceStore the API uses, so the
# merge with the current default schema applies here too.
#
# Typical usage:
#   python -m src.cli.sections show   --page home --locale en
#   python -m src.cli.sections toggle --page home sale
#   python -m src.cli.sections reorder --page discover 3 0
#   python -m src.cli.sections reset  --page product --owner user-42
# =============================================================================

"""Standalone CLI for per-page section layout preferences.

Usage::

    python -m src.cli.sections show --page home
    python -m src.cli.sections toggle --page home sale
    python -m src.cli.sections reorder --page home 2 0
    python -m src.cli.sections reset --page home
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from src.config.loader import load_config
from src.config.section_defaults import get_page_section_defaults, known_pages
from src.providers.preferences.sqlite_preference_storage import SQLitePreferenceStorage
from src.services.preference_store import PreferenceStore


def format_layout(store: PreferenceStore) -> str:
    lines = [f"page: {store.page_id}"]
    for position, section in enumerate(store.sections):
        mark = "x" if section.visible else " "
        lines.append(f"  {position:>2}. [{mark}] {section.id:<22} {section.label}  (order {section.order})")
    return "\n".join(lines)


async def _run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    storage = SQLitePreferenceStorage(db_path=args.db or config["storage"]["preferences_db_path"])
    await storage.initialize()

    store = PreferenceStore(storage, owner_id=args.owner)
    await store.load(args.page, get_page_section_defaults(args.page, args.locale))

    persisted = True
    if args.command == "toggle":
        persisted = await store.toggle(args.section_id)
    elif args.command == "reorder":
        try:
            persisted = await store.reorder(args.from_index, args.to_index)
        except IndexError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    elif args.command == "reset":
        persisted = await store.reset()

    print(format_layout(store))
    if not persisted:
        print("Warning: layout could not be saved", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.sections",
        description="Show or edit the stored section layout of a page.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--page", default="home", help=f"Page id ({', '.join(known_pages())})")
    common.add_argument("--locale", default="ja", help="Label locale (ja or en)")
    common.add_argument("--owner", default="anonymous", help="Owner id the layout belongs to")
    common.add_argument("--db", default=None, help="Path to the preferences SQLite database")
    common.add_argument("--config", default="config/config.yaml", help="Path to config.yaml")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", parents=[common], help="Print the current layout")
    toggle = sub.add_parser("toggle", parents=[common], help="Flip a section's visibility")
    toggle.add_argument("section_id")
    reorder = sub.add_parser("reorder", parents=[common], help="Move a section")
    reorder.add_argument("from_index", type=int)
    reorder.add_argument("to_index", type=int)
    sub.add_parser("reset", parents=[common], help="Restore the default layout")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
