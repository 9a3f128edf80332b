"""
OPTCG Price Lookup — Bulk Catalog Refresh Script

Syncs one or more sets from tcgcsv into the local database. Sets synced
within SYNC_TTL_HOURS are skipped, same as POST /sync.

Usage:
    python scripts/sync_sets.py EB03 OP01 OP02
    python scripts/sync_sets.py --all
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Resolve project root so this script can be run from any working directory
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from optcg_prices.config import settings
from optcg_prices.errors import CatalogError
from optcg_prices.main import configure_logging, create_db_engine
from optcg_prices.pipeline.sync import sync_set
from optcg_prices.pipeline.tcgcsv import TcgCsvClient


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror One Piece sets from tcgcsv into the local database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/sync_sets.py EB03
  python scripts/sync_sets.py op01 op02 st01
  python scripts/sync_sets.py --all
""",
    )
    parser.add_argument(
        "sets",
        nargs="*",
        metavar="SET",
        help="Set abbreviations to sync (case-insensitive).",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Sync every set tcgcsv lists for the category.",
    )
    args = parser.parse_args(argv)
    if not args.sets and not args.all:
        parser.error("give at least one SET or --all")
    return args


async def sync_many(abbreviations: list[str], sync_all: bool = False) -> int:
    """
    Sync each set in turn. One failing set does not stop the rest.

    Returns:
        Number of sets that failed.
    """
    engine, session_factory = create_db_engine()
    failures = 0

    try:
        async with TcgCsvClient() as client:
            if sync_all:
                groups = await client.fetch_groups()
                abbreviations = [g.abbreviation for g in groups if g.abbreviation]

            for abbreviation in abbreviations:
                async with session_factory() as session:
                    try:
                        result = await sync_set(abbreviation, session, client)
                    except CatalogError as e:
                        failures += 1
                        print(f"{abbreviation}: FAILED ({e})", file=sys.stderr)
                        continue

                if result.skipped:
                    print(f"{abbreviation}: skipped (synced within {settings.SYNC_TTL_HOURS}h)")
                else:
                    print(
                        f"{abbreviation}: {result.group} — "
                        f"{result.products_upserted} products, {result.prices_inserted} prices"
                    )
    finally:
        await engine.dispose()

    return failures


async def main() -> None:
    args = parse_args()
    configure_logging(settings.LOG_LEVEL)

    failures = await sync_many(args.sets, sync_all=args.all)
    if failures:
        print(f"{failures} set(s) failed.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
