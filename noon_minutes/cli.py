#!/usr/bin/env python3
"""CLI entry point for the Noon Minutes crawler."""

import argparse
import asyncio
import json
import logging
import sys
import time

from .config import Settings
from .errors import CacheMiss, FetchError, InsufficientDataError
from .extraction import STRATEGIES, ListingStrategy
from .extraction.browser_pool import BrowserPool
from .models import CrawlResult
from .pipeline import build_cache, build_crawler, build_fetcher, build_resolver, crawl_and_commit


def print_result(result: CrawlResult) -> None:
    """Print crawl result summary."""
    print(f"\n{len(result)} products across {result.pages_covered} pages:")
    for i, r in enumerate(result.records[:5], 1):
        print(f"  {i}. [{r.product_id}] {r.name} ({r.size}) - {r.price or '?'}")
    if len(result) > 5:
        print(f"  ... and {len(result) - 5} more")


async def run_crawl(settings: Settings, as_json: bool) -> int:
    start = time.perf_counter()
    try:
        async with build_fetcher(settings) as fetcher:
            outcome = await crawl_and_commit(
                build_crawler(settings, fetcher), build_cache(settings), settings.persist_threshold
            )
    finally:
        await BrowserPool.shutdown()
    elapsed = time.perf_counter() - start

    if as_json:
        body = outcome.result.to_dict()
        body["elapsed_ms"] = round(elapsed * 1000)
        print(json.dumps(body, ensure_ascii=False, indent=2))
        return 0

    print_result(outcome.result)
    if outcome.persisted:
        print(f"\nSnapshot updated ({settings.snapshot_path})")
    elif outcome.from_snapshot:
        print(
            f"\nFresh crawl covered only {outcome.fresh_pages_covered} pages "
            f"(threshold {settings.persist_threshold}); served the previous snapshot"
        )
    print(f"Completed in {elapsed:.2f}s")
    return 0


async def run_detail(settings: Settings, product_id: str, image_url: str | None) -> int:
    start = time.perf_counter()
    try:
        async with build_fetcher(settings) as fetcher:
            record = await build_resolver(settings, fetcher).resolve(product_id, image_url)
    finally:
        await BrowserPool.shutdown()
    body = record.to_dict()
    body["elapsed_ms"] = round((time.perf_counter() - start) * 1000)
    print(json.dumps(body, ensure_ascii=False, indent=2))
    return 0


def show_snapshot(settings: Settings) -> int:
    result = build_cache(settings).read()
    print(f"Snapshot: {settings.snapshot_path}")
    print_result(result)
    return 0


def list_strategies() -> int:
    print("Listing strategies:")
    for name, cls in STRATEGIES.items():
        if issubclass(cls, ListingStrategy):
            print(f"  {cls.priority:>3}  {name}")
    print("Detail strategies:")
    for name, cls in STRATEGIES.items():
        if not issubclass(cls, ListingStrategy):
            print(f"  {cls.priority:>3}  {name}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Noon Minutes fruit & vegetable crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m noon_minutes.cli --crawl                  # Crawl, commit or fall back
  python -m noon_minutes.cli --crawl --json           # Print the full result body
  python -m noon_minutes.cli --detail N12345678A      # Resolve one product page
  python -m noon_minutes.cli --show-snapshot          # Summarize the stored snapshot
  python -m noon_minutes.cli --list-strategies        # Show extraction cascade order
        """,
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--crawl", "-c", action="store_true", help="Crawl listing pages and apply the commit policy")
    group.add_argument("--detail", "-d", metavar="PRODUCT_ID", help="Resolve a product detail page")
    group.add_argument("--show-snapshot", "-s", action="store_true", help="Print the stored snapshot")
    group.add_argument("--list-strategies", "-l", action="store_true", help="List extraction strategies")

    parser.add_argument("--image-url", help="Fallback image URL for --detail")
    parser.add_argument("--json", action="store_true", help="Print the crawl result as JSON")
    parser.add_argument("--max-pages", type=int, help="Override the per-run page cap")
    parser.add_argument("--threshold", type=int, help="Override the persistence threshold (pages)")
    parser.add_argument("--no-render", action="store_true", help="Disable the headless browser fallbacks")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list_strategies:
        return list_strategies()

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.max_pages is not None:
        settings.max_pages = max(1, args.max_pages)
    if args.threshold is not None:
        settings.persist_threshold = max(1, args.threshold)
    if args.no_render:
        settings.render_fallback = False

    try:
        if args.show_snapshot:
            return show_snapshot(settings)
        if args.detail:
            return asyncio.run(run_detail(settings, args.detail, args.image_url))
        return asyncio.run(run_crawl(settings, args.json))
    except InsufficientDataError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (FetchError, CacheMiss, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
