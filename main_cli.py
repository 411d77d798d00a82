#!/usr/bin/env python3
"""
Main CLI Entry Point
Batch crawl, single-word crawl and export for the english-khmer.com harvester
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dictionary_core import (ActivityLog, CacheCorruptionError, ConfigurationError, HarvestConfig, Mode,
                             RecordCache, load_config, setup_logging)
from harvesters import (CrawlResult, CrawlScheduler, DictionarySiteClient, DiscoveryClient, MediaStore,
                        PageExtractor, RateLimiter, export_records)

logger = logging.getLogger(__name__)

BATCH_MODES = {
    'en': [Mode.EN_KH],
    'kh': [Mode.KH_KH, Mode.KH_EN],
    'all': [Mode.EN_KH, Mode.KH_KH, Mode.KH_EN],
}


def build_scheduler(config: HarvestConfig, client, activity: ActivityLog,
                    show_progress: bool = False) -> CrawlScheduler:
    """Wire the cache, media store, extractor and discovery client around ``client``"""
    cache = RecordCache(config.output_path, activity)
    cache.ensure_layout()
    media = MediaStore(config.output_path, client)
    media.ensure_layout()
    return CrawlScheduler(
        discovery=DiscoveryClient(client),
        extractor=PageExtractor(client, cache, media, activity),
        rate_limiter=RateLimiter(config.request_delay),
        activity=activity,
        branching_threshold=config.branching_threshold,
        show_progress=show_progress,
    )


async def run_crawl(config: HarvestConfig, batch: str, depth: int) -> CrawlResult:
    activity = ActivityLog()
    async with DictionarySiteClient(config) as client:
        scheduler = build_scheduler(config, client, activity, show_progress=sys.stderr.isatty())
        result = await scheduler.run(BATCH_MODES[batch], depth=depth)
    logger.info("Batch processing complete!")
    return result


async def run_word_crawl(config: HarvestConfig, word: str, mode: Mode, depth: int, limit: int) -> CrawlResult:
    activity = ActivityLog()
    async with DictionarySiteClient(config) as client:
        scheduler = build_scheduler(config, client, activity)
        return await scheduler.crawl_from_word(word, mode, depth=depth, limit=limit)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='English-Khmer dictionary harvester')
    parser.add_argument('--config', type=Path, default=None,
                        help='JSON config file with a "harvester" section')
    parser.add_argument('--output-dir', default=None,
                        help='Directory for records and media (default: data)')
    parser.add_argument('--delay', type=float, default=None,
                        help='Seconds to wait after each request')

    subparsers = parser.add_subparsers(dest='command')

    crawl = subparsers.add_parser('crawl', help='Discover and scrape words by prefix')
    crawl.add_argument('batch', choices=sorted(BATCH_MODES), help='Which dictionaries to crawl')
    crawl.add_argument('--depth', type=int, default=2,
                       help='1 = discovered words only, 2 = also their related words')

    word = subparsers.add_parser('word', help='Scrape one word and optionally its neighbours')
    word.add_argument('word', help='Word to start from')
    word.add_argument('--mode', type=int, choices=[m.value for m in Mode], default=Mode.EN_KH.value,
                      help='1 = EN-KH, 2 = KH-KH, 3 = KH-EN')
    word.add_argument('--depth', type=int, default=1, help='1 = single word, 2 = neighbours')
    word.add_argument('--limit', type=int, default=50, help='Safety limit on words visited')

    export = subparsers.add_parser('export', help='Aggregate cached records into one JSON file')
    export.add_argument('--output', type=Path, default=None, help='Export file path')

    return parser


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
        overrides = {}
        if args.output_dir:
            overrides['output_dir'] = args.output_dir
        if args.delay is not None:
            overrides['request_delay'] = args.delay
        if overrides:
            config = replace(config, **overrides)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    setup_logging(config)

    if args.command == 'crawl':
        result = asyncio.run(run_crawl(config, args.batch, args.depth))
        print(f"[OK] Queried {result.prefixes_queried} prefixes | "
              f"New {result.stored} | Cached {result.cached} | "
              f"Not found {result.not_found} | Errors {result.errors + result.corrupt}")

    elif args.command == 'word':
        result = asyncio.run(run_word_crawl(config, args.word, Mode(args.mode), args.depth, args.limit))
        print(f"[OK] Done! Scraped {result.visited} items "
              f"(new {result.stored}, cached {result.cached})")

    elif args.command == 'export':
        cache = RecordCache(config.output_path)
        try:
            counts = export_records(cache, args.output)
        except CacheCorruptionError as e:
            logger.error(f"Export aborted: {e}")
            return 1
        print(f"[OK] Exported {sum(counts.values())} words "
              + ", ".join(f"{partition}: {count}" for partition, count in counts.items()))

    return 0


if __name__ == "__main__":
    sys.exit(main())
