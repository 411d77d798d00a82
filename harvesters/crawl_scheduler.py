#!/usr/bin/env python3
"""
Crawl Scheduler - discovery-driven harvesting of the dictionary site

Each batch walks one translation mode:
1. Query the live search for every seed prefix
2. Extract each newly discovered word (the record cache skips known ones)
3. Optionally follow synonyms / similar words / antonyms one hop
4. When a search page comes back full, lengthen the prefix and search again
"""

import logging
from collections import deque
from dataclasses import dataclass, field, fields
from typing import Iterable, List, Optional, Sequence, Set

from tqdm import tqdm

from dictionary_core import activity as events
from dictionary_core.activity import ActivityLog
from dictionary_core.models import ExtractionOutcome, ExtractionStatus, Mode
from dictionary_core.normalizer import visited_key
from .discovery_client import DiscoveryClient
from .page_extractor import PageExtractor
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

EN_ALPHABET = list('abcdefghijklmnopqrstuvwxyz')
KH_CONSONANTS = ['ក', 'ខ', 'គ', 'ឃ', 'ង', 'ច', 'ឆ', 'ជ', 'ឈ', 'ញ', 'ដ', 'ឋ', 'ឌ', 'ឍ', 'ណ', 'ត', 'ថ',
                 'ទ', 'ធ', 'ន', 'ប', 'ផ', 'ព', 'ភ', 'ម', 'យ', 'រ', 'ល', 'វ', 'ស', 'ហ', 'ឡ', 'អ']
# Independent vowels are the only vowels that can start a Khmer word
KH_INDEPENDENT_VOWELS = ['ឥ', 'ឦ', 'ឧ', 'ឩ', 'ឪ', 'ឫ', 'ឬ', 'ឭ', 'ឮ', 'ឯ', 'ឰ', 'ឱ', 'ឳ']
KH_SEEDS = KH_CONSONANTS + KH_INDEPENDENT_VOWELS

# The live search shows at most this many hits; a full page means more are hidden
DEFAULT_BRANCHING_THRESHOLD = 9
DEFAULT_WORD_CRAWL_LIMIT = 50


def seed_alphabet(mode: Mode) -> List[str]:
    return list(EN_ALPHABET) if mode is Mode.EN_KH else list(KH_SEEDS)


@dataclass(frozen=True)
class DiscoveryTask:
    prefix: str
    mode: Mode


@dataclass
class CrawlResult:
    """Counters for one or more crawl batches"""
    prefixes_queried: int = 0
    stored: int = 0
    cached: int = 0
    not_found: int = 0
    errors: int = 0
    corrupt: int = 0
    visited: int = 0

    @property
    def successful(self) -> int:
        return self.stored + self.cached

    @property
    def total_processed(self) -> int:
        return self.stored + self.cached + self.not_found + self.errors + self.corrupt

    def count(self, outcome: ExtractionOutcome) -> None:
        if outcome.status is ExtractionStatus.FOUND:
            self.stored += 1
        elif outcome.status is ExtractionStatus.CACHED:
            self.cached += 1
        elif outcome.status is ExtractionStatus.NOT_FOUND:
            self.not_found += 1
        elif outcome.status is ExtractionStatus.CORRUPT:
            self.corrupt += 1
        else:
            self.errors += 1

    def __add__(self, other: "CrawlResult") -> "CrawlResult":
        if not isinstance(other, CrawlResult):
            return NotImplemented
        return CrawlResult(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})


@dataclass
class TraversalContext:
    """Mutable state of one batch; never shared between batches"""
    mode: Mode
    depth: int
    seeds: List[str]
    visited: Set[str] = field(default_factory=set)
    result: CrawlResult = field(default_factory=CrawlResult)

    def claim(self, word: str) -> bool:
        """Mark ``word`` visited; False if it already was"""
        key = visited_key(self.mode, word)
        if key in self.visited:
            return False
        self.visited.add(key)
        self.result.visited = len(self.visited)
        return True


class CrawlScheduler:
    """Drives prefix expansion and relation traversal over one site"""

    def __init__(self, discovery: DiscoveryClient, extractor: PageExtractor, rate_limiter: RateLimiter,
                 activity: Optional[ActivityLog] = None,
                 branching_threshold: int = DEFAULT_BRANCHING_THRESHOLD,
                 show_progress: bool = False):
        self.discovery = discovery
        self.extractor = extractor
        self.rate_limiter = rate_limiter
        self.activity = activity or ActivityLog()
        self.branching_threshold = branching_threshold
        self.show_progress = show_progress

    async def run(self, modes: Iterable[Mode], depth: int = 2) -> CrawlResult:
        total = CrawlResult()
        for mode in modes:
            total = total + await self.run_batch(mode, depth=depth)
        return total

    async def run_batch(self, mode: Mode, depth: int = 2, seeds: Optional[Sequence[str]] = None) -> CrawlResult:
        """Discover and extract every word reachable from ``seeds`` in ``mode``"""
        context = TraversalContext(mode=mode, depth=depth, seeds=list(seeds or seed_alphabet(mode)))
        self.activity.record(events.BATCH_START, f">>> Starting Batch for {mode.label} <<<",
                             mode=mode.partition, seeds=len(context.seeds))

        # Explicit LIFO stack; children pushed reversed keep depth-first prefix order
        pending = [DiscoveryTask(prefix, mode) for prefix in reversed(context.seeds)]
        with tqdm(desc=f"Discovering {mode.label}", unit="prefix", disable=not self.show_progress) as progress:
            while pending:
                task = pending.pop()
                progress.set_postfix_str(f"{task.prefix} | visited: {len(context.visited)}")
                candidates = await self._expand(task, context)
                progress.update(1)

                if self._should_branch(task, candidates):
                    alphabet = EN_ALPHABET if mode is Mode.EN_KH else context.seeds
                    pending.extend(DiscoveryTask(task.prefix + symbol, mode) for symbol in reversed(alphabet))

        result = context.result
        self.activity.record(
            events.BATCH_END,
            f"Processing complete for {mode.label}. Total unique words processed: {result.total_processed} "
            f"(new: {result.stored}, cached: {result.cached}, not found: {result.not_found}, "
            f"errors: {result.errors + result.corrupt})",
            mode=mode.partition, stored=result.stored, cached=result.cached,
        )
        return result

    def _should_branch(self, task: DiscoveryTask, candidates: List[str]) -> bool:
        return (len(candidates) >= self.branching_threshold
                and len(task.prefix) < task.mode.max_prefix_length)

    async def _expand(self, task: DiscoveryTask, context: TraversalContext) -> List[str]:
        candidates = await self.discovery.discover(task.prefix, task.mode)
        context.result.prefixes_queried += 1
        await self.rate_limiter.wait()

        for word in candidates:
            if not context.claim(word):
                continue
            outcome = await self._extract(word, context)

            if context.depth > 1 and outcome.succeeded:
                for related in outcome.entry.related_words():
                    if context.claim(related):
                        await self._extract(related, context)
        return candidates

    async def _extract(self, word: str, context: TraversalContext) -> ExtractionOutcome:
        outcome = await self.extractor.extract(word, context.mode)
        context.result.count(outcome)
        # Cache hits never reached the site, so they skip the politeness delay
        if outcome.fetched:
            await self.rate_limiter.wait()
        return outcome

    async def crawl_from_word(self, word: str, mode: Mode, depth: int = 1,
                              limit: int = DEFAULT_WORD_CRAWL_LIMIT) -> CrawlResult:
        """Breadth-first relation crawl starting at a single word.

        Relations are followed while the current level is below ``depth``;
        the crawl stops once ``limit`` distinct words have been visited.
        """
        context = TraversalContext(mode=mode, depth=depth, seeds=[word])
        self.activity.record(events.BATCH_START, f"Starting word crawl ({mode.label}): {word}, depth {depth}",
                             mode=mode.partition, word=word)

        queue = deque([(word, 1)])
        while queue:
            if len(context.visited) >= limit:
                logger.info(f"Reached safety limit of {limit} words")
                break
            current, level = queue.popleft()
            if not context.claim(current):
                continue

            outcome = await self._extract(current, context)
            if level < depth and outcome.succeeded:
                for related in outcome.entry.related_words():
                    if visited_key(mode, related) not in context.visited:
                        queue.append((related, level + 1))

        result = context.result
        self.activity.record(events.BATCH_END, f"Word crawl done: {result.visited} words visited",
                             mode=mode.partition, stored=result.stored, cached=result.cached)
        return result
