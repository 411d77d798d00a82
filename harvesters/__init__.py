"""
Dictionary harvesting system.

This package contains the components that talk to english-khmer.com:
- HTTP transport and polite rate limiting
- Live-search discovery client
- Detail page extractor and media store
- Crawl scheduler and JSON export
"""

from .crawl_scheduler import CrawlResult, CrawlScheduler, DiscoveryTask, TraversalContext, seed_alphabet
from .discovery_client import DiscoveryClient, parse_search_results
from .exporter import export_records
from .http_client import DictionarySiteClient
from .media_store import MediaStore
from .page_extractor import DictionaryPageParser, PageExtractor
from .rate_limiter import RateLimiter

__all__ = [
    'CrawlResult',
    'CrawlScheduler',
    'DiscoveryTask',
    'TraversalContext',
    'seed_alphabet',
    'DiscoveryClient',
    'parse_search_results',
    'export_records',
    'DictionarySiteClient',
    'MediaStore',
    'DictionaryPageParser',
    'PageExtractor',
    'RateLimiter'
]
