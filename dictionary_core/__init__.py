"""
Core dictionary harvester components.

This package contains the building blocks shared by every harvester:
- Record model and translation modes
- Filename normalization
- Resumable on-disk record cache
- Activity stream, configuration and logging setup
"""

from .activity import ActivityLog
from .config import HarvestConfig, load_config, setup_logging
from .exceptions import CacheCorruptionError, ConfigurationError, DictionaryHarvestError
from .models import Definition, Entry, ExtractionOutcome, ExtractionStatus, Mode
from .normalizer import normalize, visited_key
from .record_cache import RecordCache, atomic_write_bytes

__all__ = [
    'ActivityLog',
    'HarvestConfig',
    'load_config',
    'setup_logging',
    'CacheCorruptionError',
    'ConfigurationError',
    'DictionaryHarvestError',
    'Definition',
    'Entry',
    'ExtractionOutcome',
    'ExtractionStatus',
    'Mode',
    'normalize',
    'visited_key',
    'RecordCache',
    'atomic_write_bytes'
]
