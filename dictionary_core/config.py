#!/usr/bin/env python3
"""
Configuration Management for the Dictionary Harvester
Supports environment variables, a JSON config file and built-in defaults
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://www.english-khmer.com'

# Logging Configuration
LOGGING = {
    'level': 'INFO',
    'format': '[%(asctime)s] %(message)s',
    'file_handler': True,
    'console_handler': True
}

# Environment variable -> field name, with the type used to coerce it
ENV_OVERRIDES = {
    'KHDICT_BASE_URL': ('base_url', str),
    'KHDICT_OUTPUT_DIR': ('output_dir', str),
    'KHDICT_REQUEST_DELAY': ('request_delay', float),
    'KHDICT_REQUEST_TIMEOUT': ('request_timeout', float),
    'KHDICT_LOG_FILE': ('log_file', str),
    'KHDICT_LOG_LEVEL': ('log_level', str),
}


@dataclass
class HarvestConfig:
    """Harvester settings with validation"""
    base_url: str = DEFAULT_BASE_URL
    output_dir: str = 'data'
    request_delay: float = 0.4
    request_timeout: float = 30.0
    user_agent: str = 'KhmerDictionaryHarvester/1.0 (Educational/Personal Use)'
    branching_threshold: int = 9
    log_file: Optional[str] = 'scraping_log.txt'
    log_level: str = 'INFO'

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not self.base_url or not self.base_url.startswith(('http://', 'https://')):
            raise ConfigurationError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        self.base_url = self.base_url.rstrip('/')
        if self.request_delay < 0:
            raise ConfigurationError("request_delay cannot be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.branching_threshold < 1:
            raise ConfigurationError("branching_threshold must be at least 1")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_file: Optional[Path] = None) -> HarvestConfig:
    """
    Build configuration from the available sources in priority order:
    1. Environment variables (KHDICT_*)
    2. ``harvester`` section of a JSON config file
    3. Defaults
    """
    values: Dict[str, Any] = {}

    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        logger.info(f"Loading harvester config from {config_file}")
        values.update(_load_from_file(config_file))

    env_values = _load_from_environment()
    if env_values:
        logger.info("Applying harvester config from environment variables")
        values.update(env_values)

    try:
        return HarvestConfig(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid harvester config: {e}") from e


def _load_from_file(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Error loading config file {config_file}: {e}") from e

    section = config_data.get('harvester', {})
    known = {f.name for f in fields(HarvestConfig)}
    unknown = set(section) - known
    if unknown:
        raise ConfigurationError(f"Unknown harvester settings: {', '.join(sorted(unknown))}")
    return section


def _load_from_environment() -> Dict[str, Any]:
    values = {}
    for var, (name, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(var)
        if raw is None or raw == '':
            continue
        try:
            values[name] = cast(raw)
        except ValueError:
            raise ConfigurationError(f"{var} must be a {cast.__name__}, got {raw!r}") from None
    return values


def setup_logging(config: HarvestConfig) -> None:
    """Route log records to the console and the append-only activity file"""
    handlers = []
    if LOGGING['console_handler']:
        handlers.append(logging.StreamHandler())
    if LOGGING['file_handler'] and config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding='utf-8'))

    logging.basicConfig(
        level=config.log_level.upper() or LOGGING['level'],
        format=LOGGING['format'],
        handlers=handlers,
        force=True,
    )
