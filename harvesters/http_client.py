#!/usr/bin/env python3
"""
HTTP transport for english-khmer.com
One aiohttp session per run; requests are awaited one at a time by the callers
"""

import logging
from typing import Optional

import aiohttp

from dictionary_core.config import HarvestConfig

logger = logging.getLogger(__name__)


class DictionarySiteClient:
    """Thin aiohttp wrapper used by discovery, page extraction and media downloads"""

    def __init__(self, config: HarvestConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout, connect=10)
        headers = {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }
        self.session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self.session is not None:
            await self.session.close()
            self.session = None

    def url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    async def fetch_bytes(self, url: str) -> bytes:
        """GET ``url`` and return the body; HTTP errors raise aiohttp.ClientResponseError"""
        if self.session is None:
            raise RuntimeError("DictionarySiteClient must be used as an async context manager")
        logger.debug(f"GET {url}")
        async with self.session.get(url) as response:
            response.raise_for_status()
            return await response.read()

    async def fetch_text(self, url: str) -> str:
        # The site does not always declare its charset; pages are UTF-8
        data = await self.fetch_bytes(url)
        return data.decode('utf-8', errors='replace')
