#!/usr/bin/env python3
"""
Discovery Client - candidate words from the site's live-search endpoints
"""

import asyncio
import logging
from typing import List
from urllib.parse import quote

import aiohttp
from bs4 import BeautifulSoup

from dictionary_core.models import Mode

logger = logging.getLogger(__name__)


def parse_search_results(html: str) -> List[str]:
    """Anchor texts of a live-search fragment, in server order"""
    soup = BeautifulSoup(html, 'html.parser')
    words = []
    for link in soup.find_all('a'):
        word = link.get_text().strip()
        if word:
            words.append(word)
    return words


class DiscoveryClient:
    """Prefix search against livesearch1.php (English) / livesearch2.php (Khmer)"""

    def __init__(self, client):
        self.client = client

    def search_url(self, prefix: str, mode: Mode) -> str:
        return self.client.url(f"{mode.search_endpoint}?q={quote(prefix, safe='')}")

    async def discover(self, prefix: str, mode: Mode) -> List[str]:
        """Return candidate words for ``prefix``; transport errors yield []"""
        url = self.search_url(prefix, mode)
        try:
            html = await self.client.fetch_text(url)
            return parse_search_results(html)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Discovery failed for prefix '{prefix}' ({mode.label}): {e}")
            return []
        except Exception as e:
            logger.warning(f"Could not parse discovery results for '{prefix}' ({mode.label}): {e}")
            return []
