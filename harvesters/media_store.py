"""
Local copies of definition images and pronunciation sounds.

Files are named by the basename of their remote URL and referenced from
records by a path relative to the output directory (``images/x.gif``).
"""

import asyncio
import logging
import posixpath
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import aiohttp

from dictionary_core.record_cache import atomic_write_bytes

logger = logging.getLogger(__name__)

IMAGES = "images"
SOUNDS = "sounds"


class MediaStore:
    """Download-once store for remote media"""

    def __init__(self, root: Path, client):
        self.root = Path(root)
        self.client = client

    def ensure_layout(self) -> None:
        for kind in (IMAGES, SOUNDS):
            (self.root / kind).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def filename_for(url: str) -> str:
        """Basename of the decoded URL path; "" when it cannot name a file"""
        filename = posixpath.basename(unquote(urlparse(url).path))
        if filename in (".", ".."):
            return ""
        return filename

    async def ensure(self, url: str, kind: str) -> Optional[str]:
        """Return the relative local path for ``url``, downloading it if needed.

        A failed download is not fatal; it returns None so the record keeps
        only the remote URL.
        """
        filename = self.filename_for(url)
        if not filename:
            logger.warning(f"Cannot derive a media filename from {url}")
            return None

        local_path = self.root / kind / filename
        try:
            if local_path.exists():
                return f"{kind}/{filename}"
        except OSError as e:
            logger.warning(f"Cannot check local media {local_path}: {e}")
            return None

        try:
            data = await self.client.fetch_bytes(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to download {url}: {e}")
            return None

        try:
            atomic_write_bytes(local_path, data)
        except OSError as e:
            logger.warning(f"Failed to save {url} to {local_path}: {e}")
            return None

        return f"{kind}/{filename}"
