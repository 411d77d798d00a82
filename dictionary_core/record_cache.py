"""
On-disk record cache, one JSON file per (mode, word).

The cache is what makes a crawl resumable: a record that exists is never
fetched again and never rewritten.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from . import activity as events
from .activity import ActivityLog
from .exceptions import CacheCorruptionError
from .models import Entry, Mode
from .normalizer import normalize

logger = logging.getLogger(__name__)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` through a temp file in the same directory"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        # Never leave a half-written temp file behind
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class RecordCache:
    """Mode-partitioned JSON store for dictionary entries"""

    def __init__(self, root: Path, activity: Optional[ActivityLog] = None):
        self.root = Path(root)
        self.activity = activity or ActivityLog()

    def ensure_layout(self) -> None:
        for mode in Mode:
            (self.root / mode.partition).mkdir(parents=True, exist_ok=True)

    def path_for(self, mode: Mode, word: str) -> Path:
        return self.root / mode.partition / f"{normalize(word)}.json"

    def contains(self, mode: Mode, word: str) -> bool:
        return self.path_for(mode, word).exists()

    def get(self, mode: Mode, word: str) -> Optional[Entry]:
        """Return the stored entry, or None if it was never stored.

        Raises CacheCorruptionError when the file is present but unreadable.
        """
        path = self.path_for(mode, word)
        if not path.exists():
            return None

        entry = self._read(path)
        self.activity.record(
            events.SKIP,
            f"Skipping existing word ({mode.partition}): {normalize(word)}",
            mode=mode.partition,
            word=word,
        )
        return entry

    def put(self, mode: Mode, word: str, entry: Entry) -> Path:
        path = self.path_for(mode, word)
        payload = json.dumps(entry.to_dict(), ensure_ascii=False, indent=2)
        atomic_write_bytes(path, payload.encode('utf-8'))
        self.activity.record(
            events.STORED,
            f"Saved ({mode.partition}): {entry.word} -> {path.name}",
            mode=mode.partition,
            word=entry.word,
        )
        return path

    def iter_entries(self, mode: Mode) -> Iterator[Entry]:
        partition = self.root / mode.partition
        if not partition.is_dir():
            return
        for path in sorted(partition.glob('*.json')):
            yield self._read(path)

    def _read(self, path: Path) -> Entry:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return Entry.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise CacheCorruptionError(path, str(e)) from e
