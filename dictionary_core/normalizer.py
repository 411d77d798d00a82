"""
Filename normalization for dictionary records.

A headword maps to one stable key that doubles as its cache filename and as
the identity used for traversal deduplication.
"""

import hashlib
import re

from .models import Mode

EMPTY_KEY = "empty"

# Keys are filenames; leave room under NAME_MAX (255 bytes) for ".json" and temp suffixes
MAX_KEY_BYTES = 200
_HASH_LENGTH = 16

# Site search results sometimes carry notes such as "hello (archaic)"
_PARENTHETICAL = re.compile(r"\([^)]*\)")
_UNSAFE_CHARS = re.compile(r"[^a-z0-9\u1780-\u17ff]")
_REPEATED_SEPARATORS = re.compile(r"_{2,}")


def normalize(raw: str) -> str:
    """Map a raw word to a filesystem-safe key.

    Parenthetical annotations are dropped, Latin text is lower-cased and every
    character outside a-z, 0-9 and the Khmer block becomes a single ``_``.
    Keys longer than ``MAX_KEY_BYTES`` in UTF-8 are cut and suffixed with a
    hash of the full key.
    ``normalize(normalize(x)) == normalize(x)`` holds for every input.
    """
    text = _PARENTHETICAL.sub("", raw or "").strip().lower()
    text = _UNSAFE_CHARS.sub("_", text)
    text = _REPEATED_SEPARATORS.sub("_", text).strip("_")
    if not text:
        return EMPTY_KEY
    return _bounded(text)


def _bounded(key: str) -> str:
    """Truncate an over-long key and append a hash of the full key"""
    encoded = key.encode("utf-8")
    if len(encoded) <= MAX_KEY_BYTES:
        return key
    digest = hashlib.sha256(encoded).hexdigest()[:_HASH_LENGTH]
    budget = MAX_KEY_BYTES - _HASH_LENGTH - 1
    prefix = encoded[:budget].decode("utf-8", errors="ignore").rstrip("_")
    return f"{prefix}_{digest}"


def visited_key(mode: Mode, word: str) -> str:
    """Traversal identity of ``word`` within ``mode``."""
    return f"{mode.value}:{normalize(word)}"
