"""
Dictionary record model shared by the cache, the extractor and the crawler
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

RECORD_SCHEMA_VERSION = 1


class Mode(Enum):
    """Translation directions served by the dictionary site (value = ``gcm``)"""
    EN_KH = 1
    KH_KH = 2
    KH_EN = 3

    @property
    def partition(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return self.name.replace("_", "-")

    @property
    def search_endpoint(self) -> str:
        # English prefixes have their own live search; both Khmer-indexed modes share one
        return "livesearch1.php" if self is Mode.EN_KH else "livesearch2.php"

    @property
    def max_prefix_length(self) -> int:
        return 4 if self is Mode.EN_KH else 5

    @classmethod
    def from_partition(cls, partition: str) -> "Mode":
        try:
            return cls[partition.upper()]
        except KeyError:
            raise ValueError(f"Unknown dictionary partition: {partition}") from None


@dataclass
class Definition:
    """One sense of a headword as shown on the detail page"""
    text: Optional[str] = None
    part_of_speech: Optional[str] = None
    example: Optional[str] = None
    image_url: Optional[str] = None
    local_image_path: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)


@dataclass
class Entry:
    """Everything extracted for one (mode, word)"""
    word: str
    mode: Mode
    definitions: List[Definition] = field(default_factory=list)
    synonyms: List[str] = field(default_factory=list)
    antonyms: List[str] = field(default_factory=list)
    similar_words: List[str] = field(default_factory=list)
    sound_url: Optional[str] = None
    local_sound_path: Optional[str] = None

    def related_words(self) -> List[str]:
        """Traversal seeds in crawl order: synonyms, similar words, antonyms."""
        return [*self.synonyms, *self.similar_words, *self.antonyms]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': RECORD_SCHEMA_VERSION,
            'word': self.word,
            'mode': self.mode.partition,
            'definitions': [asdict(definition) for definition in self.definitions],
            'synonyms': list(self.synonyms),
            'antonyms': list(self.antonyms),
            'similar_words': list(self.similar_words),
            'sound_url': self.sound_url,
            'local_sound_path': self.local_sound_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        if data.get('schema_version') != RECORD_SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported record schema {data.get('schema_version')!r} "
                f"(expected {RECORD_SCHEMA_VERSION})"
            )
        return cls(
            word=data['word'],
            mode=Mode.from_partition(data['mode']),
            definitions=[Definition(**item) for item in data.get('definitions', [])],
            synonyms=list(data.get('synonyms', [])),
            antonyms=list(data.get('antonyms', [])),
            similar_words=list(data.get('similar_words', [])),
            sound_url=data.get('sound_url'),
            local_sound_path=data.get('local_sound_path'),
        )


class ExtractionStatus(Enum):
    FOUND = "found"
    CACHED = "cached"
    NOT_FOUND = "not_found"
    ERROR = "error"
    CORRUPT = "corrupt"


@dataclass
class ExtractionOutcome:
    """Result of materializing one (word, mode) record"""
    word: str
    mode: Mode
    status: ExtractionStatus
    entry: Optional[Entry] = None
    error_message: Optional[str] = None
    fetched: bool = False

    @property
    def succeeded(self) -> bool:
        return self.entry is not None
