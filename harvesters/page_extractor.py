#!/usr/bin/env python3
"""
Page Extractor - turn english-khmer.com detail pages into dictionary records

The site renders each translation direction with different markup:
- EN-KH: Khmer glosses in ``td.khbat12`` cells, often as images, plus a sound
- KH-KH: Khmer glosses in ``td.khbat12`` cells under a Khmer-labelled block
- KH-EN: English glosses in ``td.text2`` cells
Synonyms, antonyms and similar words share one layout across all three.
"""

import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup, Tag

from dictionary_core import activity as events
from dictionary_core.activity import ActivityLog
from dictionary_core.exceptions import CacheCorruptionError
from dictionary_core.models import Definition, Entry, ExtractionOutcome, ExtractionStatus, Mode
from dictionary_core.record_cache import RecordCache
from .media_store import IMAGES, SOUNDS, MediaStore

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = ('word not found', 'Please try again')
DEFINITION_LABEL = 'Definition:'
KHMER_DEFINITION_LABEL = 'អត្ថន័យ'
SYNONYM_LABEL = 'Synonym:'
ANTONYM_LABEL = 'Antonym:'
SIMILAR_WORDS_LABEL = 'Found similar words:'
RELATION_LINKS = 'a.menu2, a.khbat12'

KHMER_CELL = 'khbat12'
ENGLISH_CELL = 'text2'
POS_SELECTOR = 'td font[size="3"] i'
EXAMPLE_SELECTOR = 'td font[face="Arial"][color="gray"]'

ORDINAL_PREFIX = re.compile(r'^\d+\.\s*')
EXAMPLE_PREFIX = re.compile(r'^Ex:\s*')
AUDIO_INIT = re.compile(r'new Audio\("([^"]+)"\)')


def _text_of(elements: Iterable[Tag]) -> str:
    return ''.join(element.get_text() for element in elements)


def _first_containing(soup: BeautifulSoup, name: str, text: str, class_: Optional[str] = None) -> Optional[Tag]:
    for tag in soup.find_all(name, class_=class_):
        if text in tag.get_text():
            return tag
    return None


def _next_table(table: Tag) -> Optional[Tag]:
    sibling = table.find_next_sibling(True)
    if sibling is not None and sibling.name == 'table':
        return sibling
    return None


def clean_relations(words: Iterable[str], headword: str) -> List[str]:
    """Drop blanks and the headword itself (any case), keep first occurrences"""
    headword_key = headword.strip().lower()
    seen = set()
    cleaned = []
    for word in words:
        word = word.strip()
        if not word or word.lower() == headword_key or word in seen:
            continue
        seen.add(word)
        cleaned.append(word)
    return cleaned


class DictionaryPageParser:
    """Pure HTML -> Entry conversion; no I/O"""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    @staticmethod
    def is_not_found(html: str) -> bool:
        return any(marker in html for marker in NOT_FOUND_MARKERS)

    def parse(self, html: str, word: str, mode: Mode) -> Entry:
        soup = BeautifulSoup(html, 'html.parser')
        headword = word.strip()

        entry = Entry(word=headword, mode=mode)
        entry.definitions = self._parse_definitions(soup, headword, mode)

        if mode is Mode.EN_KH:
            sound = AUDIO_INIT.search(html)
            if sound:
                entry.sound_url = urljoin(self.base_url, sound.group(1))

        entry.synonyms = clean_relations(self._labelled_list(soup, SYNONYM_LABEL), headword)
        entry.antonyms = clean_relations(self._labelled_list(soup, ANTONYM_LABEL), headword)
        entry.similar_words = clean_relations(self._similar_words(soup), headword)
        return entry

    def _definition_rows(self, soup: BeautifulSoup, mode: Mode) -> List[Tag]:
        anchor = _first_containing(soup, 'b', DEFINITION_LABEL)
        if anchor is None:
            anchor = _first_containing(soup, 'div', KHMER_DEFINITION_LABEL, class_='khbat13')
        if anchor is None:
            return []

        anchor_table = anchor.find_parent('table')
        if anchor_table is None:
            return []

        cell_class = ENGLISH_CELL if mode is Mode.KH_EN else KHMER_CELL

        def rows_in(scope: Optional[Tag]) -> List[Tag]:
            if scope is None:
                return []
            return [row for row in scope.find_all('tr') if row.find('td', class_=cell_class)]

        rows = rows_in(_next_table(anchor_table))
        if not rows:
            # Some pages nest the definitions inside the anchor's own container
            rows = rows_in(anchor_table.parent)
        return rows

    def _parse_definitions(self, soup: BeautifulSoup, headword: str, mode: Mode) -> List[Definition]:
        definitions = []
        for row in self._definition_rows(soup, mode):
            definition = self._parse_row(row, mode)
            if self._is_informative(definition, headword):
                definitions.append(definition)
        return definitions

    def _parse_row(self, row: Tag, mode: Mode) -> Definition:
        part_of_speech = _text_of(row.select(POS_SELECTOR)).strip().replace('.', '', 1)
        example_raw = _text_of(row.select(EXAMPLE_SELECTOR))
        example = EXAMPLE_PREFIX.sub('', example_raw.strip())

        definition = Definition(
            part_of_speech=part_of_speech or None,
            example=example or None,
        )

        if mode is Mode.EN_KH:
            image = row.select_one(f'td.{KHMER_CELL} img')
            if image is not None and image.get('src'):
                definition.image_url = urljoin(self.base_url, image['src'])
                return definition
            cell_text = _text_of(row.select(f'td.{KHMER_CELL}'))
        elif mode is Mode.KH_EN:
            cell_text = _text_of(row.select(f'td.{ENGLISH_CELL}'))
        else:
            cell_text = _text_of(row.select(f'td.{KHMER_CELL}'))

        if example_raw:
            cell_text = cell_text.replace(example_raw, '', 1)
        text = ORDINAL_PREFIX.sub('', cell_text.strip()).strip()
        definition.text = text or None
        return definition

    @staticmethod
    def _is_informative(definition: Definition, headword: str) -> bool:
        if definition.has_image:
            return True
        text = definition.text or ''
        if len(text) < 2:
            return False
        return text.lower() != headword.lower()

    def _labelled_list(self, soup: BeautifulSoup, label: str) -> List[str]:
        header = _first_containing(soup, 'b', label)
        if header is None:
            return []
        cell = header.find_parent('td')
        if cell is None:
            return []
        return [link.get_text() for link in cell.select(RELATION_LINKS)]

    def _similar_words(self, soup: BeautifulSoup) -> List[str]:
        label = soup.find(string=lambda s: s is not None and SIMILAR_WORDS_LABEL in s)
        if label is None:
            return []
        cell = label.find_parent('td')
        table = cell.find_parent('table') if cell is not None else None
        results = _next_table(table) if table is not None else None
        if results is None:
            return []
        return [link.get_text() for link in results.select(RELATION_LINKS)]


class PageExtractor:
    """Fetch-or-build a record for (word, mode)"""

    def __init__(self, client, cache: RecordCache, media: MediaStore,
                 activity: Optional[ActivityLog] = None, parser: Optional[DictionaryPageParser] = None):
        self.client = client
        self.cache = cache
        self.media = media
        self.activity = activity or cache.activity
        self.parser = parser or DictionaryPageParser(client.config.base_url)

    def detail_url(self, word: str, mode: Mode) -> str:
        return self.client.url(f"index.php?gcm={mode.value}&gword={quote(word.strip(), safe='')}")

    async def extract(self, word: str, mode: Mode) -> ExtractionOutcome:
        headword = (word or '').strip()
        if not headword:
            return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.NOT_FOUND)

        try:
            cached = self.cache.get(mode, headword)
        except CacheCorruptionError as e:
            logger.error(f"{e} - leaving it in place, not re-fetching")
            self.activity.record(events.ERROR, f"Corrupt record for {headword} ({mode.partition}): {e.reason}",
                                 mode=mode.partition, word=headword)
            return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.CORRUPT,
                                     error_message=str(e))
        except OSError as e:
            self.activity.record(events.ERROR, f"Cannot check cache for {headword} ({mode.partition}): {e}",
                                 mode=mode.partition, word=headword)
            return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.ERROR,
                                     error_message=str(e))
        if cached is not None:
            return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.CACHED, entry=cached)

        url = self.detail_url(headword, mode)
        self.activity.record(events.FETCH, f"Scraping ({mode.partition}): {headword} ({url})",
                             mode=mode.partition, word=headword)
        try:
            html = await self.client.fetch_text(url)
            if self.parser.is_not_found(html):
                self.activity.record(events.NOT_FOUND, f"Word not found: {headword}",
                                     mode=mode.partition, word=headword)
                return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.NOT_FOUND,
                                         fetched=True)

            entry = self.parser.parse(html, headword, mode)
            await self._download_media(entry)
            self.cache.put(mode, headword, entry)
        except Exception as e:
            self.activity.record(events.ERROR, f"Error scraping {headword} (Mode {mode.value}): {e}",
                                 mode=mode.partition, word=headword)
            return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.ERROR,
                                     error_message=str(e), fetched=True)

        return ExtractionOutcome(word=headword, mode=mode, status=ExtractionStatus.FOUND, entry=entry,
                                 fetched=True)

    async def _download_media(self, entry: Entry) -> None:
        for definition in entry.definitions:
            if definition.image_url:
                definition.local_image_path = await self.media.ensure(definition.image_url, IMAGES)
        if entry.sound_url:
            entry.local_sound_path = await self.media.ensure(entry.sound_url, SOUNDS)
