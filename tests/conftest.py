"""Shared fixtures for the harvester tests."""

import pytest

from dictionary_core.activity import ActivityLog
from dictionary_core.models import Mode
from dictionary_core.record_cache import RecordCache
from harvesters.media_store import MediaStore
from harvesters.page_extractor import PageExtractor
from site_fixtures import BASE_URL, HELLO_EN_KH, FakeSiteClient, detail_url


@pytest.fixture
def activity():
    return ActivityLog(keep_history=True)


@pytest.fixture
def cache(tmp_path, activity):
    record_cache = RecordCache(tmp_path / "data", activity)
    record_cache.ensure_layout()
    return record_cache


@pytest.fixture
def hello_site():
    return FakeSiteClient({
        detail_url("hello", Mode.EN_KH): HELLO_EN_KH,
        f"{BASE_URL}/images/khmer/hello1.gif": b"GIF89a-hello",
        f"{BASE_URL}/sounds/hello.mp3": b"ID3-hello",
    })


@pytest.fixture
def make_extractor(cache, activity):
    def _make(client):
        media = MediaStore(cache.root, client)
        media.ensure_layout()
        return PageExtractor(client, cache, media, activity)
    return _make
