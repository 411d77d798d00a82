"""End-to-end crawl over a fake site: resumability and idempotence."""

import asyncio

from dictionary_core.activity import ActivityLog
from dictionary_core.models import Mode
from dictionary_core.record_cache import RecordCache
from harvesters.crawl_scheduler import CrawlScheduler
from harvesters.discovery_client import DiscoveryClient
from harvesters.media_store import MediaStore
from harvesters.page_extractor import PageExtractor
from harvesters.rate_limiter import RateLimiter
from site_fixtures import (BASE_URL, HELLO_EN_KH, NOT_FOUND_PAGE, FakeSiteClient, detail_url, search_fragment,
                           search_url)

SIMPLE_PAGE = """
<table><tr><td><b>Definition:</b></td></tr></table>
<table><tr><td class="khbat12">{gloss}</td></tr></table>
"""


def _site():
    return FakeSiteClient({
        search_url("h", Mode.EN_KH): search_fragment("hello", "helium", "hxq"),
        detail_url("hello", Mode.EN_KH): HELLO_EN_KH,
        detail_url("helium", Mode.EN_KH): SIMPLE_PAGE.format(gloss="ធាតុឧស្ម័ន"),
        detail_url("hxq", Mode.EN_KH): NOT_FOUND_PAGE,
        detail_url("hi", Mode.EN_KH): SIMPLE_PAGE.format(gloss="សួស្តី"),
        detail_url("greeting", Mode.EN_KH): SIMPLE_PAGE.format(gloss="ការស្វាគមន៍"),
        detail_url("goodbye", Mode.EN_KH): SIMPLE_PAGE.format(gloss="លាហើយ"),
        detail_url("hell", Mode.EN_KH): SIMPLE_PAGE.format(gloss="នរក"),
        # "hellos" has no page: a transient error that must not stop the run
        f"{BASE_URL}/images/khmer/hello1.gif": b"GIF89a-hello",
        f"{BASE_URL}/sounds/hello.mp3": b"ID3-hello",
    })


def _crawl(root, client):
    activity = ActivityLog()
    cache = RecordCache(root, activity)
    cache.ensure_layout()
    scheduler = CrawlScheduler(
        DiscoveryClient(client),
        PageExtractor(client, cache, MediaStore(root, client), activity),
        RateLimiter(0),
        activity,
    )
    result = asyncio.run(scheduler.run_batch(Mode.EN_KH, depth=2, seeds=["h"]))
    return result, activity


def _snapshot(root):
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*")) if path.is_file()
    }


def test_first_run_materializes_records(tmp_path):
    result, activity = _crawl(tmp_path, _site())

    assert result.stored == 6
    assert result.not_found == 1
    assert result.errors == 1
    assert sorted(p.name for p in (tmp_path / "en_kh").iterdir()) == [
        "goodbye.json", "greeting.json", "hell.json", "helium.json", "hello.json", "hi.json",
    ]
    assert (tmp_path / "images" / "hello1.gif").exists()
    assert activity.counts["batch_start"] == activity.counts["batch_end"] == 1


def test_second_run_is_all_cache_hits(tmp_path):
    _crawl(tmp_path, _site())
    before = _snapshot(tmp_path)

    client = _site()
    result, activity = _crawl(tmp_path, client)

    assert result.stored == 0
    assert result.cached == 6
    assert activity.counts["stored"] == 0
    assert _snapshot(tmp_path) == before
    # Only misses reach the detail endpoint again; cached words are never refetched
    fetched_details = [url for url in client.requested if "index.php" in url]
    assert fetched_details == [detail_url("hellos", Mode.EN_KH), detail_url("hxq", Mode.EN_KH)]


def test_very_long_khmer_headword_does_not_stop_the_batch(tmp_path):
    long_word = "ក" * 100
    client = FakeSiteClient({
        search_url("ក", Mode.KH_KH): search_fragment(long_word, "ខ"),
        detail_url(long_word, Mode.KH_KH): SIMPLE_PAGE.format(gloss="ពាក្យវែង"),
        detail_url("ខ", Mode.KH_KH): SIMPLE_PAGE.format(gloss="អក្សរខ"),
    })
    activity = ActivityLog()
    cache = RecordCache(tmp_path, activity)
    scheduler = CrawlScheduler(
        DiscoveryClient(client),
        PageExtractor(client, cache, MediaStore(tmp_path, client), activity),
        RateLimiter(0),
        activity,
    )

    result = asyncio.run(scheduler.run_batch(Mode.KH_KH, depth=1, seeds=["ក"]))

    assert result.stored == 2
    assert result.errors == 0
    assert cache.get(Mode.KH_KH, long_word).word == long_word
    assert cache.contains(Mode.KH_KH, "ខ")
