"""Tests for the on-disk record cache."""

import json

import pytest

from dictionary_core.exceptions import CacheCorruptionError
from dictionary_core.models import Definition, Entry, Mode
from dictionary_core.record_cache import atomic_write_bytes


def _entry(word="hello", mode=Mode.EN_KH):
    return Entry(
        word=word,
        mode=mode,
        definitions=[Definition(text="ជំរាបសួរ", part_of_speech="n", example="hello there")],
        synonyms=["hi"],
        sound_url="http://www.english-khmer.com/sounds/hello.mp3",
        local_sound_path="sounds/hello.mp3",
    )


def test_miss_returns_none_without_events(cache, activity):
    assert cache.get(Mode.EN_KH, "hello") is None
    assert not cache.contains(Mode.EN_KH, "hello")
    assert activity.counts["skip"] == 0


def test_put_then_get_reports_skip(cache, activity):
    path = cache.put(Mode.EN_KH, "Hello (archaic)", _entry("Hello (archaic)"))

    assert path == cache.root / "en_kh" / "hello.json"
    assert activity.counts["stored"] == 1

    stored = cache.get(Mode.EN_KH, "hello")
    assert stored == _entry("Hello (archaic)")
    assert activity.counts["skip"] == 1


def test_record_file_layout(cache):
    cache.put(Mode.KH_EN, "សួស្តី", _entry("សួស្តី", Mode.KH_EN))

    path = cache.root / "kh_en" / "សួស្តី.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["schema_version"] == 1
    assert data["word"] == "សួស្តី"
    assert data["mode"] == "kh_en"
    assert data["definitions"][0]["text"] == "ជំរាបសួរ"
    # Khmer is stored verbatim, not as \u escapes
    assert "សួស្តី" in path.read_text(encoding="utf-8")


def test_modes_are_independent_partitions(cache):
    cache.put(Mode.EN_KH, "hello", _entry())

    assert cache.contains(Mode.EN_KH, "hello")
    assert not cache.contains(Mode.KH_EN, "hello")
    assert cache.get(Mode.KH_KH, "hello") is None


def test_empty_key_uses_sentinel_file(cache):
    assert cache.path_for(Mode.EN_KH, "???").name == "empty.json"


def test_corrupt_record_fails_loudly(cache):
    path = cache.path_for(Mode.EN_KH, "broken")
    path.write_text('{"word": "broken", "defin', encoding="utf-8")

    with pytest.raises(CacheCorruptionError) as excinfo:
        cache.get(Mode.EN_KH, "broken")
    assert excinfo.value.path == path


def test_unknown_schema_is_corruption(cache):
    path = cache.path_for(Mode.EN_KH, "old")
    path.write_text(json.dumps({"word": "old", "mode": "en_kh", "definitions": []}), encoding="utf-8")

    with pytest.raises(CacheCorruptionError, match="schema"):
        cache.get(Mode.EN_KH, "old")


def test_iter_entries_reads_one_partition(cache):
    cache.put(Mode.EN_KH, "beta", _entry("beta"))
    cache.put(Mode.EN_KH, "alpha", _entry("alpha"))
    cache.put(Mode.KH_KH, "gamma", _entry("gamma", Mode.KH_KH))

    assert [e.word for e in cache.iter_entries(Mode.EN_KH)] == ["alpha", "beta"]
    assert [e.word for e in cache.iter_entries(Mode.KH_KH)] == ["gamma"]


def test_atomic_write_replaces_without_leftovers(tmp_path):
    target = tmp_path / "nested" / "record.json"
    atomic_write_bytes(target, b"first")
    atomic_write_bytes(target, b"second")

    assert target.read_bytes() == b"second"
    assert [p.name for p in target.parent.iterdir()] == ["record.json"]


def test_atomic_write_failure_keeps_previous_content(tmp_path, monkeypatch):
    target = tmp_path / "record.json"
    atomic_write_bytes(target, b"original")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("dictionary_core.record_cache.os.replace", boom)
    with pytest.raises(OSError):
        atomic_write_bytes(target, b"partial")

    assert target.read_bytes() == b"original"
    assert [p.name for p in tmp_path.iterdir()] == ["record.json"]
