"""Tests for the command-line entry point."""

import json

import pytest

import main_cli
from dictionary_core.models import Entry, Mode
from dictionary_core.record_cache import RecordCache


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(main_cli, "setup_logging", lambda config: None)


def test_no_command_prints_help(capsys):
    assert main_cli.main([]) == 0
    assert "crawl" in capsys.readouterr().out


def test_export_command(tmp_path, capsys):
    RecordCache(tmp_path).put(Mode.EN_KH, "cat", Entry(word="cat", mode=Mode.EN_KH))

    assert main_cli.main(["--output-dir", str(tmp_path), "export"]) == 0

    exported = json.loads((tmp_path / "dictionary_export.json").read_text(encoding="utf-8"))
    assert exported["en_kh"][0]["word"] == "cat"
    assert "Exported 1 words" in capsys.readouterr().out


def test_export_reports_corruption(tmp_path):
    (tmp_path / "kh_kh").mkdir()
    (tmp_path / "kh_kh" / "bad.json").write_text("[]", encoding="utf-8")

    assert main_cli.main(["--output-dir", str(tmp_path), "export"]) == 1


def test_invalid_delay_is_a_configuration_error(capsys):
    assert main_cli.main(["--delay", "-1", "export"]) == 2
    assert "request_delay" in capsys.readouterr().err


def test_crawl_arguments():
    args = main_cli.create_parser().parse_args(["crawl", "kh", "--depth", "1"])

    assert args.batch == "kh"
    assert args.depth == 1
    assert main_cli.BATCH_MODES["kh"] == [Mode.KH_KH, Mode.KH_EN]


def test_word_command_runs_single_word_crawl(monkeypatch, capsys):
    calls = []

    async def fake_word_crawl(config, word, mode, depth, limit):
        calls.append((word, mode, depth, limit))
        return main_cli.CrawlResult(stored=1, visited=1)

    monkeypatch.setattr(main_cli, "run_word_crawl", fake_word_crawl)

    assert main_cli.main(["word", "crawl", "--mode", "3", "--depth", "2"]) == 0
    assert calls == [("crawl", Mode.KH_EN, 2, 50)]
    assert "Scraped 1 items" in capsys.readouterr().out
