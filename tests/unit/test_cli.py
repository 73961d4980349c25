"""Tests for command line parsing."""

import pytest

from notices_scraper.__main__ import parse_args
from notices_scraper.orchestrator import create_fetcher
from notices_scraper.core.fetcher import BrowserFetcher, HttpFetcher


class TestParseArgs:
    """Tests for parse_args."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NOTICES_DATA_DIR", raising=False)
        args = parse_args([])

        assert args.sources is None
        assert args.max_pages is None
        assert args.fetcher == "browser"
        assert not args.force
        assert not args.dry_run
        assert args.data_dir is None

    def test_flags(self):
        args = parse_args([
            "--sources", "bizinfo,kstartup",
            "--max-pages", "3",
            "--fetcher", "http",
            "--force",
            "--dry-run",
            "--json-logs",
        ])

        assert args.sources == "bizinfo,kstartup"
        assert args.max_pages == 3
        assert args.fetcher == "http"
        assert args.force and args.dry_run and args.json_logs

    def test_data_dir_from_env(self, monkeypatch):
        monkeypatch.setenv("NOTICES_DATA_DIR", "/var/lib/notices")
        assert parse_args([]).data_dir == "/var/lib/notices"

    def test_max_pages_must_be_positive(self):
        with pytest.raises(SystemExit):
            parse_args(["--max-pages", "0"])


class TestCreateFetcher:
    """Tests for create_fetcher."""

    def test_kinds(self):
        assert isinstance(create_fetcher("browser"), BrowserFetcher)
        assert isinstance(create_fetcher("http"), HttpFetcher)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_fetcher("curl")
