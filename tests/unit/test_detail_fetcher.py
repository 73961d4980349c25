"""Tests for the cache-aware detail fetcher."""

import pytest

from conftest import FakeFetcher, detail_page, detail_url

from notices_scraper.core.models import DetailFields
from notices_scraper.core.storage import DetailCache
from notices_scraper.parsers.html_detail import DetailFetcher


class TestDetailFetcher:
    """Tests for DetailFetcher.get."""

    @pytest.mark.asyncio
    async def test_fetch_then_cache(self):
        fetcher = FakeFetcher({detail_url("P1"): detail_page(eligibility="예비창업자")})
        details = DetailFetcher(fetcher, DetailCache())

        first = await details.get("bizinfo_P1", detail_url("P1"))
        second = await details.get("bizinfo_P1", detail_url("P1"))

        assert first.eligibility == "예비창업자"
        assert second == first
        assert fetcher.requested == [detail_url("P1")]
        assert details.stats == {"cached": 1, "fetched": 1, "failed": 0}

    @pytest.mark.asyncio
    async def test_prepopulated_cache_skips_fetch(self):
        cache = DetailCache()
        cache.put("bizinfo_P1", DetailFields(amount="최대 1억원"))
        fetcher = FakeFetcher({})

        fields = await DetailFetcher(fetcher, cache).get("bizinfo_P1", detail_url("P1"))

        assert fields.amount == "최대 1억원"
        assert fetcher.requested == []

    @pytest.mark.asyncio
    async def test_empty_result_is_cached(self):
        """Test a page with no recognizable fields is still fetched only once."""
        url = detail_url("P2")
        cache = DetailCache()
        fetcher = FakeFetcher({url: "<html><body><p>첨부파일 참조</p></body></html>"})

        fields = await DetailFetcher(fetcher, cache).get("bizinfo_P2", url)

        assert fields.is_empty()
        assert "bizinfo_P2" in cache

    @pytest.mark.asyncio
    async def test_failure_not_cached(self):
        url = detail_url("P3")
        cache = DetailCache()
        details = DetailFetcher(FakeFetcher({}, failing={url}), cache)

        fields = await details.get("bizinfo_P3", url)

        assert fields.is_empty()
        assert "bizinfo_P3" not in cache
        assert details.stats["failed"] == 1

    @pytest.mark.asyncio
    async def test_autosave_writes_file(self, tmp_path):
        cache = DetailCache(tmp_path / "detail-cache.json")
        fetcher = FakeFetcher({detail_url("P4"): detail_page()})

        await DetailFetcher(fetcher, cache).get("bizinfo_P4", detail_url("P4"))

        reloaded = DetailCache(tmp_path / "detail-cache.json").load()
        assert reloaded.get("bizinfo_P4").period == "2026.03.02 ~ 2026.03.31"
