"""Shared fixtures: an in-memory document fetcher and listing page builders."""

import pytest

from notices_scraper.core.errors import FetchError
from notices_scraper.core.fetcher import DocumentFetcher, parse_html
from notices_scraper.navigators.base import SourceConfig

BASE = "https://www.bizinfo.go.kr/sii/siia/selectSIIA200View.do"
LISTING = BASE + "?schPblancDiv=01"


class FakeFetcher(DocumentFetcher):
    """Serves HTML from a dict; unknown URLs (or listed failures) raise FetchError."""

    def __init__(self, pages: dict, failing: set = None):
        super().__init__()
        self.pages = dict(pages)
        self.failing = set(failing or ())
        self.requested: list[str] = []

    async def fetch(self, url, wait_until="domcontentloaded", settle_delay=0.0):
        self.requested.append(url)
        if url in self.failing or url not in self.pages:
            raise FetchError(url, "not available")
        self.fetch_count += 1
        return parse_html(self.pages[url])


def listing_row(pblanc_id: str, title: str, date: str = "2026-03-01 ~ 2026-03-31") -> str:
    """One bizinfo-style table row (date in the 7th cell)."""
    return f"""
    <tr>
        <td>1</td><td>지원분야</td>
        <td class="txt_l"><a href="selectSIIA200Detail.do?pblancId={pblanc_id}">{title}</a></td>
        <td>기관</td><td>기관</td><td>{date}</td><td>{date}</td>
    </tr>"""


def listing_page(rows: list[str], page: int = 1, last_page: int = 1) -> str:
    """A bizinfo-style listing page with a pager up to last_page."""
    pager = "".join(f'<a href="#">{n}</a>' for n in range(1, last_page + 1))
    return f"""
    <html><body>
    <div class="table_Type_1"><table><tbody>{''.join(rows)}</tbody></table></div>
    <div class="page_wrap">{pager}</div>
    </body></html>"""


def detail_page(eligibility: str = "청년 창업자", period: str = "2026.03.02 ~ 2026.03.31") -> str:
    return f"""
    <html><body><div class="view_cont">
    <table>
        <tr><th>지원대상</th><td>{eligibility}</td></tr>
        <tr><th>신청기간</th><td>{period}</td></tr>
        <tr><th>지원금액</th><td>최대 5천만원</td></tr>
    </table>
    <p>사업개요 설명이 길게 이어지는 본문 텍스트입니다.</p>
    </div></body></html>"""


def detail_url(pblanc_id: str) -> str:
    return f"https://www.bizinfo.go.kr/sii/siia/selectSIIA200Detail.do?pblancId={pblanc_id}"


@pytest.fixture
def bizinfo_source() -> SourceConfig:
    """Bizinfo-like source with no delays."""
    return SourceConfig.from_dict({
        "source_id": "bizinfo",
        "source_name": "기업마당",
        "base_url": BASE,
        "listing_url": LISTING,
        "item_selector": 'div.table_Type_1 td.txt_l a[href*="pblancId"]',
        "date_cells": [6, 5],
        "page_param": "cpage",
        "next_page_selector": ".page_wrap a",
        "max_pages": 5,
        "settle_delay": 0,
        "page_delay": 0,
        "detail_settle_delay": 0,
        "detail_delay": 0,
    })


@pytest.fixture
def make_fetcher():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def sleep_calls():
    """Recording sleep coroutine: returns (sleep, calls)."""
    calls: list[float] = []

    async def sleep(seconds: float) -> None:
        calls.append(seconds)

    return sleep, calls
