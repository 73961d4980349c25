"""
HTML detail page parser and the cache-aware detail fetcher.

The parser runs each field's strategy cascade over the page. The fetcher
decides whether a page needs fetching at all: ids already in the detail
cache are served from it, so a detail page is fetched at most once.
"""

from typing import Optional

from bs4 import BeautifulSoup

from notices_scraper.core.errors import FetchError
from notices_scraper.core.fetcher import DocumentFetcher
from notices_scraper.core.models import DetailFields
from notices_scraper.core.selectors import cleanup_navigation
from notices_scraper.core.storage import DetailCache

from .base import ParserStrategy
from .strategies import FieldSpec, default_field_specs


class HtmlDetailParser(ParserStrategy):
    """
    Parser for HTML announcement detail pages.

    Extracts:
    - eligibility (지원대상 / 신청자격 ...)
    - content (사업개요 / 지원내용 ...)
    - period (신청기간 / 접수기간 ...)
    - amount (지원금액 / 지원규모 ...)
    - organ (주관기관 / 소관부처 ...)
    - contact (문의처 / 담당부서 ...)
    - method (신청방법 / 접수방법 ...)
    """

    def __init__(self, field_specs: Optional[list[FieldSpec]] = None):
        super().__init__()
        self.field_specs = field_specs if field_specs is not None else default_field_specs()

    def field_spec(self, name: str) -> FieldSpec:
        for spec in self.field_specs:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def parse(self, soup: BeautifulSoup) -> DetailFields:
        cleanup_navigation(soup)

        values = {}
        for spec in self.field_specs:
            values[spec.name] = spec.extract(soup)

        fields = DetailFields(**values)
        self.logger.debug(
            "detail_parsed",
            resolved=[name for name, value in values.items() if value],
        )
        return fields


class DetailFetcher:
    """
    Serves detail fields per record id, fetching only on a cache miss.

    A successful fetch is written to the cache even when every field is
    empty. A failed fetch yields empty fields for this run and is not
    cached, so the next run tries again.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        cache: DetailCache,
        parser: Optional[ParserStrategy] = None,
        wait_until: str = "domcontentloaded",
        settle_delay: float = 0.0,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.parser = parser or HtmlDetailParser()
        self.wait_until = wait_until
        self.settle_delay = settle_delay
        self.stats = {"cached": 0, "fetched": 0, "failed": 0}
        self.logger = self.parser.logger.bind(component="DetailFetcher")

    async def get(self, record_id: str, url: str) -> DetailFields:
        """
        Detail fields for a record.

        Args:
            record_id: Composite record id (cache key)
            url: Detail page URL

        Returns:
            DetailFields, possibly empty
        """
        cached = self.cache.get(record_id)
        if cached is not None:
            self.stats["cached"] += 1
            return cached

        try:
            soup = await self.fetcher.fetch(
                url,
                wait_until=self.wait_until,
                settle_delay=self.settle_delay,
            )
        except FetchError as e:
            self.stats["failed"] += 1
            self.logger.warning("detail_fetch_failed", id=record_id, url=url, error=e.reason)
            return DetailFields()

        fields = self.parser.parse(soup)
        self.cache.put(record_id, fields)
        self.stats["fetched"] += 1
        self.logger.info("detail_fetched", id=record_id, empty=fields.is_empty())
        return fields
