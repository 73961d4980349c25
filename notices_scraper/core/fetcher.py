"""
Document fetchers: URL in, queryable document out.

The collection core only depends on DocumentFetcher.fetch(). Two
implementations ship:
- BrowserFetcher: headless Chromium via playwright, one page reused for
  the whole run (listing pages that render with JavaScript)
- HttpFetcher: plain httpx GET for static pages
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from .errors import FetchError
from .http_client import HttpClient, USER_AGENTS

logger = structlog.get_logger(__name__)

# Navigation-completion conditions understood by the fetchers
WAIT_CONDITIONS = ("load", "domcontentloaded", "networkidle", "commit")


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML into the document tree used by navigators and parsers."""
    return BeautifulSoup(html, "lxml")


class DocumentFetcher(ABC):
    """
    Abstract "fetch rendered document" capability.

    Fetchers are async context managers; the session opened on enter is
    reused for every fetch until exit.
    """

    def __init__(self):
        self.logger = logger.bind(fetcher=self.__class__.__name__)
        self.fetch_count = 0

    async def __aenter__(self) -> "DocumentFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    @abstractmethod
    async def fetch(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
        settle_delay: float = 0.0,
    ) -> BeautifulSoup:
        """
        Fetch a URL and return its document.

        Args:
            url: Absolute URL
            wait_until: Navigation-completion condition
            settle_delay: Extra seconds to wait after navigation

        Returns:
            Parsed document

        Raises:
            FetchError: navigation or rendering failed
        """


class BrowserFetcher(DocumentFetcher):
    """
    Headless Chromium fetcher (playwright).

    Usage:
        async with BrowserFetcher() as fetcher:
            soup = await fetcher.fetch(url, wait_until="networkidle", settle_delay=1.5)
    """

    def __init__(self, timeout: float = 30.0, headless: bool = True):
        super().__init__()
        self.timeout = timeout
        self.headless = headless
        self._playwright = None
        self._browser = None
        self._page = None

    async def __aenter__(self) -> "BrowserFetcher":
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
                "--no-sandbox",
                "--disable-setuid-sandbox",
            ],
        )
        context = await self._browser.new_context(
            user_agent=USER_AGENTS[0],
            locale="ko-KR",
        )
        self._page = await context.new_page()
        self.logger.info("browser_started", headless=self.headless)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._browser:
            await self._browser.close()
            self._browser = None
            self._page = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        self.logger.info("browser_closed", fetches=self.fetch_count)

    async def fetch(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
        settle_delay: float = 0.0,
    ) -> BeautifulSoup:
        if self._page is None:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context.")
        if wait_until not in WAIT_CONDITIONS:
            raise ValueError(f"Unknown wait condition: {wait_until}")

        self.logger.debug("navigating", url=url, wait_until=wait_until)
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=self.timeout * 1000)
            if settle_delay:
                await asyncio.sleep(settle_delay)
            html = await self._page.content()
        except Exception as e:
            raise FetchError(url, str(e)) from e

        self.fetch_count += 1
        return parse_html(html)


class HttpFetcher(DocumentFetcher):
    """Static-page fetcher over the rate-limited HttpClient."""

    def __init__(self, client: Optional[HttpClient] = None, requests_per_second: float = 1.0):
        super().__init__()
        self.client = client
        self._owns_client = client is None
        self.requests_per_second = requests_per_second

    async def __aenter__(self) -> "HttpFetcher":
        if self._owns_client:
            self.client = HttpClient(requests_per_second=self.requests_per_second)
            await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client and self.client:
            await self.client.__aexit__(exc_type, exc_val, exc_tb)

    async def fetch(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
        settle_delay: float = 0.0,
    ) -> BeautifulSoup:
        if self.client is None:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context.")

        try:
            html = await self.client.get_text(url)
        except httpx.HTTPError as e:
            raise FetchError(url, str(e)) from e

        if settle_delay:
            await asyncio.sleep(settle_delay)

        self.fetch_count += 1
        return parse_html(html)
