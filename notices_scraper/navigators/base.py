"""
Base class for navigator strategies.

Navigators implement the discovery phase of scraping - walking a
source's listing pages and returning the announcement rows found there.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from notices_scraper.core.deduplicator import SeenLookup
from notices_scraper.core.errors import ConfigError
from notices_scraper.core.fetcher import DocumentFetcher, WAIT_CONDITIONS
from notices_scraper.core.identity import IdPattern

logger = structlog.get_logger(__name__)

PAGE_SCHEMES = ("page", "offset")


@dataclass(frozen=True)
class SourceConfig:
    """Configuration for one announcement listing source. Immutable once loaded."""

    source_id: str
    source_name: str
    base_url: str

    # Discovery settings
    listing_url: str
    item_selector: str = "a"  # CSS selector for item links on a listing page
    date_cells: tuple[int, ...] = ()  # <td> indices holding the listing date, first non-empty wins
    date_selector: Optional[str] = None  # alternative: selector inside the item's row
    min_title_length: int = 6

    # Links that are javascript calls: regex on href/onclick, captures fill link_template
    link_pattern: Optional[str] = None
    link_template: Optional[str] = None

    # Extra id patterns tried before the defaults
    id_patterns: tuple[IdPattern, ...] = ()

    # Pagination
    page_param: str = "page"
    page_scheme: str = "page"  # "page": page numbers, "offset": row offsets
    page_start: int = 1
    page_size: int = 10
    next_page_selector: Optional[str] = None  # links whose text is a page number
    max_pages: int = 10
    early_stop: bool = True  # listing is newest-first

    # Fetch behaviour
    wait_until: str = "domcontentloaded"
    settle_delay: float = 1.5
    page_delay: float = 1.0
    detail_wait_until: str = "domcontentloaded"
    detail_settle_delay: float = 2.0
    detail_delay: float = 1.0

    # Extra metadata
    metadata: dict = field(default_factory=dict, hash=False, compare=False)

    def page_url(self, page: int) -> str:
        """
        Listing URL for a 1-based page number.

        The page parameter replaces any value already present in the
        listing URL's query string.
        """
        if page < 1:
            raise ValueError(f"Page numbers start at 1, got {page}")

        if self.page_scheme == "offset":
            value = (page - 1) * self.page_size + self.page_start
        else:
            value = self.page_start + page - 1

        parts = urlsplit(self.listing_url)
        query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != self.page_param]
        query.append((self.page_param, str(value)))
        return urlunsplit(parts._replace(query=urlencode(query)))

    def compile_link_pattern(self) -> Optional[re.Pattern]:
        return re.compile(self.link_pattern) if self.link_pattern else None

    @classmethod
    def from_dict(cls, data: dict) -> "SourceConfig":
        """
        Create from dictionary (e.g., from YAML).

        Raises:
            ConfigError: required keys missing or values out of range
        """
        missing = [key for key in ("source_id", "source_name", "base_url", "listing_url") if not data.get(key)]
        if missing:
            raise ConfigError(f"Source {data.get('source_id', '?')} is missing {', '.join(missing)}")

        page_scheme = data.get("page_scheme", "page")
        if page_scheme not in PAGE_SCHEMES:
            raise ConfigError(f"Source {data['source_id']}: unknown page_scheme '{page_scheme}'")

        for key in ("wait_until", "detail_wait_until"):
            if data.get(key, "domcontentloaded") not in WAIT_CONDITIONS:
                raise ConfigError(f"Source {data['source_id']}: unknown {key} '{data[key]}'")

        if (data.get("link_pattern") is None) != (data.get("link_template") is None):
            raise ConfigError(f"Source {data['source_id']}: link_pattern and link_template go together")

        try:
            id_patterns = tuple(
                IdPattern.compile(
                    entry.get("label", f"{data['source_id']}_{index}"),
                    entry["pattern"],
                    entry.get("group", 1),
                )
                for index, entry in enumerate(data.get("id_patterns") or [])
            )
            if data.get("link_pattern"):
                re.compile(data["link_pattern"])
        except (KeyError, re.error) as e:
            raise ConfigError(f"Source {data['source_id']}: invalid pattern ({e})") from e

        return cls(
            source_id=data["source_id"],
            source_name=data["source_name"],
            base_url=data["base_url"],
            listing_url=data["listing_url"],
            item_selector=data.get("item_selector", "a"),
            date_cells=tuple(data.get("date_cells") or ()),
            date_selector=data.get("date_selector"),
            min_title_length=data.get("min_title_length", 6),
            link_pattern=data.get("link_pattern"),
            link_template=data.get("link_template"),
            id_patterns=id_patterns,
            page_param=data.get("page_param", "page"),
            page_scheme=page_scheme,
            page_start=data.get("page_start", 1),
            page_size=data.get("page_size", 10),
            next_page_selector=data.get("next_page_selector"),
            max_pages=data.get("max_pages", 10),
            early_stop=data.get("early_stop", True),
            wait_until=data.get("wait_until", "domcontentloaded"),
            settle_delay=data.get("settle_delay", 1.5),
            page_delay=data.get("page_delay", 1.0),
            detail_wait_until=data.get("detail_wait_until", "domcontentloaded"),
            detail_settle_delay=data.get("detail_settle_delay", 2.0),
            detail_delay=data.get("detail_delay", 1.0),
            metadata=data.get("metadata", {}),
        )


class NavigatorStrategy(ABC):
    """
    Abstract base class for navigator strategies.

    Navigators discover announcement rows from source listing pages
    through a shared DocumentFetcher; they never open their own session.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize navigator.

        Args:
            fetcher: Shared document fetcher (one session per run)
            sleep: Sleep coroutine used for page delays (injectable for tests)
        """
        self.fetcher = fetcher
        self.sleep = sleep or asyncio.sleep
        self.logger = logger.bind(navigator=self.__class__.__name__)

    @abstractmethod
    async def walk(self, source: SourceConfig, seen: SeenLookup, max_pages: Optional[int] = None):
        """
        Discover listing items from source.

        Args:
            source: Source configuration
            seen: Ids processed by earlier runs
            max_pages: Optional override of source.max_pages

        Returns:
            WalkResult with items in discovery order
        """
        pass
