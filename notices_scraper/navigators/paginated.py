"""
Paginated listing navigator: page 1..N until nothing new is left.

Listings are newest-first, so once a page brings no new ids and an
already-processed id has been met, the pages behind it only hold older
items and the walk stops there.
"""

from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Tag

from notices_scraper.core.deduplicator import SeenLookup
from notices_scraper.core.errors import FetchError
from notices_scraper.core.identity import IdentityResolver
from notices_scraper.core.models import ListingItem
from notices_scraper.core.normalizer import extract_all_dates
from notices_scraper.core.selectors import absolute_url, element_text

from .base import NavigatorStrategy, SourceConfig

# Why a walk ended
STOP_EMPTY_PAGE = "empty_page"
STOP_EARLY = "early_stop"
STOP_NO_NEXT_PAGE = "no_next_page"
STOP_MAX_PAGES = "max_pages"
STOP_FETCH_FAILED = "fetch_failed"


@dataclass
class WalkResult:
    """Outcome of walking one source."""
    source_id: str
    items: list[ListingItem] = field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: str = ""
    new_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "items": len(self.items),
            "pages_fetched": self.pages_fetched,
            "stop_reason": self.stop_reason,
            "new_count": self.new_count,
            "error": self.error,
        }


class ListingWalker(NavigatorStrategy):
    """
    Walks a paginated listing with an early-stop rule.

    Stops on the first of:
    - a page with no items
    - a page with no new ids after a known id was met (early_stop sources)
    - no link to the next page
    - the page limit
    - a navigation failure (items gathered so far are kept)
    """

    async def walk(
        self,
        source: SourceConfig,
        seen: SeenLookup,
        max_pages: Optional[int] = None,
    ) -> WalkResult:
        limit = max_pages or source.max_pages
        resolver = IdentityResolver().with_patterns(source.id_patterns)
        result = WalkResult(source_id=source.source_id)

        met_ids: set[str] = set()
        known_met = False

        self.logger.info("walking_source", source=source.source_id, max_pages=limit)

        for page in range(1, limit + 1):
            if page > 1 and source.page_delay:
                await self.sleep(source.page_delay)

            url = source.page_url(page)
            try:
                soup = await self.fetcher.fetch(
                    url,
                    wait_until=source.wait_until,
                    settle_delay=source.settle_delay,
                )
            except FetchError as e:
                self.logger.error("page_fetch_failed", source=source.source_id, page=page, error=e.reason)
                result.stop_reason = STOP_FETCH_FAILED
                result.error = str(e)
                break

            result.pages_fetched += 1
            page_items = self.extract_items(soup, source, page, resolver)
            if not page_items:
                result.stop_reason = STOP_EMPTY_PAGE
                break

            new_on_page = 0
            for item in page_items:
                if item.item_id in met_ids:
                    continue
                met_ids.add(item.item_id)
                if item.item_id in seen:
                    known_met = True
                else:
                    new_on_page += 1

            result.items.extend(page_items)
            result.new_count += new_on_page
            self.logger.info(
                "page_fetched",
                source=source.source_id,
                page=page,
                items=len(page_items),
                new=new_on_page,
            )

            if source.early_stop and new_on_page == 0 and known_met:
                result.stop_reason = STOP_EARLY
                break
            if page == limit:
                result.stop_reason = STOP_MAX_PAGES
                break
            if not self.has_next_page(soup, source, page):
                result.stop_reason = STOP_NO_NEXT_PAGE
                break

        self.logger.info(
            "walk_complete",
            source=source.source_id,
            pages=result.pages_fetched,
            items=len(result.items),
            new=result.new_count,
            stop_reason=result.stop_reason,
        )
        return result

    def extract_items(
        self,
        soup: BeautifulSoup,
        source: SourceConfig,
        page: int,
        resolver: IdentityResolver,
    ) -> list[ListingItem]:
        """
        Extract listing items from a parsed page.

        Args:
            soup: Parsed listing page
            source: Source configuration
            page: Page number (recorded on each item)
            resolver: Identity resolver for the source

        Returns:
            Items in page order; rows with short titles or no link are skipped
        """
        items: list[ListingItem] = []
        link_pattern = source.compile_link_pattern()

        for link in soup.select(source.item_selector):
            title = element_text(link) or link.get("title", "").strip()
            if len(title) < source.min_title_length:
                continue

            url = self._item_url(link, source, link_pattern)
            if not url:
                continue

            items.append(
                ListingItem(
                    title=title,
                    url=url,
                    raw_date=self._row_date(link, source),
                    source_id=source.source_id,
                    item_id=resolver.record_id(source.source_id, url),
                    page=page,
                )
            )

        return items

    def has_next_page(self, soup: BeautifulSoup, source: SourceConfig, page: int) -> bool:
        """
        True if the pager links to page + 1.

        Sources without a pager selector are walked until an empty page
        or the page limit.
        """
        if not source.next_page_selector:
            return True

        wanted = str(page + 1)
        return any(element_text(link) == wanted for link in soup.select(source.next_page_selector))

    def _item_url(self, link: Tag, source: SourceConfig, link_pattern) -> Optional[str]:
        href = (link.get("href") or "").strip()

        if link_pattern is not None:
            target = f"{href} {link.get('onclick', '')}"
            match = link_pattern.search(target)
            if not match:
                return None
            return absolute_url(source.base_url, source.link_template.format(*match.groups()))

        if not href or href.startswith("#") or href.lower().startswith("javascript"):
            return None
        return absolute_url(source.base_url, href)

    def _row_date(self, link: Tag, source: SourceConfig) -> str:
        row = link.find_parent(["tr", "li"])
        if row is None:
            return ""

        if source.date_selector:
            return element_text(row.select_one(source.date_selector))

        if source.date_cells:
            cells = row.find_all("td")
            for index in source.date_cells:
                if index < len(cells):
                    text = element_text(cells[index])
                    if text:
                        return text
            return ""

        # No configured location: first date-looking text in the row
        dates = extract_all_dates(element_text(row))
        return dates[0] if dates else ""
