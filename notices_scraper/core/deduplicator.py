"""
Novelty marking and intra-run deduplication.

Two independent layers:
- cross-run: an item is new when its id is absent from the seen store
- intra-run: a normalized title (or id) may only survive once per run

No cross-source deduplication is done; the same program announced on two
portals yields two records.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import structlog

from .models import ListingItem
from .normalizer import normalize_title

logger = structlog.get_logger(__name__)


class SeenLookup(Protocol):
    def __contains__(self, item_id: object) -> bool: ...


@dataclass
class DeduplicationResult:
    """Result of a deduplication check."""
    is_duplicate: bool
    reason: str = ""  # "", "title", "id"


class Deduplicator:
    """
    Per-run duplicate rejection.

    Tracks normalized titles and ids already accepted during this run.
    """

    def __init__(self):
        self._titles: set[str] = set()
        self._ids: set[str] = set()

    def check(self, item: ListingItem) -> DeduplicationResult:
        """
        Check whether an item duplicates one already accepted.

        Args:
            item: Listing item with a resolved id

        Returns:
            DeduplicationResult
        """
        if item.item_id and item.item_id in self._ids:
            return DeduplicationResult(is_duplicate=True, reason="id")

        if normalize_title(item.title) in self._titles:
            return DeduplicationResult(is_duplicate=True, reason="title")

        return DeduplicationResult(is_duplicate=False)

    def add(self, item: ListingItem) -> None:
        self._titles.add(normalize_title(item.title))
        if item.item_id:
            self._ids.add(item.item_id)

    def process(self, item: ListingItem) -> Optional[ListingItem]:
        """
        Check and add in one step.

        Returns:
            The item if kept, None if it is a duplicate
        """
        result = self.check(item)
        if result.is_duplicate:
            logger.debug(
                "item_skipped_duplicate",
                reason=result.reason,
                id=item.item_id,
                title=item.title[:50],
            )
            return None

        self.add(item)
        return item

    def __len__(self) -> int:
        return len(self._titles)


class NoveltyFilter:
    """
    Combines the seen-store lookup with intra-run deduplication.

    Already-seen items are kept (the daily snapshot stays complete);
    `is_new` tells the notification path which ones to report.
    """

    def __init__(self, seen: SeenLookup, deduplicator: Optional[Deduplicator] = None):
        self.seen = seen
        self.deduplicator = deduplicator or Deduplicator()
        self.stats = {"kept": 0, "new": 0, "duplicates": 0}
        # ids of items dropped as duplicates; still marked seen at run end
        self.duplicate_ids: list[str] = []

    def is_new(self, item_id: str) -> bool:
        return item_id not in self.seen

    def process(self, item: ListingItem) -> Optional[tuple[ListingItem, bool]]:
        """
        Filter one item.

        Returns:
            (item, is_new) if the item survives, None if it was a duplicate
        """
        kept = self.deduplicator.process(item)
        if kept is None:
            self.stats["duplicates"] += 1
            if item.item_id and item.item_id not in self.duplicate_ids:
                self.duplicate_ids.append(item.item_id)
            return None

        is_new = self.is_new(item.item_id)
        self.stats["kept"] += 1
        if is_new:
            self.stats["new"] += 1
        return kept, is_new

    def filter(self, items: list[ListingItem]) -> list[tuple[ListingItem, bool]]:
        """Filter items in order, dropping duplicates."""
        results = []
        for item in items:
            processed = self.process(item)
            if processed is not None:
                results.append(processed)
        return results
