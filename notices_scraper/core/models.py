"""
Data models for the notices scraper.

ListingItem is transient (one per listing row), AnnouncementRecord is the
assembled output of a run, DailySnapshot is what gets persisted per day.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from .normalizer import normalize_title


# Shown to downstream consumers whenever a detail field could not be resolved
MISSING_FIELD_PLACEHOLDER = "공고 원문 확인"

DETAIL_FIELD_NAMES = ("eligibility", "content", "period", "amount", "organ", "contact", "method")


@dataclass
class DetailFields:
    """Semantic fields extracted from a detail page."""
    eligibility: Optional[str] = None
    content: Optional[str] = None
    period: Optional[str] = None
    amount: Optional[str] = None

    # Read by downstream cards; not used for deadline or classification
    organ: Optional[str] = None
    contact: Optional[str] = None
    method: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "DetailFields":
        data = data or {}
        return cls(**{name: data.get(name) or None for name in DETAIL_FIELD_NAMES})

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in DETAIL_FIELD_NAMES)

    def with_placeholders(self) -> dict:
        """Every detail field, unresolved ones replaced by the placeholder."""
        return {
            name: getattr(self, name) or MISSING_FIELD_PLACEHOLDER
            for name in DETAIL_FIELD_NAMES
        }


@dataclass
class ListingItem:
    """
    One row of a listing page.

    Used by the listing walker to pass discovery results on to the
    novelty filter and detail fetcher.
    """
    title: str
    url: str
    raw_date: str = ""
    source_id: str = ""

    # Filled in by the walker
    item_id: str = ""
    page: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnnouncementRecord:
    """
    Uniform record for one announcement.

    This is the primary output of a collection run.
    """

    id: str  # source_id + resolved id
    source_id: str
    title: str
    url: str

    # Deadline (YYYY-MM-DD once resolved, raw listing date otherwise)
    date: str = ""
    raw_date: str = ""

    # Classification
    region: str = ""
    region_category: str = ""
    category: str = ""
    is_target: bool = False

    detail: Optional[DetailFields] = None

    # Run-scoped
    is_new: bool = False

    collected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def clean_title(self) -> str:
        return normalize_title(self.title)

    def to_dict(self) -> dict:
        """Convert to the camelCase record schema handed to consumers."""
        detail = self.detail or DetailFields()
        return {
            "id": self.id,
            "sourceId": self.source_id,
            "title": self.title,
            "cleanTitle": self.clean_title,
            "url": self.url,
            "date": self.date,
            "rawDate": self.raw_date,
            "region": self.region,
            "regionCategory": self.region_category,
            "category": self.category,
            "isTarget": self.is_target,
            "isNew": self.is_new,
            "detail": detail.with_placeholders(),
            "collectedAt": self.collected_at.isoformat(),
        }


@dataclass
class DailySnapshot:
    """Per-day summary of a run, grouped by source."""

    date: str
    records: list[AnnouncementRecord] = field(default_factory=list)
    source_names: dict = field(default_factory=dict)
    source_urls: dict = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def new_count(self) -> int:
        return sum(1 for r in self.records if r.is_new)

    @property
    def target_count(self) -> int:
        return sum(1 for r in self.records if r.is_target)

    def to_dict(self) -> dict:
        sources: dict[str, dict] = {}
        for source_id in self.source_names:
            sources[source_id] = {
                "name": self.source_names[source_id],
                "url": self.source_urls.get(source_id, ""),
                "total": 0,
                "newCount": 0,
                "items": [],
            }
        for record in self.records:
            entry = sources.setdefault(
                record.source_id,
                {"name": record.source_id, "url": "", "total": 0, "newCount": 0, "items": []},
            )
            entry["items"].append(record.to_dict())
            entry["total"] += 1
            if record.is_new:
                entry["newCount"] += 1

        return {
            "date": self.date,
            "generatedAt": self.generated_at.isoformat(),
            "total": self.total,
            "newCount": self.new_count,
            "targetCount": self.target_count,
            "sources": sources,
        }
