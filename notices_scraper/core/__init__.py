"""
Core layer - stable foundation for the collector.

Components:
- models: ListingItem, AnnouncementRecord, DetailFields, DailySnapshot
- identity: URL -> stable id resolution
- normalizer: deadline, title and text normalization
- deduplicator: intra-run dedup and novelty filter
- classifier: region / category / target-audience rules
- storage: seen-store, detail cache, daily snapshots
- fetcher / http_client: document fetch collaborators
- retry: backoff wrapper for rate-limited collaborators
"""

from .errors import (
    ScraperError,
    ConfigError,
    FetchError,
    StoreWriteError,
    QuotaExceededError,
)
from .models import (
    AnnouncementRecord,
    DailySnapshot,
    DetailFields,
    ListingItem,
    MISSING_FIELD_PLACEHOLDER,
)
from .identity import IdPattern, IdentityResolver, resolve_id
from .normalizer import (
    normalize_title,
    normalize_deadline,
    resolve_deadline,
    extract_all_dates,
    cleanup_html_text,
)
from .deduplicator import Deduplicator, NoveltyFilter
from .classifier import (
    extract_region,
    region_category,
    classify_category,
    is_target_audience,
)
from .storage import SeenStore, DetailCache, SnapshotStore
from .retry import retry_operation, is_rate_limited

__all__ = [
    "ScraperError",
    "ConfigError",
    "FetchError",
    "StoreWriteError",
    "QuotaExceededError",
    "AnnouncementRecord",
    "DailySnapshot",
    "DetailFields",
    "ListingItem",
    "MISSING_FIELD_PLACEHOLDER",
    "IdPattern",
    "IdentityResolver",
    "resolve_id",
    "normalize_title",
    "normalize_deadline",
    "resolve_deadline",
    "extract_all_dates",
    "cleanup_html_text",
    "Deduplicator",
    "NoveltyFilter",
    "extract_region",
    "region_category",
    "classify_category",
    "is_target_audience",
    "SeenStore",
    "DetailCache",
    "SnapshotStore",
    "retry_operation",
    "is_rate_limited",
]
