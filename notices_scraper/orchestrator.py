"""
Collection run orchestrator.

Coordinates, per source:
- Listing walk (with early stop)
- Novelty and intra-run dedup filtering
- Detail fetch through the cache
- Deadline resolution and classification

and at the end of the run:
- Marking records seen
- Daily snapshot, new-items export and snapshot pruning
- Handing new records to an optional downstream consumer
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

import structlog

from .config.loader import DEFAULT_TIMEZONE, ConfigLoader, RunSettings
from .core.classifier import classify_category, extract_region, is_target_audience, region_category
from .core.deduplicator import NoveltyFilter
from .core.errors import QuotaExceededError, StoreWriteError
from .core.fetcher import BrowserFetcher, DocumentFetcher, HttpFetcher
from .core.models import AnnouncementRecord, DailySnapshot, DetailFields, ListingItem
from .core.normalizer import resolve_deadline
from .core.retry import retry_operation
from .core.storage import DetailCache, SeenStore, SnapshotStore, write_export
from .navigators.base import SourceConfig
from .navigators.paginated import ListingWalker, WalkResult
from .parsers.base import ParserStrategy
from .parsers.html_detail import DetailFetcher

logger = structlog.get_logger(__name__)

RecordConsumer = Callable[[AnnouncementRecord], Awaitable[None]]


@dataclass
class RunResult:
    """Everything a run produced."""

    run_date: str
    records: list[AnnouncementRecord] = field(default_factory=list)
    walks: dict[str, WalkResult] = field(default_factory=dict)
    # dropped as intra-run duplicates; marked seen but not reported
    duplicate_ids: list[str] = field(default_factory=list)
    stats: dict = field(default_factory=dict)
    skipped: bool = False
    snapshot_path: Optional[Path] = None
    export_path: Optional[Path] = None

    def new_records(self) -> list[AnnouncementRecord]:
        """Records first seen in this run, in discovery order."""
        return [record for record in self.records if record.is_new]

    def export_data(self) -> dict:
        """New-items export: `{date, items}` with a 1-based idx per item."""
        return {
            "date": self.run_date,
            "items": [
                {"idx": index, **record.to_dict()}
                for index, record in enumerate(self.new_records(), start=1)
            ],
        }


class CollectionRun:
    """
    One incremental collection run over a set of sources.

    Stores are injected; the run loads nothing itself and mutates them in
    memory, saving at the end (the detail cache saves on every put).
    Sources are processed sequentially through one fetcher session; a
    failing source is logged and the others still run.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        seen_store: SeenStore,
        detail_cache: DetailCache,
        snapshot_store: SnapshotStore,
        sources: list[SourceConfig],
        *,
        max_pages: Optional[int] = None,
        export_path: Optional[Path] = None,
        timezone: str = DEFAULT_TIMEZONE,
        today: Optional[date] = None,
        skip_if_done_today: bool = True,
        dry_run: bool = False,
        parser: Optional[ParserStrategy] = None,
        consumer: Optional[RecordConsumer] = None,
        consumer_delays: Optional[tuple[float, ...]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize a run.

        Args:
            fetcher: Open document fetcher shared by all sources
            seen_store: Loaded seen-store
            detail_cache: Loaded detail cache
            snapshot_store: Daily snapshot store
            sources: Sources to walk, in order
            max_pages: Optional page limit overriding each source's
            export_path: Where to write the new-items export (None = skip)
            timezone: Timezone anchoring the run date
            today: Fixed run date (defaults to now in `timezone`)
            skip_if_done_today: Skip the run if today's snapshot exists
            dry_run: Walk and filter only; no detail fetches, nothing persisted
            parser: Detail parser (defaults to HtmlDetailParser)
            consumer: Optional async callback for each new record
            consumer_delays: Backoff schedule for rate-limited consumer calls
            sleep: Sleep coroutine for delays (injectable for tests)
        """
        self.fetcher = fetcher
        self.seen_store = seen_store
        self.detail_cache = detail_cache
        self.snapshot_store = snapshot_store
        self.sources = sources
        self.max_pages = max_pages
        self.export_path = export_path
        self.timezone = timezone
        self.today = today
        self.skip_if_done_today = skip_if_done_today
        self.dry_run = dry_run
        self.parser = parser
        self.consumer = consumer
        self.consumer_delays = consumer_delays
        self.sleep = sleep or asyncio.sleep

        self.stats = {
            "sources_processed": 0,
            "sources_failed": 0,
            "items_discovered": 0,
            "duplicates": 0,
            "records": 0,
            "new": 0,
            "details_fetched": 0,
            "details_cached": 0,
            "details_failed": 0,
            "delivered": 0,
            "delivery_stopped": False,
            "errors": 0,
        }

    def run_date(self) -> date:
        if self.today is not None:
            return self.today
        return datetime.now(ZoneInfo(self.timezone)).date()

    async def run(self) -> RunResult:
        """
        Run the collection.

        Returns:
            RunResult with all records (new and already seen)

        Raises:
            StoreWriteError: a store could not be written
        """
        run_date = self.run_date()
        day = run_date.isoformat()
        result = RunResult(run_date=day, stats=self.stats)

        if self.skip_if_done_today and self.snapshot_store.has_snapshot(day):
            logger.info("already_collected_today", date=day)
            result.skipped = True
            return result

        logger.info(
            "starting_collection",
            date=day,
            sources=[source.source_id for source in self.sources],
            max_pages=self.max_pages,
            dry_run=self.dry_run,
        )

        walker = ListingWalker(self.fetcher, sleep=self.sleep)
        details = DetailFetcher(self.fetcher, self.detail_cache, parser=self.parser)

        for source in self.sources:
            try:
                walk, records, duplicate_ids = await self._process_source(source, walker, details)
            except StoreWriteError:
                raise
            except Exception as e:
                logger.error("source_failed", source=source.source_id, error=str(e))
                self.stats["sources_failed"] += 1
                self.stats["errors"] += 1
                continue

            result.walks[source.source_id] = walk
            result.records.extend(records)
            result.duplicate_ids.extend(duplicate_ids)
            self.stats["sources_processed"] += 1

        self.stats["records"] = len(result.records)
        self.stats["new"] = len(result.new_records())
        self.stats["details_fetched"] = details.stats["fetched"]
        self.stats["details_cached"] = details.stats["cached"]
        self.stats["details_failed"] = details.stats["failed"]

        if self.dry_run:
            logger.info("dry_run_complete", **self.stats)
            return result

        self._persist(result, run_date)
        await self._deliver(result.new_records())

        logger.info("collection_complete", date=day, **self.stats)
        return result

    async def _process_source(
        self,
        source: SourceConfig,
        walker: ListingWalker,
        details: DetailFetcher,
    ) -> tuple[WalkResult, list[AnnouncementRecord], list[str]]:
        """
        Walk one source and assemble its records.

        Args:
            source: Source configuration
            walker: Listing walker bound to the run's fetcher
            details: Cache-aware detail fetcher

        Returns:
            (walk result, records in discovery order, ids dropped as duplicates)
        """
        logger.info("processing_source", source=source.source_id, name=source.source_name)

        walk = await walker.walk(source, self.seen_store, max_pages=self.max_pages)
        self.stats["items_discovered"] += len(walk.items)

        # Dedup is per source
        novelty = NoveltyFilter(self.seen_store)
        kept = novelty.filter(walk.items)
        self.stats["duplicates"] += novelty.stats["duplicates"]

        details.wait_until = source.detail_wait_until
        details.settle_delay = source.detail_settle_delay

        records: list[AnnouncementRecord] = []
        fetched_any = False
        for index, (item, is_new) in enumerate(kept):
            try:
                if self.dry_run:
                    detail = self.detail_cache.get(item.item_id)
                else:
                    if item.item_id not in self.detail_cache:
                        if fetched_any and source.detail_delay:
                            await self.sleep(source.detail_delay)
                        fetched_any = True
                    logger.debug(
                        "resolving_detail",
                        source=source.source_id,
                        index=index + 1,
                        total=len(kept),
                        id=item.item_id,
                    )
                    detail = await details.get(item.item_id, item.url)
            except StoreWriteError:
                raise
            except Exception as e:
                logger.error("item_failed", source=source.source_id, id=item.item_id, error=str(e))
                self.stats["errors"] += 1
                detail = None

            records.append(build_record(item, is_new, detail))

        logger.info(
            "source_complete",
            source=source.source_id,
            records=len(records),
            new=sum(1 for record in records if record.is_new),
            stop_reason=walk.stop_reason,
        )
        return walk, records, novelty.duplicate_ids

    def _persist(self, result: RunResult, run_date: date) -> None:
        """Mark records seen, save, snapshot, export and prune. Write errors propagate."""
        day = run_date.isoformat()

        added = 0
        for record in result.records:
            if self.seen_store.mark_seen(record.id, day):
                added += 1
        for item_id in result.duplicate_ids:
            if self.seen_store.mark_seen(item_id, day):
                added += 1
        self.seen_store.save()
        logger.info("seen_store_updated", added=added, total=len(self.seen_store))

        snapshot = DailySnapshot(
            date=day,
            records=result.records,
            source_names={source.source_id: source.source_name for source in self.sources},
            source_urls={source.source_id: source.listing_url for source in self.sources},
        )
        result.snapshot_path = self.snapshot_store.write(snapshot)
        result.export_path = write_export(self.export_path, result.export_data())
        self.snapshot_store.prune(run_date)

    async def _deliver(self, records: list[AnnouncementRecord]) -> None:
        """
        Hand new records to the consumer, backing off on rate limits.

        Delivery stops at the first exhausted quota; records already
        delivered and everything persisted stay as they are.
        """
        if self.consumer is None or not records:
            return

        for record in records:
            kwargs = {"label": f"deliver:{record.id}", "sleep": self.sleep}
            if self.consumer_delays is not None:
                kwargs["delays"] = self.consumer_delays
            try:
                await retry_operation(lambda: self.consumer(record), **kwargs)
            except QuotaExceededError as e:
                logger.warning(
                    "delivery_stopped",
                    delivered=self.stats["delivered"],
                    remaining=len(records) - self.stats["delivered"],
                    error=str(e),
                )
                self.stats["delivery_stopped"] = True
                return
            except Exception as e:
                logger.error("delivery_failed", id=record.id, error=str(e))
                self.stats["errors"] += 1
                continue
            self.stats["delivered"] += 1


def build_record(item: ListingItem, is_new: bool, detail: Optional[DetailFields]) -> AnnouncementRecord:
    """Assemble the uniform record for a listing item and its detail fields."""
    return AnnouncementRecord(
        id=item.item_id,
        source_id=item.source_id,
        title=item.title,
        url=item.url,
        date=resolve_deadline(detail.period if detail else None, item.raw_date),
        raw_date=item.raw_date,
        region=extract_region(item.title),
        region_category=region_category(item.title),
        category=classify_category(item.title),
        is_target=is_target_audience(item.title),
        detail=detail,
        is_new=is_new,
    )


def create_fetcher(kind: str = "browser") -> DocumentFetcher:
    """Document fetcher by name: "browser" (playwright) or "http" (httpx)."""
    if kind == "browser":
        return BrowserFetcher()
    if kind == "http":
        return HttpFetcher()
    raise ValueError(f"Unknown fetcher: {kind}")


async def run_collection(
    sources: Optional[list[str]] = None,
    max_pages: Optional[int] = None,
    config_path: Optional[str] = None,
    data_dir: Optional[str] = None,
    fetcher_kind: str = "browser",
    force: bool = False,
    dry_run: bool = False,
) -> RunResult:
    """
    Convenience function to run a collection with file-backed stores.

    Args:
        sources: Optional source_ids to process (None = all)
        max_pages: Optional page limit per source
        config_path: Path to sources.yml
        data_dir: Directory for stores (overrides the config setting)
        fetcher_kind: "browser" or "http"
        force: Ignore the already-collected-today guard
        dry_run: Walk only, nothing persisted

    Returns:
        RunResult
    """
    if config_path:
        loader = ConfigLoader(str(Path(config_path).parent))
        filename = Path(config_path).name
    else:
        loader = ConfigLoader()
        filename = "sources.yml"

    settings: RunSettings = loader.load_settings(filename)
    source_configs = loader.load_sources(filename, only=sources)

    root = Path(data_dir or settings.data_dir)
    seen_store = SeenStore(root / "seen.json").load()
    detail_cache = DetailCache(root / "detail-cache.json").load()
    snapshot_store = SnapshotStore(root / "snapshots", keep_days=settings.keep_days)

    async with create_fetcher(fetcher_kind) as fetcher:
        run = CollectionRun(
            fetcher=fetcher,
            seen_store=seen_store,
            detail_cache=detail_cache,
            snapshot_store=snapshot_store,
            sources=source_configs,
            max_pages=max_pages,
            export_path=root / settings.export_file,
            timezone=settings.timezone,
            skip_if_done_today=not force,
            dry_run=dry_run,
        )
        return await run.run()
