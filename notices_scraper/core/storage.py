"""
File-backed stores for incremental collection.

- SeenStore: id -> first-seen date, append-only, never pruned
- DetailCache: id -> extracted fields, written once per id
- SnapshotStore: one JSON snapshot per day, rolling retention

Stores are explicit objects with load()/save() and in-memory mutation so a
run can be given isolated stores. A store built with path=None lives in
memory only. Saves are whole-file atomic rewrites; a failed write raises
StoreWriteError.
"""

import json
import os
import re
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import structlog

from .errors import StoreWriteError
from .models import DailySnapshot, DetailFields

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


def atomic_write_json(path: Path, data: Any) -> None:
    """
    Write JSON to path via a temp file in the same directory and os.replace.

    Raises:
        StoreWriteError: if anything fails; the previous file stays intact
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise StoreWriteError(str(path), str(e)) from e
    except (TypeError, ValueError) as e:
        raise StoreWriteError(str(path), f"not serializable: {e}") from e


def read_json(path: Path, default: Any) -> Any:
    """Read a JSON file, falling back to default if missing or unreadable."""
    if not path.exists():
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("store_read_failed", path=str(path), error=str(e))
        return default


class JsonFileStore:
    """Base class for flat-object JSON stores."""

    def __init__(self, path: Optional[PathLike] = None):
        self.path = Path(path) if path else None
        self._data: dict[str, Any] = {}
        self._dirty = False

    def load(self) -> "JsonFileStore":
        """Load the whole file into memory (no-op for in-memory stores)."""
        if self.path is None:
            return self

        data = read_json(self.path, {})
        if not isinstance(data, dict):
            logger.error("store_format_invalid", path=str(self.path), type=type(data).__name__)
            data = {}
        self._data = data
        self._dirty = False
        logger.info("store_loaded", store=self.__class__.__name__, path=str(self.path), entries=len(self._data))
        return self

    def save(self) -> None:
        """Rewrite the whole file."""
        if self.path is None:
            self._dirty = False
            return

        atomic_write_json(self.path, self._data)
        self._dirty = False
        logger.info("store_saved", store=self.__class__.__name__, path=str(self.path), entries=len(self._data))

    @property
    def dirty(self) -> bool:
        return self._dirty

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)


class SeenStore(JsonFileStore):
    """
    Permanent record of processed ids: {id: "YYYY-MM-DD"}.

    Append-only: marking an id that already exists keeps its first date.
    """

    def first_seen(self, item_id: str) -> Optional[str]:
        return self._data.get(item_id)

    def mark_seen(self, item_id: str, seen_on: Union[str, date]) -> bool:
        """
        Record an id as seen.

        Returns:
            True if the id was added, False if it was already known
        """
        if item_id in self._data:
            return False

        self._data[item_id] = seen_on.isoformat() if isinstance(seen_on, date) else seen_on
        self._dirty = True
        return True


class DetailCache(JsonFileStore):
    """
    Extracted detail fields per id, written once.

    With autosave (the default) every put is persisted immediately so that
    a crash later in the run keeps the details already fetched.
    """

    def __init__(self, path: Optional[PathLike] = None, autosave: bool = True):
        super().__init__(path)
        self.autosave = autosave

    def get(self, item_id: str) -> Optional[DetailFields]:
        if item_id not in self._data:
            return None
        return DetailFields.from_dict(self._data[item_id])

    def put(self, item_id: str, fields: DetailFields) -> bool:
        """
        Store fields for an id unless an entry already exists.

        Returns:
            True if written, False if the id was already cached
        """
        if item_id in self._data:
            logger.debug("detail_cache_entry_exists", id=item_id)
            return False

        self._data[item_id] = fields.to_dict()
        self._dirty = True
        if self.autosave:
            self.save()
        return True


SNAPSHOT_PATTERN = re.compile(r"^snapshot-(\d{4}-\d{2}-\d{2})\.json$")


class SnapshotStore:
    """
    Daily snapshot files in a directory: snapshot-YYYY-MM-DD.json.

    A directory of None keeps snapshots in memory.
    """

    def __init__(self, directory: Optional[PathLike] = None, keep_days: int = 7):
        self.directory = Path(directory) if directory else None
        self.keep_days = keep_days
        self._memory: dict[str, dict] = {}

    def path_for(self, day: str) -> Optional[Path]:
        if self.directory is None:
            return None
        return self.directory / f"snapshot-{day}.json"

    def write(self, snapshot: DailySnapshot) -> Optional[Path]:
        """Write (or overwrite) the snapshot for its day."""
        data = snapshot.to_dict()
        path = self.path_for(snapshot.date)
        if path is None:
            self._memory[snapshot.date] = data
            return None

        atomic_write_json(path, data)
        logger.info(
            "snapshot_written",
            path=str(path),
            total=snapshot.total,
            new=snapshot.new_count,
        )
        return path

    def read(self, day: str) -> Optional[dict]:
        path = self.path_for(day)
        if path is None:
            return self._memory.get(day)
        return read_json(path, None)

    def has_snapshot(self, day: str) -> bool:
        path = self.path_for(day)
        if path is None:
            return day in self._memory
        return path.exists()

    def days(self) -> list[str]:
        """Days with a stored snapshot, oldest first."""
        if self.directory is None:
            return sorted(self._memory)
        if not self.directory.exists():
            return []

        found = []
        for entry in self.directory.iterdir():
            match = SNAPSHOT_PATTERN.match(entry.name)
            if match:
                found.append(match.group(1))
        return sorted(found)

    def prune(self, today: date) -> list[str]:
        """
        Delete snapshots older than keep_days.

        A snapshot is kept while its day is within the last keep_days days,
        today included.

        Returns:
            Days that were removed
        """
        cutoff = today - timedelta(days=self.keep_days - 1)
        removed = []
        for day in self.days():
            if date.fromisoformat(day) >= cutoff:
                continue

            path = self.path_for(day)
            if path is None:
                del self._memory[day]
            else:
                try:
                    path.unlink()
                except OSError as e:
                    raise StoreWriteError(str(path), str(e)) from e
            removed.append(day)

        if removed:
            logger.info("snapshots_pruned", removed=removed, keep_days=self.keep_days)
        return removed


def write_export(path: Optional[PathLike], data: dict) -> Optional[Path]:
    """Write a JSON export file for downstream consumers."""
    if not path:
        return None
    target = Path(path)
    atomic_write_json(target, data)
    logger.info("export_written", path=str(target))
    return target
