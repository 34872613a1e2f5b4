"""Asset Library - JSON index of downloaded stock media, shared across jobs."""

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from docfactory.core.config import Settings
from docfactory.models.schemas import AssetLibraryEntry, MediaType
from docfactory.utils.io_utils import atomic_write_json
from docfactory.utils.text_utils import normalize_whitespace

# One lock per index file, shared by every AssetLibrary instance in the process
_INDEX_LOCKS: dict[str, threading.Lock] = {}
_INDEX_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _INDEX_LOCKS_GUARD:
        if key not in _INDEX_LOCKS:
            _INDEX_LOCKS[key] = threading.Lock()
        return _INDEX_LOCKS[key]


def normalize_query(query: str) -> str:
    return normalize_whitespace(query).lower()


class AssetLibrary:
    """
    Append-or-upsert store of downloaded assets keyed by asset id.

    Every write re-reads the index under the file's lock, merges the change
    into the latest entries and replaces the file atomically, so concurrent
    jobs never drop each other's entries.
    """

    def __init__(self, settings: Settings, logger: Any, index_path: Optional[Path] = None):
        """
        Initialize asset library.

        Args:
            settings: Application settings
            logger: Logger instance
            index_path: Index file (defaults to settings.asset_library_path)
        """
        self.settings = settings
        self.logger = logger
        self.index_path = Path(index_path or settings.asset_library_path)
        self._lock = _lock_for(self.index_path)

    def _read(self) -> dict[str, AssetLibraryEntry]:
        if not self.index_path.exists():
            return {}
        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Asset library index unreadable ({self.index_path}): {e}")
            return {}

        entries = {}
        for raw in data.get("entries", []):
            try:
                entry = AssetLibraryEntry.model_validate(raw)
            except ValidationError as e:
                self.logger.debug(f"Skipping invalid asset library entry: {e}")
                continue
            entries[entry.asset_id] = entry
        return entries

    def _write(self, entries: dict[str, AssetLibraryEntry]) -> None:
        payload = {
            "version": 1,
            "updated_at": datetime.now().isoformat(),
            "entries": [entry.model_dump(mode="json") for entry in entries.values()],
        }
        atomic_write_json(self.index_path, payload)

    def load(self) -> dict[str, AssetLibraryEntry]:
        """Read the whole index (asset id -> entry)."""
        with self._lock:
            return self._read()

    def get(self, asset_id: str) -> Optional[AssetLibraryEntry]:
        """
        Look up an asset whose file is still on disk.

        Returns:
            The entry, or None if unknown or its file is gone
        """
        entry = self.load().get(asset_id)
        if entry is None or not Path(entry.local_path).exists():
            return None
        return entry

    def find(self, query: str, media_type: MediaType, limit: Optional[int] = None) -> list[AssetLibraryEntry]:
        """
        Find downloaded assets previously matched to a query.

        Args:
            query: Search query (case and whitespace insensitive)
            media_type: image or video
            limit: Maximum results

        Returns:
            Entries with existing files, least used first
        """
        wanted = normalize_query(query)
        matches = [
            entry
            for entry in self.load().values()
            if entry.media_type == media_type
            and wanted in {normalize_query(q) for q in entry.queries}
            and Path(entry.local_path).exists()
        ]
        matches.sort(key=lambda entry: (entry.usage_count, entry.created_at))
        return matches[:limit] if limit else matches

    def upsert(self, entry: AssetLibraryEntry) -> AssetLibraryEntry:
        """
        Insert an asset or merge it into the existing entry with the same id.

        Queries are unioned, the original creation time and usage counters are
        kept, and missing metadata is filled in from the new entry.

        Returns:
            The stored entry
        """
        with self._lock:
            entries = self._read()
            existing = entries.get(entry.asset_id)
            if existing is None:
                merged = entry
            else:
                queries = list(existing.queries)
                for query in entry.queries:
                    if normalize_query(query) not in {normalize_query(q) for q in queries}:
                        queries.append(query)
                merged = existing.model_copy(
                    update={
                        "local_path": entry.local_path if Path(entry.local_path).exists() else existing.local_path,
                        "queries": queries,
                        "duration_seconds": existing.duration_seconds or entry.duration_seconds,
                        "attribution": existing.attribution or entry.attribution,
                        "usage_count": max(existing.usage_count, entry.usage_count),
                    }
                )
            entries[merged.asset_id] = merged
            self._write(entries)
        return merged

    def record_usage(self, asset_ids: Iterable[str]) -> int:
        """
        Increment usage counters for assets used in a render.

        Returns:
            Number of entries updated
        """
        counts: dict[str, int] = {}
        for asset_id in asset_ids:
            counts[asset_id] = counts.get(asset_id, 0) + 1
        if not counts:
            return 0

        now = datetime.now()
        with self._lock:
            entries = self._read()
            updated = 0
            for asset_id, count in counts.items():
                entry = entries.get(asset_id)
                if entry is None:
                    continue
                entries[asset_id] = entry.model_copy(
                    update={"usage_count": entry.usage_count + count, "last_used_at": now}
                )
                updated += 1
            if updated:
                self._write(entries)
        self.logger.debug(f"Recorded usage for {updated} asset(s)")
        return updated
