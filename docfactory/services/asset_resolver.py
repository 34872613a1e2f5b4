"""Asset Resolver - binds every timeline beat to a local media file."""

from pathlib import Path
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.core.progress import STAGE_ASSETS, STAGE_DOWNLOAD, ProgressSink, emit_progress
from docfactory.models.schemas import (
    AssetLibraryEntry,
    Beat,
    Channel,
    MediaCandidate,
    MediaType,
    ResolvedBeat,
    Timeline,
)
from docfactory.services.asset_library import AssetLibrary
from docfactory.services.duration_probe import DurationProbe
from docfactory.services.media_provider import PexelsClient
from docfactory.services.short_asset import ShortAssetReconciler
from docfactory.utils.io_utils import slugify
from docfactory.utils.parallel_executor import ParallelExecutor
from docfactory.utils.placeholder import create_placeholder_image

CacheKey = tuple[MediaType, str]

_EXTENSIONS = {MediaType.VIDEO: ".mp4", MediaType.IMAGE: ".jpg"}


class AssetResolver:
    """
    Resolves beats to media with one provider search per distinct (type, query).

    Fallback order for a beat: its own key, then an image search for the same
    query (video beats only), then the channel's generic query, then a
    generated placeholder frame. A beat is never left without media.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        provider: Optional[Any] = None,
        library: Optional[AssetLibrary] = None,
        probe: Optional[Any] = None,
        executor: Optional[ParallelExecutor] = None,
    ):
        """
        Initialize asset resolver.

        Args:
            settings: Application settings
            logger: Logger instance
            provider: Media provider with search()/download() (defaults to Pexels)
            library: Shared asset library
            probe: Duration probe for downloaded clips
            executor: Bounded executor for searches and downloads
        """
        self.settings = settings
        self.logger = logger
        self.provider = provider or PexelsClient(settings, logger)
        self.library = library or AssetLibrary(settings, logger)
        self.probe = probe or DurationProbe(settings, logger)
        self.executor = executor or ParallelExecutor(settings, logger)
        self.reconciler = ShortAssetReconciler(settings, logger)
        self.download_dir = Path(settings.download_dir)

    def resolve(
        self,
        timeline: Timeline,
        channel: Channel,
        project_id: str,
        work_dir: Optional[Path] = None,
        progress: Optional[ProgressSink] = None,
    ) -> list[ResolvedBeat]:
        """
        Resolve every beat in the timeline.

        Args:
            timeline: Allocated timeline
            channel: Channel (supplies the generic fallback query)
            project_id: Project identifier for log context
            work_dir: Directory for placeholder frames (defaults to output_dir/project_id)
            progress: Optional progress sink

        Returns:
            One ResolvedBeat per timeline beat, in order
        """
        work_dir = Path(work_dir or Path(self.settings.output_dir) / project_id)
        beats = timeline.beats

        needed: dict[CacheKey, int] = {}
        for beat in beats:
            key = (beat.preferred_type, beat.search_query)
            needed[key] = needed.get(key, 0) + 1

        emit_progress(progress, STAGE_ASSETS, f"Searching {len(needed)} distinct queries for {len(beats)} beats")
        self.logger.info(f"Resolving {len(beats)} beats over {len(needed)} distinct (type, query) keys")

        pools = self._search_keys(needed, project_id)

        assignments: list[tuple[Beat, Optional[MediaCandidate]]] = []
        cursors: dict[CacheKey, int] = {}
        for beat in beats:
            candidate = self._assign(beat, channel, pools, cursors, project_id)
            assignments.append((beat, candidate))

        local_paths = self._download_all([c for _, c in assignments if c is not None], project_id, progress)

        resolved: list[ResolvedBeat] = []
        probed: dict[str, Optional[float]] = {}
        used_asset_ids: list[str] = []
        placeholders = 0
        for beat, candidate in assignments:
            local_path = local_paths.get(candidate.url) if candidate else None
            if candidate is None or local_path is None:
                resolved.append(self._placeholder_beat(beat, work_dir))
                placeholders += 1
                continue

            source_duration = None
            is_short = False
            if candidate.media_type == MediaType.VIDEO:
                if local_path not in probed:
                    probed[local_path] = self.probe.try_probe(local_path)
                source_duration = probed[local_path]
                is_short = self.reconciler.is_short(beat.target_duration_seconds, source_duration)

            resolved.append(
                ResolvedBeat(
                    beat=beat,
                    media_path=local_path,
                    media_type=candidate.media_type,
                    source_duration_seconds=source_duration,
                    is_short=is_short,
                    asset_id=candidate.asset_id,
                    query_used=candidate.query,
                )
            )
            used_asset_ids.append(candidate.asset_id)

        self._record_library(assignments, local_paths, probed)
        self.library.record_usage(used_asset_ids)

        short_count = sum(1 for item in resolved if item.is_short)
        self.logger.info(
            f"Resolved {len(resolved)} beats: {placeholders} placeholder(s), {short_count} short clip(s)"
        )
        emit_progress(progress, STAGE_ASSETS, f"Resolved {len(resolved)} beats", percent=100.0)
        return resolved

    def _search_keys(self, needed: dict[CacheKey, int], project_id: str) -> dict[CacheKey, list[MediaCandidate]]:
        keys = list(needed)
        tasks = [lambda key=key: self._search(key, needed[key]) for key in keys]
        names = [f"search {media_type.value}: {query}" for media_type, query in keys]
        results = self.executor.execute_api_calls(tasks, task_names=names, project_id=project_id)
        return {key: (result if error is None and result else []) for key, (result, error) in zip(keys, results)}

    def _search(self, key: CacheKey, needed: int) -> list[MediaCandidate]:
        """Library hits first; the provider is only called when the library cannot cover the key."""
        media_type, query = key
        count = max(1, min(self.settings.max_candidates_per_query, needed))

        local = [self._entry_candidate(entry, query) for entry in self.library.find(query, media_type, limit=count)]
        if len(local) >= count:
            self.logger.debug(f"Library covers {media_type.value} '{query}' ({len(local)} asset(s))")
            return local

        try:
            remote = self.provider.search(query, media_type, count)
        except Exception as e:
            self.logger.warning(f"Search failed for {media_type.value} '{query}': {e}")
            remote = []

        seen = {candidate.asset_id for candidate in local}
        return local + [candidate for candidate in remote if candidate.asset_id not in seen]

    def _assign(
        self,
        beat: Beat,
        channel: Channel,
        pools: dict[CacheKey, list[MediaCandidate]],
        cursors: dict[CacheKey, int],
        project_id: str,
    ) -> Optional[MediaCandidate]:
        chain: list[CacheKey] = [(beat.preferred_type, beat.search_query)]
        if beat.preferred_type == MediaType.VIDEO:
            chain.append((MediaType.IMAGE, beat.search_query))
        generic = channel.visuals.generic_query
        if generic and generic != beat.search_query:
            chain.append((MediaType.IMAGE, generic))

        for position, key in enumerate(chain):
            if key not in pools:
                # Fallback keys are searched lazily and cached like primary keys
                pools[key] = self._search(key, 1)
            pool = pools[key]
            if not pool:
                continue
            cursor = cursors.get(key, 0)
            cursors[key] = cursor + 1
            candidate = pool[cursor % len(pool)]
            if position > 0:
                self.logger.debug(
                    f"[{project_id}] {beat.label}: fell back to {key[0].value} '{key[1]}'"
                )
            return candidate

        self.logger.warning(f"[{project_id}] {beat.label}: no media for '{beat.search_query}', using placeholder")
        return None

    def _download_all(
        self,
        candidates: list[MediaCandidate],
        project_id: str,
        progress: Optional[ProgressSink],
    ) -> dict[str, str]:
        """Download each distinct URL once. Returns url -> local path for the successes."""
        unique: dict[str, MediaCandidate] = {}
        for candidate in candidates:
            unique.setdefault(candidate.url, candidate)

        local_paths: dict[str, str] = {}
        pending: list[MediaCandidate] = []
        for url, candidate in unique.items():
            existing = self._existing_file(candidate)
            if existing is not None:
                local_paths[url] = str(existing)
            else:
                pending.append(candidate)

        self.logger.info(f"Assets: {len(local_paths)} reused from disk, {len(pending)} to download")
        emit_progress(progress, STAGE_DOWNLOAD, f"Downloading {len(pending)} asset(s)", percent=0.0)

        tasks = [lambda c=c: self.provider.download(c.url, self._destination(c)) for c in pending]
        names = [f"download {c.asset_id}" for c in pending]
        results = self.executor.execute_api_calls(tasks, task_names=names, project_id=project_id)
        for candidate, (path, error) in zip(pending, results):
            if error is None and path is not None:
                local_paths[candidate.url] = str(path)

        failed = len(pending) - sum(1 for c in pending if c.url in local_paths)
        if failed:
            self.logger.warning(f"{failed} download(s) failed; affected beats use placeholders")
        emit_progress(progress, STAGE_DOWNLOAD, f"Downloaded {len(pending) - failed} asset(s)", percent=100.0)
        return local_paths

    def _existing_file(self, candidate: MediaCandidate) -> Optional[Path]:
        entry = self.library.get(candidate.asset_id)
        if entry is not None:
            return Path(entry.local_path)
        destination = self._destination(candidate)
        if destination.exists() and destination.stat().st_size > 0:
            return destination
        return None

    def _destination(self, candidate: MediaCandidate) -> Path:
        return self.download_dir / f"{candidate.asset_id}{_EXTENSIONS[candidate.media_type]}"

    def _placeholder_beat(self, beat: Beat, work_dir: Path) -> ResolvedBeat:
        path = work_dir / "placeholders" / f"{slugify(beat.search_query) or 'placeholder'}.png"
        if not path.exists():
            create_placeholder_image(
                path,
                beat.search_query,
                width=self.settings.video_width,
                height=self.settings.video_height,
                font_path=self.settings.overlay_font_path,
            )
        return ResolvedBeat(
            beat=beat,
            media_path=str(path),
            media_type=MediaType.IMAGE,
            is_placeholder=True,
            query_used=beat.search_query,
        )

    def _entry_candidate(self, entry: AssetLibraryEntry, query: str) -> MediaCandidate:
        return MediaCandidate(
            provider=entry.source,
            provider_id=entry.source_id,
            media_type=entry.media_type,
            url=entry.url,
            source_duration_seconds=entry.duration_seconds,
            attribution=entry.attribution,
            query=query,
        )

    def _record_library(
        self,
        assignments: list[tuple[Beat, Optional[MediaCandidate]]],
        local_paths: dict[str, str],
        probed: dict[str, Optional[float]],
    ) -> None:
        recorded: set[tuple[str, Optional[str]]] = set()
        for _, candidate in assignments:
            if candidate is None or candidate.url not in local_paths:
                continue
            if (candidate.asset_id, candidate.query) in recorded:
                continue
            recorded.add((candidate.asset_id, candidate.query))
            local_path = local_paths[candidate.url]
            self.library.upsert(
                AssetLibraryEntry(
                    asset_id=candidate.asset_id,
                    media_type=candidate.media_type,
                    source=candidate.provider,
                    source_id=candidate.provider_id,
                    url=candidate.url,
                    local_path=local_path,
                    queries=[candidate.query] if candidate.query else [],
                    duration_seconds=probed.get(local_path) or candidate.source_duration_seconds,
                    attribution=candidate.attribution,
                )
            )
