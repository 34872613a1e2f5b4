"""Media Provider - Pexels stock image and video search and download."""

import os
import time
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import requests

from docfactory.core.config import Settings
from docfactory.core.errors import AssetResolutionFailure
from docfactory.models.schemas import MediaCandidate, MediaType
from docfactory.utils.rate_limiter import get_pexels_limiter

PEXELS_PHOTO_SEARCH_URL = "https://api.pexels.com/v1/search"
PEXELS_VIDEO_SEARCH_URL = "https://api.pexels.com/videos/search"
PEXELS_MAX_PER_PAGE = 80


def validate_media_url(url: str) -> str:
    """
    Reject anything that is not an absolute http(s) URL.

    Raises:
        AssetResolutionFailure: If the URL scheme or host is invalid
    """
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AssetResolutionFailure(f"Refusing to download non-http(s) URL: {url!r}")
    return url


class PexelsClient:
    """Client for the Pexels photo and video search APIs."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize Pexels client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.api_key = settings.pexels_api_key
        self.rate_limiter = get_pexels_limiter(
            max_calls=settings.pexels_rate_limit,
            min_interval=settings.provider_call_delay_seconds,
        )
        if not self.api_key:
            self.logger.warning("⚠️  No Pexels API key found. Asset searches will fall back to placeholders.")

    def search(self, query: str, media_type: MediaType, count: int = 5) -> list[MediaCandidate]:
        """
        Search for landscape images or videos.

        Args:
            query: Search query
            media_type: image or video
            count: Number of candidates wanted

        Returns:
            Candidates in provider rank order (possibly empty)

        Raises:
            AssetResolutionFailure: If no API key is configured or the request fails
        """
        if not self.api_key:
            raise AssetResolutionFailure("Pexels API key required")

        per_page = max(1, min(PEXELS_MAX_PER_PAGE, count))
        url = PEXELS_VIDEO_SEARCH_URL if media_type == MediaType.VIDEO else PEXELS_PHOTO_SEARCH_URL
        params = {"query": query, "per_page": per_page, "orientation": "landscape"}

        waited = self.rate_limiter.wait_if_needed("pexels")
        if waited > 0.5:
            self.logger.debug(f"Pexels rate limit: waited {waited:.2f}s")

        try:
            response = requests.get(url, params=params, headers={"Authorization": self.api_key}, timeout=30)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise AssetResolutionFailure(f"Pexels {media_type.value} search failed for '{query}': {e}") from e
        except ValueError as e:
            raise AssetResolutionFailure(f"Pexels returned invalid JSON for '{query}': {e}") from e

        if media_type == MediaType.VIDEO:
            candidates = [self._video_candidate(video, query) for video in data.get("videos") or []]
        else:
            candidates = [self._photo_candidate(photo, query) for photo in data.get("photos") or []]
        candidates = [c for c in candidates if c is not None]

        self.logger.debug(f"Pexels {media_type.value} search '{query}': {len(candidates)} result(s)")
        return candidates

    def _photo_candidate(self, photo: dict, query: str) -> Optional[MediaCandidate]:
        src = photo.get("src") or {}
        url = src.get("large2x") or src.get("original") or src.get("large")
        if not url or photo.get("id") is None:
            return None
        return MediaCandidate(
            provider_id=str(photo["id"]),
            media_type=MediaType.IMAGE,
            url=url,
            width=photo.get("width"),
            height=photo.get("height"),
            attribution=f"Photo by {photo.get('photographer', 'unknown')} on Pexels",
            query=query,
        )

    def _video_candidate(self, video: dict, query: str) -> Optional[MediaCandidate]:
        chosen = self.choose_video_file(video.get("video_files") or [])
        if chosen is None or video.get("id") is None:
            return None
        duration = video.get("duration")
        return MediaCandidate(
            provider_id=str(video["id"]),
            media_type=MediaType.VIDEO,
            url=chosen["link"],
            source_duration_seconds=float(duration) if duration else None,
            width=chosen.get("width"),
            height=chosen.get("height"),
            attribution=f"Video by {(video.get('user') or {}).get('name', 'unknown')} on Pexels",
            query=query,
        )

    def choose_video_file(self, files: list[dict]) -> Optional[dict]:
        """
        Pick the rendition to download.

        Preference: mp4 at exactly the output size, then mp4 at the output
        width, then any HD rendition, then the first file with a link.
        """
        files = [f for f in files if f.get("link")]
        if not files:
            return None
        width = self.settings.video_width
        height = self.settings.video_height

        def is_mp4(f: dict) -> bool:
            return (f.get("file_type") or "video/mp4") == "video/mp4"

        for predicate in (
            lambda f: is_mp4(f) and f.get("width") == width and f.get("height") == height,
            lambda f: is_mp4(f) and f.get("width") == width,
            lambda f: f.get("quality") == "hd",
        ):
            for f in files:
                if predicate(f):
                    return f
        return files[0]

    def download(self, url: str, dest_path: Path) -> Path:
        """
        Stream a media file to disk.

        The body is written to a .part file and renamed once complete.

        Args:
            url: http(s) URL
            dest_path: Final file location

        Returns:
            dest_path

        Raises:
            AssetResolutionFailure: If the URL is invalid or the download fails
        """
        validate_media_url(url)
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        part_path = dest_path.with_name(dest_path.name + ".part")

        start_time = time.time()
        try:
            with requests.get(url, stream=True, timeout=60) as response:
                response.raise_for_status()
                with open(part_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=1024 * 256):
                        if chunk:
                            f.write(chunk)
            if part_path.stat().st_size == 0:
                raise AssetResolutionFailure(f"Downloaded file is empty: {url}")
            os.replace(part_path, dest_path)
        except requests.exceptions.RequestException as e:
            raise AssetResolutionFailure(f"Download failed for {url}: {e}") from e
        except OSError as e:
            raise AssetResolutionFailure(f"Could not write {dest_path}: {e}") from e
        finally:
            if part_path.exists():
                part_path.unlink()

        self.logger.debug(f"Downloaded {dest_path.name} in {time.time() - start_time:.1f}s")
        return dest_path
