"""Duration Probe - measures media durations with moviepy."""

from pathlib import Path
from typing import Any, Optional, Union

from moviepy import AudioFileClip, VideoFileClip

from docfactory.core.config import Settings
from docfactory.core.errors import ProbeFailure

_AUDIO_SUFFIXES = {".mp3", ".wav", ".m4a", ".aac", ".ogg", ".flac"}


class DurationProbe:
    """Returns the playable duration of audio and video files."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize duration probe.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def probe(self, path: Union[str, Path]) -> float:
        """
        Measure a media file's duration.

        Args:
            path: Audio or video file

        Returns:
            Duration in seconds (always > 0)

        Raises:
            ProbeFailure: If the file is missing, unreadable, or reports a non-positive duration
        """
        path = Path(path)
        if not path.exists():
            raise ProbeFailure(path, "file does not exist")

        clip_class = AudioFileClip if path.suffix.lower() in _AUDIO_SUFFIXES else VideoFileClip
        clip = None
        try:
            clip = clip_class(str(path))
            duration = clip.duration
        except Exception as e:
            raise ProbeFailure(path, f"{type(e).__name__}: {e}") from e
        finally:
            if clip is not None:
                clip.close()

        if duration is None or duration <= 0:
            raise ProbeFailure(path, f"non-positive duration {duration!r}")

        self.logger.debug(f"Probed {path.name}: {duration:.3f}s")
        return float(duration)

    def try_probe(self, path: Union[str, Path]) -> Optional[float]:
        """Like probe(), but returns None instead of raising."""
        try:
            return self.probe(path)
        except ProbeFailure as e:
            self.logger.warning(str(e))
            return None
