"""Music library selection and narration/music mix statements."""

from pathlib import Path
from typing import Any, Callable, Optional

from docfactory.core.config import Settings

MUSIC_MOODS = ("epic", "mysterious", "orchestral", "ambient", "transitions")
MUSIC_SUFFIXES = {".mp3", ".wav", ".m4a", ".ogg", ".flac"}

THEME_TO_MOOD: dict[str, str] = {
    "sci-fi": "epic",
    "historical": "orchestral",
    "mysterious": "mysterious",
}


class MusicLibrary:
    """Background music tracks grouped by mood directory."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize music library.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.music_dir = Path(settings.music_dir)

    def tracks_for_mood(self, mood: str) -> list[Path]:
        """List audio files under <music_dir>/<mood>, sorted by name."""
        mood_dir = self.music_dir / mood
        if not mood_dir.is_dir():
            self.logger.debug(f"Music directory not found: {mood_dir}")
            return []
        return sorted(p for p in mood_dir.iterdir() if p.suffix.lower() in MUSIC_SUFFIXES)

    def select_track(
        self,
        theme: str,
        duration_seconds: float,
        probe: Callable[[Path], Optional[float]],
    ) -> Optional[Path]:
        """
        Choose a track for a theme.

        Prefers the shortest track that covers the whole narration, otherwise the
        longest available one (it will be looped). Falls back to the ambient mood.

        Args:
            theme: Channel theme
            duration_seconds: Narration duration
            probe: Returns a track duration or None when unreadable

        Returns:
            Track path, or None if no usable track exists
        """
        mood = THEME_TO_MOOD.get(theme, "ambient")
        tracks = self.tracks_for_mood(mood)
        if not tracks and mood != "ambient":
            self.logger.info(f"No '{mood}' tracks, falling back to ambient")
            tracks = self.tracks_for_mood("ambient")
        if not tracks:
            self.logger.warning(f"No music tracks available for theme '{theme}'")
            return None

        measured = [(track, probe(track)) for track in tracks]
        measured = [(track, length) for track, length in measured if length]
        if not measured:
            return None

        covering = [item for item in measured if item[1] >= duration_seconds]
        if covering:
            track, length = min(covering, key=lambda item: item[1])
        else:
            track, length = max(measured, key=lambda item: item[1])
            self.logger.info(f"Music track {track.name} ({length:.1f}s) will be looped")
        self.logger.info(f"Selected music: {track.name} for theme '{theme}'")
        return track


class MusicMixer:
    """Builds the audio statements of a render graph."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize music mixer.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def audio_statements(
        self,
        narration_index: int,
        duration_seconds: float,
        music_index: Optional[int] = None,
        output_label: str = "aout",
    ) -> list[str]:
        """
        Build the narration-only or ducked narration+music statements.

        The music input is expected to be opened with '-stream_loop -1', so
        trimming it to the narration duration always succeeds.

        Args:
            narration_index: Engine input index of the narration
            duration_seconds: Narration duration
            music_index: Engine input index of the music, or None
            output_label: Label of the mixed stream

        Returns:
            Filter statements
        """
        s = self.settings
        dur = f"{duration_seconds:.3f}"

        if music_index is None:
            return [
                f"[{narration_index}:a]aresample={s.audio_sample_rate},apad=whole_dur={dur},"
                f"atrim=0:{dur},asetpts=PTS-STARTPTS[{output_label}]"
            ]

        fade = min(s.music_fade_seconds, duration_seconds / 2)
        fade_out_start = max(0.0, duration_seconds - fade)
        return [
            f"[{music_index}:a]aresample={s.audio_sample_rate},atrim=0:{dur},asetpts=PTS-STARTPTS,"
            f"volume={s.music_volume},afade=t=in:st=0:d={fade:.3f},"
            f"afade=t=out:st={fade_out_start:.3f}:d={fade:.3f}[music]",
            f"[{narration_index}:a]aresample={s.audio_sample_rate},apad=whole_dur={dur},"
            f"atrim=0:{dur},asetpts=PTS-STARTPTS,asplit=2[narr][narrsc]",
            f"[music][narrsc]sidechaincompress=threshold={s.ducking_threshold}:ratio={s.ducking_ratio}"
            f":attack={s.ducking_attack_seconds * 1000:.0f}:release={s.ducking_release_seconds * 1000:.0f}"
            f":makeup=1[ducked]",
            f"[narr][ducked]amix=inputs=2:duration=first:weights=1 0.8:normalize=0[{output_label}]",
        ]
