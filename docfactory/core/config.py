"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Documentary Factory", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional log file path (rotated)")

    # ========================================================================
    # LLM (Script Writer) Settings
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model used for script writing")
    use_llm_for_scripts: bool = Field(
        default=True,
        description="Use the LLM for script writing (falls back to the stub writer when no API key is set)",
    )

    # ========================================================================
    # TTS (Text-to-Speech) Settings
    # ========================================================================
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    elevenlabs_model: str = Field(default="eleven_multilingual_v2", description="ElevenLabs model id")
    tts_provider: str = Field(
        default="auto",
        description="TTS provider: 'auto' (detect from credentials), 'elevenlabs', 'openai' or 'stub'",
    )
    tts_max_chunk_chars: int = Field(
        default=4000, description="Maximum characters per synthesis request (text is split at sentence boundaries)"
    )
    tts_stub_words_per_minute: int = Field(
        default=150, description="Speaking rate used by the stub provider to size silent narration"
    )

    # ========================================================================
    # Stock Media Settings
    # ========================================================================
    pexels_api_key: Optional[str] = Field(default=None, description="Pexels API key")
    pexels_rate_limit: int = Field(default=180, description="Pexels API calls per minute")
    provider_call_delay_seconds: float = Field(
        default=0.08, description="Fixed courtesy delay before each media provider search call"
    )
    max_candidates_per_query: int = Field(
        default=30, description="Maximum number of candidates requested for one search query"
    )
    max_parallel_api_calls: int = Field(
        default=4, description="Maximum concurrent provider calls (searches, downloads) within one job"
    )
    asset_library_path: str = Field(default="assets/library.json", description="Asset library index file")
    download_dir: str = Field(default="assets/downloads", description="Directory for downloaded assets")

    # ========================================================================
    # Duration Contract Settings
    # ========================================================================
    contract_min_seconds: float = Field(default=540.0, description="Minimum accepted narration duration (9 min)")
    contract_max_seconds: float = Field(default=720.0, description="Maximum accepted narration duration (12 min)")
    contract_max_attempts: int = Field(default=3, description="Script/narration regeneration attempts")
    normal_word_count: tuple[int, int] = Field(default=(1500, 1800), description="Word band for 'normal' mode")
    expand_word_count: tuple[int, int] = Field(default=(1700, 2000), description="Word band for 'expand' mode")
    compress_word_count: tuple[int, int] = Field(default=(1350, 1550), description="Word band for 'compress' mode")

    # ========================================================================
    # Beat Allocation Settings
    # ========================================================================
    beat_min_seconds: float = Field(default=6.0, description="Default minimum beat length (channel pacing overrides)")
    beat_max_seconds: float = Field(default=8.0, description="Default maximum beat length (channel pacing overrides)")
    video_mix_ratio: float = Field(
        default=0.15, ge=0.0, le=1.0, description="Default share of video beats (channel visual mix overrides)"
    )
    beat_remainder_fraction: float = Field(
        default=0.75,
        description="A segment remainder below this fraction of the minimum beat becomes one short final beat",
    )
    duration_epsilon_seconds: float = Field(
        default=0.05, description="Tolerance when comparing timeline length against narration length"
    )

    # ========================================================================
    # Render Settings
    # ========================================================================
    video_width: int = Field(default=1920, description="Output frame width")
    video_height: int = Field(default=1080, description="Output frame height")
    video_fps: int = Field(default=30, description="Output frame rate")
    fade_seconds: float = Field(default=0.5, description="Fade-in/fade-out length at each beat edge")
    effect_intensity: float = Field(default=0.5, ge=0.0, le=1.0, description="Pan/zoom effect intensity")
    color_grade_intensity: float = Field(default=0.7, ge=0.0, le=1.0, description="Color grade intensity")
    color_grading_enabled: bool = Field(default=True, description="Apply the channel theme color grade")
    short_video_strategy: str = Field(
        default="loop", description="Fill policy for clips shorter than their beat: 'loop' or 'extend_last_frame'"
    )
    short_clip_epsilon_seconds: float = Field(
        default=0.1, description="A clip counts as short when target > source + epsilon"
    )
    ffmpeg_binary: str = Field(default="ffmpeg", description="Rendering engine executable")
    video_preset: str = Field(default="medium", description="x264 preset")
    video_crf: int = Field(default=23, description="x264 constant rate factor")
    audio_bitrate: str = Field(default="192k", description="AAC bitrate")
    audio_sample_rate: int = Field(default=44100, description="Output audio sample rate")
    render_advisory_timeout_seconds: Optional[float] = Field(
        default=3600.0, description="Log a warning when a render runs longer than this (never aborts)"
    )
    render_hard_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Terminate the engine and delete the partial output after this many seconds (disabled by default)",
    )
    overlay_font_path: Optional[str] = Field(
        default="/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        description="Font used for branding overlays and placeholder frames (used only if it exists)",
    )

    # ========================================================================
    # Music Settings
    # ========================================================================
    music_enabled: bool = Field(default=True, description="Mix background music under the narration when available")
    music_dir: str = Field(default="assets/music", description="Music library root (one sub-directory per mood)")
    music_volume: float = Field(default=0.25, description="Background music volume before ducking")
    music_fade_seconds: float = Field(default=2.0, description="Music fade-in/fade-out length")
    ducking_threshold: float = Field(default=0.02, description="Sidechain compressor threshold")
    ducking_ratio: float = Field(default=4.0, description="Sidechain compressor ratio")
    ducking_attack_seconds: float = Field(default=0.3, description="Ducking attack time")
    ducking_release_seconds: float = Field(default=0.8, description="Ducking release time")

    # ========================================================================
    # Storage Settings
    # ========================================================================
    output_dir: str = Field(default="output", description="Root for narration audio and rendered videos")
    storage_path: str = Field(default="storage/projects", description="Root for script documents and manifests")


# Global settings instance
settings = Settings()
