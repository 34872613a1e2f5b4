"""Pydantic models and schemas for the documentary pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Enums
# ============================================================================


class MediaType(str, Enum):
    """Kind of media shown for a beat."""

    IMAGE = "image"
    VIDEO = "video"


class DurationMode(str, Enum):
    """Script-generation mode for one duration-contract attempt."""

    NORMAL = "normal"
    EXPAND = "expand"
    COMPRESS = "compress"


class ContentType(str, Enum):
    """Narrative role of a script section."""

    HOOK = "hook"
    EXPOSITION = "exposition"
    REVEAL = "reveal"
    TENSION = "tension"
    CLIMAX = "climax"
    CONCLUSION = "conclusion"


class EmotionalTone(str, Enum):
    """Emotional register of a script section."""

    NEUTRAL = "neutral"
    CURIOUS = "curious"
    TENSE = "tense"
    DRAMATIC = "dramatic"
    AWE = "awe"
    SOMBER = "somber"
    HOPEFUL = "hopeful"


class TransitionType(str, Enum):
    """Transition into a beat."""

    FADE = "fade"
    DISSOLVE = "dissolve"
    ZOOM = "zoom"
    DIP_TO_BLACK = "dip_to_black"
    WIPE_LEFT = "wipe_left"
    WIPE_RIGHT = "wipe_right"


class VisualEffect(str, Enum):
    """Pan/zoom treatment applied to an image beat."""

    KEN_BURNS_ZOOM_IN = "ken_burns_zoom_in"
    KEN_BURNS_ZOOM_OUT = "ken_burns_zoom_out"
    PAN_LEFT = "pan_left"
    PAN_RIGHT = "pan_right"
    PAN_UP = "pan_up"
    PAN_DOWN = "pan_down"
    DIAGONAL_PAN = "diagonal_pan"
    SLOW_ZOOM = "slow_zoom"
    DRIFT = "drift"
    STATIC = "static"
    PULSE = "pulse"
    VIGNETTE_ZOOM = "vignette_zoom"


class ColorGrade(str, Enum):
    """Channel-level color grade."""

    CINEMATIC_BLUE_ORANGE = "cinematic_blue_orange"
    WARM_VINTAGE = "warm_vintage"
    COLD_DESATURATED = "cold_desaturated"
    HIGH_CONTRAST = "high_contrast"
    FILM_NOIR = "film_noir"
    GOLDEN_HOUR = "golden_hour"
    MYSTERIOUS_DARK = "mysterious_dark"
    NEUTRAL = "neutral"


class ShortVideoStrategy(str, Enum):
    """Fill policy for a video clip shorter than its beat."""

    LOOP = "loop"
    EXTEND_LAST_FRAME = "extend_last_frame"


class SegmentKind(str, Enum):
    """Kind of narrative segment in the interleaved narration order."""

    HOOK = "hook"
    STING = "sting"
    SECTION = "section"
    SOFT_CTA = "soft_cta"
    CONCLUSION = "conclusion"
    OUTRO_TEASER = "outro_teaser"
    FINAL_CTA = "final_cta"


class BrandingKind(str, Enum):
    """Kind of burned-in branding overlay."""

    STING = "sting"
    SOFT_CTA = "soft_cta"
    FINAL_CTA = "final_cta"


# ============================================================================
# Script Models
# ============================================================================


class Section(BaseModel):
    """One section of a documentary script."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    narration_text: str = Field(
        ...,
        validation_alias=AliasChoices("narration_text", "narration"),
        description="Narration spoken over this section",
    )
    base_query: str = Field(
        ...,
        validation_alias=AliasChoices("base_query", "search_query", "searchQuery"),
        description="Base stock-media search query for the section",
    )
    transition_hint: TransitionType = Field(
        default=TransitionType.FADE,
        validation_alias=AliasChoices("transition_hint", "transition"),
        description="Preferred transition into the section's beats",
    )
    is_micro_hook: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_micro_hook", "isMicroHook"),
        description="Section opens with a short re-engagement hook",
    )
    content_type: ContentType = Field(
        default=ContentType.EXPOSITION,
        validation_alias=AliasChoices("content_type", "contentType"),
        description="Narrative role of the section",
    )
    emotional_tone: EmotionalTone = Field(
        default=EmotionalTone.NEUTRAL,
        validation_alias=AliasChoices("emotional_tone", "emotionalTone"),
        description="Emotional register of the section",
    )
    target_duration_seconds: float = Field(
        default=0.0,
        ge=0.0,
        validation_alias=AliasChoices("target_duration_seconds", "duration"),
        description="Advisory weighting only; actual allotment comes from word count and narration length",
    )

    @field_validator("transition_hint", mode="before")
    @classmethod
    def _coerce_transition(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {t.value for t in TransitionType}:
            return TransitionType.FADE
        return value

    @field_validator("content_type", mode="before")
    @classmethod
    def _coerce_content_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {c.value for c in ContentType}:
            return ContentType.EXPOSITION
        return value

    @field_validator("emotional_tone", mode="before")
    @classmethod
    def _coerce_tone(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {t.value for t in EmotionalTone}:
            return EmotionalTone.NEUTRAL
        return value


class Script(BaseModel):
    """A complete documentary script. Immutable; regenerated wholesale on each attempt."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1, description="Video title")
    hook: str = Field(..., description="Opening hook narration (~7 seconds)")
    sections: list[Section] = Field(..., min_length=1, description="Ordered body sections")
    conclusion: str = Field(default="", description="Closing narration")
    duration_seconds: Optional[float] = Field(
        default=None, description="Measured narration duration, written back after synthesis"
    )


class NarrationTrack(BaseModel):
    """A synthesized narration file and its probed duration."""

    path: str = Field(..., description="Narration audio file")
    duration_seconds: float = Field(..., gt=0.0, description="Probed duration (never estimated)")


# ============================================================================
# Timeline Models
# ============================================================================


class NarrativeSegment(BaseModel):
    """One entry in the interleaved narration order (hook, sting, sections, CTAs...)."""

    kind: SegmentKind = Field(..., description="Segment kind")
    label: str = Field(..., description="Stable label used to name beats")
    text: str = Field(default="", description="Narration text spoken during the segment")
    base_query: str = Field(..., description="Base search query for the segment's beats")
    content_type: ContentType = Field(default=ContentType.EXPOSITION, description="Narrative role")
    emotional_tone: EmotionalTone = Field(default=EmotionalTone.NEUTRAL, description="Emotional register")
    transition: TransitionType = Field(default=TransitionType.FADE, description="Transition into the segment")
    forced_type: Optional[MediaType] = Field(default=None, description="Media type forced for every beat")
    section_index: Optional[int] = Field(default=None, description="Index into Script.sections, if any")


class Beat(BaseModel):
    """One atomic visual slot in the timeline."""

    label: str = Field(..., description="Beat label, e.g. 'section-2-beat-3'")
    preferred_type: MediaType = Field(..., description="Preferred media type")
    target_duration_seconds: float = Field(..., gt=0.0, description="Allotted on-screen time")
    transition: TransitionType = Field(default=TransitionType.FADE, description="Transition into the beat")
    search_query: str = Field(..., description="Resolved stock-media query")
    channel_id: Optional[str] = Field(default=None, description="Owning channel")
    segment_kind: SegmentKind = Field(default=SegmentKind.SECTION, description="Segment the beat belongs to")
    content_type: ContentType = Field(default=ContentType.EXPOSITION, description="Content type of the segment")
    effect: VisualEffect = Field(default=VisualEffect.KEN_BURNS_ZOOM_IN, description="Image pan/zoom effect")
    forced_type: bool = Field(default=False, description="Type is fixed by the segment and never promoted")


class Timeline(BaseModel):
    """Ordered beats covering a narration track."""

    beats: list[Beat] = Field(default_factory=list, description="Beats in playback order")
    narration_duration_seconds: float = Field(..., gt=0.0, description="Narration length the beats cover")
    seed: int = Field(..., description="Seed the allocation was drawn from")
    color_grade: ColorGrade = Field(default=ColorGrade.NEUTRAL, description="Channel color grade")

    @property
    def total_duration_seconds(self) -> float:
        return sum(beat.target_duration_seconds for beat in self.beats)

    @property
    def video_beat_count(self) -> int:
        return sum(1 for beat in self.beats if beat.preferred_type == MediaType.VIDEO)


class ResolvedBeat(BaseModel):
    """A beat bound to a concrete local media file."""

    beat: Beat = Field(..., description="The allocated beat")
    media_path: str = Field(..., description="Local media file")
    media_type: MediaType = Field(..., description="Actual media type (fallbacks may change it)")
    source_duration_seconds: Optional[float] = Field(
        default=None, description="Probed clip duration; None when unknown or for images"
    )
    is_short: bool = Field(default=False, description="Clip is shorter than the beat or could not be probed")
    is_placeholder: bool = Field(default=False, description="Media is a generated placeholder frame")
    asset_id: Optional[str] = Field(default=None, description="Asset library id")
    query_used: Optional[str] = Field(default=None, description="Query that produced the media")


class BrandingWindow(BaseModel):
    """A time-windowed branding overlay."""

    kind: BrandingKind = Field(..., description="Overlay kind")
    start_seconds: float = Field(..., ge=0.0, description="Absolute start time")
    duration_seconds: float = Field(..., ge=0.0, description="Window length")
    text: str = Field(..., description="Overlay text")

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds


class RenderInput(BaseModel):
    """One engine input with its per-input options."""

    path: str = Field(..., description="Input file")
    options: list[str] = Field(default_factory=list, description="Options placed before '-i'")


class RenderGraphProgram(BaseModel):
    """Compiled filter-graph program handed to the rendering engine. Built per render, never reused."""

    inputs: list[RenderInput] = Field(default_factory=list, description="Engine inputs in index order")
    beat_statements: list[str] = Field(default_factory=list, description="One transform chain per beat")
    concat_statement: str = Field(..., description="Concatenation of all beat streams")
    trim_statement: str = Field(..., description="Trim of the concatenated stream to narration length")
    overlay_statements: list[str] = Field(default_factory=list, description="Time-windowed overlays")
    audio_statements: list[str] = Field(default_factory=list, description="Narration (and music) mix")
    video_output_label: str = Field(default="outv", description="Final video stream label")
    audio_output_label: str = Field(default="aout", description="Final audio stream label")
    output_options: list[str] = Field(default_factory=list, description="Encoding/mapping options")
    duration_seconds: float = Field(..., gt=0.0, description="Narration duration the program is bound to")

    @property
    def statements(self) -> list[str]:
        return [
            *self.beat_statements,
            self.concat_statement,
            self.trim_statement,
            *self.overlay_statements,
            *self.audio_statements,
        ]

    def filter_complex(self) -> str:
        """Join every statement into one filter_complex string."""
        return ";".join(self.statements)

    def to_command(self, binary: str, output_path: str) -> list[str]:
        """
        Build the full engine argument vector.

        Args:
            binary: Engine executable
            output_path: Rendered file

        Returns:
            Argument list suitable for subprocess
        """
        command = [binary, "-y", "-hide_banner"]
        for render_input in self.inputs:
            command.extend(render_input.options)
            command.extend(["-i", render_input.path])
        command.extend(["-filter_complex", self.filter_complex()])
        command.extend(self.output_options)
        command.append(output_path)
        return command


# ============================================================================
# Channel Models
# ============================================================================


class Pacing(BaseModel):
    """Bounds for beat length."""

    min_shot_seconds: float = Field(default=6.0, gt=0.0, description="Minimum beat length")
    max_shot_seconds: float = Field(default=8.0, gt=0.0, description="Maximum beat length")


class VisualMix(BaseModel):
    """Share of image vs. video beats."""

    image: float = Field(default=0.85, ge=0.0, le=1.0, description="Image share")
    video: float = Field(default=0.15, ge=0.0, le=1.0, description="Video share")


class OverlayTiming(BaseModel):
    """Absolute timing of the sting and soft-CTA overlays."""

    sting_start_seconds: float = Field(default=7.0, description="Sting overlay start")
    sting_duration_seconds: float = Field(default=3.0, description="Sting overlay length")
    soft_cta_start_seconds: float = Field(default=80.0, description="Soft CTA overlay start")
    soft_cta_duration_seconds: float = Field(default=5.0, description="Soft CTA overlay length")


class OverlayStyle(BaseModel):
    """Drawtext styling for branding overlays."""

    font_size: int = Field(default=48, description="Font size (clamped to 24-72 when rendered)")
    font_color: str = Field(default="white", description="Font color")
    box_color: str = Field(default="black", description="Background box color")
    box_opacity: float = Field(default=0.45, description="Box opacity (clamped to 0-1 when rendered)")
    box_border_w: int = Field(default=18, description="Box border width (clamped to 0-40 when rendered)")


class Branding(BaseModel):
    """Per-channel branding texts and overlay configuration."""

    sting_text: str = Field(default="{ChannelName} presents", description="Sting text; {ChannelName} is substituted")
    soft_cta_text: str = Field(default="", description="Soft call-to-action after the first section")
    final_cta_text: str = Field(default="", description="Final call-to-action in the last 10 seconds")
    outro_teaser_text: str = Field(default="", description="Teaser for the next episode")
    overlay: OverlayTiming = Field(default_factory=OverlayTiming, description="Overlay timing")
    overlay_style: OverlayStyle = Field(default_factory=OverlayStyle, description="Overlay styling")


class VoiceConfig(BaseModel):
    """Speech-synthesis voice configuration."""

    provider: str = Field(default="elevenlabs", description="Preferred provider")
    voice_id: str = Field(..., description="Provider voice id")
    language: str = Field(default="en-US", description="Voice language")
    stability: float = Field(default=0.5, description="ElevenLabs stability")
    similarity_boost: float = Field(default=0.75, description="ElevenLabs similarity boost")
    style: float = Field(default=0.0, description="ElevenLabs style exaggeration")
    openai_voice: str = Field(default="onyx", description="Voice used with the OpenAI provider")


class ChannelVisuals(BaseModel):
    """Fixed queries for branding segments and query palette suffixes."""

    sting_query: str = Field(..., description="Query for the sting segment")
    outro_query: str = Field(..., description="Query for outro teaser and final CTA segments")
    generic_query: str = Field(..., description="Last-resort query when a search returns nothing")
    palette_suffixes: list[str] = Field(default_factory=list, description="Suffixes appended to a base query")


class Channel(BaseModel):
    """A documentary channel."""

    id: str = Field(..., description="Channel id, e.g. 'human-odyssey'")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Channel description")
    theme: str = Field(..., description="Theme: 'sci-fi', 'historical' or 'mysterious'")
    music_genre: str = Field(default="", description="Music genre hint")
    visual_style: str = Field(default="", description="Visual style hint")
    pacing: Pacing = Field(default_factory=Pacing, description="Beat length bounds")
    visual_mix: VisualMix = Field(default_factory=VisualMix, description="Image/video mix")
    branding: Optional[Branding] = Field(default=None, description="Branding; None disables all branding")
    voice: VoiceConfig = Field(..., description="Narration voice")
    visuals: ChannelVisuals = Field(..., description="Branding and fallback queries")


# ============================================================================
# Media Models
# ============================================================================


class MediaCandidate(BaseModel):
    """One search result from a stock-media provider."""

    provider: str = Field(default="pexels", description="Provider name")
    provider_id: str = Field(..., description="Provider-side id")
    media_type: MediaType = Field(..., description="Image or video")
    url: str = Field(..., description="Playable/downloadable URL")
    source_duration_seconds: Optional[float] = Field(default=None, description="Provider-reported clip duration")
    width: Optional[int] = Field(default=None, description="Pixel width")
    height: Optional[int] = Field(default=None, description="Pixel height")
    attribution: Optional[str] = Field(default=None, description="Photographer/author credit")
    query: Optional[str] = Field(default=None, description="Query that returned the candidate")

    @property
    def asset_id(self) -> str:
        return f"{self.provider}-{self.media_type.value}-{self.provider_id}"


class AssetLibraryEntry(BaseModel):
    """A downloaded asset recorded in the on-disk library."""

    asset_id: str = Field(..., description="Stable id: <source>-<type>-<id>")
    media_type: MediaType = Field(..., description="Image or video")
    source: str = Field(default="pexels", description="Provider name")
    source_id: str = Field(..., description="Provider-side id")
    url: str = Field(..., description="Original URL")
    local_path: str = Field(..., description="Downloaded file")
    queries: list[str] = Field(default_factory=list, description="Queries that matched the asset")
    duration_seconds: Optional[float] = Field(default=None, description="Clip duration, if known")
    attribution: Optional[str] = Field(default=None, description="Credit line")
    usage_count: int = Field(default=0, description="Times the asset was used in a render")
    created_at: datetime = Field(default_factory=datetime.now, description="First download time")
    last_used_at: Optional[datetime] = Field(default=None, description="Last time the asset was used")


# ============================================================================
# Duration Contract Models
# ============================================================================


class ContractAttempt(BaseModel):
    """Record of one script/narration attempt."""

    attempt: int = Field(..., ge=1, description="1-indexed attempt number")
    mode: DurationMode = Field(..., description="Script-generation mode used")
    word_count_range: tuple[int, int] = Field(..., description="Requested word band")
    script_title: str = Field(..., description="Generated title")
    word_count: int = Field(..., description="Words in the interleaved narration text")
    narration_path: str = Field(..., description="Narration file for this attempt")
    duration_seconds: float = Field(..., description="Probed narration duration")
    accepted: bool = Field(..., description="Duration fell inside the acceptance window")


class ContractResult(BaseModel):
    """Outcome of duration negotiation."""

    script: Script = Field(..., description="Script carrying its measured duration")
    narration: NarrationTrack = Field(..., description="Narration track of the returned attempt")
    narration_text: str = Field(..., description="Interleaved narration text that was synthesized")
    attempts: list[ContractAttempt] = Field(default_factory=list, description="All attempts in order")
    satisfied: bool = Field(..., description="Returned attempt lies inside the window")


# ============================================================================
# Generation Models
# ============================================================================


class GenerationOptions(BaseModel):
    """Caller options for one documentary generation job."""

    project_id: Optional[str] = Field(default=None, description="Explicit project id (generated if omitted)")
    min_video_beats: int = Field(default=0, ge=0, description="Promote beats to video until this count")
    short_video_strategy: Optional[ShortVideoStrategy] = Field(
        default=None, description="Fill policy for short clips (defaults to settings)"
    )
    music_enabled: Optional[bool] = Field(default=None, description="Override settings.music_enabled")
    music_path: Optional[str] = Field(default=None, description="Explicit music file (skips library selection)")
    strict_contract: bool = Field(default=False, description="Raise ContractUnsatisfied instead of best effort")
    dry_run: bool = Field(default=False, description="Stop after timeline allocation")


class GenerationResult(BaseModel):
    """Manifest of a finished (or dry-run) generation job."""

    project_id: str = Field(..., description="Project identifier")
    channel_id: str = Field(..., description="Channel id")
    topic: str = Field(..., description="Requested topic")
    script: Script = Field(..., description="Accepted script with measured duration")
    narration: NarrationTrack = Field(..., description="Narration track")
    timeline: Timeline = Field(..., description="Allocated timeline")
    contract_satisfied: bool = Field(..., description="Narration landed inside the acceptance window")
    attempts: list[ContractAttempt] = Field(default_factory=list, description="Duration contract attempts")
    video_path: Optional[str] = Field(default=None, description="Rendered video (None for dry runs)")
    rendered_duration_seconds: Optional[float] = Field(default=None, description="Probed output duration")
    music_path: Optional[str] = Field(default=None, description="Background music used")
    dry_run: bool = Field(default=False, description="Job stopped after allocation")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


# ============================================================================
# API Models
# ============================================================================


class TimelinePreviewRequest(BaseModel):
    """Request body for a pure beat-allocation preview."""

    channel_id: str = Field(..., description="Channel id")
    topic: str = Field(..., min_length=1, description="Topic the script was written for")
    script: Script = Field(..., description="Script to allocate")
    narration_duration_seconds: float = Field(..., gt=0.0, description="Measured narration length")
    min_video_beats: int = Field(default=0, ge=0, description="Minimum video beats")


class CreateProjectRequest(BaseModel):
    """Request body for queuing a generation job."""

    channel_id: str = Field(..., description="Channel id")
    topic: str = Field(..., min_length=1, description="Documentary topic")
    min_video_beats: int = Field(default=0, ge=0, description="Minimum video beats")
    short_video_strategy: Optional[ShortVideoStrategy] = Field(default=None, description="Short clip policy")
    music_enabled: Optional[bool] = Field(default=None, description="Mix background music")


class CreateProjectResponse(BaseModel):
    """Response for a queued generation job."""

    project_id: str = Field(..., description="Project identifier")
    channel_id: str = Field(..., description="Channel id")
    topic: str = Field(..., description="Documentary topic")
    status: str = Field(default="queued", description="Job status")
