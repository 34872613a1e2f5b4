"""Render Graph Builder - compiles resolved beats into an ffmpeg filter-graph program."""

import math
from pathlib import Path
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.core.errors import InvariantViolation
from docfactory.core.progress import STAGE_RENDER, ProgressSink, emit_progress
from docfactory.models.schemas import (
    BrandingKind,
    BrandingWindow,
    Channel,
    ColorGrade,
    MediaType,
    NarrationTrack,
    RenderGraphProgram,
    RenderInput,
    ResolvedBeat,
    ShortVideoStrategy,
)
from docfactory.services.music_mixer import MusicMixer
from docfactory.services.narrative import sting_text
from docfactory.services.short_asset import ShortAssetReconciler
from docfactory.services.visual_effects import VisualEffectsEngine
from docfactory.utils.text_utils import escape_drawtext

FINAL_CTA_SECONDS = 10.0


def build_branding_windows(channel: Channel, duration_seconds: float) -> list[BrandingWindow]:
    """
    Compute the overlay windows for a narration duration.

    The final CTA is anchored to the last 10 seconds. Every window is clamped
    to [0, duration_seconds] and windows that end up empty are dropped.

    Args:
        channel: Channel with branding configuration
        duration_seconds: Narration duration

    Returns:
        Windows ordered by start time
    """
    branding = channel.branding
    if branding is None or duration_seconds <= 0:
        return []

    timing = branding.overlay
    raw: list[tuple[BrandingKind, float, float, Optional[str]]] = [
        (BrandingKind.STING, timing.sting_start_seconds, timing.sting_duration_seconds, sting_text(channel)),
        (BrandingKind.SOFT_CTA, timing.soft_cta_start_seconds, timing.soft_cta_duration_seconds, branding.soft_cta_text),
        (
            BrandingKind.FINAL_CTA,
            max(0.0, duration_seconds - FINAL_CTA_SECONDS),
            FINAL_CTA_SECONDS,
            branding.final_cta_text,
        ),
    ]

    windows = []
    for kind, start, length, text in raw:
        if not text:
            continue
        start = min(max(0.0, start), duration_seconds)
        end = min(max(start, start + length), duration_seconds)
        if end - start <= 0:
            continue
        windows.append(BrandingWindow(kind=kind, start_seconds=start, duration_seconds=end - start, text=text))
    return sorted(windows, key=lambda window: window.start_seconds)


def plan_frames(durations: list[float], fps: int) -> list[int]:
    """
    Convert beat durations to per-beat frame counts.

    Boundaries are rounded up on the cumulative timeline, so the total never
    falls below the summed duration and rounding never accumulates.

    Args:
        durations: Beat durations in seconds
        fps: Output frame rate

    Returns:
        Frame count per beat (each at least 1)
    """
    frames = []
    elapsed = 0.0
    previous_boundary = 0
    for duration in durations:
        elapsed += duration
        boundary = max(previous_boundary + 1, math.ceil(elapsed * fps - 1e-6))
        frames.append(boundary - previous_boundary)
        previous_boundary = boundary
    return frames


class RenderGraphBuilder:
    """Compiles the per-beat chains, concat, exact trim, overlays and audio mix."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize render graph builder.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.effects = VisualEffectsEngine(settings, logger)
        self.reconciler = ShortAssetReconciler(settings, logger)
        self.mixer = MusicMixer(settings, logger)

    def build(
        self,
        resolved_beats: list[ResolvedBeat],
        narration: NarrationTrack,
        windows: Optional[list[BrandingWindow]] = None,
        channel: Optional[Channel] = None,
        music_path: Optional[Path] = None,
        color_grade: ColorGrade = ColorGrade.NEUTRAL,
        short_video_strategy: Optional[ShortVideoStrategy] = None,
        progress: Optional[ProgressSink] = None,
    ) -> RenderGraphProgram:
        """
        Compile a render-graph program bound to the narration duration.

        Args:
            resolved_beats: Beats bound to local media, in playback order
            narration: Narration track (its duration is the output length)
            windows: Branding overlay windows
            channel: Channel supplying overlay style (required when windows are given)
            music_path: Optional background music
            color_grade: Color grade applied to every beat
            short_video_strategy: Fill policy for short clips (defaults to settings)
            progress: Optional progress sink

        Returns:
            The compiled program

        Raises:
            InvariantViolation: If there are no beats or they undershoot the narration
        """
        duration = narration.duration_seconds
        epsilon = self.settings.duration_epsilon_seconds
        fps = self.settings.video_fps

        if not resolved_beats:
            raise InvariantViolation("Cannot build a render graph without beats")
        total = sum(item.beat.target_duration_seconds for item in resolved_beats)
        if total < duration - epsilon:
            raise InvariantViolation(f"Beats cover {total:.3f}s but narration is {duration:.3f}s")

        strategy = self.reconciler.resolve_strategy(short_video_strategy)
        grade_filter = self.effects.color_grade_filter(color_grade) if self.settings.color_grading_enabled else None
        frames = plan_frames([item.beat.target_duration_seconds for item in resolved_beats], fps)

        inputs: list[RenderInput] = []
        beat_statements: list[str] = []
        for index, (item, beat_frames) in enumerate(zip(resolved_beats, frames)):
            inputs.append(RenderInput(path=item.media_path))
            beat_statements.append(
                self._beat_statement(index, item, beat_frames, grade_filter, strategy)
            )

        labels = "".join(f"[v{i}]" for i in range(len(resolved_beats)))
        concat_statement = f"{labels}concat=n={len(resolved_beats)}:v=1:a=0[cv]"
        trim_statement = f"[cv]trim=0:{duration:.3f},setpts=PTS-STARTPTS[vt]"

        overlay_statements = self._overlay_statements(windows or [], channel, "vt", "outv")

        narration_index = len(inputs)
        inputs.append(RenderInput(path=narration.path))
        music_index = None
        if music_path is not None:
            music_index = len(inputs)
            inputs.append(RenderInput(path=str(music_path), options=["-stream_loop", "-1"]))
        audio_statements = self.mixer.audio_statements(narration_index, duration, music_index, "aout")

        program = RenderGraphProgram(
            inputs=inputs,
            beat_statements=beat_statements,
            concat_statement=concat_statement,
            trim_statement=trim_statement,
            overlay_statements=overlay_statements,
            audio_statements=audio_statements,
            output_options=self._output_options(duration),
            duration_seconds=duration,
        )
        self.logger.info(
            f"Render graph: {len(beat_statements)} beats, {len(overlay_statements)} overlays, "
            f"music={'yes' if music_path else 'no'}, trimmed to {duration:.3f}s"
        )
        emit_progress(progress, STAGE_RENDER, "Render graph compiled", percent=0.0)
        return program

    def _beat_statement(
        self,
        index: int,
        item: ResolvedBeat,
        frames: int,
        grade_filter: Optional[str],
        strategy: ShortVideoStrategy,
    ) -> str:
        width = self.settings.video_width
        height = self.settings.video_height
        fps = self.settings.video_fps
        slot = frames / fps

        if item.media_type == MediaType.IMAGE:
            chain = self.effects.image_effect_filter(item.beat.effect, frames)
        else:
            # Slots are whole frames, never shorter than the beat target
            chain = (
                f"scale={width}:{height}:force_original_aspect_ratio=increase,crop={width}:{height},setsar=1,"
                + self.reconciler.fill_filter(slot, item.source_duration_seconds, strategy)
            )

        if grade_filter:
            chain += f",{grade_filter}"

        fade = min(self.settings.fade_seconds, slot / 2)
        if fade > 0:
            chain += f",fade=t=in:st=0:d={fade:.3f},fade=t=out:st={slot - fade:.3f}:d={fade:.3f}"
        chain += ",format=yuv420p,setsar=1"
        return f"[{index}:v]{chain}[v{index}]"

    def _overlay_statements(
        self,
        windows: list[BrandingWindow],
        channel: Optional[Channel],
        input_label: str,
        output_label: str,
    ) -> list[str]:
        if not windows or channel is None or channel.branding is None:
            return [f"[{input_label}]null[{output_label}]"]

        style = channel.branding.overlay_style
        font_size = max(24, min(72, style.font_size))
        box_opacity = max(0.0, min(1.0, style.box_opacity))
        border = max(0, min(40, style.box_border_w))
        font_path = self.settings.overlay_font_path
        fontfile = f":fontfile={escape_drawtext(str(font_path))}" if font_path and Path(font_path).exists() else ""
        common = (
            f":x=(w-text_w)/2:y=h-(text_h*2.2):fontsize={font_size}:fontcolor={style.font_color}"
            f":box=1:boxcolor={style.box_color}@{box_opacity}:boxborderw={border}"
        )

        statements = []
        current = input_label
        for i, window in enumerate(windows):
            target = output_label if i == len(windows) - 1 else f"ov{i}"
            statements.append(
                f"[{current}]drawtext=text={escape_drawtext(window.text)}:expansion=none{fontfile}{common}"
                f":enable='between(t,{window.start_seconds:.2f},{window.end_seconds:.2f})'[{target}]"
            )
            current = target
        return statements

    def _output_options(self, duration: float) -> list[str]:
        s = self.settings
        return [
            "-map", "[outv]",
            "-map", "[aout]",
            "-c:v", "libx264",
            "-preset", s.video_preset,
            "-crf", str(s.video_crf),
            "-c:a", "aac",
            "-b:a", s.audio_bitrate,
            "-ar", str(s.audio_sample_rate),
            "-r", str(s.video_fps),
            "-pix_fmt", "yuv420p",
            "-t", f"{duration:.3f}",
            "-movflags", "+faststart",
        ]
