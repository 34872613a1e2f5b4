"""Visual Beat Allocator - turns narration time into a timeline of beats."""

import random
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.core.errors import InvariantViolation
from docfactory.core.progress import STAGE_TIMELINE, ProgressSink, emit_progress
from docfactory.models.schemas import (
    Beat,
    Channel,
    ColorGrade,
    MediaType,
    NarrativeSegment,
    Script,
    Timeline,
    VisualEffect,
)
from docfactory.services.beat_palette import BeatPalette
from docfactory.services.narrative import build_segments
from docfactory.services.visual_effects import VisualEffectsEngine
from docfactory.utils.seeding import seeded_rng, stable_seed
from docfactory.utils.text_utils import word_count


class BeatAllocator:
    """Allocates a measured narration duration into jittered, typed beats."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize beat allocator.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.palette = BeatPalette()
        self.effects = VisualEffectsEngine(settings, logger)
        self.epsilon = settings.duration_epsilon_seconds
        self.remainder_fraction = settings.beat_remainder_fraction

    def allocate(
        self,
        channel: Channel,
        topic: str,
        script: Script,
        narration_duration: float,
        min_video_beats: int = 0,
        progress: Optional[ProgressSink] = None,
    ) -> Timeline:
        """
        Build the timeline for an accepted script.

        The same (channel, topic, script title) and parameters always give the
        same timeline.

        Args:
            channel: Channel supplying pacing, visual mix and branding
            topic: Documentary topic
            script: Accepted script
            narration_duration: Measured narration duration in seconds
            min_video_beats: Promote image beats to video until this many exist
            progress: Optional progress sink

        Returns:
            Timeline whose total duration is never below the narration duration

        Raises:
            ValueError: If the narration duration is not positive
            InvariantViolation: If the padding pass fails to cover the narration
        """
        if narration_duration <= 0:
            raise ValueError(f"Narration duration must be positive, got {narration_duration}")

        seed = stable_seed(channel.id, topic, script.title)
        rng = seeded_rng(seed)

        min_beat = channel.pacing.min_shot_seconds or self.settings.beat_min_seconds
        max_beat = max(min_beat, channel.pacing.max_shot_seconds or self.settings.beat_max_seconds)
        video_ratio = channel.visual_mix.video

        segments = build_segments(channel, script, topic)
        weights = [max(1, word_count(segment.text)) for segment in segments]
        total_weight = sum(weights)

        emit_progress(progress, STAGE_TIMELINE, f"Allocating {narration_duration:.1f}s across {len(segments)} segments")

        beats: list[Beat] = []
        previous_query: Optional[str] = None
        previous_effect: Optional[VisualEffect] = None

        for segment, weight in zip(segments, weights):
            segment_seconds = weight / total_weight * narration_duration
            durations = self.subdivide(segment_seconds, min_beat, max_beat, rng)
            palette = self.palette.build(segment.base_query, channel)
            effect_key = self.effects.effect_key(segment.kind, segment.content_type)

            for index, duration in enumerate(durations):
                media_type = self._draw_type(segment, video_ratio, rng)
                query = self.palette.select(palette, index, previous_query)
                effect = self.effects.select_effect(effect_key, rng, previous_effect)

                beats.append(
                    Beat(
                        label=f"{segment.label}-beat-{index + 1}",
                        preferred_type=media_type,
                        target_duration_seconds=duration,
                        transition=segment.transition,
                        search_query=query,
                        channel_id=channel.id,
                        segment_kind=segment.kind,
                        content_type=segment.content_type,
                        effect=effect,
                        forced_type=segment.forced_type is not None,
                    )
                )
                previous_query = query
                previous_effect = effect

        self.promote_video_beats(beats, min_video_beats, rng)
        self.pad_to_narration(beats, narration_duration)

        color_grade = (
            self.effects.color_grade_for_theme(channel.theme)
            if self.settings.color_grading_enabled
            else ColorGrade.NEUTRAL
        )
        timeline = Timeline(
            beats=beats,
            narration_duration_seconds=narration_duration,
            seed=seed,
            color_grade=color_grade,
        )

        self.logger.info(
            f"Timeline: {len(beats)} beats ({timeline.video_beat_count} video) "
            f"covering {timeline.total_duration_seconds:.2f}s of {narration_duration:.2f}s narration"
        )
        emit_progress(progress, STAGE_TIMELINE, f"Allocated {len(beats)} beats", percent=100.0)
        return timeline

    def subdivide(self, seconds: float, min_beat: float, max_beat: float, rng: random.Random) -> list[float]:
        """
        Split one segment's seconds into beat durations.

        Beats are drawn from [min_beat, max_beat]. A remainder below
        remainder_fraction * min_beat becomes one short final beat, and a tail
        within epsilon folds into the previous beat. The result always sums to
        `seconds`.

        Args:
            seconds: Seconds allotted to the segment
            min_beat: Minimum beat length
            max_beat: Maximum beat length
            rng: The job's seeded generator

        Returns:
            Beat durations in order
        """
        durations: list[float] = []
        remaining = seconds

        while remaining > self.epsilon:
            if remaining < self.remainder_fraction * min_beat:
                durations.append(remaining)
                remaining = 0.0
                break
            duration = rng.uniform(min_beat, max_beat)
            if duration >= remaining:
                durations.append(remaining)
                remaining = 0.0
                break
            durations.append(duration)
            remaining -= duration

        if remaining > 0:
            if durations:
                durations[-1] += remaining
            else:
                durations.append(remaining)
        return durations

    def promote_video_beats(self, beats: list[Beat], minimum: int, rng: random.Random) -> int:
        """
        Promote image beats to video until `minimum` video beats exist.

        Beats whose type is free are promoted first, in a seeded random order;
        beats whose segment forced an image type are used only after those run out.

        Args:
            beats: Timeline beats (modified in place)
            minimum: Requested minimum number of video beats
            rng: The job's seeded generator

        Returns:
            Number of beats promoted
        """
        current = sum(1 for beat in beats if beat.preferred_type == MediaType.VIDEO)
        needed = min(minimum, len(beats)) - current
        if needed <= 0:
            return 0

        free_pool = [beat for beat in beats if beat.preferred_type == MediaType.IMAGE and not beat.forced_type]
        forced_pool = [beat for beat in beats if beat.preferred_type == MediaType.IMAGE and beat.forced_type]
        rng.shuffle(free_pool)
        rng.shuffle(forced_pool)

        promoted = 0
        for beat in free_pool + forced_pool:
            if promoted >= needed:
                break
            beat.preferred_type = MediaType.VIDEO
            promoted += 1

        self.logger.info(f"Promoted {promoted} beat(s) to video (minimum {minimum}, had {current})")
        return promoted

    def pad_to_narration(self, beats: list[Beat], narration_duration: float) -> float:
        """
        Pad the last beat so the timeline never undershoots the narration.

        Never trims: trimming happens once, at render time.

        Args:
            beats: Timeline beats (modified in place)
            narration_duration: Measured narration duration

        Returns:
            Seconds added to the last beat

        Raises:
            InvariantViolation: If the beats still undershoot after padding
        """
        if not beats:
            raise InvariantViolation("Timeline has no beats")

        total = sum(beat.target_duration_seconds for beat in beats)
        deficit = 0.0
        if total + self.epsilon < narration_duration:
            deficit = narration_duration - total
            beats[-1].target_duration_seconds += deficit
            self.logger.debug(f"Padded last beat '{beats[-1].label}' by {deficit:.3f}s")

        total = sum(beat.target_duration_seconds for beat in beats)
        if total < narration_duration - self.epsilon:
            raise InvariantViolation(
                f"Timeline covers {total:.3f}s but narration is {narration_duration:.3f}s"
            )
        return deficit

    @staticmethod
    def _draw_type(segment: NarrativeSegment, video_ratio: float, rng: random.Random) -> MediaType:
        if segment.forced_type is not None:
            return segment.forced_type
        return MediaType.VIDEO if rng.random() < video_ratio else MediaType.IMAGE
