"""Tests for the visual beat allocator."""

import random

import pytest

from docfactory.core.errors import InvariantViolation
from docfactory.models.schemas import Beat, MediaType, SegmentKind
from docfactory.services.beat_allocator import BeatAllocator

BRANDING_KINDS = {SegmentKind.STING, SegmentKind.SOFT_CTA, SegmentKind.OUTRO_TEASER, SegmentKind.FINAL_CTA}


class FixedRng:
    """Stand-in generator whose uniform() always returns one value."""

    def __init__(self, value: float):
        self.value = value

    def uniform(self, a, b):
        return self.value


@pytest.fixture
def allocator(settings, logger):
    return BeatAllocator(settings, logger)


def make_beats(images: int, videos: int = 0, forced: int = 0) -> list[Beat]:
    beats = []
    for i in range(videos):
        beats.append(Beat(label=f"v{i}", preferred_type=MediaType.VIDEO, target_duration_seconds=7.0, search_query="q"))
    for i in range(images):
        beats.append(Beat(label=f"i{i}", preferred_type=MediaType.IMAGE, target_duration_seconds=7.0, search_query="q"))
    for i in range(forced):
        beats.append(
            Beat(
                label=f"f{i}",
                preferred_type=MediaType.IMAGE,
                target_duration_seconds=7.0,
                search_query="q",
                forced_type=True,
            )
        )
    return beats


def test_allocation_is_deterministic(allocator, channel, script):
    """Same channel, topic and title give the identical timeline."""
    first = allocator.allocate(channel, "lost city", script, 612.0)
    second = allocator.allocate(channel, "lost city", script, 612.0)

    assert first.seed == second.seed
    assert [b.model_dump() for b in first.beats] == [b.model_dump() for b in second.beats]


def test_different_topic_changes_seed(allocator, channel, script):
    """The seed depends on the topic."""
    first = allocator.allocate(channel, "lost city", script, 612.0)
    second = allocator.allocate(channel, "sunken city", script, 612.0)

    assert first.seed != second.seed


def test_timeline_covers_narration(allocator, channel, script):
    """Beats sum to the narration duration without undershooting."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    assert timeline.total_duration_seconds >= 612.0 - allocator.epsilon
    assert timeline.total_duration_seconds == pytest.approx(612.0, abs=1e-6)
    assert timeline.narration_duration_seconds == 612.0


def test_beat_lengths_respect_pacing(allocator, channel, script):
    """No beat exceeds the channel's max shot length."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    assert all(0 < b.target_duration_seconds <= 8.0 + allocator.epsilon for b in timeline.beats)


def test_beat_labels_follow_segments(allocator, channel, script):
    """Labels are derived from segment labels."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    assert timeline.beats[0].label == "hook-beat-1"
    assert timeline.beats[-1].label.startswith("final-cta-beat-")
    assert all(b.channel_id == "human-odyssey" for b in timeline.beats)


def test_no_consecutive_identical_queries(allocator, channel, script):
    """Adjacent beats never share a search query."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    queries = [b.search_query for b in timeline.beats]
    assert all(a != b for a, b in zip(queries, queries[1:]))


def test_no_consecutive_identical_effects(allocator, channel, script):
    """Adjacent beats never share an effect."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    effects = [b.effect for b in timeline.beats]
    assert all(a != b for a, b in zip(effects, effects[1:]))


def test_branding_beats_are_images(allocator, channel, script):
    """Branding beats are forced images when no promotion is requested."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0)

    branding = [b for b in timeline.beats if b.segment_kind in BRANDING_KINDS]
    assert branding
    assert all(b.preferred_type == MediaType.IMAGE and b.forced_type for b in branding)


def test_minimum_video_beats_applied(allocator, channel, script):
    """Promotion raises the video count to the requested minimum."""
    timeline = allocator.allocate(channel, "lost city", script, 612.0, min_video_beats=10)

    assert timeline.video_beat_count >= 10


def test_non_positive_duration_rejected(allocator, channel, script):
    """A zero narration duration is invalid input."""
    with pytest.raises(ValueError):
        allocator.allocate(channel, "lost city", script, 0.0)


def test_subdivide_full_beats(allocator):
    """Exact-fit segments end with a beat taking what remains."""
    assert allocator.subdivide(20.0, 6.0, 8.0, FixedRng(7.0)) == pytest.approx([7.0, 7.0, 6.0])


def test_subdivide_short_remainder(allocator):
    """A remainder below 0.75 * min becomes one short final beat."""
    assert allocator.subdivide(18.0, 6.0, 8.0, FixedRng(7.0)) == pytest.approx([7.0, 7.0, 4.0])


def test_subdivide_short_segment(allocator):
    """A segment shorter than the remainder threshold is one beat."""
    assert allocator.subdivide(3.0, 6.0, 8.0, FixedRng(7.0)) == pytest.approx([3.0])


def test_subdivide_folds_tiny_tail(allocator):
    """A tail within epsilon joins the previous beat."""
    durations = allocator.subdivide(14.02, 6.0, 8.0, FixedRng(7.0))

    assert durations == pytest.approx([7.0, 7.02])
    assert sum(durations) == pytest.approx(14.02)


def test_promote_reaches_minimum(allocator):
    """40 beats with 4 videos and a minimum of 10 promote 6."""
    beats = make_beats(images=30, videos=4, forced=6)

    promoted = allocator.promote_video_beats(beats, 10, random.Random(1))

    assert promoted == 6
    assert sum(1 for b in beats if b.preferred_type == MediaType.VIDEO) == 10


def test_promote_prefers_free_beats(allocator):
    """Forced beats are left alone while free beats remain."""
    beats = make_beats(images=4, forced=6)

    promoted = allocator.promote_video_beats(beats, 4, random.Random(3))

    assert promoted == 4
    assert all(b.preferred_type == MediaType.IMAGE for b in beats if b.forced_type)
    assert all(b.preferred_type == MediaType.VIDEO for b in beats if not b.forced_type)


def test_promote_capped_at_beat_count(allocator):
    """Asking for more videos than beats promotes every beat."""
    beats = make_beats(images=3, forced=2)

    promoted = allocator.promote_video_beats(beats, 10, random.Random(1))

    assert promoted == 5
    assert all(b.preferred_type == MediaType.VIDEO for b in beats)


def test_promote_noop_when_satisfied(allocator):
    """Nothing changes when enough video beats exist."""
    beats = make_beats(images=5, videos=3)

    assert allocator.promote_video_beats(beats, 2, random.Random(1)) == 0


def test_pad_extends_last_beat(allocator):
    """An undershooting timeline is padded on its last beat."""
    beats = make_beats(images=3)

    added = allocator.pad_to_narration(beats, 30.0)

    assert added == pytest.approx(9.0)
    assert beats[-1].target_duration_seconds == pytest.approx(16.0)


def test_pad_ignores_gap_within_epsilon(allocator):
    """Gaps inside epsilon are left alone."""
    beats = make_beats(images=3)

    assert allocator.pad_to_narration(beats, 21.03) == 0.0
    assert beats[-1].target_duration_seconds == 7.0


def test_pad_empty_timeline_raises(allocator):
    """No beats at all is an internal error."""
    with pytest.raises(InvariantViolation):
        allocator.pad_to_narration([], 10.0)
