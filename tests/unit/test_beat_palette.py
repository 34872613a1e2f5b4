"""Tests for seeding helpers and the beat query palette."""

from docfactory.core.channels import get_channel
from docfactory.services.beat_palette import DEFAULT_PALETTE_SUFFIXES, BeatPalette
from docfactory.utils.seeding import seeded_rng, stable_seed


def test_stable_seed_is_deterministic():
    """Same inputs give the same 32-bit seed."""
    first = stable_seed("human-odyssey", "Roman roads", "The Road to Rome")
    second = stable_seed("human-odyssey", "Roman roads", "The Road to Rome")

    assert first == second
    assert 0 <= first < 2**32


def test_stable_seed_changes_with_inputs():
    """Different topics give different seeds."""
    assert stable_seed("what-if", "Mars", "T") != stable_seed("what-if", "Venus", "T")


def test_seeded_rng_reproduces_sequence():
    """Two generators from one seed produce the same draws."""
    a = seeded_rng(42)
    b = seeded_rng(42)

    assert [a.uniform(6, 8) for _ in range(5)] == [b.uniform(6, 8) for _ in range(5)]


def test_palette_uses_channel_suffixes():
    """Palette starts with the base query followed by the channel suffixes."""
    channel = get_channel("human-odyssey")

    palette = BeatPalette().build("roman  aqueduct", channel)

    assert palette == [
        "roman aqueduct",
        "roman aqueduct archival footage",
        "roman aqueduct cinematic footage",
    ]


def test_palette_without_channel_uses_defaults():
    """Default suffixes apply when no channel is given."""
    palette = BeatPalette().build("volcano")

    assert palette[0] == "volcano"
    assert len(palette) == 1 + len(DEFAULT_PALETTE_SUFFIXES)


def test_select_rotates_palette_by_index():
    """Beat index walks the palette."""
    palette = ["a", "b", "c"]

    assert [BeatPalette.select(palette, i) for i in range(4)] == ["a", "b", "c", "a"]


def test_select_avoids_repeating_previous_query():
    """A pick equal to the previous beat's query rotates one step."""
    palette = ["a", "b", "c"]

    assert BeatPalette.select(palette, 0, previous_query="a") == "b"
    assert BeatPalette.select(palette, 2, previous_query="c") == "a"


def test_select_single_entry_palette_may_repeat():
    """A one-entry palette has nothing to rotate to."""
    assert BeatPalette.select(["only"], 3, previous_query="only") == "only"
