"""Tests for effect selection and filter fragments."""

import random

import pytest

from docfactory.models.schemas import ColorGrade, ContentType, SegmentKind, VisualEffect
from docfactory.services.visual_effects import CONTENT_EFFECTS, VisualEffectsEngine


@pytest.fixture
def engine(settings, logger):
    return VisualEffectsEngine(settings, logger)


def test_effect_key_for_branding_and_sections():
    """Branding segments get calm effects; sections follow their content type."""
    assert VisualEffectsEngine.effect_key(SegmentKind.STING, ContentType.HOOK) == "transition_moment"
    assert VisualEffectsEngine.effect_key(SegmentKind.SECTION, ContentType.CLIMAX) == "action"
    assert VisualEffectsEngine.effect_key(SegmentKind.SECTION, ContentType.EXPOSITION) == "exposition"


def test_select_effect_never_repeats_previous():
    rng = random.Random(7)
    previous = None

    for _ in range(50):
        effect = VisualEffectsEngine.select_effect("hook", rng, previous)
        assert effect in CONTENT_EFFECTS["hook"]
        assert effect != previous
        previous = effect


def test_theme_color_grades():
    assert VisualEffectsEngine.color_grade_for_theme("sci-fi") == ColorGrade.CINEMATIC_BLUE_ORANGE
    assert VisualEffectsEngine.color_grade_for_theme("historical") == ColorGrade.WARM_VINTAGE
    assert VisualEffectsEngine.color_grade_for_theme("mysterious") == ColorGrade.MYSTERIOUS_DARK
    assert VisualEffectsEngine.color_grade_for_theme("cooking") == ColorGrade.NEUTRAL


def test_zoom_in_filter(engine):
    """Zoompan emits exactly the beat's frames from an oversized crop."""
    chain = engine.image_effect_filter(VisualEffect.KEN_BURNS_ZOOM_IN, 210)

    assert chain == (
        "scale=2496:1404:force_original_aspect_ratio=increase,crop=2496:1404,"
        "zoompan=z='1+0.175*on/210':d=210:x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)':s=1920x1080:fps=30"
    )


def test_vignette_zoom_appends_vignette(engine):
    chain = engine.image_effect_filter(VisualEffect.VIGNETTE_ZOOM, 180)

    assert ":d=180:" in chain
    assert chain.endswith(",vignette=PI/4")


def test_zero_frames_clamped_to_one(engine):
    assert ":d=1:" in engine.image_effect_filter(VisualEffect.STATIC, 0)


def test_color_grade_filters(engine):
    """Each named grade has a fragment; neutral has none."""
    assert engine.color_grade_filter(ColorGrade.NEUTRAL) is None
    assert engine.color_grade_filter(ColorGrade.MYSTERIOUS_DARK).endswith("vignette=PI/4")
    for grade in ColorGrade:
        if grade != ColorGrade.NEUTRAL:
            assert engine.color_grade_filter(grade).startswith("eq=")
