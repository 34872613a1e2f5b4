"""Visual Effects Engine - pan/zoom effects and color grades as filter fragments."""

import random
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.models.schemas import ColorGrade, ContentType, SegmentKind, VisualEffect

THEME_COLOR_GRADES: dict[str, ColorGrade] = {
    "sci-fi": ColorGrade.CINEMATIC_BLUE_ORANGE,
    "historical": ColorGrade.WARM_VINTAGE,
    "mysterious": ColorGrade.MYSTERIOUS_DARK,
}

CONTENT_EFFECTS: dict[str, list[VisualEffect]] = {
    "hook": [VisualEffect.KEN_BURNS_ZOOM_IN, VisualEffect.SLOW_ZOOM, VisualEffect.VIGNETTE_ZOOM],
    "reveal": [VisualEffect.KEN_BURNS_ZOOM_IN, VisualEffect.SLOW_ZOOM, VisualEffect.PULSE],
    "exposition": [
        VisualEffect.PAN_LEFT,
        VisualEffect.PAN_RIGHT,
        VisualEffect.DRIFT,
        VisualEffect.KEN_BURNS_ZOOM_OUT,
    ],
    "action": [VisualEffect.DIAGONAL_PAN, VisualEffect.KEN_BURNS_ZOOM_IN, VisualEffect.PAN_UP],
    "conclusion": [VisualEffect.KEN_BURNS_ZOOM_OUT, VisualEffect.DRIFT, VisualEffect.STATIC],
    "transition_moment": [VisualEffect.STATIC, VisualEffect.DRIFT, VisualEffect.SLOW_ZOOM],
    "generic": [
        VisualEffect.KEN_BURNS_ZOOM_IN,
        VisualEffect.KEN_BURNS_ZOOM_OUT,
        VisualEffect.PAN_LEFT,
        VisualEffect.PAN_RIGHT,
        VisualEffect.DRIFT,
    ],
}

_CONTENT_TYPE_KEYS = {
    ContentType.HOOK: "hook",
    ContentType.EXPOSITION: "exposition",
    ContentType.REVEAL: "reveal",
    ContentType.TENSION: "action",
    ContentType.CLIMAX: "action",
    ContentType.CONCLUSION: "conclusion",
}

_BRANDING_KINDS = {SegmentKind.STING, SegmentKind.SOFT_CTA, SegmentKind.OUTRO_TEASER, SegmentKind.FINAL_CTA}


def _fmt(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".") or "0"


class VisualEffectsEngine:
    """Chooses effects per beat and renders effect/grade filter fragments."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize visual effects engine.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    @staticmethod
    def effect_key(kind: SegmentKind, content_type: ContentType) -> str:
        """Map a segment to its effect family."""
        if kind in _BRANDING_KINDS:
            return "transition_moment"
        return _CONTENT_TYPE_KEYS.get(content_type, "generic")

    @staticmethod
    def select_effect(key: str, rng: random.Random, previous: Optional[VisualEffect] = None) -> VisualEffect:
        """
        Pick an effect for a beat without repeating the previous one.

        Args:
            key: Effect family from effect_key()
            rng: The job's seeded generator
            previous: Effect of the preceding beat

        Returns:
            Selected effect
        """
        effects = CONTENT_EFFECTS.get(key, CONTENT_EFFECTS["generic"])
        candidates = [effect for effect in effects if effect != previous] or effects
        return candidates[int(rng.random() * len(candidates)) % len(candidates)]

    @staticmethod
    def color_grade_for_theme(theme: str) -> ColorGrade:
        return THEME_COLOR_GRADES.get(theme, ColorGrade.NEUTRAL)

    def image_effect_filter(self, effect: VisualEffect, frames: int) -> str:
        """
        Build the scale/crop + zoompan chain for a still image.

        The input is a single decoded frame; zoompan emits exactly `frames` frames.

        Args:
            effect: Pan/zoom effect
            frames: Output frame count for the beat

        Returns:
            Filter chain (no stream labels)
        """
        width = self.settings.video_width
        height = self.settings.video_height
        fps = self.settings.video_fps
        intensity = self.settings.effect_intensity
        frames = max(1, frames)

        base = (
            f"scale={round(width * 1.3)}:{round(height * 1.3)}:force_original_aspect_ratio=increase,"
            f"crop={round(width * 1.3)}:{round(height * 1.3)}"
        )
        center_x = "iw/2-(iw/zoom/2)"
        center_y = "ih/2-(ih/zoom/2)"
        progress = f"on/{frames}"

        if effect == VisualEffect.KEN_BURNS_ZOOM_IN:
            end = 1.0 + 0.35 * intensity
            z, x, y = f"1+{_fmt(end - 1.0)}*{progress}", center_x, center_y
        elif effect == VisualEffect.KEN_BURNS_ZOOM_OUT:
            start = 1.0 + 0.35 * intensity
            z, x, y = f"{_fmt(start)}-{_fmt(start - 1.0)}*{progress}", center_x, center_y
        elif effect == VisualEffect.PAN_LEFT:
            z, x, y = "1.15", f"(iw-iw/zoom)*(1-{progress})", center_y
        elif effect == VisualEffect.PAN_RIGHT:
            z, x, y = "1.15", f"(iw-iw/zoom)*{progress}", center_y
        elif effect == VisualEffect.PAN_UP:
            z, x, y = "1.15", center_x, f"(ih-ih/zoom)*(1-{progress})"
        elif effect == VisualEffect.PAN_DOWN:
            z, x, y = "1.15", center_x, f"(ih-ih/zoom)*{progress}"
        elif effect == VisualEffect.DIAGONAL_PAN:
            z, x, y = f"1.05+{_fmt(0.1 * max(intensity, 0.1))}*{progress}", f"(iw-iw/zoom)*{progress}", f"(ih-ih/zoom)*{progress}"
        elif effect in (VisualEffect.SLOW_ZOOM, VisualEffect.VIGNETTE_ZOOM):
            amount = (0.15 if effect == VisualEffect.SLOW_ZOOM else 0.2) * intensity
            z, x, y = f"1+{_fmt(amount)}*{progress}", center_x, center_y
        elif effect == VisualEffect.DRIFT:
            dx = _fmt(width * 0.03 * intensity)
            dy = _fmt(height * 0.02 * intensity)
            z = "1.08"
            x = f"(iw-iw/zoom)/2+{dx}*sin({progress}*PI)"
            y = f"(ih-ih/zoom)/2+{dy}*cos({progress}*PI)"
        elif effect == VisualEffect.PULSE:
            z, x, y = f"1.05+0.03*sin({progress}*PI*2)", center_x, center_y
        else:
            z, x, y = "1", center_x, center_y

        chain = f"{base},zoompan=z='{z}':d={frames}:x='{x}':y='{y}':s={width}x{height}:fps={fps}"
        if effect == VisualEffect.VIGNETTE_ZOOM:
            chain += ",vignette=PI/4"
        return chain

    def color_grade_filter(self, grade: ColorGrade) -> Optional[str]:
        """
        Build the color-grade fragment for a grade.

        Args:
            grade: Channel color grade

        Returns:
            Filter fragment, or None for the neutral grade
        """
        i = self.settings.color_grade_intensity
        f = _fmt

        if grade == ColorGrade.CINEMATIC_BLUE_ORANGE:
            return (
                f"eq=saturation={f(1 + 0.2 * i)}:contrast={f(1 + 0.1 * i)},"
                f"colorbalance=rs={f(-0.1 * i)}:gs={f(-0.05 * i)}:bs={f(0.15 * i)}"
                f":rm={f(0.1 * i)}:gm={f(0.02 * i)}:bm={f(-0.05 * i)}"
                f":rh={f(0.15 * i)}:gh={f(0.05 * i)}:bh={f(-0.1 * i)}"
            )
        if grade == ColorGrade.WARM_VINTAGE:
            return (
                f"eq=saturation={f(0.9 + 0.1 * i)}:contrast={f(1 + 0.05 * i)}:brightness={f(0.02 * i)},"
                f"colorbalance=rs={f(0.1 * i)}:gs={f(0.05 * i)}:bs={f(-0.1 * i)}"
                f":rm={f(0.15 * i)}:gm={f(0.08 * i)}:bm={f(-0.05 * i)},"
                "curves=preset=vintage"
            )
        if grade == ColorGrade.COLD_DESATURATED:
            return (
                f"eq=saturation={f(0.7 + 0.1 * i)}:contrast={f(1 + 0.15 * i)},"
                f"colorbalance=rs={f(-0.1 * i)}:gs={f(-0.05 * i)}:bs={f(0.1 * i)}"
            )
        if grade == ColorGrade.HIGH_CONTRAST:
            return f"eq=contrast={f(1 + 0.3 * i)}:saturation={f(1 + 0.1 * i)}"
        if grade == ColorGrade.FILM_NOIR:
            return (
                f"eq=saturation={f(0.3 + 0.2 * i)}:contrast={f(1 + 0.4 * i)}:brightness={f(-0.05 * i)},"
                "vignette=PI/3"
            )
        if grade == ColorGrade.GOLDEN_HOUR:
            return (
                f"eq=saturation={f(1 + 0.15 * i)}:brightness={f(0.03 * i)},"
                f"colorbalance=rs={f(0.2 * i)}:gs={f(0.1 * i)}:bs={f(-0.15 * i)}"
                f":rm={f(0.15 * i)}:gm={f(0.1 * i)}:bm={f(-0.1 * i)}"
            )
        if grade == ColorGrade.MYSTERIOUS_DARK:
            return (
                f"eq=saturation={f(0.85 + 0.1 * i)}:contrast={f(1 + 0.2 * i)}:brightness={f(-0.08 * i)},"
                f"colorbalance=rs={f(-0.05 * i)}:gs={f(-0.02 * i)}:bs={f(0.1 * i)},"
                "vignette=PI/4"
            )
        return None
