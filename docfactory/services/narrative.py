"""Narrative segmentation - the single interleaving order for narration and visuals."""

from typing import Optional

from docfactory.models.schemas import (
    Channel,
    ContentType,
    EmotionalTone,
    MediaType,
    NarrativeSegment,
    Script,
    SegmentKind,
    TransitionType,
)
from docfactory.utils.text_utils import normalize_whitespace


def sting_text(channel: Channel) -> Optional[str]:
    """Return the channel sting with {ChannelName} substituted, or None."""
    if channel.branding is None or not channel.branding.sting_text:
        return None
    return channel.branding.sting_text.replace("{ChannelName}", channel.name)


def build_segments(channel: Channel, script: Script, topic: str = "") -> list[NarrativeSegment]:
    """
    Expand a script into the ordered narrative segments.

    Order: hook, sting, section 1, soft CTA, remaining sections, conclusion,
    outro teaser, final CTA. Branding segments are omitted when the channel
    has no text for them and always force image beats.

    Args:
        channel: Channel supplying branding text and branding queries
        script: Accepted script
        topic: Fallback query when the script has no usable section query

    Returns:
        Ordered segments
    """
    branding = channel.branding
    visuals = channel.visuals
    first_query = script.sections[0].base_query if script.sections else ""
    hook_query = first_query or topic or visuals.generic_query

    segments = [
        NarrativeSegment(
            kind=SegmentKind.HOOK,
            label="hook",
            text=script.hook,
            base_query=hook_query,
            content_type=ContentType.HOOK,
            emotional_tone=EmotionalTone.DRAMATIC,
        )
    ]

    sting = sting_text(channel)
    if sting:
        segments.append(
            NarrativeSegment(
                kind=SegmentKind.STING,
                label="sting",
                text=sting,
                base_query=visuals.sting_query,
                content_type=ContentType.HOOK,
                forced_type=MediaType.IMAGE,
            )
        )

    for index, section in enumerate(script.sections):
        segments.append(
            NarrativeSegment(
                kind=SegmentKind.SECTION,
                label=f"section-{index + 1}",
                text=section.narration_text,
                base_query=section.base_query or topic or visuals.generic_query,
                content_type=section.content_type,
                emotional_tone=section.emotional_tone,
                transition=section.transition_hint,
                section_index=index,
            )
        )
        if index == 0 and branding is not None and branding.soft_cta_text:
            segments.append(
                NarrativeSegment(
                    kind=SegmentKind.SOFT_CTA,
                    label="soft-cta",
                    text=branding.soft_cta_text,
                    base_query=section.base_query or visuals.generic_query,
                    content_type=section.content_type,
                    forced_type=MediaType.IMAGE,
                )
            )

    segments.append(
        NarrativeSegment(
            kind=SegmentKind.CONCLUSION,
            label="conclusion",
            text=script.conclusion,
            base_query=script.sections[-1].base_query if script.sections else hook_query,
            content_type=ContentType.CONCLUSION,
            transition=TransitionType.DIP_TO_BLACK,
        )
    )

    if branding is not None and branding.outro_teaser_text:
        segments.append(
            NarrativeSegment(
                kind=SegmentKind.OUTRO_TEASER,
                label="outro-teaser",
                text=branding.outro_teaser_text,
                base_query=visuals.outro_query,
                content_type=ContentType.CONCLUSION,
                forced_type=MediaType.IMAGE,
            )
        )
    if branding is not None and branding.final_cta_text:
        segments.append(
            NarrativeSegment(
                kind=SegmentKind.FINAL_CTA,
                label="final-cta",
                text=branding.final_cta_text,
                base_query=visuals.outro_query,
                content_type=ContentType.CONCLUSION,
                forced_type=MediaType.IMAGE,
            )
        )

    return segments


def build_narration_text(channel: Channel, script: Script) -> str:
    """
    Build the text sent to speech synthesis, with branding interleaved.

    Uses the same segment order as the visual timeline so spoken branding and
    branding beats stay aligned.

    Args:
        channel: Channel supplying branding text
        script: Script to narrate

    Returns:
        Single whitespace-normalized narration string
    """
    parts = [segment.text.strip() for segment in build_segments(channel, script) if segment.text.strip()]
    return normalize_whitespace(" ".join(parts))
