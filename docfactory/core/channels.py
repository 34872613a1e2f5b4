"""Static channel catalogue."""

from docfactory.models.schemas import (
    Branding,
    Channel,
    ChannelVisuals,
    OverlayStyle,
    OverlayTiming,
    Pacing,
    VisualMix,
    VoiceConfig,
)

CHANNELS: dict[str, Channel] = {
    "what-if": Channel(
        id="what-if",
        name="What If...",
        description="Hypothetical scenarios and future possibilities",
        theme="sci-fi",
        music_genre="epic-cinematic",
        visual_style="futuristic-conceptual",
        pacing=Pacing(min_shot_seconds=4, max_shot_seconds=7),
        visual_mix=VisualMix(image=0.8, video=0.2),
        branding=Branding(
            sting_text="{ChannelName} presents",
            soft_cta_text="If you like these thought experiments, subscribe for more.",
            final_cta_text="Subscribe and turn on notifications so you don't miss what's next.",
            outro_teaser_text="Next time, we'll push the scenario even further.",
            overlay=OverlayTiming(),
            overlay_style=OverlayStyle(font_size=50, box_color="0x001a33", box_opacity=0.48, box_border_w=18),
        ),
        voice=VoiceConfig(
            voice_id="gnPxliFHTp6OK6tcoA6i",
            language="en-US",
            stability=0.5,
            similarity_boost=0.75,
            style=0.1,
            openai_voice="echo",
        ),
        visuals=ChannelVisuals(
            sting_query="futuristic interface hologram abstract technology",
            outro_query="space galaxy futuristic city night cinematic",
            generic_query="futuristic technology abstract",
            palette_suffixes=["futuristic concept", "science visualization"],
        ),
    ),
    "human-odyssey": Channel(
        id="human-odyssey",
        name="The Human Odyssey",
        description="History and civilization exploration",
        theme="historical",
        music_genre="orchestral",
        visual_style="documentary-classic",
        pacing=Pacing(min_shot_seconds=6, max_shot_seconds=8),
        visual_mix=VisualMix(image=0.9, video=0.1),
        branding=Branding(
            sting_text="{ChannelName} presents",
            soft_cta_text="If you enjoy human history told cinematically, subscribe.",
            final_cta_text="Subscribe and turn on notifications for the next chapter.",
            outro_teaser_text="In our next journey, we'll uncover another hidden origin.",
            overlay=OverlayTiming(),
            overlay_style=OverlayStyle(font_size=48, box_color="0x2a1a00", box_opacity=0.5, box_border_w=18),
        ),
        voice=VoiceConfig(
            voice_id="QIhD5ivPGEoYZQDocuHI",
            language="en-GB",
            stability=0.6,
            similarity_boost=0.8,
            style=0.0,
            openai_voice="fable",
        ),
        visuals=ChannelVisuals(
            sting_query="ancient map parchment artifact archaeology",
            outro_query="cinematic landscape ruins sunset ancient civilization",
            generic_query="ancient ruins history",
            palette_suffixes=["archival footage", "cinematic footage"],
        ),
    ),
    "classified-files": Channel(
        id="classified-files",
        name="Classified Files",
        description="Mysteries and unexplained phenomena",
        theme="mysterious",
        music_genre="dark-ambient",
        visual_style="noir-documentary",
        pacing=Pacing(min_shot_seconds=6, max_shot_seconds=8),
        visual_mix=VisualMix(image=0.85, video=0.15),
        branding=Branding(
            sting_text="{ChannelName} presents",
            soft_cta_text="For more case files like this, subscribe.",
            final_cta_text="Subscribe and turn on notifications to stay informed.",
            outro_teaser_text="Next file: a case that should not exist on paper.",
            overlay=OverlayTiming(),
            overlay_style=OverlayStyle(font_size=48, box_color="black", box_opacity=0.55, box_border_w=18),
        ),
        voice=VoiceConfig(
            voice_id="2gPFXx8pN3Avh27Dw5Ma",
            language="en-US",
            stability=0.4,
            similarity_boost=0.7,
            style=0.2,
            openai_voice="onyx",
        ),
        visuals=ChannelVisuals(
            sting_query="classified dossier files archive evidence",
            outro_query="surveillance camera night city evidence board",
            generic_query="mystery dark archive",
            palette_suffixes=["archive documents", "surveillance footage"],
        ),
    ),
}


def get_channel(channel_id: str) -> Channel:
    """
    Look up a channel by id.

    Args:
        channel_id: Channel identifier

    Returns:
        The channel configuration

    Raises:
        ValueError: If the channel is unknown
    """
    channel = CHANNELS.get(channel_id)
    if channel is None:
        known = ", ".join(sorted(CHANNELS))
        raise ValueError(f"Unknown channel '{channel_id}' (known: {known})")
    return channel


def list_channels() -> list[Channel]:
    """Return all channels in catalogue order."""
    return list(CHANNELS.values())
