"""Beat Palette - small rotating sets of related search queries."""

from typing import Optional

from docfactory.models.schemas import Channel

# Suffixes used when a channel does not define its own
THEME_PALETTE_SUFFIXES: dict[str, list[str]] = {
    "historical": ["archival footage", "cinematic footage"],
    "sci-fi": ["futuristic concept", "cinematic footage"],
    "mysterious": ["archive documents", "dark cinematic"],
}
DEFAULT_PALETTE_SUFFIXES = ["cinematic", "documentary footage"]


class BeatPalette:
    """Builds query palettes and picks a query per beat."""

    def build(self, base_query: str, channel: Optional[Channel] = None) -> list[str]:
        """
        Build the palette for one segment.

        The base query always comes first; duplicates are dropped so the
        palette stays small and cache-friendly.

        Args:
            base_query: Segment base query
            channel: Channel whose palette suffixes (or theme defaults) apply

        Returns:
            Ordered, de-duplicated query variants
        """
        base = " ".join(base_query.split())
        if channel is not None and channel.visuals.palette_suffixes:
            suffixes = channel.visuals.palette_suffixes
        elif channel is not None:
            suffixes = THEME_PALETTE_SUFFIXES.get(channel.theme, DEFAULT_PALETTE_SUFFIXES)
        else:
            suffixes = DEFAULT_PALETTE_SUFFIXES

        palette = [base]
        for suffix in suffixes:
            variant = f"{base} {suffix}".strip()
            if variant not in palette:
                palette.append(variant)
        return palette

    @staticmethod
    def select(palette: list[str], index: int, previous_query: Optional[str] = None) -> str:
        """
        Pick the query for the beat at `index` within its segment.

        Rotates one step when the pick would repeat the previous beat's query.

        Args:
            palette: Segment palette (non-empty)
            index: Beat index within the segment
            previous_query: Query of the immediately preceding beat

        Returns:
            Chosen query
        """
        query = palette[index % len(palette)]
        if query == previous_query and len(palette) > 1:
            query = palette[(index + 1) % len(palette)]
        return query
