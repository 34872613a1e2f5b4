"""Placeholder frame rendering for beats with no usable media."""

import textwrap
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFilter, ImageFont

_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
)


def _load_font(size: int, preferred: Optional[str] = None):
    for candidate in (preferred, *_FONT_CANDIDATES):
        if not candidate:
            continue
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default()


def create_placeholder_image(
    output_path: Path,
    text: str,
    width: int = 1920,
    height: int = 1080,
    font_path: Optional[str] = None,
) -> Path:
    """
    Create a dark gradient frame with centered caption text.

    Args:
        output_path: PNG file to write
        text: Caption (usually the beat's search query)
        width: Frame width
        height: Frame height
        font_path: Preferred TrueType font

    Returns:
        The written path
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    image = Image.new("RGB", (width, height), color=(20, 25, 40))
    draw = ImageDraw.Draw(image)

    # Vertical gradient, brighter towards the middle
    half = max(1, height // 2)
    for y in range(height):
        alpha = int(255 * (1 - abs(y - half) / half) * 0.3)
        draw.rectangle([(0, y), (width, y + 1)], fill=(20 + alpha // 10, 25 + alpha // 10, 40 + alpha // 8))

    image = image.filter(ImageFilter.GaussianBlur(radius=2))

    overlay = Image.new("RGBA", (width, height), (0, 0, 0, 120))
    image = Image.alpha_composite(image.convert("RGBA"), overlay).convert("RGB")
    draw = ImageDraw.Draw(image)

    font_large = _load_font(max(24, height // 15), font_path)
    font_medium = _load_font(max(18, height // 22), font_path)

    lines = textwrap.wrap((text or "").strip(), width=32)[:3] or [""]
    line_height = max(40, height // 11)
    y_start = (height - len(lines) * line_height) // 2

    for i, line in enumerate(lines):
        font = font_large if i == 0 else font_medium
        bbox = draw.textbbox((0, 0), line, font=font)
        x_pos = (width - (bbox[2] - bbox[0])) // 2
        y_pos = y_start + i * line_height
        draw.text((x_pos + 2, y_pos + 2), line, fill=(0, 0, 0), font=font)
        draw.text((x_pos, y_pos), line, fill=(255, 255, 255), font=font)

    image.save(output_path, "PNG")
    return output_path
