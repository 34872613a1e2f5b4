"""Text utility functions for narration and overlays."""

import re

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def word_count(text: str) -> int:
    """
    Count whitespace-separated words.

    Args:
        text: Input text (None-safe)

    Returns:
        Number of words
    """
    return len((text or "").split())


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip the ends."""
    return re.sub(r"\s+", " ", text or "").strip()


def estimate_spoken_duration(text: str, words_per_minute: int = 150) -> float:
    """
    Estimate the spoken duration of text in seconds.

    Only used to size stub narration; real durations are always probed.

    Args:
        text: Text to estimate duration for.
        words_per_minute: Average speaking rate (default 150 WPM).

    Returns:
        Estimated duration in seconds.
    """
    return word_count(text) / words_per_minute * 60.0


def split_into_chunks(text: str, max_chars: int) -> list[str]:
    """
    Split text into chunks no longer than max_chars, preferring sentence boundaries.

    A single sentence longer than max_chars is split at word boundaries.

    Args:
        text: Text to split
        max_chars: Maximum characters per chunk

    Returns:
        Non-empty chunks in order
    """
    text = normalize_whitespace(text)
    if not text:
        return []
    if len(text) <= max_chars:
        return [text]

    pieces: list[str] = []
    for sentence in _SENTENCE_BOUNDARY.split(text):
        if len(sentence) <= max_chars:
            pieces.append(sentence)
            continue
        # Oversized sentence: fall back to word boundaries
        current = ""
        for word in sentence.split(" "):
            candidate = f"{current} {word}".strip()
            if len(candidate) > max_chars and current:
                pieces.append(current)
                current = word
            else:
                current = candidate
        if current:
            pieces.append(current)

    chunks: list[str] = []
    current = ""
    for piece in pieces:
        candidate = f"{current} {piece}".strip()
        if len(candidate) > max_chars and current:
            chunks.append(current)
            current = piece
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def escape_drawtext(text: str) -> str:
    """
    Escape text for an unquoted filter option value inside a filter graph.

    ffmpeg unescapes twice: the graph parser first (special: \\ ' [ ] , ;),
    then the filter's option parser (special: \\ ' :). Escaping runs in the
    reverse order. Quoting is not used because a quote cannot be escaped
    inside a quoted value.

    Args:
        text: Raw overlay text

    Returns:
        Escaped text to place directly after ``text=``
    """
    value = " ".join((text or "").split())
    for char in ("\\", "'", ":"):
        value = value.replace(char, "\\" + char)
    for char in ("\\", "'", "[", "]", ",", ";"):
        value = value.replace(char, "\\" + char)
    return value


def format_timestamp(seconds: float) -> str:
    """Format seconds as M:SS for log lines."""
    total = int(round(seconds))
    return f"{total // 60}:{total % 60:02d}"
