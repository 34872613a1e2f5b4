"""Tests for text helpers."""

import pytest

from docfactory.utils.text_utils import escape_drawtext, format_timestamp, split_into_chunks, word_count


def unescaped_quotes(value: str) -> list[int]:
    """Positions of quotes not preceded by an odd run of backslashes."""
    positions = []
    for i, char in enumerate(value):
        if char != "'":
            continue
        run = 0
        while i - run - 1 >= 0 and value[i - run - 1] == "\\":
            run += 1
        if run % 2 == 0:
            positions.append(i)
    return positions


@pytest.mark.parametrize(
    "text",
    [
        "Subscribe and turn on notifications so you don't miss what's next.",
        "Next time, we'll push the scenario even further.",
        "'quoted' at both ends'",
    ],
)
def test_escape_drawtext_leaves_no_bare_quote(text):
    assert unescaped_quotes(escape_drawtext(text)) == []


def test_escape_drawtext_two_levels():
    """Option-level escapes are escaped again for the graph parser."""
    assert escape_drawtext("don't") == "don\\\\\\'t"
    assert escape_drawtext("Hi: 100%") == "Hi\\\\: 100%"
    assert escape_drawtext("a,b;[c]") == "a\\,b\\;\\[c\\]"
    assert escape_drawtext("back\\slash") == "back\\\\\\\\slash"


def test_escape_drawtext_collapses_whitespace():
    assert escape_drawtext("  line one\nline two  ") == "line one line two"
    assert escape_drawtext(None) == ""


def test_word_count_and_timestamp():
    assert word_count("The  lost city\nof Ubar") == 5
    assert format_timestamp(612.4) == "10:12"


def test_split_into_chunks_respects_limit():
    text = "The first sentence is here. The second sentence follows. A third one ends it."

    chunks = split_into_chunks(text, 40)

    assert len(chunks) == 3
    assert all(len(chunk) <= 40 for chunk in chunks)
