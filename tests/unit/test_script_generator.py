"""Tests for script generation and parsing."""

import json
from unittest.mock import MagicMock

import pytest

from docfactory.core.errors import ScriptGenerationError
from docfactory.models.schemas import ContentType, DurationMode, TransitionType
from docfactory.services.script_generator import ScriptGenerator, extract_json, parse_script, script_word_count

LLM_SCRIPT = {
    "title": "The Road to Rome",
    "hook": "Every road once led somewhere.",
    "sections": [
        {
            "narration": "Roman engineers laid stone across an empire.",
            "search_query": "roman road stones",
            "transition": "dissolve",
            "content_type": "exposition",
            "emotional_tone": "curious",
            "duration": 90,
        }
    ],
    "conclusion": "The roads outlived the empire.",
}


@pytest.fixture
def generator(settings, logger):
    return ScriptGenerator(settings, logger)


@pytest.mark.parametrize("band", [(1500, 1800), (1700, 2000), (1350, 1550)])
def test_stub_hits_band_midpoint(generator, channel, band):
    """The stub writer produces exactly the middle of the word band."""
    script = generator.generate(channel, "Roman roads", DurationMode.NORMAL, band)

    assert script_word_count(script) == sum(band) // 2
    assert len(script.sections) == 6


def test_stub_is_deterministic(generator, channel):
    """Same inputs give the same stub script."""
    first = generator.generate_stub(channel, "Roman roads", (1500, 1800))
    second = generator.generate_stub(channel, "Roman roads", (1500, 1800))

    assert first == second
    assert first.sections[0].base_query == "Roman roads origins"


def test_extract_json_handles_fences_and_trailing_commas():
    """Fenced output with trailing commas still parses."""
    content = '```json\n{"title": "T", "items": [1, 2,],}\n```'

    assert extract_json(content) == {"title": "T", "items": [1, 2]}


def test_extract_json_rejects_garbage():
    """Unparseable or non-object output is an error."""
    with pytest.raises(ScriptGenerationError):
        extract_json("not json at all")
    with pytest.raises(ScriptGenerationError):
        extract_json("[1, 2]")
    with pytest.raises(ScriptGenerationError):
        extract_json("   ")


def test_parse_script_aliases_and_coercion():
    """Model field names are accepted and unknown enum values coerced."""
    data = dict(LLM_SCRIPT, duration=615)
    data["sections"] = [dict(LLM_SCRIPT["sections"][0], transition="crossfade", content_type="montage")]

    script = parse_script(json.dumps(data))

    section = script.sections[0]
    assert section.narration_text.startswith("Roman engineers")
    assert section.base_query == "roman road stones"
    assert section.transition_hint == TransitionType.FADE
    assert section.content_type == ContentType.EXPOSITION
    assert script.duration_seconds is None


def test_parse_script_requires_sections():
    """A script without sections is invalid."""
    with pytest.raises(ScriptGenerationError):
        parse_script(json.dumps({"title": "T", "hook": "h", "sections": []}))


def test_llm_generation(settings, logger, channel):
    """The LLM path sends the mode guidance and parses the reply."""
    settings.openai_api_key = "sk-test"
    settings.use_llm_for_scripts = True
    generator = ScriptGenerator(settings, logger)
    client = MagicMock()
    client.chat.completions.create.return_value = MagicMock(
        choices=[MagicMock(message=MagicMock(content=json.dumps(LLM_SCRIPT)))]
    )
    generator._client = client

    script = generator.generate(channel, "Roman roads", DurationMode.EXPAND, (1700, 2000))

    assert script.title == "The Road to Rome"
    kwargs = client.chat.completions.create.call_args[1]
    assert kwargs["response_format"] == {"type": "json_object"}
    prompt = kwargs["messages"][1]["content"]
    assert "1700-2000 words" in prompt
    assert "EXPAND" in prompt


def test_llm_failure_is_wrapped(settings, logger, channel):
    """Provider exceptions become ScriptGenerationError."""
    settings.openai_api_key = "sk-test"
    settings.use_llm_for_scripts = True
    generator = ScriptGenerator(settings, logger)
    generator._client = MagicMock()
    generator._client.chat.completions.create.side_effect = RuntimeError("503")

    with pytest.raises(ScriptGenerationError):
        generator.generate(channel, "Roman roads", DurationMode.NORMAL, (1500, 1800))
