"""Script Generator - writes documentary scripts with OpenAI, or a deterministic stub."""

import json
import re
from typing import Any

from pydantic import ValidationError

from docfactory.core.config import Settings
from docfactory.core.errors import ScriptGenerationError
from docfactory.models.schemas import Channel, ContentType, DurationMode, EmotionalTone, Script, Section, TransitionType
from docfactory.utils.text_utils import word_count

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")
_TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")

SYSTEM_PROMPT = "You are a creative video script writer. Always respond with valid JSON only, no markdown formatting."

THEME_BRIEFS: dict[str, str] = {
    "sci-fi": (
        "Tone: high-energy speculative documentary. Pace: fast, curiosity-driven.\n"
        "Visual intent: futuristic concepts, science, simulations."
    ),
    "historical": (
        "Tone: cinematic documentary. Pace: steady, immersive.\n"
        "Visual intent: archaeology, maps, artifacts, landscapes."
    ),
    "mysterious": (
        "Tone: investigative thriller, objective but tense. Pace: controlled tension.\n"
        "Visual intent: archives, dossiers, surveillance, evidence."
    ),
}

DURATION_GUIDANCE: dict[DurationMode, str] = {
    DurationMode.NORMAL: "Keep the script naturally paced.",
    DurationMode.EXPAND: (
        "The previous audio was too short. EXPAND the script with richer detail, examples, "
        "and vivid pacing while staying coherent."
    ),
    DurationMode.COMPRESS: (
        "The previous audio was too long. COMPRESS the script by removing redundancy "
        "while keeping the strongest beats."
    ),
}

# Stub writer building blocks
_STUB_SECTION_PLAN = [
    (ContentType.EXPOSITION, EmotionalTone.CURIOUS, "origins"),
    (ContentType.EXPOSITION, EmotionalTone.NEUTRAL, "landscape"),
    (ContentType.TENSION, EmotionalTone.TENSE, "evidence"),
    (ContentType.REVEAL, EmotionalTone.DRAMATIC, "discovery"),
    (ContentType.CLIMAX, EmotionalTone.AWE, "turning point"),
    (ContentType.EXPOSITION, EmotionalTone.HOPEFUL, "legacy"),
]
_STUB_SENTENCES = [
    "Few people realize how much of {topic} still hides in plain sight.",
    "The record is fragmentary, but every surviving detail points in the same direction.",
    "To understand it, we have to look at the people who lived through it.",
    "Their choices shaped everything that came after, often in ways they never intended.",
    "Each new clue changes the picture a little more.",
    "What emerges is stranger, and more human, than the legend suggests.",
]


def extract_json(content: str) -> dict:
    """
    Parse a JSON object from a model response.

    Accepts fenced code blocks and trailing commas.

    Args:
        content: Raw model output

    Returns:
        Parsed JSON object

    Raises:
        ScriptGenerationError: If no JSON object can be parsed
    """
    if not content or not content.strip():
        raise ScriptGenerationError("Empty response from script model")

    match = _FENCE_PATTERN.search(content)
    json_str = (match.group(1) if match else content).strip()
    json_str = _TRAILING_COMMA_PATTERN.sub(r"\1", json_str)

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ScriptGenerationError(f"Invalid script JSON: {e} (starts with {json_str[:120]!r})") from e
    if not isinstance(parsed, dict):
        raise ScriptGenerationError("Script JSON must be an object")
    return parsed


def parse_script(content: str) -> Script:
    """
    Parse and validate a model response into a Script.

    Any duration the model reports is discarded; durations are always measured.

    Raises:
        ScriptGenerationError: If the response is not a valid script
    """
    data = extract_json(content)
    data.pop("duration", None)
    data.pop("duration_seconds", None)
    try:
        return Script.model_validate(data)
    except ValidationError as e:
        raise ScriptGenerationError(f"Script failed validation: {e}") from e


class ScriptGenerator:
    """Generates scripts for (channel, topic, mode, word band)."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize script generator.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None
        self.use_llm = bool(settings.use_llm_for_scripts and settings.openai_api_key)
        if not self.use_llm:
            self.logger.info("Script LLM not configured, using stub script writer")

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            if not self.settings.openai_api_key:
                raise ScriptGenerationError("OpenAI API key not configured")
            self._client = OpenAI(api_key=self.settings.openai_api_key)
        return self._client

    def generate(
        self,
        channel: Channel,
        topic: str,
        mode: DurationMode = DurationMode.NORMAL,
        word_count_range: tuple[int, int] = (1500, 1800),
    ) -> Script:
        """
        Generate a full script.

        Args:
            channel: Target channel
            topic: Documentary topic
            mode: normal, expand or compress
            word_count_range: Inclusive target word band

        Returns:
            Validated Script

        Raises:
            ScriptGenerationError: If the provider fails or returns an invalid script
        """
        if not self.use_llm:
            return self.generate_stub(channel, topic, word_count_range)

        prompt = self.build_prompt(channel, topic, mode, word_count_range)
        self.logger.info(f"🤖 Calling OpenAI {self.settings.openai_model} for: {topic} ({mode.value})")
        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.openai_model,
                max_tokens=4000,
                temperature=0.8,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except ScriptGenerationError:
            raise
        except Exception as e:
            raise ScriptGenerationError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ScriptGenerationError("No response from OpenAI")
        self.logger.info(f"✅ Received response ({len(content)} chars)")
        script = parse_script(content)
        self.logger.info(f"Script '{script.title}': {len(script.sections)} sections")
        return script

    def build_prompt(
        self,
        channel: Channel,
        topic: str,
        mode: DurationMode,
        word_count_range: tuple[int, int],
    ) -> str:
        low, high = word_count_range
        brief = THEME_BRIEFS.get(channel.theme, THEME_BRIEFS["sci-fi"])
        image_share = round(channel.visual_mix.image * 100)
        transitions = ", ".join(t.value for t in TransitionType)
        content_types = ", ".join(c.value for c in ContentType)
        tones = ", ".join(t.value for t in EmotionalTone)

        return f"""You are the lead writer for the documentary channel "{channel.name}" ({channel.description}).

Topic: "{topic}"

{brief}
Prefer {image_share}% images / {100 - image_share}% short video beats.

Hard constraints:
- Output MUST be valid JSON only.
- Total length: {low}-{high} words (aim for 9-12 minutes of narration).
- Hook must be punchy and about ~7 seconds.
- Provide 6-8 sections, each with a distinct visual search query.
- Each section narration must be written in 2-4 short paragraphs, not a single block.
- Prefer concrete nouns for visuals (locations, artifacts, devices, documents, landscapes, maps, diagrams).
- Avoid on-screen intro fluff; jump straight into content.

Duration calibration instruction:
{DURATION_GUIDANCE[mode]}

Format your response as JSON:
{{
  "title": "Compelling title",
  "hook": "~7 seconds narration",
  "sections": [
    {{
      "narration": "Section narration (2-4 short paragraphs)",
      "search_query": "Concrete keywords for visuals",
      "transition": "one of: {transitions}",
      "content_type": "one of: {content_types}",
      "emotional_tone": "one of: {tones}",
      "is_micro_hook": false,
      "duration": 90
    }}
  ],
  "conclusion": "Final thoughts"
}}"""

    def generate_stub(self, channel: Channel, topic: str, word_count_range: tuple[int, int]) -> Script:
        """
        Deterministic offline script whose word count is the middle of the band.

        Args:
            channel: Target channel
            topic: Documentary topic
            word_count_range: Inclusive target word band

        Returns:
            Script with exactly (low + high) // 2 words across hook, sections and conclusion
        """
        target = sum(word_count_range) // 2
        hook_words = 18
        conclusion_words = 60
        section_count = len(_STUB_SECTION_PLAN)
        body_words = max(section_count, target - hook_words - conclusion_words)
        per_section, extra = divmod(body_words, section_count)

        hook = self._stub_text(f"What really happened with {topic}? The answer begins somewhere nobody expected.", hook_words)
        sections = []
        for index, (content_type, tone, angle) in enumerate(_STUB_SECTION_PLAN):
            words = per_section + (1 if index < extra else 0)
            sections.append(
                Section(
                    narration_text=self._stub_text(" ".join(_STUB_SENTENCES).format(topic=topic), words),
                    base_query=f"{topic} {angle}",
                    transition_hint=TransitionType.DISSOLVE if index % 2 else TransitionType.FADE,
                    is_micro_hook=content_type == ContentType.REVEAL,
                    content_type=content_type,
                    emotional_tone=tone,
                    target_duration_seconds=round(words / 150 * 60, 1),
                )
            )
        conclusion = self._stub_text(
            f"In the end, {topic} tells us as much about ourselves as about the past. " + " ".join(_STUB_SENTENCES[1:]),
            conclusion_words,
        )
        script = Script(title=f"The Untold Story of {topic}".strip(), hook=hook, sections=sections, conclusion=conclusion)
        self.logger.info(f"Stub script '{script.title}' ({target} words) for channel {channel.id}")
        return script

    @staticmethod
    def _stub_text(seed_text: str, words: int) -> str:
        source = seed_text.split()
        out: list[str] = []
        while len(out) < words:
            out.extend(source)
        text = " ".join(out[:words])
        if not text.endswith((".", "!", "?")):
            text += "."
        return text


def script_word_count(script: Script) -> int:
    """Words across hook, sections and conclusion."""
    return word_count(script.hook) + sum(word_count(s.narration_text) for s in script.sections) + word_count(
        script.conclusion
    )
