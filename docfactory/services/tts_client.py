"""TTS (Text-to-Speech) client abstraction for multiple providers."""

import tempfile
from pathlib import Path
from typing import Any

import requests
from pydub import AudioSegment

from docfactory.core.config import Settings
from docfactory.core.errors import SynthesisError
from docfactory.models.schemas import VoiceConfig
from docfactory.utils.rate_limiter import get_elevenlabs_limiter
from docfactory.utils.text_utils import estimate_spoken_duration, split_into_chunks

PROVIDERS = ("elevenlabs", "openai", "stub")


class TTSClient:
    """TTS client supporting ElevenLabs, OpenAI and a silent stub provider."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize TTS client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.provider = self._detect_provider()
        self.rate_limiter = get_elevenlabs_limiter()

    def _detect_provider(self) -> str:
        """Detect which TTS provider to use based on settings and available credentials."""
        configured = (self.settings.tts_provider or "auto").lower()
        if configured in PROVIDERS:
            return configured
        if self.settings.elevenlabs_api_key:
            return "elevenlabs"
        elif self.settings.openai_api_key:
            return "openai"
        else:
            return "stub"

    def synthesize(self, text: str, voice: VoiceConfig, output_path: Path) -> Path:
        """
        Synthesize narration text to an audio file.

        Long text is split at sentence boundaries and the pieces are joined.

        Args:
            text: Narration text
            voice: Channel voice configuration
            output_path: Destination file (format taken from the suffix)

        Returns:
            Path of the written file

        Raises:
            SynthesisError: If the provider fails
        """
        if not text or not text.strip():
            raise SynthesisError("Text cannot be empty")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Generating speech using {self.provider} provider for {len(text)} characters...")

        if self.provider == "stub":
            self._generate_stub(text, output_path)
            self.logger.info(f"Speech generated: {output_path}")
            return output_path

        chunks = split_into_chunks(text, self.settings.tts_max_chunk_chars)
        if len(chunks) == 1:
            self._generate_chunk(chunks[0], voice, output_path)
        else:
            self.logger.info(f"Splitting narration into {len(chunks)} chunks")
            with tempfile.TemporaryDirectory(prefix="narration-") as tmp_dir:
                parts = []
                for index, chunk in enumerate(chunks):
                    part_path = Path(tmp_dir) / f"part-{index:03d}.mp3"
                    self._generate_chunk(chunk, voice, part_path)
                    parts.append(part_path)
                self._join_parts(parts, output_path)

        self.logger.info(f"Speech generated: {output_path}")
        return output_path

    def _generate_chunk(self, text: str, voice: VoiceConfig, output_path: Path) -> None:
        if self.provider == "elevenlabs":
            self._generate_elevenlabs(text, voice, output_path)
        else:
            self._generate_openai(text, voice, output_path)

    def _join_parts(self, parts: list[Path], output_path: Path) -> None:
        try:
            combined = AudioSegment.empty()
            for part in parts:
                combined += AudioSegment.from_file(str(part))
            combined.export(str(output_path), format=output_path.suffix.lstrip(".") or "mp3")
        except Exception as e:
            raise SynthesisError(f"Could not join narration chunks: {e}") from e

    def _generate_elevenlabs(self, text: str, voice: VoiceConfig, output_path: Path) -> None:
        """Generate speech using ElevenLabs API."""
        if not self.settings.elevenlabs_api_key:
            raise SynthesisError("ElevenLabs API key not configured")
        if not voice.voice_id:
            raise SynthesisError("ElevenLabs voice ID not configured")

        url = f"https://api.elevenlabs.io/v1/text-to-speech/{voice.voice_id}"

        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }

        data = {
            "text": text,
            "model_id": self.settings.elevenlabs_model,
            "voice_settings": {
                "stability": voice.stability,
                "similarity_boost": voice.similarity_boost,
                "style": voice.style,
                "use_speaker_boost": True,
            },
        }

        waited = self.rate_limiter.wait_if_needed()
        if waited > 0:
            self.logger.debug(f"ElevenLabs rate limit: waited {waited:.2f}s")

        try:
            response = requests.post(url, json=data, headers=headers, timeout=120)
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Network error calling ElevenLabs API: {e}") from e

        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API returned status {response.status_code}: {response.text[:300]}")

        with open(output_path, "wb") as f:
            f.write(response.content)

    def _generate_openai(self, text: str, voice: VoiceConfig, output_path: Path) -> None:
        """Generate speech using OpenAI TTS API."""
        from openai import OpenAI

        if not self.settings.openai_api_key:
            raise SynthesisError("OpenAI API key not configured")

        client = OpenAI(api_key=self.settings.openai_api_key)

        try:
            response = client.audio.speech.create(
                model="tts-1",
                voice=voice.openai_voice,
                input=text,
            )
            response.write_to_file(str(output_path))
        except Exception as e:
            raise SynthesisError(f"OpenAI TTS API error: {e}") from e

    def _generate_stub(self, text: str, output_path: Path) -> None:
        """
        Generate silent stub audio sized from the speaking rate.

        Used for offline runs when no TTS provider is configured.
        """
        self.logger.warning("Using stub TTS - generating silent audio placeholder")
        duration_seconds = max(1.0, estimate_spoken_duration(text, self.settings.tts_stub_words_per_minute))
        try:
            silent_audio = AudioSegment.silent(duration=int(duration_seconds * 1000))
            silent_audio.export(str(output_path), format=output_path.suffix.lstrip(".") or "mp3")
        except Exception as e:
            raise SynthesisError(f"Could not create stub audio: {e}") from e
