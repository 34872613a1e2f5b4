"""Tests for the TTS client."""

from unittest.mock import MagicMock, patch

import pytest

from docfactory.core.errors import SynthesisError
from docfactory.services.tts_client import TTSClient


def test_provider_detection(settings, logger):
    """Auto mode picks the provider from the available credentials."""
    settings.tts_provider = "auto"
    assert TTSClient(settings, logger).provider == "stub"

    settings.openai_api_key = "sk-test"
    assert TTSClient(settings, logger).provider == "openai"

    settings.elevenlabs_api_key = "el-test"
    assert TTSClient(settings, logger).provider == "elevenlabs"

    settings.tts_provider = "stub"
    assert TTSClient(settings, logger).provider == "stub"


def test_empty_text_rejected(settings, logger, channel, tmp_path):
    """Blank narration cannot be synthesized."""
    with pytest.raises(SynthesisError):
        TTSClient(settings, logger).synthesize("   ", channel.voice, tmp_path / "n.mp3")


@patch("docfactory.services.tts_client.AudioSegment")
def test_stub_sizes_silence_from_word_count(mock_segment, settings, logger, channel, tmp_path):
    """150 words at 150 wpm give one minute of silence."""
    output = tmp_path / "narration.mp3"

    result = TTSClient(settings, logger).synthesize(" ".join(["word"] * 150), channel.voice, output)

    assert result == output
    mock_segment.silent.assert_called_once_with(duration=60000)
    mock_segment.silent.return_value.export.assert_called_once_with(str(output), format="mp3")


@patch("docfactory.services.tts_client.requests.post")
def test_elevenlabs_request(mock_post, settings, logger, channel, tmp_path):
    """ElevenLabs gets the channel voice settings and the audio is written."""
    settings.tts_provider = "elevenlabs"
    settings.elevenlabs_api_key = "el-test"
    mock_post.return_value = MagicMock(status_code=200, content=b"mp3-bytes")
    output = tmp_path / "narration.mp3"

    TTSClient(settings, logger).synthesize("Hello there.", channel.voice, output)

    assert output.read_bytes() == b"mp3-bytes"
    args, kwargs = mock_post.call_args
    assert args[0].endswith(f"/text-to-speech/{channel.voice.voice_id}")
    assert kwargs["headers"]["xi-api-key"] == "el-test"
    assert kwargs["json"]["model_id"] == settings.elevenlabs_model
    assert kwargs["json"]["voice_settings"]["stability"] == channel.voice.stability


@patch("docfactory.services.tts_client.requests.post")
def test_elevenlabs_error_status(mock_post, settings, logger, channel, tmp_path):
    """Non-200 responses raise SynthesisError."""
    settings.tts_provider = "elevenlabs"
    settings.elevenlabs_api_key = "el-test"
    mock_post.return_value = MagicMock(status_code=401, text="unauthorized")

    with pytest.raises(SynthesisError):
        TTSClient(settings, logger).synthesize("Hello there.", channel.voice, tmp_path / "n.mp3")


def test_long_text_is_chunked(settings, logger, channel, tmp_path):
    """Text over the chunk limit is synthesized in pieces and joined."""
    settings.tts_provider = "elevenlabs"
    settings.elevenlabs_api_key = "el-test"
    settings.tts_max_chunk_chars = 40
    client = TTSClient(settings, logger)
    text = "The first sentence is here. The second sentence follows. A third one ends it."

    with patch.object(TTSClient, "_generate_chunk") as mock_chunk, patch.object(TTSClient, "_join_parts") as mock_join:
        client.synthesize(text, channel.voice, tmp_path / "n.mp3")

    assert mock_chunk.call_count == 3
    parts, output = mock_join.call_args[0]
    assert len(parts) == 3
    assert output == tmp_path / "n.mp3"
