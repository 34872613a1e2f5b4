"""Shared pytest fixtures and configuration."""

import pytest

from docfactory.core.channels import get_channel
from docfactory.core.config import Settings
from docfactory.core.logging_config import get_logger
from docfactory.models.schemas import ContentType, Script, Section, TransitionType


@pytest.fixture
def settings(tmp_path):
    """Create test settings pointing every directory at tmp_path."""
    settings = Settings()
    settings.output_dir = str(tmp_path / "output")
    settings.storage_path = str(tmp_path / "storage")
    settings.asset_library_path = str(tmp_path / "assets" / "library.json")
    settings.download_dir = str(tmp_path / "assets" / "downloads")
    settings.music_dir = str(tmp_path / "assets" / "music")
    settings.openai_api_key = None
    settings.elevenlabs_api_key = None
    settings.pexels_api_key = None
    settings.use_llm_for_scripts = False
    settings.tts_provider = "stub"
    settings.render_hard_timeout_seconds = None
    settings.render_advisory_timeout_seconds = None
    return settings


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def channel():
    """The historical channel (6-8s beats, 10% video)."""
    return get_channel("human-odyssey")


def make_words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


def make_script(
    section_words: tuple = (200, 200, 200),
    hook_words: int = 20,
    conclusion_words: int = 60,
    title: str = "The Lost City",
) -> Script:
    """Build a script with exact word counts per part."""
    sections = [
        Section(
            narration_text=make_words(words),
            base_query=f"ancient city ruins {i + 1}",
            transition_hint=TransitionType.DISSOLVE,
            content_type=ContentType.EXPOSITION,
        )
        for i, words in enumerate(section_words)
    ]
    return Script(
        title=title,
        hook=make_words(hook_words, "hook"),
        sections=sections,
        conclusion=make_words(conclusion_words, "end"),
    )


@pytest.fixture
def script():
    """A three-section script."""
    return make_script()


@pytest.fixture
def script_factory():
    """Build scripts with custom word counts."""
    return make_script
