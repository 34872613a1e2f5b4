"""Tests for storage repository."""

import pytest

from docfactory.models.schemas import Beat, GenerationResult, MediaType, NarrationTrack, Timeline
from docfactory.storage.repository import ProjectRepository


@pytest.fixture
def repository(settings, logger):
    return ProjectRepository(settings, logger)


@pytest.fixture
def manifest(script):
    timeline = Timeline(
        beats=[Beat(label="hook-beat-1", preferred_type=MediaType.IMAGE, target_duration_seconds=612.0, search_query="q")],
        narration_duration_seconds=612.0,
        seed=7,
    )
    return GenerationResult(
        project_id="human-odyssey-test",
        channel_id="human-odyssey",
        topic="lost city",
        script=script.model_copy(update={"duration_seconds": 612.0}),
        narration=NarrationTrack(path="narration.mp3", duration_seconds=612.0),
        timeline=timeline,
        contract_satisfied=True,
    )


def test_save_and_load_script(repository, script):
    """Test saving and loading a script."""
    measured = script.model_copy(update={"duration_seconds": 612.0})

    path = repository.save_script("proj1", measured)
    loaded = repository.load_script("proj1")

    assert path.exists()
    assert loaded == measured
    assert loaded.duration_seconds == 612.0


def test_script_is_write_once(repository, script):
    """A stored script is never overwritten."""
    repository.save_script("proj1", script)

    with pytest.raises(FileExistsError):
        repository.save_script("proj1", script)


def test_save_and_load_manifest(repository, manifest):
    """Test saving and loading a manifest."""
    repository.save_manifest(manifest)

    loaded = repository.load_manifest("human-odyssey-test")

    assert loaded.project_id == "human-odyssey-test"
    assert loaded.timeline.seed == 7
    assert loaded.script.title == manifest.script.title


def test_manifest_is_write_once(repository, manifest):
    """A second manifest for the same project fails."""
    repository.save_manifest(manifest)

    with pytest.raises(FileExistsError):
        repository.save_manifest(manifest)


def test_missing_documents(repository):
    """Unknown ids load as None."""
    assert repository.load_script("nope") is None
    assert repository.load_manifest("nope") is None


def test_list_projects(repository, manifest):
    """Test listing projects."""
    repository.save_manifest(manifest)
    repository.save_manifest(manifest.model_copy(update={"project_id": "aaa-first"}))

    assert repository.list_projects() == ["aaa-first", "human-odyssey-test"]
