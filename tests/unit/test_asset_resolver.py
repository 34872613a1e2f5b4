"""Tests for the asset resolver."""

from pathlib import Path

import pytest

from docfactory.core.errors import AssetResolutionFailure
from docfactory.models.schemas import Beat, MediaCandidate, MediaType, Timeline
from docfactory.services.asset_library import AssetLibrary
from docfactory.services.asset_resolver import AssetResolver


class FakeProvider:
    """Media provider returning canned results keyed by (type, query)."""

    def __init__(self, results=None, fail_urls=()):
        self.results = results or {}
        self.fail_urls = set(fail_urls)
        self.search_calls = []
        self.download_calls = []

    def search(self, query, media_type, count):
        self.search_calls.append((media_type, query))
        return [
            MediaCandidate(
                provider_id=provider_id,
                media_type=media_type,
                url=f"https://media.test/{media_type.value}/{provider_id}",
                query=query,
            )
            for provider_id in self.results.get((media_type, query), [])
        ]

    def download(self, url, dest_path):
        self.download_calls.append(url)
        if url in self.fail_urls:
            raise AssetResolutionFailure(f"Download failed for {url}")
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_bytes(b"media")
        return dest_path


class FakeProbe:
    def __init__(self, durations=None):
        self.durations = durations or {}

    def try_probe(self, path):
        return self.durations.get(Path(path).name)


@pytest.fixture
def resolver_settings(settings):
    settings.max_parallel_api_calls = 1
    settings.video_width = 320
    settings.video_height = 180
    return settings


def make_timeline(*specs):
    beats = [
        Beat(label=f"beat-{i + 1}", preferred_type=media_type, target_duration_seconds=7.0, search_query=query)
        for i, (media_type, query) in enumerate(specs)
    ]
    return Timeline(beats=beats, narration_duration_seconds=7.0 * len(beats), seed=1)


def make_resolver(settings, logger, provider, probe=None):
    return AssetResolver(settings, logger, provider=provider, probe=probe or FakeProbe())


def test_one_search_per_distinct_key(resolver_settings, logger, channel, tmp_path):
    """Beats sharing a (type, query) share one search and rotate through its results."""
    provider = FakeProvider(
        {
            (MediaType.VIDEO, "storm"): ["v1", "v2"],
            (MediaType.IMAGE, "storm"): ["i1"],
        }
    )
    timeline = make_timeline(
        (MediaType.VIDEO, "storm"),
        (MediaType.VIDEO, "storm"),
        (MediaType.VIDEO, "storm"),
        (MediaType.IMAGE, "storm"),
    )

    resolved = make_resolver(resolver_settings, logger, provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert sorted(provider.search_calls) == [(MediaType.IMAGE, "storm"), (MediaType.VIDEO, "storm")]
    assert [r.asset_id for r in resolved] == [
        "pexels-video-v1",
        "pexels-video-v2",
        "pexels-video-v1",
        "pexels-image-i1",
    ]
    assert len(provider.download_calls) == 3
    assert resolved[0].media_path == resolved[2].media_path
    assert resolved[0].media_path.endswith("pexels-video-v1.mp4")


def test_video_falls_back_to_image(resolver_settings, logger, channel, tmp_path):
    """A video beat with no video results uses an image for the same query."""
    provider = FakeProvider({(MediaType.IMAGE, "rare"): ["i7"]})
    timeline = make_timeline((MediaType.VIDEO, "rare"))

    resolved = make_resolver(resolver_settings, logger, provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert resolved[0].media_type == MediaType.IMAGE
    assert resolved[0].asset_id == "pexels-image-i7"
    assert resolved[0].is_short is False
    assert resolved[0].beat.preferred_type == MediaType.VIDEO


def test_generic_query_fallback(resolver_settings, logger, channel, tmp_path):
    """With nothing for the beat's query the channel's generic query is used."""
    provider = FakeProvider({(MediaType.IMAGE, "ancient ruins history"): ["g1"]})
    timeline = make_timeline((MediaType.VIDEO, "nothing here"))

    resolved = make_resolver(resolver_settings, logger, provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert resolved[0].asset_id == "pexels-image-g1"
    assert resolved[0].query_used == "ancient ruins history"


def test_placeholder_when_nothing_found(resolver_settings, logger, channel, tmp_path):
    """A beat is never left without media."""
    provider = FakeProvider()
    timeline = make_timeline((MediaType.IMAGE, "lost atlantis"))

    resolved = make_resolver(resolver_settings, logger, provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert resolved[0].is_placeholder is True
    assert resolved[0].media_type == MediaType.IMAGE
    assert Path(resolved[0].media_path) == tmp_path / "work" / "placeholders" / "lost-atlantis.png"
    assert Path(resolved[0].media_path).exists()


def test_failed_download_uses_placeholder(resolver_settings, logger, channel, tmp_path):
    """A download failure affects only the beats using that asset."""
    provider = FakeProvider(
        {(MediaType.IMAGE, "storm"): ["i1", "i2"]},
        fail_urls={"https://media.test/image/i2"},
    )
    timeline = make_timeline((MediaType.IMAGE, "storm"), (MediaType.IMAGE, "storm"))

    resolved = make_resolver(resolver_settings, logger, provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert resolved[0].is_placeholder is False
    assert resolved[1].is_placeholder is True


def test_video_durations_are_probed(resolver_settings, logger, channel, tmp_path):
    """Short and unprobeable clips are flagged short."""
    provider = FakeProvider({(MediaType.VIDEO, "storm"): ["v1", "v2", "v3"]})
    probe = FakeProbe({"pexels-video-v1.mp4": 4.0, "pexels-video-v2.mp4": 12.0})
    timeline = make_timeline((MediaType.VIDEO, "storm"), (MediaType.VIDEO, "storm"), (MediaType.VIDEO, "storm"))

    resolved = make_resolver(resolver_settings, logger, provider, probe).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    assert [(r.source_duration_seconds, r.is_short) for r in resolved] == [
        (4.0, True),
        (12.0, False),
        (None, True),
    ]


def test_library_reused_across_jobs(resolver_settings, logger, channel, tmp_path):
    """A second job is served from the library without searching or downloading."""
    first_provider = FakeProvider({(MediaType.VIDEO, "storm"): ["v1", "v2"]})
    timeline = make_timeline((MediaType.VIDEO, "storm"), (MediaType.VIDEO, "storm"), (MediaType.VIDEO, "storm"))
    make_resolver(resolver_settings, logger, first_provider).resolve(
        timeline, channel, "proj1", work_dir=tmp_path / "work"
    )

    library = AssetLibrary(resolver_settings, logger)
    assert library.load()["pexels-video-v1"].usage_count == 2
    assert library.load()["pexels-video-v2"].queries == ["storm"]

    second_provider = FakeProvider()
    resolved = make_resolver(resolver_settings, logger, second_provider).resolve(
        make_timeline((MediaType.VIDEO, "Storm")), channel, "proj2", work_dir=tmp_path / "work2"
    )

    assert second_provider.search_calls == []
    assert second_provider.download_calls == []
    assert resolved[0].asset_id == "pexels-video-v2"


def test_progress_events(resolver_settings, logger, channel, tmp_path):
    """Search and download stages are reported."""
    provider = FakeProvider({(MediaType.IMAGE, "storm"): ["i1"]})
    events = []

    make_resolver(resolver_settings, logger, provider).resolve(
        make_timeline((MediaType.IMAGE, "storm")), channel, "proj1", work_dir=tmp_path / "work", progress=events.append
    )

    stages = [e.stage for e in events]
    assert "assets" in stages
    assert "download" in stages
    assert events[-1].percent == 100.0
