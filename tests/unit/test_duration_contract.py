"""Tests for the duration contract resolver."""

from pathlib import Path

import pytest

from docfactory.core.errors import ContractUnsatisfied, ProbeFailure
from docfactory.models.schemas import DurationMode
from docfactory.services.duration_contract import DurationContractResolver


class FakeWriter:
    def __init__(self, script_factory):
        self.script_factory = script_factory
        self.calls = []

    def generate(self, channel, topic, mode, word_count_range):
        self.calls.append((mode, tuple(word_count_range)))
        return self.script_factory(title=f"Attempt {len(self.calls)}")


class FakeSynthesizer:
    def __init__(self):
        self.texts = []

    def synthesize(self, text, voice, output_path):
        self.texts.append(text)
        path = Path(output_path)
        path.write_bytes(b"audio")
        return path


class FakeProbe:
    def __init__(self, durations):
        self.durations = list(durations)
        self.paths = []

    def probe(self, path):
        self.paths.append(Path(path))
        return self.durations.pop(0)


class FailingProbe:
    def probe(self, path):
        raise ProbeFailure(path, "no audio stream")


def make_resolver(settings, logger, durations, script_factory):
    writer = FakeWriter(script_factory)
    synthesizer = FakeSynthesizer()
    probe = FakeProbe(durations)
    resolver = DurationContractResolver(settings, logger, writer, synthesizer, probe)
    return resolver, writer, synthesizer, probe


def test_first_attempt_accepted(settings, logger, channel, tmp_path, script_factory):
    """A narration inside the window ends negotiation immediately."""
    resolver, writer, _, _ = make_resolver(settings, logger, [600.0], script_factory)

    result = resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert result.satisfied is True
    assert len(result.attempts) == 1
    assert writer.calls == [(DurationMode.NORMAL, (1500, 1800))]
    assert result.script.duration_seconds == 600.0


def test_too_short_retries_in_expand_mode(settings, logger, channel, tmp_path, script_factory):
    """480s triggers an expand attempt, which lands at 612s."""
    resolver, writer, _, _ = make_resolver(settings, logger, [480.0, 612.0], script_factory)

    result = resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert result.satisfied is True
    assert [a.mode for a in result.attempts] == [DurationMode.NORMAL, DurationMode.EXPAND]
    assert writer.calls[1] == (DurationMode.EXPAND, (1700, 2000))
    assert result.script.title == "Attempt 2"
    assert result.script.duration_seconds == 612.0
    assert result.narration.duration_seconds == 612.0
    assert result.narration.path.endswith("proj1-narration-2.mp3")


def test_too_long_retries_in_compress_mode(settings, logger, channel, tmp_path, script_factory):
    """An over-long narration switches to the compress band."""
    resolver, writer, _, _ = make_resolver(settings, logger, [800.0, 650.0], script_factory)

    result = resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert result.satisfied is True
    assert writer.calls[1] == (DurationMode.COMPRESS, (1350, 1550))


def test_exhausted_attempts_return_last(settings, logger, channel, tmp_path, script_factory):
    """After three misses the last attempt is returned as best effort."""
    resolver, writer, _, _ = make_resolver(settings, logger, [480.0, 500.0, 530.0], script_factory)

    result = resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert result.satisfied is False
    assert len(result.attempts) == 3
    assert [a.mode for a in result.attempts] == [DurationMode.NORMAL, DurationMode.EXPAND, DurationMode.EXPAND]
    assert not any(a.accepted for a in result.attempts)
    assert result.script.duration_seconds == 530.0
    assert result.script.title == "Attempt 3"


def test_strict_mode_raises(settings, logger, channel, tmp_path, script_factory):
    """Strict callers get ContractUnsatisfied."""
    resolver, _, _, _ = make_resolver(settings, logger, [480.0, 500.0, 530.0], script_factory)

    with pytest.raises(ContractUnsatisfied) as exc_info:
        resolver.resolve(channel, "lost city", "proj1", tmp_path, strict=True)

    assert exc_info.value.attempts == 3
    assert exc_info.value.last_duration == 530.0


def test_each_attempt_writes_its_own_file(settings, logger, channel, tmp_path, script_factory):
    """Narration files are named per attempt."""
    resolver, _, _, probe = make_resolver(settings, logger, [480.0, 612.0], script_factory)

    resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert [p.name for p in probe.paths] == ["proj1-narration-1.mp3", "proj1-narration-2.mp3"]
    assert all(p.exists() for p in probe.paths)


def test_synthesized_text_includes_branding(settings, logger, channel, tmp_path, script_factory):
    """The narration carries the sting and CTAs."""
    resolver, _, synthesizer, _ = make_resolver(settings, logger, [600.0], script_factory)

    result = resolver.resolve(channel, "lost city", "proj1", tmp_path)

    assert "The Human Odyssey presents" in synthesizer.texts[0]
    assert result.narration_text == synthesizer.texts[0]


def test_probe_failure_propagates(settings, logger, channel, tmp_path, script_factory):
    """An unmeasurable narration aborts the job."""
    resolver = DurationContractResolver(settings, logger, FakeWriter(script_factory), FakeSynthesizer(), FailingProbe())

    with pytest.raises(ProbeFailure):
        resolver.resolve(channel, "lost city", "proj1", tmp_path)


def test_progress_reports_attempts(settings, logger, channel, tmp_path, script_factory):
    """Script and audio progress events carry the attempt number."""
    resolver, _, _, _ = make_resolver(settings, logger, [480.0, 612.0], script_factory)
    events = []

    resolver.resolve(channel, "lost city", "proj1", tmp_path, progress=events.append)

    assert [(e.stage, e.attempt) for e in events] == [
        ("script", 1),
        ("audio", 1),
        ("script", 2),
        ("audio", 2),
    ]


def test_window_bounds_are_inclusive(settings, logger, script_factory):
    """540s and 720s are both accepted."""
    resolver = DurationContractResolver(settings, logger, FakeWriter(script_factory), FakeSynthesizer(), FakeProbe([]))

    assert resolver.accepts(540.0)
    assert resolver.accepts(720.0)
    assert not resolver.accepts(539.9)
    assert resolver.next_mode(600.0, DurationMode.EXPAND) == DurationMode.EXPAND
