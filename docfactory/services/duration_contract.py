"""Duration Contract Resolver - regenerates script and narration until the length fits."""

from pathlib import Path
from typing import Any, Optional, Protocol

from docfactory.core.config import Settings
from docfactory.core.errors import ContractUnsatisfied
from docfactory.core.progress import STAGE_AUDIO, STAGE_SCRIPT, ProgressSink, emit_progress
from docfactory.models.schemas import (
    Channel,
    ContractAttempt,
    ContractResult,
    DurationMode,
    NarrationTrack,
    Script,
    VoiceConfig,
)
from docfactory.services.narrative import build_narration_text
from docfactory.utils.text_utils import format_timestamp, word_count


class ScriptWriter(Protocol):
    def generate(
        self, channel: Channel, topic: str, mode: DurationMode, word_count_range: tuple[int, int]
    ) -> Script: ...


class SpeechSynthesizer(Protocol):
    def synthesize(self, text: str, voice: VoiceConfig, output_path: Path) -> Path: ...


class DurationProber(Protocol):
    def probe(self, path: Any) -> float: ...


class DurationContractResolver:
    """Bounded regenerate-and-measure loop over the modes normal, expand and compress."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        script_writer: ScriptWriter,
        synthesizer: SpeechSynthesizer,
        probe: DurationProber,
    ):
        """
        Initialize the resolver.

        Args:
            settings: Application settings
            logger: Logger instance
            script_writer: Generates a script for (channel, topic, mode, word band)
            synthesizer: Synthesizes narration text to a file
            probe: Measures the synthesized file
        """
        self.settings = settings
        self.logger = logger
        self.script_writer = script_writer
        self.synthesizer = synthesizer
        self.probe = probe
        self.min_seconds = settings.contract_min_seconds
        self.max_seconds = settings.contract_max_seconds
        self.max_attempts = max(1, settings.contract_max_attempts)

    def word_band(self, mode: DurationMode) -> tuple[int, int]:
        """Target word-count band for a mode."""
        if mode == DurationMode.EXPAND:
            return tuple(self.settings.expand_word_count)
        if mode == DurationMode.COMPRESS:
            return tuple(self.settings.compress_word_count)
        return tuple(self.settings.normal_word_count)

    def next_mode(self, duration_seconds: float, current: DurationMode) -> DurationMode:
        """
        Choose the mode for the next attempt from a measured duration.

        Args:
            duration_seconds: Measured narration duration of the last attempt
            current: Mode of the last attempt

        Returns:
            EXPAND when too short, COMPRESS when too long, otherwise `current`
        """
        if duration_seconds < self.min_seconds:
            return DurationMode.EXPAND
        if duration_seconds > self.max_seconds:
            return DurationMode.COMPRESS
        return current

    def accepts(self, duration_seconds: float) -> bool:
        return self.min_seconds <= duration_seconds <= self.max_seconds

    def resolve(
        self,
        channel: Channel,
        topic: str,
        project_id: str,
        output_dir: Path,
        progress: Optional[ProgressSink] = None,
        strict: bool = False,
    ) -> ContractResult:
        """
        Negotiate a narration duration inside [min_seconds, max_seconds].

        Each attempt regenerates the whole script and narration. When no attempt
        lands in the window the last attempt is returned. The measured duration
        is always written back onto the returned script.

        Args:
            channel: Channel (voice, branding, theme)
            topic: Documentary topic
            project_id: Project identifier used to name narration files
            output_dir: Directory for narration files (one file per attempt)
            progress: Optional progress sink
            strict: Raise ContractUnsatisfied instead of returning a best-effort result

        Returns:
            ContractResult with the accepted (or last) attempt

        Raises:
            ProbeFailure: If a narration file cannot be measured
            ContractUnsatisfied: If strict and no attempt was accepted
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        mode = DurationMode.NORMAL
        attempts: list[ContractAttempt] = []
        last: Optional[tuple[Script, str, Path, float]] = None

        for attempt in range(1, self.max_attempts + 1):
            band = self.word_band(mode)
            self.logger.info(f"Attempt {attempt}/{self.max_attempts} ({mode.value}, {band[0]}-{band[1]} words)")
            emit_progress(
                progress,
                STAGE_SCRIPT,
                f"Attempt {attempt}/{self.max_attempts}: writing script ({mode.value})",
                attempt=attempt,
            )
            script = self.script_writer.generate(channel, topic, mode, band)
            narration_text = build_narration_text(channel, script)

            narration_path = output_dir / f"{project_id}-narration-{attempt}.mp3"
            emit_progress(
                progress,
                STAGE_AUDIO,
                f"Attempt {attempt}/{self.max_attempts}: synthesizing {word_count(narration_text)} words",
                attempt=attempt,
            )
            narration_path = Path(self.synthesizer.synthesize(narration_text, channel.voice, narration_path))
            duration = self.probe.probe(narration_path)

            accepted = self.accepts(duration)
            attempts.append(
                ContractAttempt(
                    attempt=attempt,
                    mode=mode,
                    word_count_range=band,
                    script_title=script.title,
                    word_count=word_count(narration_text),
                    narration_path=str(narration_path),
                    duration_seconds=duration,
                    accepted=accepted,
                )
            )
            last = (script, narration_text, narration_path, duration)
            self.logger.info(
                f"Attempt {attempt}: narration {format_timestamp(duration)} ({duration:.2f}s) "
                f"{'accepted' if accepted else 'outside window'}"
            )
            if accepted:
                break
            mode = self.next_mode(duration, mode)

        script, narration_text, narration_path, duration = last
        satisfied = attempts[-1].accepted

        if not satisfied:
            failure = ContractUnsatisfied(len(attempts), duration, self.min_seconds, self.max_seconds)
            if strict:
                raise failure
            self.logger.warning(f"{failure}; using the last attempt")

        return ContractResult(
            script=script.model_copy(update={"duration_seconds": duration}),
            narration=NarrationTrack(path=str(narration_path), duration_seconds=duration),
            narration_text=narration_text,
            attempts=attempts,
            satisfied=satisfied,
        )
