"""Documentary pipeline orchestrator - topic → script/narration → timeline → assets → video."""

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Callable, Optional

from docfactory.core.channels import get_channel, list_channels
from docfactory.core.config import Settings, settings
from docfactory.core.errors import PipelineStageError, ScriptGenerationError
from docfactory.core.logging_config import get_logger, setup_logging
from docfactory.core.progress import (
    STAGE_ASSETS,
    STAGE_AUDIO,
    STAGE_DONE,
    STAGE_RENDER,
    STAGE_SCRIPT,
    STAGE_TIMELINE,
    ProgressEvent,
    ProgressSink,
    emit_progress,
)
from docfactory.models.schemas import (
    Channel,
    GenerationOptions,
    GenerationResult,
    ShortVideoStrategy,
    Timeline,
)
from docfactory.services.asset_resolver import AssetResolver
from docfactory.services.beat_allocator import BeatAllocator
from docfactory.services.duration_contract import DurationContractResolver
from docfactory.services.duration_probe import DurationProbe
from docfactory.services.music_mixer import MusicLibrary
from docfactory.services.render_engine import RenderEngine
from docfactory.services.render_graph import RenderGraphBuilder, build_branding_windows
from docfactory.services.script_generator import ScriptGenerator
from docfactory.services.tts_client import TTSClient
from docfactory.storage.repository import ProjectRepository
from docfactory.utils.error_handler import format_error_message, get_stage_suggestion
from docfactory.utils.io_utils import new_project_id
from docfactory.utils.text_utils import format_timestamp


class DocumentaryPipeline:
    """
    Runs one generation job end to end.

    Collaborators can be injected (tests pass fakes); anything omitted is
    built from settings. Jobs share no mutable state apart from the asset
    library and the project store, so several pipelines may run at once.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Optional[Any] = None,
        script_writer: Optional[Any] = None,
        synthesizer: Optional[Any] = None,
        probe: Optional[Any] = None,
        asset_resolver: Optional[AssetResolver] = None,
        render_engine: Optional[Any] = None,
        repository: Optional[ProjectRepository] = None,
        music_library: Optional[MusicLibrary] = None,
    ):
        self.settings = settings
        self.logger = logger or get_logger(__name__)
        self.script_writer = script_writer or ScriptGenerator(settings, self.logger)
        self.synthesizer = synthesizer or TTSClient(settings, self.logger)
        self.probe = probe or DurationProbe(settings, self.logger)
        self._asset_resolver = asset_resolver
        self.render_engine = render_engine or RenderEngine(settings, self.logger)
        self.repository = repository or ProjectRepository(settings, self.logger)
        self.music_library = music_library or MusicLibrary(settings, self.logger)

    @property
    def asset_resolver(self) -> AssetResolver:
        # Built on first use so dry runs never touch the media provider
        if self._asset_resolver is None:
            self._asset_resolver = AssetResolver(self.settings, self.logger, probe=self.probe)
        return self._asset_resolver

    def generate(
        self,
        channel_id: str,
        topic: str,
        options: Optional[GenerationOptions] = None,
        progress: Optional[ProgressSink] = None,
    ) -> GenerationResult:
        """
        Generate one documentary.

        Args:
            channel_id: Channel id (e.g. 'human-odyssey')
            topic: Documentary topic
            options: Job options
            progress: Optional progress sink

        Returns:
            The saved manifest

        Raises:
            PipelineStageError: Wrapping the failure with its stage and kind
        """
        options = options or GenerationOptions()
        channel = self._stage(STAGE_SCRIPT, self._validate_inputs, channel_id, topic)
        project_id = options.project_id or new_project_id(channel.id)
        job_logger = get_logger(__name__, project_id=project_id, channel_id=channel.id)
        work_dir = Path(self.settings.output_dir) / project_id
        start_time = time.time()

        job_logger.info("=" * 60)
        job_logger.info(f"Documentary: '{topic}' on {channel.name} ({project_id})")
        job_logger.info("=" * 60)

        # Step 1: duration contract (script + narration)
        resolver = DurationContractResolver(
            self.settings, job_logger, self.script_writer, self.synthesizer, self.probe
        )
        try:
            contract = resolver.resolve(
                channel, topic, project_id, work_dir, progress=progress, strict=options.strict_contract
            )
        except ScriptGenerationError as e:
            raise PipelineStageError(STAGE_SCRIPT, e) from e
        except Exception as e:
            raise PipelineStageError(STAGE_AUDIO, e) from e

        narration = contract.narration
        self._stage(STAGE_SCRIPT, self.repository.save_script, project_id, contract.script)
        job_logger.info(
            f"Narration {format_timestamp(narration.duration_seconds)} ({narration.duration_seconds:.2f}s) "
            f"after {len(contract.attempts)} attempt(s), contract {'met' if contract.satisfied else 'NOT met'}"
        )

        # Step 2: beat allocation
        allocator = BeatAllocator(self.settings, job_logger)
        timeline = self._stage(
            STAGE_TIMELINE,
            allocator.allocate,
            channel,
            topic,
            contract.script,
            narration.duration_seconds,
            min_video_beats=options.min_video_beats,
            progress=progress,
        )

        result = GenerationResult(
            project_id=project_id,
            channel_id=channel.id,
            topic=topic,
            script=contract.script,
            narration=narration,
            timeline=timeline,
            contract_satisfied=contract.satisfied,
            attempts=contract.attempts,
            dry_run=options.dry_run,
        )

        if options.dry_run:
            job_logger.info("Dry run: stopping after timeline allocation")
            self._stage(STAGE_DONE, self.repository.save_manifest, result)
            emit_progress(progress, STAGE_DONE, "Dry run complete", percent=100.0)
            return result

        # Step 3: assets
        resolved = self._stage(
            STAGE_ASSETS, self.asset_resolver.resolve, timeline, channel, project_id, work_dir, progress
        )

        # Step 4: render
        music_path = self._stage(STAGE_RENDER, self._select_music, channel, narration.duration_seconds, options)
        windows = build_branding_windows(channel, narration.duration_seconds)
        builder = RenderGraphBuilder(self.settings, job_logger)
        program = self._stage(
            STAGE_RENDER,
            builder.build,
            resolved,
            narration,
            windows=windows,
            channel=channel,
            music_path=music_path,
            color_grade=timeline.color_grade,
            short_video_strategy=options.short_video_strategy,
            progress=progress,
        )
        output_path = work_dir / f"{project_id}.mp4"
        video_path = self._stage(STAGE_RENDER, self.render_engine.run, program, output_path, progress)

        rendered_duration = self._verify_render(video_path, narration.duration_seconds, job_logger)

        result = result.model_copy(
            update={
                "video_path": str(video_path),
                "rendered_duration_seconds": rendered_duration,
                "music_path": str(music_path) if music_path else None,
            }
        )
        self._stage(STAGE_DONE, self.repository.save_manifest, result)

        job_logger.info("=" * 60)
        job_logger.info(f"✅ Video ready in {time.time() - start_time:.1f}s: {video_path}")
        job_logger.info("=" * 60)
        emit_progress(progress, STAGE_DONE, f"Video ready: {video_path}", percent=100.0)
        return result

    @staticmethod
    def _stage(stage: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PipelineStageError:
            raise
        except Exception as e:
            raise PipelineStageError(stage, e) from e

    @staticmethod
    def _validate_inputs(channel_id: str, topic: str) -> Channel:
        if not topic or not topic.strip():
            raise ValueError("Topic cannot be empty")
        return get_channel(channel_id)

    def _select_music(self, channel: Channel, duration: float, options: GenerationOptions) -> Optional[Path]:
        enabled = self.settings.music_enabled if options.music_enabled is None else options.music_enabled
        if not enabled:
            return None
        if options.music_path:
            path = Path(options.music_path)
            if not path.exists():
                raise FileNotFoundError(f"Music file not found: {path}")
            return path
        return self.music_library.select_track(channel.theme, duration, self.probe.try_probe)

    def _verify_render(self, video_path: Path, narration_duration: float, job_logger: Any) -> Optional[float]:
        rendered = self.probe.try_probe(video_path)
        if rendered is None:
            job_logger.warning(f"Could not probe rendered video {video_path}")
            return None
        frame = 1.0 / self.settings.video_fps
        if abs(rendered - narration_duration) > frame:
            job_logger.warning(
                f"Rendered duration {rendered:.3f}s differs from narration {narration_duration:.3f}s "
                f"by more than one frame"
            )
        else:
            job_logger.info(f"Rendered duration {rendered:.3f}s matches narration")
        return rendered


def format_beat_sheet(timeline: Timeline) -> str:
    """Render a timeline as a plain-text beat sheet."""
    lines = [
        f"{len(timeline.beats)} beats, {timeline.video_beat_count} video, "
        f"{timeline.total_duration_seconds:.2f}s for {timeline.narration_duration_seconds:.2f}s narration"
    ]
    start = 0.0
    for i, beat in enumerate(timeline.beats, 1):
        end = start + beat.target_duration_seconds
        lines.append(
            f"{i:>4}. {start:8.2f}s-{end:8.2f}s  {beat.preferred_type.value:<5}  "
            f"{beat.label:<24} {beat.effect.value:<18} {beat.search_query}"
        )
        start = end
    return "\n".join(lines)


def main():
    """Main entrypoint for documentary generation."""
    channel_ids = [channel.id for channel in list_channels()]
    parser = argparse.ArgumentParser(
        description="Documentary Factory - narrated documentary generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Channels: {', '.join(channel_ids)}",
    )
    parser.add_argument("--channel", type=str, required=True, choices=channel_ids, help="Channel id")
    parser.add_argument("--topic", type=str, required=True, help="Documentary topic")
    parser.add_argument(
        "--min-video-beats",
        type=int,
        default=0,
        help="Promote image beats to video until at least this many exist (default: 0)",
    )
    parser.add_argument(
        "--short-video-strategy",
        type=str,
        default=None,
        choices=[s.value for s in ShortVideoStrategy],
        help=f"Fill policy for clips shorter than their beat (default: {settings.short_video_strategy})",
    )
    parser.add_argument("--music", type=str, default=None, help="Explicit background music file")
    parser.add_argument("--no-music", action="store_true", help="Render narration only, without music")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help=f"Output directory for narration and videos (default: {settings.output_dir})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Stop after timeline allocation and print the beat sheet (no asset downloads, no rendering)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file (rotated)")

    args = parser.parse_args()

    if args.music and args.no_music:
        parser.error("--music and --no-music are mutually exclusive")
    if args.min_video_beats < 0:
        parser.error("--min-video-beats must be >= 0")

    log_file = args.log_file or settings.log_file
    setup_logging(log_level=settings.log_level, log_file=Path(log_file) if log_file else None)
    logger = get_logger(__name__, channel_id=args.channel)

    run_settings = settings
    if args.output_dir:
        run_settings = settings.model_copy(update={"output_dir": args.output_dir})

    options = GenerationOptions(
        min_video_beats=args.min_video_beats,
        short_video_strategy=args.short_video_strategy,
        music_enabled=False if args.no_music else None,
        music_path=args.music,
        dry_run=args.dry_run,
    )

    def report(event: ProgressEvent) -> None:
        percent = f" {event.percent:.0f}%" if event.percent is not None else ""
        logger.info(f"[{event.stage}]{percent} {event.message}")

    try:
        pipeline = DocumentaryPipeline(run_settings, logger)
        result = pipeline.generate(args.channel, args.topic, options, progress=report)
    except PipelineStageError as e:
        logger.error(
            format_error_message(
                "Documentary generation",
                e,
                context={"stage": e.stage, "kind": e.kind},
                suggestion=get_stage_suggestion(e),
            )
        )
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1

    if args.dry_run:
        print(format_beat_sheet(result.timeline))
    else:
        logger.info(f"Video: {result.video_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
