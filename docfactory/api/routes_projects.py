"""FastAPI routes for channels, timeline previews and documentary projects."""

from fastapi import APIRouter, BackgroundTasks, HTTPException

from docfactory.core.channels import get_channel, list_channels
from docfactory.core.config import Settings
from docfactory.core.errors import InvariantViolation, PipelineStageError
from docfactory.core.logging_config import get_logger
from docfactory.models.schemas import (
    Channel,
    CreateProjectRequest,
    CreateProjectResponse,
    GenerationOptions,
    GenerationResult,
    Timeline,
    TimelinePreviewRequest,
)
from docfactory.pipelines.run_documentary import DocumentaryPipeline
from docfactory.services.beat_allocator import BeatAllocator
from docfactory.storage.repository import ProjectRepository
from docfactory.utils.io_utils import new_project_id

router = APIRouter(tags=["projects"])


def run_generation_job(settings: Settings, request: CreateProjectRequest, project_id: str) -> None:
    """Background task: run one generation job and log its outcome."""
    logger = get_logger(__name__, project_id=project_id, channel_id=request.channel_id)
    options = GenerationOptions(
        project_id=project_id,
        min_video_beats=request.min_video_beats,
        short_video_strategy=request.short_video_strategy,
        music_enabled=request.music_enabled,
    )
    try:
        result = DocumentaryPipeline(settings, logger).generate(request.channel_id, request.topic, options)
        logger.info(f"Background job finished: {result.video_path}")
    except PipelineStageError as e:
        logger.error(f"Background job failed at stage '{e.stage}' ({e.kind}): {e.cause}")


@router.get("/channels", response_model=list[Channel])
async def get_channels() -> list[Channel]:
    """List the configured channels."""
    return list_channels()


@router.post("/timelines/preview", response_model=Timeline)
async def preview_timeline(request: TimelinePreviewRequest) -> Timeline:
    """
    Allocate beats for a supplied script and narration duration.

    Pure computation: no script writer, speech or media provider calls.
    """
    from docfactory.core.config import settings

    logger = get_logger(__name__, channel_id=request.channel_id)
    try:
        channel = get_channel(request.channel_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    allocator = BeatAllocator(settings, logger)
    try:
        return allocator.allocate(
            channel,
            request.topic,
            request.script,
            request.narration_duration_seconds,
            min_video_beats=request.min_video_beats,
        )
    except InvariantViolation as e:
        logger.exception("Timeline preview failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects", response_model=CreateProjectResponse, status_code=202)
async def create_project(request: CreateProjectRequest, background_tasks: BackgroundTasks) -> CreateProjectResponse:
    """Queue a documentary generation job."""
    from docfactory.core.config import settings

    channel_ids = {channel.id for channel in list_channels()}
    if request.channel_id not in channel_ids:
        raise HTTPException(status_code=404, detail=f"Unknown channel: {request.channel_id}")

    project_id = new_project_id(request.channel_id)
    background_tasks.add_task(run_generation_job, settings, request, project_id)
    get_logger(__name__, project_id=project_id).info(f"Queued project for topic: {request.topic}")
    return CreateProjectResponse(project_id=project_id, channel_id=request.channel_id, topic=request.topic)


@router.get("/projects/{project_id}", response_model=GenerationResult)
async def get_project(project_id: str) -> GenerationResult:
    """Get a finished project's manifest."""
    from docfactory.core.config import settings

    logger = get_logger(__name__, project_id=project_id)
    repository = ProjectRepository(settings, logger)
    manifest = repository.load_manifest(project_id)
    if manifest is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    return manifest
