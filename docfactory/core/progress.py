"""Per-job progress reporting."""

from typing import Callable, Optional

from pydantic import BaseModel, Field

STAGE_SCRIPT = "script"
STAGE_AUDIO = "audio"
STAGE_TIMELINE = "timeline"
STAGE_ASSETS = "assets"
STAGE_DOWNLOAD = "download"
STAGE_RENDER = "render"
STAGE_DONE = "done"


class ProgressEvent(BaseModel):
    """One incremental progress report."""

    stage: str = Field(..., description="Pipeline stage (script, audio, timeline, assets, download, render, done)")
    message: str = Field(..., description="Human-readable status")
    percent: Optional[float] = Field(default=None, description="Completion percentage within the stage (0-100)")
    attempt: Optional[int] = Field(default=None, description="Duration-contract attempt number, if relevant")


ProgressSink = Callable[[ProgressEvent], None]


def emit_progress(
    progress: Optional[ProgressSink],
    stage: str,
    message: str,
    percent: Optional[float] = None,
    attempt: Optional[int] = None,
) -> None:
    """Send an event to the sink if one was supplied."""
    if progress is None:
        return
    if percent is not None:
        percent = max(0.0, min(100.0, percent))
    progress(ProgressEvent(stage=stage, message=message, percent=percent, attempt=attempt))
