"""
HTTP surface for the Documentary Factory.

The CLI in pipelines/run_documentary.py is the primary entrypoint; the API
exposes channel listing, pure timeline previews and background generation
jobs for dashboards or remote triggers.
"""

import shutil
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docfactory.api.routes_projects import router as projects_router
from docfactory.core.channels import list_channels
from docfactory.core.config import settings
from docfactory.core.logging_config import get_logger, setup_logging

setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the runtime environment on startup."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Channels: {', '.join(c.id for c in list_channels())}")
    if shutil.which(settings.ffmpeg_binary) is None:
        logger.warning(f"Rendering engine '{settings.ffmpeg_binary}' not on PATH; render jobs will fail")
    logger.info("=" * 60)
    yield
    logger.info("API stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Narrated documentaries with audio-synchronized visual timelines",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router)


@app.get("/")
async def root():
    """Service summary."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "contract_window_seconds": [settings.contract_min_seconds, settings.contract_max_seconds],
        "endpoints": ["/channels", "/timelines/preview", "/projects", "/projects/{project_id}", "/docs"],
    }


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docfactory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
