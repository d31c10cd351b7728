import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gridslicer.api.routes import detection, exports, health, jobs, sessions
from gridslicer.config import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting GridSlicer API")
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Uploads directory: {settings.uploads_dir}")
    logger.info(f"Output directory: {settings.output_dir}")
    logger.info(
        f"Default detection grid: {settings.detection.expected_columns}x"
        f"{settings.detection.expected_rows}"
    )

    yield

    # Shutdown
    logger.info("Shutting down GridSlicer API")


app = FastAPI(
    title="GridSlicer API",
    description="Split scanned sheets and PDF pages into a grid of individually named PNG crops",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(detection.router)
app.include_router(exports.router)
app.include_router(jobs.router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "GridSlicer API",
        "version": "1.0.0",
        "docs": "/docs",
    }
