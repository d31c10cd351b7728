import os

from fastapi import APIRouter, Depends
from pydantic import BaseModel

import redis
from gridslicer.config import settings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    redis: str
    output_dir: str


def get_redis_client() -> redis.Redis:
    """Get Redis client for dependency injection."""
    return redis.Redis.from_url(settings.redis_url)


def _output_dir_status() -> str:
    """Report whether exports can be written to the output directory."""
    path = settings.output_dir
    if not path.exists():
        return "missing"
    return "writable" if os.access(path, os.W_OK) else "read-only"


@router.get("/health", response_model=HealthResponse)
async def health_check(redis_client: redis.Redis = Depends(get_redis_client)):
    """
    Check API, Redis and output directory health.

    Sessions and jobs live in Redis, so slicing only works when Redis does.
    """
    try:
        redis_client.ping()
        redis_status = "healthy"
    except redis.ConnectionError:
        redis_status = "unhealthy"

    return HealthResponse(
        status="healthy" if redis_status == "healthy" else "degraded",
        redis=redis_status,
        output_dir=_output_dir_status(),
    )
