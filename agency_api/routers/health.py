"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import text

from agency_api import __version__

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    services: dict[str, str]


def check_database(request: Request) -> str:
    """Check database connectivity.

    Returns:
        str: "up" if healthy, "down" otherwise
    """
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "up"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return "down"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness: the process is serving requests."""
    return HealthResponse(status="ok", version=__version__, services={"api": "up"})


@router.get("/readyz", response_model=HealthResponse)
async def readyz(request: Request, response: Response) -> HealthResponse:
    """Readiness: the database answers."""
    database = check_database(request)
    if database != "up":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        version=__version__,
        services={"database": database},
    )
