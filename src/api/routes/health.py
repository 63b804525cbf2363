"""Health check endpoints."""

from datetime import datetime

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    auth: str | None = None


async def check_auth_server() -> str:
    """Probe the GoTrue health endpoint of the configured Supabase project."""
    if not settings.supabase_url:
        return "not_configured"
    url = f"{settings.supabase_url.rstrip('/')}/auth/v1/health"
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.get(url, headers={"apikey": settings.supabase_anon_key})
    except httpx.HTTPError as e:
        return f"unhealthy: {e}"
    if response.status_code != 200:
        return f"unhealthy: HTTP {response.status_code}"
    return "healthy"


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies. Fast and lightweight.
    """
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
    auth_status: str = Depends(check_auth_server),
) -> HealthResponse:
    """
    Detailed health check including database and auth server connectivity.

    An unconfigured auth server does not degrade the status.
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    healthy = db_status == "healthy" and not auth_status.startswith("unhealthy")

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=API_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        auth=auth_status,
    )
