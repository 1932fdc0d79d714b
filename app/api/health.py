"""Health check endpoints: liveness, database connectivity and version."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import DatabaseHealthResponse, HealthResponse, VersionResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """Liveness probe; does not touch the database."""
    return HealthResponse(ok=True, environment=settings.APP_ENV)


@router.get("/db", response_model=DatabaseHealthResponse)
def get_db_health(response: Response, db: Session = Depends(get_db)) -> DatabaseHealthResponse:
    """
    Return database connectivity. 503 when the database is unreachable.
    Used by load balancers and monitoring.
    """
    if check_db_connected(db):
        return DatabaseHealthResponse(ok=True, database="connected")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return DatabaseHealthResponse(ok=False, database="disconnected")


@router.get("/version", response_model=VersionResponse)
def get_version() -> VersionResponse:
    return VersionResponse(version=settings.APP_VERSION)
