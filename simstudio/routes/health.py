# simstudio/routes/health.py
"""
Operational endpoints mounted at the application root.

Endpoints:
    GET /health - Liveness plus a database round trip
    GET /metrics - Prometheus exposition of the private registry
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..core.config import settings
from ..core.constants import API_VERSION
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.common import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Report 'degraded' (HTTP 503) when the database does not answer."""
    database = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Health check database query failed: %s", e)
        database = "unavailable"
        response.status_code = 503

    response.headers["Cache-Control"] = "no-store"
    return HealthCheckResponse(
        status="healthy" if database == "ok" else "degraded",
        service="simstudio-api",
        version=API_VERSION,
        environment=settings.environment,
        database=database,
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-store"},
    )
