"""Monitoring endpoints: /metrics for Prometheus, /health for load balancers."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..config import Settings
from ..dependencies import get_app_settings
from .health import HealthStatus, check_directory_health, get_overall_health
from .logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Reports whether the upload and staging directories are usable",
)
def health_check(settings: Settings = Depends(get_app_settings)):
    """Check the directories uploads are written to.

    200 while both are usable (healthy or degraded), 503 otherwise.
    """
    components = {
        "upload_dir": check_directory_health(settings.UPLOAD_DIR),
        "staging_dir": check_directory_health(settings.STAGING_DIR),
    }
    overall = get_overall_health(components)

    if overall != HealthStatus.HEALTHY:
        failing = sorted(name for name, comp in components.items() if comp.status != HealthStatus.HEALTHY)
        logger.warning(f"Health check {overall.value}: {', '.join(failing)}")

    return JSONResponse(
        content={
            "status": overall.value,
            "components": {name: comp.as_dict() for name, comp in components.items()},
        },
        status_code=503 if overall == HealthStatus.UNHEALTHY else 200,
    )
