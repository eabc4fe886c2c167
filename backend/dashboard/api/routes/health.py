import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from dashboard.api.deps import get_changedetection_client, get_settings
from dashboard.config import Settings
from dashboard.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/health",
    summary="Liveness check",
    description="Returns HTTP 200 if the application process is running.",
)
async def liveness():
    """Liveness probe, returns 200 if the process is running."""
    return {"status": "healthy"}


@router.get(
    "/health/ready",
    summary="Readiness check",
    description="Verifies the data source for the configured mode: the database "
    "in local mode, the changedetection.io API in proxy mode. Returns HTTP 503 "
    "if it is unavailable.",
)
async def readiness(request: Request, settings: Settings = Depends(get_settings)):
    checks = {}

    if settings.DATA_MODE == "local":
        try:
            from dashboard.core import database
            from sqlalchemy import text

            async with database.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            logger.warning(f"Readiness: database check failed: {e}")
            checks["database"] = f"error: {e}"
    else:
        try:
            client = get_changedetection_client(request)
            await client.get_system_info()
            checks["changedetection"] = "ok"
        except Exception as e:
            logger.warning(f"Readiness: changedetection.io check failed: {e}")
            checks["changedetection"] = f"error: {e}"

    all_ok = all(v == "ok" for v in checks.values())

    return Response(
        content=json.dumps(
            {"status": "ready" if all_ok else "not ready", "checks": checks}
        ),
        status_code=200 if all_ok else 503,
        media_type="application/json",
    )


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Application metrics in Prometheus exposition format. Returns "
    "HTTP 404 if metrics are disabled.",
)
async def metrics(settings: Settings = Depends(get_settings)):
    if not settings.METRICS_ENABLED:
        return Response(content="Metrics disabled", status_code=404)

    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )
