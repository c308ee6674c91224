"""
Metrics Endpoint.

Exposes the process-level request counters collected by the request middleware.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from commitlabs.core.models.io import HealthMetrics
from commitlabs.core.monitoring import request_metrics
from commitlabs.server.responses import ok

router = APIRouter()


@router.get(
    "",
    summary="Process Metrics",
    description="Uptime and request counters of this API process.",
    response_description="Metrics envelope.",
)
async def get_metrics():
    snapshot = request_metrics.snapshot()
    return ok(
        HealthMetrics(
            status="up",
            uptime=round(snapshot.uptime, 3),
            requests_total=snapshot.requests_total,
            errors_total=snapshot.errors_total,
            timestamp=datetime.now(timezone.utc),
        )
    )
