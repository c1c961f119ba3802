"""Service status endpoints: health, readiness and liveness."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, status
from starlette.responses import Response

from apikit.dependencies import Readiness
from apikit.logging import get_logger
from apikit.readiness import evaluate
from apikit.responses import respond, respond_with_data, respond_without_data
from apikit.schemas.payload import Payload
from apikit.schemas.status import ServerStatus, ServiceStatus

logger = get_logger(__name__)

router = APIRouter(tags=["status"])

NO_STORE = {"Cache-Control": "no-store"}


def _now() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/health")
async def health() -> Response:
    """Report that the process is up and able to answer HTTP requests."""
    return respond_with_data({"status": ServiceStatus.HEALTHY, "timestamp": _now()}, headers=NO_STORE)


@router.get("/readiness")
async def readiness(registry: Readiness) -> Response:
    """Run every registered probe and aggregate the results.

    - 200 ``healthy``: all probes ready
    - 200 ``degraded``: only optional probes failed
    - 503 ``unhealthy``: at least one required probe failed
    """
    components: dict[str, dict[str, Any]] = {}
    required_failed = optional_failed = False

    for check in registry.all():
        try:
            ready = await evaluate(check)
        except Exception:
            logger.exception("readiness_probe_failed", probe=check.name)
            ready = False

        if not ready:
            if check.required:
                required_failed = True
            else:
                optional_failed = True

        components[check.name] = {
            "status": ServiceStatus.HEALTHY if ready else ServiceStatus.UNHEALTHY,
            "required": check.required,
            "details": check.details(),
        }

    if required_failed:
        overall, status_code = ServerStatus.UNHEALTHY, status.HTTP_503_SERVICE_UNAVAILABLE
    elif optional_failed:
        overall, status_code = ServerStatus.DEGRADED, status.HTTP_200_OK
    else:
        overall, status_code = ServerStatus.HEALTHY, status.HTTP_200_OK

    data = {"status": overall, "checked_at": _now(), "components": components}
    return respond(Payload(status_code=status_code, data=data), headers=NO_STORE)


@router.get("/liveness", status_code=status.HTTP_204_NO_CONTENT)
async def liveness() -> Response:
    """Answer 204 as long as the event loop is responsive."""
    return respond_without_data(status.HTTP_204_NO_CONTENT)
