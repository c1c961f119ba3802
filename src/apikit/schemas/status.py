"""Status values reported by the service status endpoints."""

from enum import StrEnum


class ServiceStatus(StrEnum):
    """Status of a single component (or of a plain health check)."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ServerStatus(StrEnum):
    """Aggregated status of the whole service."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
