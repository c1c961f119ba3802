"""Shared FastAPI dependencies.

Reusable type aliases and dependency functions that routers import.
Defined here (not in main.py) to avoid circular imports when routers
are registered in main.
"""

from typing import Annotated

from fastapi import Depends, Request

from apikit.config import Settings
from apikit.readiness import ReadinessCheckRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def get_readiness_registry(request: Request) -> ReadinessCheckRegistry:
    return request.app.state.readiness  # type: ignore[no-any-return]


Readiness = Annotated[ReadinessCheckRegistry, Depends(get_readiness_registry)]
