"""Application factory.

``create_app`` wires everything explicitly, in a fixed order: settings →
collaborators (directive registry, readiness registry) → FastAPI app →
error handlers → middleware → routers. Nothing is registered globally.

    directives = DirectiveRegistry()
    router = APIRouter()

    @router.post("/users")
    @directives.validates(ValidationDirective(ValidationTarget.REQUEST_BODY, "CreateUser"))
    async def create_user(request: Request) -> Response: ...

    app = create_app(Settings(schema_folder=Path("schemas")), routers=[router], directives=directives)
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apikit.config import Settings
from apikit.handlers import register_error_handlers
from apikit.logging import get_logger
from apikit.middleware import (
    NoCacheMiddleware,
    RemoveTrailingSlashMiddleware,
    RequestIDMiddleware,
    RequestResponseLoggerMiddleware,
)
from apikit.readiness import ReadinessCheckRegistry
from apikit.routers.health import router as health_router
from apikit.validation.directives import DirectiveRegistry
from apikit.validation.middleware import SchemaValidationMiddleware

logger = get_logger(__name__)

CORS_ALLOW_HEADERS = ["X-Requested-With", "Content-Type", "Accept", "Origin", "Authorization"]
CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager: code before yield runs on startup, after yield on shutdown."""
    settings: Settings = app.state.settings
    logger.info("app_startup", app_name=settings.app_name, app_env=settings.app_env)
    yield
    logger.info("app_shutdown", app_name=settings.app_name)


def _add_middleware(app: FastAPI, settings: Settings, directives: DirectiveRegistry) -> None:
    # Starlette wraps in reverse order: the last middleware added runs first.
    app.add_middleware(
        SchemaValidationMiddleware,
        directives=directives,
        schema_folder=settings.schema_folder,
        prefix=settings.schema_prefix,
    )
    app.add_middleware(RemoveTrailingSlashMiddleware, redirect=settings.trailing_slash_redirect)
    app.add_middleware(RequestResponseLoggerMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.no_cache:
        app.add_middleware(NoCacheMiddleware)
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=CORS_ALLOW_METHODS,
            allow_headers=CORS_ALLOW_HEADERS,
        )


def create_app(
    settings: Settings | None = None,
    *,
    routers: Sequence[APIRouter] = (),
    directives: DirectiveRegistry | None = None,
    readiness: ReadinessCheckRegistry | None = None,
) -> FastAPI:
    """Build a FastAPI app with the standard envelope, error handling and validation."""
    settings = settings if settings is not None else Settings()
    directives = directives if directives is not None else DirectiveRegistry()
    readiness = readiness if readiness is not None else ReadinessCheckRegistry()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.readiness = readiness

    register_error_handlers(app, settings)
    _add_middleware(app, settings, directives)

    app.include_router(health_router)
    for router in routers:
        app.include_router(router)

    return app
