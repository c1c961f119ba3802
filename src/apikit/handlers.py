"""API error envelope and exception handler registration.

Every fault ends up here and is rendered as the standard error envelope::

    {"errors": [{"type": "RESOURCE_NOT_FOUND", "description": "Not Found", "uid": "..."}]}

- HTTP exceptions keep their status code; the well-known ones map to a
  matching ActionErrorType, anything else is reported as SERVER_ERROR.
- FastAPI's own parameter validation becomes 400 VALIDATION_ERROR field errors.
- Everything else is a 500 SERVER_ERROR whose message is only exposed when
  ``display_error_details`` is enabled.

The catch-all handler is installed on Starlette's outermost error layer, so
faults raised inside middleware still answer with JSON.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from apikit.config import Settings
from apikit.dependencies import get_settings
from apikit.logging import get_logger, get_uid
from apikit.responses import respond
from apikit.schemas.error import ActionErrorType, Error, ErrorItem, FieldError
from apikit.schemas.payload import Payload
from apikit.validation.middleware import generate_code

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An internal error has occurred while processing your request."

HTTP_ERROR_TYPES: dict[int, ActionErrorType] = {
    status.HTTP_400_BAD_REQUEST: ActionErrorType.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ActionErrorType.UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ActionErrorType.INSUFFICIENT_PRIVILEGES,
    status.HTTP_404_NOT_FOUND: ActionErrorType.RESOURCE_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ActionErrorType.NOT_ALLOWED,
    status.HTTP_501_NOT_IMPLEMENTED: ActionErrorType.NOT_IMPLEMENTED,
}

# Request sections FastAPI prefixes onto error locations
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _error_response(status_code: int, errors: ErrorItem | list[ErrorItem]) -> Response:
    return respond(Payload(status_code=status_code, errors=errors))


def _format_location(location: tuple[object, ...] | list[object]) -> str:
    parts = [str(part) for part in location if part not in _LOCATION_PREFIXES]
    return ".".join(parts) if parts else "request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Map HTTP exceptions to their error type, keeping the status code."""
    error = Error(
        type=HTTP_ERROR_TYPES.get(exc.status_code, ActionErrorType.SERVER_ERROR),
        description=str(exc.detail) if exc.detail else None,
        uid=get_uid(),
    )
    response = _error_response(exc.status_code, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    """Normalize FastAPI parameter validation errors to VALIDATION_ERROR field errors."""
    errors: list[ErrorItem] = []
    for issue in exc.errors():
        field_name = _format_location(issue.get("loc", ()))
        errors.append(
            FieldError(
                type=ActionErrorType.VALIDATION_ERROR,
                field_name=field_name,
                code=generate_code(field_name, str(issue.get("type", "invalid"))),
                description=str(issue.get("msg", "Invalid value")),
            )
        )
    return _error_response(status.HTTP_400_BAD_REQUEST, errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """Log unhandled exceptions and return a safe error response.

    - Logs the exception (with traceback when ``log_error_details`` is set)
    - Returns a generic description unless ``display_error_details`` is set
    """
    # HTTP exceptions raised from middleware skip the inner handler layer
    if isinstance(exc, StarletteHTTPException):
        return await http_exception_handler(request, exc)

    settings = get_settings(request)
    if settings.log_errors:
        log = logger.exception if settings.log_error_details else logger.error
        log("unhandled_exception", path=request.url.path, method=request.method, error=str(exc))

    description = str(exc) if settings.display_error_details else GENERIC_ERROR_MESSAGE
    error = Error(type=ActionErrorType.SERVER_ERROR, description=description, uid=get_uid())
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error)


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach all error handlers to a FastAPI app instance."""
    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
